"""Entry point wiring settings, the Bitbucket pull phase and the GitHub push phase."""

from __future__ import annotations

import asyncio
import sys
from typing import List, Optional, Sequence

from src.bitbucket.puller import BitbucketPuller
from src.github.pusher import GithubPusher
from src.models import PullReport

from .config import SyncSettings, missing_settings, parse_args, resolve_settings


async def pull_commits(puller: BitbucketPuller, only_repos: Sequence[str] = ()) -> PullReport:
    """List the workspace and fetch every repository's commits concurrently."""
    repos = await puller.list_repositories()
    if only_repos:
        wanted = set(only_repos)
        repos = [repo for repo in repos if repo in wanted]
        print(f"[info] restricting run to {len(repos)} requested repos")
    return await puller.pull_all(repos)


def print_dry_run(report: PullReport) -> None:
    print(f"[info] dry run: {report.commit_count} commits across {len(report.batches)} repos")
    for batch in report.batches:
        print(f"  - {batch.repository}: {len(batch.commits)} commits")


def run(settings: SyncSettings) -> None:
    """Pull from Bitbucket, then replay onto GitHub; push failures propagate."""
    report = asyncio.run(pull_commits(BitbucketPuller(settings.bitbucket), settings.only_repos))
    if settings.dry_run:
        print_dry_run(report)
        return
    if not report.batches:
        print("[info] nothing to sync")
        return

    added = GithubPusher(settings.github).sync(report.batches)
    print(f"[info] sync complete: added {sum(added.values())} commits across {len(added)} repos")


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point; exits with status 1 when required settings are missing."""
    print("[info] verifying environment variables...")
    settings = resolve_settings(parse_args(argv))
    missing = missing_settings(settings)
    if missing:
        print(
            "[error] please provide all the required environment variables "
            f"(or local_secrets.json entries): {', '.join(missing)}"
        )
        sys.exit(1)
    run(settings)


if __name__ == "__main__":
    main()
