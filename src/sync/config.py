"""Command-line parsing and resolved settings for a sync run."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple

from src.bitbucket.config import BitbucketSettings, load_bitbucket_settings, missing_bitbucket_settings
from src.github.config import GithubSettings, load_github_settings, missing_github_settings
from src.secrets import load_local_secrets


@dataclass(frozen=True)
class SyncSettings:
    """Everything one sync run needs, resolved once at startup."""

    bitbucket: BitbucketSettings
    github: GithubSettings
    dry_run: bool = False
    only_repos: Tuple[str, ...] = ()


def build_arg_parser() -> argparse.ArgumentParser:
    """Return the CLI parser used by the sync entry point."""

    parser = argparse.ArgumentParser(
        description="Mirror your Bitbucket commit activity onto a GitHub shadow repository.",
    )
    parser.add_argument("repos", nargs="*", help="only sync these Bitbucket repo slugs")
    parser.add_argument("--dry-run", action="store_true",
                        help="pull and report commits without writing to GitHub")
    parser.add_argument("--shadow-repo", default=None,
                        help="destination repository name (overrides GITHUB_SHADOW_REPO)")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments; accepts argv overrides for testing."""

    return build_arg_parser().parse_args(argv)


def resolve_settings(args: Optional[argparse.Namespace] = None,
                     secrets: Optional[Dict[str, Any]] = None) -> SyncSettings:
    """Combine env vars, local secrets and CLI flags into immutable settings."""

    args = args if args is not None else parse_args([])
    secrets = secrets if secrets is not None else load_local_secrets()
    github = load_github_settings(secrets)
    if args.shadow_repo:
        github = replace(github, shadow_repo=args.shadow_repo)
    return SyncSettings(
        bitbucket=load_bitbucket_settings(secrets),
        github=github,
        dry_run=bool(args.dry_run),
        only_repos=tuple(args.repos or ()),
    )


def missing_settings(settings: SyncSettings) -> List[str]:
    return missing_bitbucket_settings(settings.bitbucket) + missing_github_settings(settings.github)


__all__ = ["SyncSettings", "build_arg_parser", "parse_args", "resolve_settings", "missing_settings"]
