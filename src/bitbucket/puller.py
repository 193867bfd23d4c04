"""List a Bitbucket workspace and pull the configured user's commits concurrently."""

from __future__ import annotations

import asyncio
import re
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional

from src.errors import RepositoryFetchFailure
from src.http_client import ClientProfile, paged_get
from src.models import (
    STATUS_FAILED,
    STATUS_OK,
    STATUS_SKIPPED,
    CommitRecord,
    FetchOutcome,
    PullReport,
    RepositoryCommitBatch,
)

from .config import API_URL, COMMIT_FIELDS, REPO_FIELDS, BitbucketSettings

EMAIL_RE = re.compile(r"<([^>]*)>")


def extract_email(author_raw: Optional[str]) -> Optional[str]:
    """Return the address inside ``Name <address>``, or None when there is none."""
    match = EMAIL_RE.search(author_raw or "")
    return match.group(1) if match else None


def build_profile(settings: BitbucketSettings) -> ClientProfile:
    return ClientProfile(
        headers={"Content-Type": "application/json"},
        auth=(settings.username, settings.password),
    )


class BitbucketPuller:
    """Reads repositories and commits from one Bitbucket workspace."""

    def __init__(self, settings: BitbucketSettings, profile: Optional[ClientProfile] = None) -> None:
        self.settings = settings
        self.profile = profile or build_profile(settings)
        self.emails = frozenset(settings.emails)
        self.ignore_repos = frozenset(settings.ignore_repos)

    def repos_url(self) -> str:
        return f"{API_URL}/repositories/{self.settings.workspace}?fields={REPO_FIELDS}"

    def commits_url(self, repo: str) -> str:
        return f"{API_URL}/repositories/{self.settings.workspace}/{repo}/commits/?fields={COMMIT_FIELDS}"

    def _select_commit(self, item: Dict[str, Any]) -> Optional[CommitRecord]:
        commit_hash = item.get("hash")
        if not commit_hash:
            return None
        author = item.get("author")
        raw = author.get("raw") if isinstance(author, dict) else None
        email = extract_email(raw) or ""
        if email not in self.emails:
            return None
        return CommitRecord(hash=commit_hash, date=item.get("date") or "", author_email=email)

    async def list_repositories(self) -> List[str]:
        """Return every repository slug in the workspace, or [] when listing fails."""
        workspace = self.settings.workspace
        print(f"[info] getting repo list from Bitbucket for workspace {workspace}...")

        walk = await paged_get(self.repos_url(), self.profile, lambda item: item.get("slug") or None)
        if walk.failed:
            print(f"[error] failed to fetch repos for {workspace}")
            return []
        if walk.partial:
            print(f"[warn] repo listing for {workspace} stopped early; keeping {len(walk.items)} repos")
        if not walk.items:
            print(f"[info] no repos present for {workspace}")
            return []

        print(f"[info] repos present in workspace {workspace}:\n  {' '.join(walk.items)}")
        return list(walk.items)

    async def fetch_commits(self, repo: str, executor: Optional[Executor] = None) -> FetchOutcome:
        """Collect the user's commits for one repository as a tagged outcome."""
        if repo in self.ignore_repos:
            print(f"[skip] ignoring repo {repo} for sharing commits")
            return FetchOutcome(repository=repo, status=STATUS_SKIPPED)

        print(f"[info] getting commits from Bitbucket for repo {repo}...")
        walk = await paged_get(self.commits_url(repo), self.profile, self._select_commit, executor)

        if walk.failed:
            print(f"[error] failed to fetch commits for {repo}")
            return FetchOutcome(
                repository=repo,
                status=STATUS_FAILED,
                error=RepositoryFetchFailure(repo, str(walk.error)),
            )
        if walk.partial:
            print(f"[warn] commit listing for {repo} stopped early; keeping {len(walk.items)} commits")
        if not walk.items:
            print(f"[info] no commits present for repo {repo}")
        return FetchOutcome(repository=repo, status=STATUS_OK, commits=tuple(walk.items))

    async def pull_all(self, repos: Iterable[str]) -> PullReport:
        """Fetch every repository concurrently and wait for all of them to settle.

        The request pool gets one worker per repository so no fetch waits on another.
        """
        repos = list(repos)
        report = PullReport()
        if not repos:
            return report

        print(f"[info] fetching commits from {len(repos)} Bitbucket repos...")
        with ThreadPoolExecutor(max_workers=len(repos), thread_name_prefix="bitbucket-pull") as pool:
            results = await asyncio.gather(
                *(self.fetch_commits(repo, pool) for repo in repos),
                return_exceptions=True,
            )

        for repo, result in zip(repos, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                print(f"[error] fetching commits for {repo} raised {result!r}")
                report.failed.append(repo)
                continue
            if result.status == STATUS_SKIPPED:
                report.skipped.append(repo)
            elif result.status == STATUS_FAILED:
                report.failed.append(repo)
            elif result.commits:
                report.batches.append(RepositoryCommitBatch(repository=repo, commits=result.commits))

        considered = len(repos) - len(report.skipped)
        if report.ok:
            print(f"[info] fetched commits from {considered} Bitbucket repos")
        else:
            print(
                f"[error] failed to fetch commits from {len(report.failed)} of "
                f"{considered} Bitbucket repos: {' '.join(report.failed)}"
            )
        return report


__all__ = ["EMAIL_RE", "extract_email", "build_profile", "BitbucketPuller"]
