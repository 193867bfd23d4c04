"""Replay source commits as dated commits on a GitHub shadow repository.

Each source repository owns one shadow file (named after the repository) in
the shadow repo. The file lists every source hash already replayed, one per
line, so re-running a sync never replays a commit twice. Every new hash
produces its own destination commit, authored on the source commit's date,
so the destination contribution graph mirrors the source activity.
"""

from __future__ import annotations

import base64
from typing import Dict, List, Optional, Sequence

from src.models import CommitRecord, RepositoryCommitBatch

from .api import GithubAPI
from .config import (
    SHADOW_BRANCH,
    SHADOW_FILE_MODE,
    SHADOW_REPO_DESCRIPTION,
    SHADOW_REPO_HOMEPAGE,
    GithubSettings,
)


def shadow_lines(content: str) -> List[str]:
    """Split shadow file text into its non-blank, stripped hash lines."""
    return [line.strip() for line in content.splitlines() if line.strip()]


def append_hash(content: str, commit_hash: str) -> Optional[str]:
    """Return the shadow content with ``commit_hash`` added, or None if already listed."""
    commit_hash = commit_hash.strip()
    if not commit_hash:
        return None
    lines = shadow_lines(content)
    if commit_hash in lines:
        return None
    lines.append(commit_hash)
    return "\n".join(lines).strip()


def decode_blob(content: str, encoding: str) -> str:
    """Turn a blob payload served by the API into UTF-8 text."""
    if encoding == "base64":
        return base64.b64decode(content).decode("utf-8")
    return content


class GithubPusher:
    """Owns the shadow repository and replays batches into it, one commit at a time."""

    def __init__(self, settings: GithubSettings, api: Optional[GithubAPI] = None) -> None:
        self.settings = settings
        self.repo = settings.shadow_repo
        self.api = api or GithubAPI(settings.token, settings.owner)

    def ensure_shadow_repo(self) -> None:
        """Create the shadow repository when missing; InitializationError is fatal."""
        if self.api.repository_exists(self.repo):
            return
        print(f"[info] creating GitHub shadow repo {self.repo}...")
        self.api.create_repository({
            "name": self.repo,
            "description": SHADOW_REPO_DESCRIPTION,
            "homepage": SHADOW_REPO_HOMEPAGE,
            "private": True,
            "auto_init": True,
        })

    def find_shadow_blob(self, filename: str) -> Optional[str]:
        print(f"[info] verifying content of shadow file {filename}")
        head = self.api.read_latest_commit(self.repo, SHADOW_BRANCH)
        for entry in self.api.read_tree(self.repo, head.tree_sha):
            if entry.get("path") == filename:
                return entry.get("sha")
        return None

    def read_shadow_content(self, filename: str) -> str:
        """Current shadow file text, or "" when the file does not exist yet."""
        blob_sha = self.find_shadow_blob(filename)
        if not blob_sha:
            return ""
        print(f"[info] fetching content for shadow file {filename}")
        content, encoding = self.api.read_blob(self.repo, blob_sha)
        return decode_blob(content, encoding)

    def commit_shadow(self, filename: str, content: str, date: str) -> str:
        """Write ``content`` to the shadow file as one commit dated ``date``."""
        print(f"[info] committing content on date {date} to shadow file {filename}")
        head = self.api.read_latest_commit(self.repo, SHADOW_BRANCH)
        tree_sha = self.api.create_tree(
            self.repo,
            [{"path": filename, "mode": SHADOW_FILE_MODE, "type": "blob", "content": content}],
            base_tree=head.tree_sha,
        )
        commit_sha = self.api.create_commit(
            self.repo,
            message=f"Update {filename}",
            tree_sha=tree_sha,
            parents=[head.commit_sha],
            author={"name": self.settings.username, "email": self.settings.email, "date": date},
        )
        self.api.update_ref(self.repo, SHADOW_BRANCH, commit_sha)
        return commit_sha

    def replay_commits(self, filename: str, commits: Sequence[CommitRecord], content: str) -> int:
        """Replay unseen hashes in order; return how many commits were added."""
        added = 0
        for commit in commits:
            updated = append_hash(content, commit.hash)
            if updated is None:
                continue
            self.commit_shadow(filename, updated, commit.date)
            content = updated
            added += 1
        print(f"  - added {added} commits from {filename}")
        return added

    def sync(self, batches: Sequence[RepositoryCommitBatch]) -> Dict[str, int]:
        """Replay every batch sequentially; the first write failure aborts the run."""
        added: Dict[str, int] = {}
        if not batches:
            return added

        self.ensure_shadow_repo()
        total = len(batches)
        for index, batch in enumerate(batches, start=1):
            print(f"[info] syncing {index} out of {total} Bitbucket repos")
            content = self.read_shadow_content(batch.repository)
            added[batch.repository] = self.replay_commits(batch.repository, batch.commits, content)
        return added


__all__ = ["shadow_lines", "append_hash", "decode_blob", "GithubPusher"]
