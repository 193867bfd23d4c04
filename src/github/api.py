"""Thin wrapper around the GitHub git-data API (blobs, trees, commits, refs)."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from src.errors import GitDataError, InitializationError, ReplayStepError
from src.http_client import ApiResult, ClientProfile, make_request

from .config import ACCEPT, API_URL


@dataclass(frozen=True)
class HeadCommit:
    """Commit sha and root tree sha at the tip of a ref."""

    commit_sha: str
    tree_sha: str


class GithubAPI:
    """Object-graph operations against repositories owned by ``owner``.

    Every call either returns a usable sha/value or raises: reads raise
    GitDataError, writes raise ReplayStepError. Nothing is retried here.
    """

    def __init__(self, token: str, owner: str, profile: Optional[ClientProfile] = None) -> None:
        self.owner = owner
        self.profile = profile or ClientProfile(
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {token}",
                "Accept": ACCEPT,
            }
        )

    def _repo_url(self, repo: str, path: str = "") -> str:
        return f"{API_URL}/repos/{self.owner}/{repo}{path}"

    def _call(self, method: str, url: str, body: Optional[Dict[str, Any]] = None) -> ApiResult:
        return make_request(method, url, self.profile, body)

    def _require(self, result: ApiResult, key: str, operation: str,
                 error_cls: type = GitDataError) -> Any:
        value = result.get(key) if result.ok else None
        if value is None:
            raise error_cls(f"{operation} failed (status {result.status_code})")
        return value

    def repository_exists(self, repo: str) -> bool:
        return self._call("GET", self._repo_url(repo)).ok

    def create_repository(self, metadata: Dict[str, Any]) -> Dict[str, Any]:
        result = self._call("POST", f"{API_URL}/user/repos", metadata)
        if not result.ok:
            raise InitializationError(f"Initialization of repository {metadata.get('name')} failed")
        return result.payload

    def read_blob(self, repo: str, blob_sha: str) -> Tuple[str, str]:
        """Return the blob's (content, encoding) exactly as the API serves it."""
        result = self._call("GET", self._repo_url(repo, f"/git/blobs/{blob_sha}"))
        content = self._require(result, "content", f"reading blob {blob_sha}")
        return content, result.get("encoding") or "utf-8"

    def create_blob(self, repo: str, data: bytes) -> str:
        body = {"content": base64.b64encode(data).decode("ascii"), "encoding": "base64"}
        result = self._call("POST", self._repo_url(repo, "/git/blobs"), body)
        return self._require(result, "sha", "creating blob", ReplayStepError)

    def read_tree(self, repo: str, tree_sha: str) -> List[Dict[str, Any]]:
        result = self._call("GET", self._repo_url(repo, f"/git/trees/{tree_sha}"))
        return list(self._require(result, "tree", f"reading tree {tree_sha}"))

    def create_tree(self, repo: str, entries: Sequence[Dict[str, Any]],
                    base_tree: Optional[str] = None) -> str:
        """Create a tree from ``entries``, merged onto ``base_tree`` when given."""
        body: Dict[str, Any] = {"tree": list(entries)}
        if base_tree:
            body["base_tree"] = base_tree
        result = self._call("POST", self._repo_url(repo, "/git/trees"), body)
        return self._require(result, "sha", "creating tree", ReplayStepError)

    def read_latest_commit(self, repo: str, ref: str) -> HeadCommit:
        result = self._call("GET", self._repo_url(repo, f"/commits/{ref}"))
        commit_sha = self._require(result, "sha", f"reading head of {ref}")
        tree_sha = ((result.get("commit") or {}).get("tree") or {}).get("sha")
        if not tree_sha:
            raise GitDataError(f"reading head of {ref} returned no tree")
        return HeadCommit(commit_sha=commit_sha, tree_sha=tree_sha)

    def create_commit(self, repo: str, message: str, tree_sha: str,
                      parents: Sequence[str], author: Dict[str, str]) -> str:
        body = {"message": message, "tree": tree_sha, "parents": list(parents), "author": dict(author)}
        result = self._call("POST", self._repo_url(repo, "/git/commits"), body)
        return self._require(result, "sha", "creating commit", ReplayStepError)

    def update_ref(self, repo: str, branch: str, commit_sha: str, force: bool = False) -> None:
        url = self._repo_url(repo, f"/git/refs/heads/{branch}")
        result = self._call("PATCH", url, {"sha": commit_sha, "force": force})
        if not result.ok:
            raise ReplayStepError(f"updating {branch} to {commit_sha} failed (status {result.status_code})")


__all__ = ["GithubAPI", "HeadCommit"]
