"""Value types handed between the pull phase and the push phase."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

STATUS_OK = "ok"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"


@dataclass(frozen=True)
class CommitRecord:
    """One qualifying source commit."""

    hash: str
    date: str
    author_email: str


@dataclass(frozen=True)
class RepositoryCommitBatch:
    """Qualifying commits of one source repository, in source pagination order."""

    repository: str
    commits: Tuple[CommitRecord, ...]


@dataclass(frozen=True)
class FetchOutcome:
    """Tagged result of fetching one repository's commits.

    ``status`` is one of ``ok``, ``skipped`` (repository is on the ignore
    list, no request was made) or ``failed`` (nothing could be collected).
    A partial fetch that still collected commits is reported as ``ok``.
    """

    repository: str
    status: str
    commits: Tuple[CommitRecord, ...] = ()
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status != STATUS_FAILED


@dataclass
class PullReport:
    """Aggregate of a pull run across every listed repository."""

    batches: List[RepositoryCommitBatch] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def commit_count(self) -> int:
        return sum(len(batch.commits) for batch in self.batches)


__all__ = [
    "STATUS_OK",
    "STATUS_SKIPPED",
    "STATUS_FAILED",
    "CommitRecord",
    "RepositoryCommitBatch",
    "FetchOutcome",
    "PullReport",
]
