"""Exception types shared by the pull and push phases."""

from __future__ import annotations


class SyncError(RuntimeError):
    """Base class for every failure raised by the commit mirror."""


class PageFetchError(SyncError):
    """One page of a cursor-paginated listing could not be fetched."""

    def __init__(self, url: str, status_code: int | None = None) -> None:
        self.url = url
        self.status_code = status_code
        status = status_code if status_code is not None else "transport error"
        super().__init__(f"page request failed ({status}): {url}")


class RepositoryFetchFailure(SyncError):
    """A repository's commits could not be fetched and nothing was collected."""

    def __init__(self, repository: str, reason: str = "") -> None:
        self.repository = repository
        message = f"failed to fetch commits for {repository}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class GitDataError(SyncError):
    """A call against the destination object graph failed."""


class InitializationError(GitDataError):
    """The destination shadow repository could not be created."""


class ReplayStepError(GitDataError):
    """A blob, tree, commit or ref write failed while replaying commits."""


__all__ = [
    "SyncError",
    "PageFetchError",
    "RepositoryFetchFailure",
    "GitDataError",
    "InitializationError",
    "ReplayStepError",
]
