"""Bitbucket-to-GitHub commit mirror entry points."""

from .runner import main, pull_commits

__all__ = ["main", "pull_commits"]
