"""Destination side: replay source commits into a GitHub shadow repository."""

from .api import GithubAPI, HeadCommit
from .config import GithubSettings, load_github_settings
from .pusher import GithubPusher

__all__ = ["GithubAPI", "GithubPusher", "GithubSettings", "HeadCommit", "load_github_settings"]
