"""Configuration constants and settings for writing to GitHub."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from src.secrets import load_local_secrets, lookup_setting

API_URL = "https://api.github.com"
ACCEPT = "application/vnd.github.v3+json"
DEFAULT_SHADOW_REPO = "BitbucketCommitsShadowContributions"
SHADOW_BRANCH = "main"
SHADOW_FILE_MODE = "100644"
SHADOW_REPO_DESCRIPTION = "Created by ShareCommits-BitbucketToGithub"
SHADOW_REPO_HOMEPAGE = "https://github.com/nmudd037/sharecommits-bitbuckettogithub"

# env var -> key in the "github" section of local_secrets.json
ENV_KEYS = {
    "GITHUB_OWNER": "owner",
    "GITHUB_USERNAME": "username",
    "GITHUB_EMAIL": "email",
    "GITHUB_TOKEN": "token",
    "GITHUB_SHADOW_REPO": "shadow_repo",
}
REQUIRED_ENV_VARS = ["GITHUB_OWNER", "GITHUB_USERNAME", "GITHUB_EMAIL", "GITHUB_TOKEN"]


@dataclass(frozen=True)
class GithubSettings:
    """Credentials and commit identity for the destination host."""

    owner: str
    username: str
    email: str
    token: str
    shadow_repo: str = DEFAULT_SHADOW_REPO


def load_github_settings(secrets: Optional[Dict[str, Any]] = None) -> GithubSettings:
    section = (secrets if secrets is not None else load_local_secrets()).get("github") or {}
    values = {env: lookup_setting(env, section, key) for env, key in ENV_KEYS.items()}
    return GithubSettings(
        owner=values["GITHUB_OWNER"],
        username=values["GITHUB_USERNAME"],
        email=values["GITHUB_EMAIL"],
        token=values["GITHUB_TOKEN"],
        shadow_repo=values["GITHUB_SHADOW_REPO"] or DEFAULT_SHADOW_REPO,
    )


def missing_github_settings(settings: GithubSettings) -> List[str]:
    """Return the env var names of required settings that resolved empty."""
    present = {
        "GITHUB_OWNER": settings.owner,
        "GITHUB_USERNAME": settings.username,
        "GITHUB_EMAIL": settings.email,
        "GITHUB_TOKEN": settings.token,
    }
    return [name for name in REQUIRED_ENV_VARS if not present[name]]


__all__ = [
    "API_URL",
    "ACCEPT",
    "DEFAULT_SHADOW_REPO",
    "SHADOW_BRANCH",
    "SHADOW_FILE_MODE",
    "SHADOW_REPO_DESCRIPTION",
    "SHADOW_REPO_HOMEPAGE",
    "ENV_KEYS",
    "REQUIRED_ENV_VARS",
    "GithubSettings",
    "load_github_settings",
    "missing_github_settings",
]
