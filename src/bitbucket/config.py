"""Configuration constants and settings for reading from Bitbucket."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from src.secrets import load_local_secrets, lookup_setting

API_URL = "https://api.bitbucket.org/2.0"
REPO_FIELDS = "next,values.slug"
COMMIT_FIELDS = "next,values.author,values.date,values.hash"

# env var -> key in the "bitbucket" section of local_secrets.json
ENV_KEYS = {
    "BITBUCKET_USERNAME": "username",
    "BITBUCKET_PASSWORD": "password",
    "BITBUCKET_EMAIL": "email",
    "BITBUCKET_WORKSPACE": "workspace",
    "BITBUCKET_IGNORE_REPOS": "ignore_repos",
}
REQUIRED_ENV_VARS = [
    "BITBUCKET_USERNAME",
    "BITBUCKET_PASSWORD",
    "BITBUCKET_EMAIL",
    "BITBUCKET_WORKSPACE",
]


@dataclass(frozen=True)
class BitbucketSettings:
    """Credentials and filters for the source host."""

    username: str
    password: str
    workspace: str
    emails: Tuple[str, ...]
    ignore_repos: Tuple[str, ...] = ()


def split_setting_list(raw: Optional[str]) -> Tuple[str, ...]:
    """Turn a space-separated (optionally quoted) setting into a tuple."""
    if not raw:
        return ()
    return tuple(part for part in raw.replace('"', "").split() if part)


def load_bitbucket_settings(secrets: Optional[Dict[str, Any]] = None) -> BitbucketSettings:
    section = (secrets if secrets is not None else load_local_secrets()).get("bitbucket") or {}
    values = {env: lookup_setting(env, section, key) for env, key in ENV_KEYS.items()}
    return BitbucketSettings(
        username=values["BITBUCKET_USERNAME"],
        password=values["BITBUCKET_PASSWORD"],
        workspace=values["BITBUCKET_WORKSPACE"],
        emails=split_setting_list(values["BITBUCKET_EMAIL"]),
        ignore_repos=split_setting_list(values["BITBUCKET_IGNORE_REPOS"]),
    )


def missing_bitbucket_settings(settings: BitbucketSettings) -> List[str]:
    """Return the env var names of required settings that resolved empty."""
    present = {
        "BITBUCKET_USERNAME": settings.username,
        "BITBUCKET_PASSWORD": settings.password,
        "BITBUCKET_EMAIL": settings.emails,
        "BITBUCKET_WORKSPACE": settings.workspace,
    }
    return [name for name in REQUIRED_ENV_VARS if not present[name]]


__all__ = [
    "API_URL",
    "REPO_FIELDS",
    "COMMIT_FIELDS",
    "ENV_KEYS",
    "REQUIRED_ENV_VARS",
    "BitbucketSettings",
    "split_setting_list",
    "load_bitbucket_settings",
    "missing_bitbucket_settings",
]
