"""Utilities for loading local (gitignored) credentials and resolving settings."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

DEFAULT_SECRETS_FILENAME = "local_secrets.json"


def _default_secrets_path() -> Path:
    root = Path(__file__).resolve().parents[1]
    return root / DEFAULT_SECRETS_FILENAME


def load_local_secrets(path: Optional[str | Path] = None) -> Dict[str, Any]:
    """Load secrets from a JSON file; return {} when unavailable or malformed."""

    candidate = path or os.getenv("LOCAL_SECRETS_FILE") or _default_secrets_path()
    secrets_path = Path(candidate).expanduser()
    if not secrets_path.exists():
        return {}
    try:
        with secrets_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError) as exc:
        print(f"[warn] ignoring unreadable secrets file {secrets_path}: {exc}")
        return {}
    return data if isinstance(data, dict) else {}


def lookup_setting(env_name: str,
                   section: Mapping[str, Any],
                   key: str,
                   default: str = "") -> str:
    """Resolve a setting from the environment first, then the secrets section."""
    value = os.getenv(env_name)
    if value is None:
        value = section.get(key)
    if value is None:
        return default
    return str(value).strip()


__all__ = ["load_local_secrets", "lookup_setting", "DEFAULT_SECRETS_FILENAME"]
