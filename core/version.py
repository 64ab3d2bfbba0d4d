# -*- coding: utf-8 -*-
"""Project version helpers."""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import metadata
from pathlib import Path
from typing import Dict

DIST_NAME = "bohelper"


def _project_root() -> Path:
    return Path(__file__).resolve().parents[1]


@lru_cache(maxsize=1)
def _load_version_file() -> Dict[str, str]:
    """conf/version.json: {"project_version": ..., "content_version": ...}."""
    path = _project_root() / "conf" / "version.json"
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    if not isinstance(data, dict):
        return {}
    return {k: v.strip() for k, v in data.items() if isinstance(v, str) and v.strip()}


def project_version() -> str:
    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        return _load_version_file().get("project_version", "unknown")


def content_version() -> str:
    """Game content version the fixed tables were checked against."""
    return _load_version_file().get("content_version", "unknown")


def versions() -> Dict[str, str]:
    return {
        "project_version": project_version(),
        "content_version": content_version(),
    }
