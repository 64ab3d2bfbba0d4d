# -*- coding: utf-8 -*-
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class WebHelperSettings:
    """Runtime settings for the web server.

    Notes
    - root_path is for reverse-proxy mount (e.g. '/bohelper')
    - watch=False disables the save watcher (snapshot loaded once)
    """

    root_path: str = ""
    watch: bool = True
    cors_allow_origins: Optional[List[str]] = None
    gzip_minimum_size: int = 800

    @staticmethod
    def normalize_root_path(root_path: str) -> str:
        rp = (root_path or "").strip()
        if not rp:
            return ""
        if not rp.startswith("/"):
            rp = "/" + rp
        rp = rp.rstrip("/")
        return rp
