#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Project config loader.

Precedence for every setting: explicit argument > environment variable >
``conf/settings.ini`` > built-in default.
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from core.save import default_save_path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "conf" / "settings.ini"

DEFAULT_INTERVAL = 10.0

PathLike = Union[str, Path]


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class HelperConfig:
    game_data: Path
    save_path: Path
    interval: float = DEFAULT_INTERVAL

    @property
    def content_root(self) -> Path:
        return self.game_data / "StreamingAssets" / "bhcontent" / "core"


def _expand(val: Optional[PathLike]) -> Optional[str]:
    if val is None:
        return None
    s = str(val).strip()
    if not s:
        return None
    return os.path.expanduser(s)


def _cfg_get(cfg: configparser.ConfigParser, section: str, key: str) -> Optional[str]:
    val = cfg.get(section, key, fallback="") or ""
    return _expand(val)


def load_ini(path: Path) -> configparser.ConfigParser:
    """Read the ini file; a missing file yields an empty config."""
    cfg = configparser.ConfigParser()
    if path.exists():
        cfg.read(path, encoding="utf-8")
    return cfg


def resolve_config(
    *,
    config_path: Path = DEFAULT_CONFIG_PATH,
    game_data: Optional[PathLike] = None,
    save_path: Optional[PathLike] = None,
    interval: Optional[float] = None,
) -> HelperConfig:
    cfg = load_ini(Path(config_path))

    data = (
        _expand(game_data)
        or _expand(os.environ.get("BOH_GAME_DATA"))
        or _cfg_get(cfg, "PATHS", "GAME_DATA")
    )
    if not data:
        raise ConfigError(
            f"No game data path: pass --data, set BOH_GAME_DATA or fill PATHS.GAME_DATA in {config_path}"
        )

    save = (
        _expand(save_path)
        or _expand(os.environ.get("BOH_SAVE_PATH"))
        or _cfg_get(cfg, "PATHS", "SAVE_PATH")
    )

    if interval is None:
        raw = os.environ.get("BOH_WATCH_INTERVAL") or cfg.get("WATCH", "INTERVAL", fallback="")
        try:
            interval = float(raw) if str(raw).strip() else DEFAULT_INTERVAL
        except ValueError as e:
            raise ConfigError(f"Invalid watch interval: {raw!r}") from e
    if not interval > 0:
        raise ConfigError(f"Watch interval must be positive, got {interval}")

    return HelperConfig(
        game_data=Path(data),
        save_path=Path(save) if save else default_save_path(),
        interval=float(interval),
    )
