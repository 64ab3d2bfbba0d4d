#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Run the BoHelper web API (FastAPI + Uvicorn).

Usage:
  python3 devtools/serve_web.py --data "~/.steam/steam/steamapps/common/Book of Hours/bh_Data" --port 20000
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import uvicorn  # type: ignore  # noqa: E402

from apps.webhelper.app import create_app  # noqa: E402
from apps.webhelper.settings import WebHelperSettings  # noqa: E402
from core.catalog import CatalogError  # noqa: E402
from core.config import DEFAULT_CONFIG_PATH, ConfigError, resolve_config  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(description="BoHelper web API server.")
    parser.add_argument("--data", default=None, help="Game data path (bh_Data)")
    parser.add_argument("--save", default=None, help="Save file to watch")
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH))
    parser.add_argument("--interval", type=float, default=None, help="Save watch interval (seconds)")
    parser.add_argument("--no-watch", action="store_true", help="Load the save once, do not watch it")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--root-path", default="", help="Reverse proxy mount path, e.g. /bohelper")
    parser.add_argument("--log-level", default="info", choices=["critical", "error", "warning", "info", "debug", "trace"])
    parser.add_argument("--cors-allow-origin", action="append", default=[], help="CORS allow origin (repeatable)")
    args = parser.parse_args()

    py_level = "DEBUG" if args.log_level == "trace" else args.log_level.upper()
    logging.basicConfig(level=getattr(logging, py_level), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        cfg = resolve_config(
            config_path=Path(args.config),
            game_data=args.data,
            save_path=args.save,
            interval=args.interval,
        )
        app = create_app(
            cfg,
            settings=WebHelperSettings(
                root_path=args.root_path,
                watch=not args.no_watch,
                cors_allow_origins=(args.cors_allow_origin or None),
            ),
        )
    except (ConfigError, CatalogError) as e:
        print(f"❌ {e}")
        sys.exit(2)

    rp = (args.root_path or "").rstrip("/")
    print(f"BoHelper API: http://{args.host}:{args.port}{rp}/docs")
    print(f"Content: {cfg.content_root}")
    print(f"Save: {cfg.save_path}")

    uvicorn.run(
        app,
        host=str(args.host),
        port=int(args.port),
        log_level=args.log_level,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )


if __name__ == "__main__":
    main()
