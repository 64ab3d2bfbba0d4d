# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from core.config import HelperConfig
from core.engine import HelperEngine

from .api import router as api_router
from .settings import WebHelperSettings

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[HelperConfig] = None,
    *,
    engine: Optional[HelperEngine] = None,
    settings: Optional[WebHelperSettings] = None,
) -> FastAPI:
    """FastAPI app factory.

    Pass either a resolved ``config`` (the catalog is built here, fatal on
    error) or a ready ``engine``.
    """

    settings = settings or WebHelperSettings()
    if engine is None:
        if config is None:
            raise ValueError("create_app needs a config or an engine")
        engine = HelperEngine(config)

    app = FastAPI(
        title="BoHelper API",
        version="1.0",
        root_path=WebHelperSettings.normalize_root_path(settings.root_path),
        docs_url="/docs",
        redoc_url=None,
    )

    # state
    app.state.engine = engine
    app.state.settings = settings

    # middleware
    if settings.gzip_minimum_size and settings.gzip_minimum_size > 0:
        app.add_middleware(GZipMiddleware, minimum_size=int(settings.gzip_minimum_size))

    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_allow_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # routes
    app.include_router(api_router)

    @app.on_event("startup")
    def _startup() -> None:
        if settings.watch:
            engine.start_watching()
            logger.info("Watching %s every %.0fs", engine.saves.path, engine.watcher.interval)

    @app.on_event("shutdown")
    def _shutdown() -> None:
        engine.close()

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    return app
