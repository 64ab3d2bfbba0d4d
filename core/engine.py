#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""HelperEngine (core)

This module is intentionally UI-agnostic.

Responsibilities
- Build the immutable Catalog once (fatal on error).
- Hold the owned-state snapshot of the save in a single lock-guarded cell.
- Refresh that snapshot when the save file changes (polling watcher thread).
- Offer query helpers that read exactly one snapshot per call.

Design notes
- Engine must be usable by CLI and Web layers.
- The resolver runs outside the lock; the lock only covers the swap.
- A failed refresh keeps the previous snapshot.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from core.aspects import AspectMap
from core.catalog import build_catalog
from core.config import HelperConfig
from core.logic import (
    DEFAULT_MEMORY_LIMIT,
    CraftBrowse,
    SolveResult,
    craft_browse,
    find_aspected,
    find_memories,
    solve,
)
from core.save import EMPTY_STATE, OwnedState, SaveFormatError, load_save
from core.schemas.catalog import Catalog

logger = logging.getLogger(__name__)


class SaveStore:
    """Owned-state snapshot of one save file (thread-safe)."""

    def __init__(self, path: Path, catalog: Catalog):
        self._path = Path(path)
        self._catalog = catalog
        self._lock = threading.RLock()
        self._mtime: float = -1.0
        self._state: OwnedState = EMPTY_STATE
        self._error: Optional[str] = None

    @property
    def path(self) -> Path:
        return self._path

    def mtime(self) -> float:
        with self._lock:
            return float(self._mtime)

    def last_error(self) -> Optional[str]:
        with self._lock:
            return self._error

    def snapshot(self) -> OwnedState:
        with self._lock:
            return self._state

    def refresh(self, force: bool = False) -> bool:
        """Re-resolve the save if it changed. Returns True if a new snapshot was swapped in."""
        try:
            mtime = self._path.stat().st_mtime
        except OSError as e:
            self._fail(f"Save file not readable: {self._path} ({e})")
            return False

        with self._lock:
            if (not force) and self._mtime == mtime:
                return False

        try:
            state = load_save(self._path, self._catalog)
        except SaveFormatError as e:
            self._fail(str(e))
            return False

        with self._lock:
            self._state = state
            self._mtime = mtime
            self._error = None
        logger.info("Save snapshot refreshed: %d entities, %d skills", len(state.entities), len(state.skills))
        return True

    def _fail(self, msg: str) -> None:
        with self._lock:
            self._error = msg
        logger.error("Save refresh failed, keeping previous snapshot: %s", msg)


class SaveWatcher:
    """Poll a SaveStore every ``interval`` seconds on a daemon thread."""

    def __init__(self, store: SaveStore, interval: float = 10.0):
        if not interval > 0:
            raise ValueError(f"Watch interval must be positive, got {interval}")
        self.store = store
        self.interval = float(interval)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="save-watcher", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.store.refresh()
            except Exception:
                logger.exception("Save watcher tick failed")


class HelperEngine:
    """Main entry used by CLI / Web.

    Parameters
    - config: resolved HelperConfig (game data + save path + watch interval).
    - catalog: optional prebuilt catalog (skips reading content files).
    - load_save: resolve the save immediately.
    """

    def __init__(self, config: HelperConfig, *, catalog: Optional[Catalog] = None, load_save: bool = True):
        self.config = config
        self.catalog: Catalog = catalog if catalog is not None else build_catalog(config.content_root)
        self.saves = SaveStore(config.save_path, self.catalog)
        self.watcher = SaveWatcher(self.saves, config.interval)
        if load_save:
            self.saves.refresh(force=True)

    # --------------------------------------------------------
    # Context manager
    # --------------------------------------------------------

    def __enter__(self) -> "HelperEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def start_watching(self) -> None:
        self.watcher.start()

    def close(self) -> None:
        self.watcher.stop()

    # --------------------------------------------------------
    # Queries
    # --------------------------------------------------------

    def snapshot(self) -> OwnedState:
        return self.saves.snapshot()

    def memories(self, qualities: Sequence[str], limit: int = DEFAULT_MEMORY_LIMIT) -> Dict[str, Tuple[str, AspectMap]]:
        return find_memories(self.catalog, self.snapshot().entities, qualities, limit)

    def solve(self, pair: Sequence[str], limit: int = DEFAULT_MEMORY_LIMIT) -> SolveResult:
        return solve(self.catalog, self.snapshot().entities, pair, limit)

    def craft(self, query: str) -> CraftBrowse:
        return craft_browse(self.catalog, self.snapshot().skills, query)

    def aspected(self, aspects: List[str], keep=None) -> Dict[str, AspectMap]:
        return find_aspected(self.catalog, aspects, keep)
