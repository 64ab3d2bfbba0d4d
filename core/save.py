#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Save-tree resolver (core).

A Book of Hours save is a recursive container tree:

    Dominion -> Spheres -> Tokens -> Payload -> (nested Dominions ...)

Only *leaf* payloads (no nested dominions) are things the player owns;
payloads with dominions are containers and are never yielded themselves.
This module flattens the tree into an :class:`OwnedState` snapshot.

The resolver is read-only and never writes the save.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from core.schemas.catalog import Catalog

logger = logging.getLogger(__name__)

__all__ = [
    "Dominion",
    "OwnedEntity",
    "OwnedState",
    "Payload",
    "SaveFormatError",
    "Sphere",
    "Token",
    "default_save_path",
    "load_save",
    "parse_dominion",
    "prune_to_catalog",
    "resolve_save",
]


class SaveFormatError(ValueError):
    pass


# Nesting cap; valid saves are shallow trees.
MAX_DEPTH = 64

# Top-level spheres whose leaves count as world items.
WORLD_SPHERES: FrozenSet[str] = frozenset(
    {
        # inventory compartments
        "portage1",
        "portage2",
        "portage3",
        "portage4",
        "portage5",
        # equipment slots
        "hand.equipment.head",
        "hand.equipment.body",
        "hand.equipment.hands",
        # hand slots
        "hand.misc",
        "hand.memories",
        # terrain input
        "terrain.input",
    }
)

LIBRARY_SPHERE = "library"
SKILLS_SPHERE = "hand.skills"
ABILITIES_SPHERE = "hand.abilities"

# Environment-effect keys that are not library locations.
NON_LOCATION_FX: FrozenSet[str] = frozenset(
    {
        "weather",
        "season",
        "vignette",
        "music",
        "sky",
        "ambience",
        "numa",
    }
)

# Location whose sub-containers hold items, minus the seasonal decorations.
NESTED_LOCATION = "hallofvoices"
SEASONAL_SPHERE = "seasonaldecorations"


# =========================================================
# Tree model
# =========================================================

@dataclass(frozen=True)
class Payload:
    entity_id: Optional[str]
    mutations: Dict[str, Any] = field(default_factory=dict)
    dominions: Tuple["Dominion", ...] = ()
    id: Optional[str] = None
    is_shrouded: bool = False

    @property
    def is_leaf(self) -> bool:
        return not self.dominions


@dataclass(frozen=True)
class Token:
    payload: Payload

    def resolve(self, depth: int = 0) -> List[Payload]:
        if self.payload.is_leaf:
            return [self.payload]
        out: List[Payload] = []
        for dominion in self.payload.dominions:
            out.extend(dominion.resolve(depth + 1))
        return out


@dataclass(frozen=True)
class Sphere:
    id: str
    tokens: Tuple[Token, ...] = ()

    def resolve(self, depth: int = 0) -> List[Payload]:
        out: List[Payload] = []
        for token in self.tokens:
            out.extend(token.resolve(depth))
        return out


@dataclass(frozen=True)
class Dominion:
    spheres: Tuple[Sphere, ...] = ()
    identifier: str = ""

    def resolve(self, depth: int = 0) -> List[Payload]:
        if depth > MAX_DEPTH:
            raise SaveFormatError(f"Save tree deeper than {MAX_DEPTH} levels")
        out: List[Payload] = []
        for sphere in self.spheres:
            out.extend(sphere.resolve(depth))
        return out

    def sphere(self, sphere_id: str) -> Optional[Sphere]:
        for s in self.spheres:
            if s.id == sphere_id:
                return s
        return None


def _as_list(v: Any) -> List[Any]:
    return v if isinstance(v, list) else []


def _as_dict(v: Any) -> Dict[str, Any]:
    return v if isinstance(v, dict) else {}


def _parse_payload(raw: Any, depth: int) -> Payload:
    p = _as_dict(raw)
    eid = p.get("EntityId")
    return Payload(
        entity_id=str(eid) if eid else None,
        mutations=dict(_as_dict(p.get("Mutations"))),
        dominions=tuple(parse_dominion(d, depth + 1) for d in _as_list(p.get("Dominions"))),
        id=str(p["Id"]) if p.get("Id") else None,
        is_shrouded=bool(p.get("IsShrouded") or False),
    )


def _parse_sphere(raw: Any, depth: int) -> Sphere:
    s = _as_dict(raw)
    spec = _as_dict(s.get("GoverningSphereSpec"))
    tokens = []
    for t in _as_list(s.get("Tokens")):
        tokens.append(Token(payload=_parse_payload(_as_dict(t).get("Payload"), depth)))
    return Sphere(id=str(spec.get("Id") or ""), tokens=tuple(tokens))


def parse_dominion(raw: Any, depth: int = 0) -> Dominion:
    if depth > MAX_DEPTH:
        raise SaveFormatError(f"Save tree deeper than {MAX_DEPTH} levels")
    d = _as_dict(raw)
    return Dominion(
        spheres=tuple(_parse_sphere(s, depth) for s in _as_list(d.get("Spheres"))),
        identifier=str(d.get("Identifier") or ""),
    )


# =========================================================
# Snapshot
# =========================================================

@dataclass(frozen=True)
class OwnedEntity:
    id: str
    tags: FrozenSet[str] = frozenset()

    @property
    def mastered(self) -> bool:
        return any(t.startswith("mastery") for t in self.tags)

    @classmethod
    def from_payload(cls, payload: Payload) -> "OwnedEntity":
        if not payload.entity_id:
            raise SaveFormatError(f"Save leaf without entity id (payload {payload.id or '?'})")
        return cls(id=payload.entity_id, tags=frozenset(payload.mutations))


@dataclass(frozen=True)
class OwnedState:
    entities: Tuple[OwnedEntity, ...] = ()
    skills: FrozenSet[str] = frozenset()
    abilities: FrozenSet[str] = frozenset()

    def ids(self) -> List[str]:
        return [e.id for e in self.entities]


EMPTY_STATE = OwnedState()


def active_locations(enviro_fx: Mapping[str, Any]) -> FrozenSet[str]:
    return frozenset(k for k in enviro_fx if k not in NON_LOCATION_FX)


def _location_leaves(payload: Payload) -> List[Payload]:
    if payload.entity_id != NESTED_LOCATION:
        return Token(payload).resolve(1)
    out: List[Payload] = []
    for dominion in payload.dominions:
        for sphere in dominion.spheres:
            if SEASONAL_SPHERE in sphere.id:
                continue
            out.extend(sphere.resolve(2))
    return out


def _library_leaves(sphere: Sphere, locations: FrozenSet[str]) -> List[Payload]:
    out: List[Payload] = []
    for token in sphere.tokens:
        if token.payload.entity_id in locations:
            out.extend(_location_leaves(token.payload))
    return out


def _ids(leaves: Iterable[Payload]) -> FrozenSet[str]:
    return frozenset(OwnedEntity.from_payload(p).id for p in leaves)


def resolve_save(doc: Mapping[str, Any]) -> OwnedState:
    """Flatten a parsed save document into world items + owned skill/ability ids."""
    if not isinstance(doc, dict):
        raise SaveFormatError("Save document is not a JSON object")
    root_raw = doc.get("RootPopulationCommand")
    if not isinstance(root_raw, dict):
        raise SaveFormatError("Save has no RootPopulationCommand")
    root = parse_dominion(root_raw)
    enviro = _as_dict(_as_dict(doc.get("PopulateXamanekCommand")).get("EnviroFxCommands"))
    locations = active_locations(enviro)

    leaves: List[Payload] = []
    skills: FrozenSet[str] = frozenset()
    abilities: FrozenSet[str] = frozenset()
    for sphere in root.spheres:
        if sphere.id in WORLD_SPHERES:
            leaves.extend(sphere.resolve(1))
        elif sphere.id == LIBRARY_SPHERE:
            leaves.extend(_library_leaves(sphere, locations))
        elif sphere.id == SKILLS_SPHERE:
            skills = skills | _ids(sphere.resolve(1))
        elif sphere.id == ABILITIES_SPHERE:
            abilities = abilities | _ids(sphere.resolve(1))

    entities = tuple(OwnedEntity.from_payload(p) for p in leaves)
    logger.debug(
        "Resolved save: %d entities, %d skills, %d abilities, %d active locations",
        len(entities), len(skills), len(abilities), len(locations),
    )
    return OwnedState(entities=entities, skills=skills, abilities=abilities)


def prune_to_catalog(state: OwnedState, catalog: Catalog) -> OwnedState:
    """Drop entities unknown to the catalog (content version drift)."""
    kept = tuple(e for e in state.entities if catalog.knows(e.id))
    dropped = len(state.entities) - len(kept)
    if dropped:
        logger.debug("Dropped %d save entities unknown to the catalog", dropped)
    return OwnedState(entities=kept, skills=state.skills, abilities=state.abilities)


def load_save(path: Path, catalog: Optional[Catalog] = None) -> OwnedState:
    """Read, resolve and (when a catalog is given) prune one save file."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise SaveFormatError(f"Failed to open save file {p}: {e}") from e
    try:
        doc = json.loads(text)
    except ValueError as e:
        raise SaveFormatError(f"Failed to parse save file {p}: {e}") from e
    state = resolve_save(doc)
    if catalog is not None:
        state = prune_to_catalog(state, catalog)
    return state


def default_save_path() -> Path:
    """Platform default autosave location."""
    rel = Path("Weather Factory") / "Book of Hours" / "AUTOSAVE.json"
    if sys.platform.startswith("win"):
        base = Path(os.environ.get("USERPROFILE", "~")).expanduser()
        return base / "AppData" / "LocalLow" / rel
    if sys.platform == "darwin":
        return Path("~/Library/Application Support").expanduser() / rel
    return Path("~/.config/unity3d").expanduser() / rel
