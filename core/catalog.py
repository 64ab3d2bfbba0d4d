#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Catalog builder (core).

Loads Book of Hours content files (``bhcontent/core``) and produces the
immutable, cross-referenced :class:`~core.schemas.catalog.Catalog`.

Content is a fixed, versioned asset, so anything missing or malformed raises
:class:`CatalogError`. The only tolerated anomaly is a tome whose mastering or
reading trigger list does not hold exactly one entry (logged, first used).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from core.aspects import SOULS, AspectMap, Wisdom, is_principle, normalize_aspects
from core.schemas.catalog import (
    ALWAYS_EXHAUSTS,
    NO_FATIGUE,
    Book,
    Catalog,
    Fatigue,
    Item,
    Recipe,
    SpecialStation,
    Skill,
    WisdomPath,
    Workstation,
)

logger = logging.getLogger(__name__)

__all__ = [
    "CatalogError",
    "RECIPE_TIERS",
    "build_catalog",
    "kitchen_stations",
    "parse_books",
    "parse_items",
    "parse_prototypes",
    "parse_recipe",
    "parse_skills",
    "parse_workstations",
    "read_content_json",
]


class CatalogError(RuntimeError):
    pass


# Tier name -> recipe file, lowest proficiency first.
RECIPE_TIERS: Tuple[Tuple[str, str], ...] = (
    ("Prentice", "crafting_4b_prentice.json"),
    ("Scholar", "crafting_3_scholar.json"),
    ("Keeper", "crafting_2_keeper.json"),
)

BEAST_PROTOTYPE = "_beast"

SUBJECT_SLOT = 3
WITH_SLOT = 4

KITCHEN_TAGS = frozenset({"sustenance", "beverage", "root", "flower", "leaf", "fuel"})

# Cooking stations that are not part of workstations_library_world.json.
KITCHEN_STATIONS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Kitchen Range: Gaol", ("scale", "lantern", "nectar", "grail")),
    ("Hearth: Hall of Voices", ("moon", "edge", "nectar", "grail")),
    ("Kitchen Range: Servants", ("scale", "heart", "nectar", "grail")),
)


# =========================================================
# Raw helpers
# =========================================================

_BOMS: Tuple[Tuple[bytes, str], ...] = (
    (b"\xef\xbb\xbf", "utf-8"),
    (b"\xff\xfe", "utf-16-le"),
    (b"\xfe\xff", "utf-16-be"),
)


def _decode(raw: bytes) -> str:
    for bom, enc in _BOMS:
        if raw.startswith(bom):
            return raw[len(bom):].decode(enc)
    return raw.decode("utf-8")


def read_content_json(path: Path, array: str) -> List[Dict[str, Any]]:
    """Read one content file and return its named top-level array."""
    try:
        raw = Path(path).read_bytes()
    except OSError as e:
        raise CatalogError(f"Failed to open game data at {path}") from e
    try:
        doc = json.loads(_decode(raw))
    except (UnicodeDecodeError, ValueError) as e:
        raise CatalogError(f"Failed to parse {path}: {e}") from e
    rows = _field(doc, array) if isinstance(doc, dict) else None
    if not isinstance(rows, list):
        raise CatalogError(f"{path}: missing top-level '{array}' array")
    return [r for r in rows if isinstance(r, dict)]


def _field(rec: Mapping[str, Any], name: str) -> Any:
    """Case-insensitive field lookup (content mixes ``id``/``ID``/``Label``)."""
    if name in rec:
        return rec[name]
    low = name.lower()
    for k, v in rec.items():
        if isinstance(k, str) and k.lower() == low:
            return v
    return None


def _require(rec: Mapping[str, Any], name: str, what: str) -> Any:
    val = _field(rec, name)
    if val is None:
        raise CatalogError(f"{what}: missing field '{name}' in {_describe(rec)}")
    return val


def _describe(rec: Mapping[str, Any]) -> str:
    rid = _field(rec, "id")
    return repr(rid) if rid else "<no id>"


def _inherit(own: AspectMap, proto: Mapping[str, int]) -> AspectMap:
    # prototype values overwrite the item's own on collision
    out = dict(own)
    for aspect, intensity in proto.items():
        if intensity == 0:
            out.pop(aspect, None)
        else:
            out[aspect] = intensity
    return out


def _first_id(rows: Any) -> Optional[str]:
    for row in rows or []:
        if isinstance(row, dict):
            rid = _field(row, "id")
            if rid:
                return str(rid)
    return None


# =========================================================
# Elements
# =========================================================

def parse_prototypes(rows: Iterable[Mapping[str, Any]]) -> Dict[str, Tuple[AspectMap, bool]]:
    """prototype id -> (aspects, fatiguing). Prototypes without aspects are dropped."""
    out: Dict[str, Tuple[AspectMap, bool]] = {}
    for row in rows:
        aspects = _field(row, "aspects")
        if aspects is None:
            continue
        pid = str(_require(row, "id", "prototype"))
        triggers = _field(row, "xtriggers")
        fatiguing = isinstance(triggers, dict) and _field(triggers, "fatiguing") is not None
        out[pid] = (normalize_aspects(aspects, keep_zero=True), fatiguing)
    return out


def parse_items(
    rows: Iterable[Mapping[str, Any]],
    prototypes: Mapping[str, Tuple[AspectMap, bool]],
) -> Dict[str, Item]:
    items: Dict[str, Item] = {}
    for row in rows:
        iid = str(_require(row, "id", "item"))
        label = str(_require(row, "label", "item"))
        aspects = normalize_aspects(_require(row, "aspects", "item"))
        inherits = str(_field(row, "inherits") or "")
        triggers = _field(row, "xtriggers")
        triggers = triggers if isinstance(triggers, dict) else {}

        fatigue = NO_FATIGUE
        proto = prototypes.get(inherits)
        if proto is not None:
            proto_aspects, fatiguing = proto
            aspects = _inherit(aspects, proto_aspects)
            if fatiguing:
                if inherits == BEAST_PROTOTYPE:
                    memory = _first_id(_field(triggers, "dist"))
                    if memory is None:
                        raise CatalogError(f"Beast {iid!r} has no memory in xtriggers.dist")
                    fatigue = Fatigue.beast(memory)
                else:
                    fatigue = ALWAYS_EXHAUSTS

        items[iid] = Item(
            id=iid,
            label=label,
            aspects=aspects,
            scrutiny=_first_id(_field(triggers, "scrutiny")),
            fatigue=fatigue,
        )
    return items


def _single_trigger(book_id: str, kind: str, res: Any) -> Mapping[str, Any]:
    if not isinstance(res, list) or not res or not isinstance(res[0], dict):
        raise CatalogError(f"Tome {book_id!r}: empty {kind} trigger")
    if len(res) != 1:
        logger.warning("Tome: %s len was %d. Tome ID: %s", kind, len(res), book_id)
    return res[0]


def parse_books(rows: Iterable[Mapping[str, Any]]) -> Dict[str, Book]:
    books: Dict[str, Book] = {}
    for row in rows:
        bid = _field(row, "id")
        if not bid:
            # template rows
            continue
        bid = str(bid)
        label = str(_field(row, "label") or bid)

        skill: Optional[Tuple[str, int]] = None
        memory: Optional[str] = None
        triggers = _field(row, "xtriggers")
        for trigger, res in (triggers.items() if isinstance(triggers, dict) else ()):
            if trigger.startswith("mastering"):
                first = _single_trigger(bid, "mastering", res)
                skill = (str(_require(first, "id", f"tome {bid}")), int(_field(first, "level") or 0))
            elif trigger.startswith("reading"):
                first = _single_trigger(bid, "reading", res)
                memory = str(_require(first, "id", f"tome {bid}"))

        if skill is None:
            raise CatalogError(f"No skill returned for book {label}")
        if memory is None:
            raise CatalogError(f"No memory returned for book {label}")

        books[bid] = Book(
            id=bid,
            label=label,
            aspects=normalize_aspects(_field(row, "aspects")),
            skill=skill,
            memory=memory,
        )
    return books


def parse_skills(
    rows: Iterable[Mapping[str, Any]],
    commitments: Mapping[str, Mapping[str, Any]],
) -> Dict[str, Skill]:
    """Resolve each skill's two principles and two wisdom commitments.

    ``commitments`` maps commitment id (``commit.<abbrev>.<skill id>``) to its
    raw record; the first key of its ``effects`` names the soul it grows.
    """
    skills: Dict[str, Skill] = {}
    for row in rows:
        sid = str(_require(row, "id", "skill"))
        label = str(_require(row, "label", "skill"))
        aspects = _require(row, "aspects", "skill")

        principles: List[str] = []
        paths: List[WisdomPath] = []
        for key in aspects:
            if is_principle(key):
                principles.append(key)
            elif key.startswith("w."):
                wisdom = Wisdom.from_key(key)
                if wisdom is None:
                    raise CatalogError(f"Unexpected wisdom: {key}")
                cid = f"commit.{wisdom.abbrev}.{sid}"
                commit = commitments.get(cid)
                if commit is None:
                    raise CatalogError(f"Couldn't find wisdom commitment {cid}")
                effects = _field(commit, "effects") or {}
                soul = next(iter(effects), None)
                if soul is None:
                    raise CatalogError(f"Wisdom commitment {cid} has no effects")
                if soul not in SOULS:
                    raise CatalogError(f"Unexpected Element of the Soul: {soul}")
                paths.append(WisdomPath(wisdom=wisdom, commitment=cid, soul=soul))

        # extra principle or wisdom keys past the first two are ignored
        if len(principles) < 2:
            raise CatalogError(f"Skill {sid!r}: expected 2 principles, got {principles}")
        if len(paths) < 2:
            raise CatalogError(f"Skill {sid!r}: expected 2 wisdoms, got {len(paths)}")

        skills[sid] = Skill(
            id=sid,
            label=label,
            principles=(principles[0], principles[1]),
            wisdoms=(paths[0], paths[1]),
        )
    return skills


# =========================================================
# Verbs / recipes
# =========================================================

def _slot_tags(slots: Sequence[Any], index: int, label: str) -> frozenset:
    if index >= len(slots) or not isinstance(slots[index], dict):
        raise CatalogError(f"Workstation {label!r}: missing slot {index}")
    required = _field(slots[index], "required") or {}
    return frozenset(str(k) for k in required)


def kitchen_stations() -> List[Workstation]:
    return [
        Workstation(
            label=label,
            principles=frozenset(principles),
            subject=KITCHEN_TAGS,
            with_=KITCHEN_TAGS,
            special=SpecialStation.KITCHEN,
        )
        for label, principles in KITCHEN_STATIONS
    ]


def parse_workstations(rows: Iterable[Mapping[str, Any]]) -> List[Workstation]:
    stations: List[Workstation] = []
    for row in rows:
        label = str(_require(row, "label", "workstation"))
        slots = _field(row, "slots") or []
        aspects = _field(row, "aspects") or {}
        hints = _field(row, "hints") or []
        special = SpecialStation.INSTRUMENT if "instrument" in aspects else SpecialStation.NONE
        stations.append(
            Workstation(
                label=label,
                principles=frozenset(str(h) for h in hints),
                subject=_slot_tags(slots, SUBJECT_SLOT, label),
                with_=_slot_tags(slots, WITH_SLOT, label),
                wisdoms=frozenset(a for a in aspects if a.startswith("e.")),
                special=special,
            )
        )
    stations.extend(kitchen_stations())
    return stations


def parse_recipe(row: Mapping[str, Any]) -> Recipe:
    label = str(_require(row, "label", "recipe"))
    skill: Optional[str] = None
    principle: Optional[str] = None
    ingredient: Optional[str] = None
    for key in _field(row, "reqs") or {}:
        if key == "ability":
            continue
        if key.startswith("s."):
            skill = key
        elif is_principle(key):
            principle = key
        else:
            ingredient = key
    if skill is None:
        raise CatalogError(f"Recipe {label!r}: No skill found")
    if principle is None:
        raise CatalogError(f"Recipe {label!r}: No principle found")
    return Recipe(label=label, skill=skill, principle=principle, ingredient=ingredient)


# =========================================================
# Entry
# =========================================================

def build_catalog(
    content_root: Path,
    tiers: Sequence[Tuple[str, str]] = RECIPE_TIERS,
) -> Catalog:
    """Build the catalog from ``<game>/StreamingAssets/bhcontent/core``."""
    root = Path(content_root)
    if not root.is_dir():
        raise CatalogError(f"Content root not found: {root}")

    def rows(folder: str, name: str, array: str) -> List[Dict[str, Any]]:
        return read_content_json(root / folder / name, array)

    prototypes = parse_prototypes(rows("elements", "_prototypes.json", "elements"))
    items = parse_items(rows("elements", "aspecteditems.json", "elements"), prototypes)
    books = parse_books(rows("elements", "tomes.json", "elements"))
    workstations = parse_workstations(rows("verbs", "workstations_library_world.json", "verbs"))

    commitments: Dict[str, Dict[str, Any]] = {}
    for row in rows("recipes", "wisdom_commitments.json", "recipes"):
        cid = _field(row, "id")
        if cid:
            commitments[str(cid)] = row
    skills = parse_skills(rows("elements", "skills.json", "elements"), commitments)

    recipes: Dict[str, Tuple[Recipe, ...]] = {}
    for tier, filename in tiers:
        recipes[tier] = tuple(parse_recipe(r) for r in rows("recipes", filename, "recipes"))

    catalog = Catalog(
        items=items,
        books=books,
        skills=skills,
        workstations=tuple(workstations),
        recipes=recipes,
    )
    logger.info("Catalog loaded from %s: %s", root, catalog.stats())
    return catalog
