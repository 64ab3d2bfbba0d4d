# -*- coding: utf-8 -*-
"""Aspect primitives and fixed game tables.

An aspect map is a plain ``Dict[str, int]`` (aspect id -> intensity). Zero is
never stored; a missing key means intensity 0.

The tables below mirror the shipped game content and are kept as data so they
can be audited against it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional

AspectMap = Dict[str, int]

# The thirteen principles ("qualities") that drive skills and recipes.
PRINCIPLES: FrozenSet[str] = frozenset(
    {
        "edge",
        "forge",
        "grail",
        "heart",
        "knock",
        "lantern",
        "moon",
        "moth",
        "nectar",
        "rose",
        "scale",
        "sky",
        "winter",
    }
)


class Wisdom(Enum):
    """Wisdom trees a skill can be committed to (value = content name)."""

    BIRDSONG = "birdsong"
    BOSK = "bosk"
    HOROMACHISTRY = "horomachistry"
    HUSHERY = "hushery"
    ILLUMINATION = "illumination"
    ITHASTRY = "ithastry"
    NYCTODROMY = "nyctodromy"
    PRESERVATION = "preservation"
    SKOLEKOSOPHY = "skolekosophy"

    @property
    def abbrev(self) -> str:
        return WISDOM_ABBREV[self]

    @property
    def tag(self) -> str:
        """Aspect a workstation carries when it offers this wisdom."""
        return f"e.{self.value}"

    @classmethod
    def from_key(cls, key: str) -> Optional["Wisdom"]:
        """Parse a ``w.<name>`` skill aspect key; None when unrecognized."""
        name = key[2:] if key.startswith("w.") else key
        try:
            return cls(name)
        except ValueError:
            return None


WISDOM_ABBREV: Dict[Wisdom, str] = {
    Wisdom.BIRDSONG: "bir",
    Wisdom.BOSK: "bos",
    Wisdom.HOROMACHISTRY: "hor",
    Wisdom.HUSHERY: "hus",
    Wisdom.ILLUMINATION: "ill",
    Wisdom.ITHASTRY: "ith",
    Wisdom.NYCTODROMY: "nyc",
    Wisdom.PRESERVATION: "pre",
    Wisdom.SKOLEKOSOPHY: "sko",
}


@dataclass(frozen=True)
class Soul:
    label: str
    principles: FrozenSet[str]


# Element of the Soul granted by a wisdom commitment -> principles a
# workstation must accept for the upgrade to happen there.
SOULS: Dict[str, Soul] = {
    "xcho": Soul("Chor", frozenset({"heart", "grail"})),
    "xere": Soul("Ereb", frozenset({"grail", "edge"})),
    "xfet": Soul("Fet", frozenset({"rose", "moth"})),
    "xhea": Soul("Health", frozenset({"heart", "nectar", "scale"})),
    "xmet": Soul("Mettle", frozenset({"forge", "edge"})),
    "xpho": Soul("Phost", frozenset({"lantern", "sky"})),
    "xsha": Soul("Shapt", frozenset({"knock", "forge"})),
    "xtri": Soul("Trist", frozenset({"moth", "moon"})),
    "xwis": Soul("Wist", frozenset({"winter", "lantern"})),
}


def is_principle(key: str) -> bool:
    return key in PRINCIPLES


def has_any(aspects: Mapping[str, int], wanted: Iterable[str]) -> bool:
    """True when at least one of ``wanted`` is present in ``aspects``."""
    return any(w in aspects for w in wanted)


def has_all(aspects: Mapping[str, int], wanted: Iterable[str]) -> bool:
    return all(w in aspects for w in wanted)


def normalize_aspects(raw: Any, *, keep_zero: bool = False) -> AspectMap:
    """Coerce a raw JSON aspect object into an AspectMap.

    Zeros are dropped unless ``keep_zero`` is set; prototype overlays use an
    explicit zero to clear an inherited key.
    """
    out: AspectMap = {}
    if not isinstance(raw, dict):
        return out
    for k, v in raw.items():
        key = str(k)
        try:
            num = int(v)
        except (TypeError, ValueError):
            continue
        if num == 0 and not keep_zero:
            continue
        out[key] = num
    return out


def hide_boosts(aspect: str) -> bool:
    """Display predicate: drop ``boost*`` aspects."""
    return not aspect.startswith("boost")
