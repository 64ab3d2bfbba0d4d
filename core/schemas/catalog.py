#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Catalog data model.

Records are frozen once built; the whole ``Catalog`` is shared by reference
between queries and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from core.aspects import SOULS, AspectMap, Soul, Wisdom


class FatigueKind(Enum):
    NO = "no"
    YES = "yes"
    BEAST = "beast"


@dataclass(frozen=True)
class Fatigue:
    """How an item behaves when used up (inspected, consumed...)."""

    kind: FatigueKind = FatigueKind.NO
    memory: Optional[str] = None  # only for BEAST: memory left behind

    @classmethod
    def beast(cls, memory: str) -> "Fatigue":
        return cls(FatigueKind.BEAST, memory)

    @property
    def exhausts(self) -> bool:
        # None of the kinds count as exhausting for memory ranking; see DESIGN.md.
        return False


NO_FATIGUE = Fatigue()
ALWAYS_EXHAUSTS = Fatigue(FatigueKind.YES)


@dataclass(frozen=True)
class Item:
    id: str
    label: str
    aspects: AspectMap
    scrutiny: Optional[str] = None
    fatigue: Fatigue = NO_FATIGUE


@dataclass(frozen=True)
class Book:
    id: str
    label: str
    aspects: AspectMap
    skill: Tuple[str, int]
    memory: str


@dataclass(frozen=True)
class WisdomPath:
    """One upgrade path of a skill: commit to ``wisdom`` to grow ``soul``."""

    wisdom: Wisdom
    commitment: str
    soul: str

    @property
    def soul_info(self) -> Soul:
        return SOULS[self.soul]


@dataclass(frozen=True)
class Skill:
    id: str
    label: str
    principles: Tuple[str, str]
    wisdoms: Tuple[WisdomPath, WisdomPath]

    def matches_exact(self, aspects: Iterable[str]) -> bool:
        """Both principles must be in ``aspects`` (order-independent)."""
        wanted = set(aspects)
        return self.principles[0] in wanted and self.principles[1] in wanted

    def matches_loose(self, aspects: Iterable[str]) -> bool:
        wanted = set(aspects)
        return self.principles[0] in wanted or self.principles[1] in wanted


class SpecialStation(Enum):
    NONE = "none"
    KITCHEN = "kitchen"
    INSTRUMENT = "instrument"


# Ingredient tags that are satisfied by a station category rather than by a
# slot aspect.
SPECIAL_TAGS: Dict[str, SpecialStation] = {
    "instrument": SpecialStation.INSTRUMENT,
    "kitchenware": SpecialStation.KITCHEN,
    "knife": SpecialStation.KITCHEN,
    "egg": SpecialStation.KITCHEN,
}


@dataclass(frozen=True)
class Recipe:
    label: str
    skill: str
    principle: str
    ingredient: Optional[str] = None


@dataclass(frozen=True)
class Workstation:
    label: str
    principles: FrozenSet[str]
    subject: FrozenSet[str] = frozenset()
    with_: FrozenSet[str] = frozenset()
    wisdoms: FrozenSet[str] = frozenset()
    special: SpecialStation = SpecialStation.NONE

    def accepts_principles(self, principles: Iterable[str]) -> bool:
        return any(p in self.principles for p in principles)

    def accepts_aspect(self, aspect: str) -> bool:
        special = SPECIAL_TAGS.get(aspect)
        if special is not None:
            return self.special == special
        return aspect in self.subject or aspect in self.with_

    def accepts_item(self, item: Item) -> bool:
        return any(self.accepts_aspect(a) for a in item.aspects)

    def can_craft(self, recipe: Recipe, catalog: "Catalog") -> bool:
        """Ingredient fits a slot AND the station works one of the skill's principles."""
        skill = catalog.skills[recipe.skill]
        if recipe.ingredient is not None:
            item = catalog.items.get(recipe.ingredient)
            if item is not None:
                ok = self.accepts_item(item)
            else:
                ok = self.accepts_aspect(recipe.ingredient)
            if not ok:
                return False
        return self.accepts_principles(skill.principles)


@dataclass(frozen=True)
class Catalog:
    items: Dict[str, Item]
    books: Dict[str, Book]
    skills: Dict[str, Skill]
    workstations: Tuple[Workstation, ...]
    # tier name -> recipes, in tier order
    recipes: Dict[str, Tuple[Recipe, ...]] = field(default_factory=dict)

    def knows(self, entity_id: str) -> bool:
        return entity_id in self.items or entity_id in self.books or entity_id in self.skills

    def iter_recipes(self) -> Iterable[Recipe]:
        for tier in self.recipes.values():
            yield from tier

    def stats(self) -> Dict[str, int]:
        return {
            "items": len(self.items),
            "books": len(self.books),
            "skills": len(self.skills),
            "workstations": len(self.workstations),
            "recipes": sum(len(v) for v in self.recipes.values()),
        }
