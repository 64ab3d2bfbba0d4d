# -*- coding: utf-8 -*-
"""Query engine.

Pure functions over a :class:`Catalog` and the owned entities of one save
snapshot. "Nothing found" is always a value (empty dict / list, or a result
object with ``skill=None``), never an exception.

Public API
- find_memories(catalog, entities, qualities, limit)
- matching_skills(catalog, aspects, exact)
- get_skill_stations(skills, workstations) / render_skill_stations(...)
- solve(catalog, entities, pair, limit)
- craft_browse(catalog, owned_skills, query)
- find_aspected(catalog, aspects, keep)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from core.aspects import AspectMap, has_all, has_any, is_principle
from core.save import OwnedEntity
from core.schemas.catalog import Catalog, FatigueKind, Item, Recipe, Skill, WisdomPath, Workstation

__all__ = [
    "CraftBrowse",
    "CraftLine",
    "MemoryHit",
    "SkillStations",
    "SolveResult",
    "Source",
    "StationLine",
    "craft_browse",
    "find_aspected",
    "find_memories",
    "get_skill_stations",
    "matching_skills",
    "render_skill_stations",
    "solve",
]

DEFAULT_MEMORY_LIMIT = 8

# Item families that must stay apart by full label in the aspect browser.
UNGROUPED_PREFIXES = ("Lepidoptery", "Wire")


# =========================================================
# Memories
# =========================================================

class Source(IntEnum):
    """Where a memory comes from; lower sorts first."""

    NON_EXHAUST = 0
    BOOK = 1
    BEAST = 2
    EXHAUST = 3


@dataclass(frozen=True)
class MemoryHit:
    label: str
    source_label: str
    aspects: AspectMap
    source: Source


def _memory_candidates(catalog: Catalog, entity: OwnedEntity, qualities: FrozenSet[str]) -> List[MemoryHit]:
    out: List[MemoryHit] = []
    item = catalog.items.get(entity.id)
    if item is not None:
        mem = catalog.items.get(item.scrutiny) if item.scrutiny else None
        if mem is not None and has_any(mem.aspects, qualities):
            source = Source.EXHAUST if item.fatigue.exhausts else Source.NON_EXHAUST
            out.append(MemoryHit(mem.label, item.label, dict(mem.aspects), source))
        if item.fatigue.kind is FatigueKind.BEAST:
            beast_mem = catalog.items.get(item.fatigue.memory or "")
            if beast_mem is not None and has_any(beast_mem.aspects, qualities):
                out.append(MemoryHit(beast_mem.label, item.label, dict(beast_mem.aspects), Source.BEAST))
        return out

    if entity.mastered:
        book = catalog.books.get(entity.id)
        if book is not None:
            mem = catalog.items.get(book.memory)
            if mem is not None and has_any(mem.aspects, qualities):
                out.append(MemoryHit(mem.label, book.label, dict(mem.aspects), Source.BOOK))
    return out


def rank_memories(
    catalog: Catalog,
    entities: Iterable[OwnedEntity],
    qualities: Iterable[str],
    limit: int = DEFAULT_MEMORY_LIMIT,
) -> List[MemoryHit]:
    """Candidates ordered by source (stable), truncated, one per memory label."""
    wanted = frozenset(qualities)
    candidates: List[MemoryHit] = []
    for entity in entities:
        candidates.extend(_memory_candidates(catalog, entity, wanted))
    candidates.sort(key=lambda h: h.source)

    out: List[MemoryHit] = []
    seen = set()
    for hit in candidates[: max(0, int(limit))]:
        if hit.label in seen:
            continue
        seen.add(hit.label)
        out.append(hit)
    return out


def find_memories(
    catalog: Catalog,
    entities: Iterable[OwnedEntity],
    qualities: Iterable[str],
    limit: int = DEFAULT_MEMORY_LIMIT,
) -> Dict[str, Tuple[str, AspectMap]]:
    """memory label -> (source label, memory aspects)."""
    return {h.label: (h.source_label, h.aspects) for h in rank_memories(catalog, entities, qualities, limit)}


# =========================================================
# Skills / stations
# =========================================================

def matching_skills(catalog: Catalog, aspects: Sequence[str], exact: bool = True) -> List[Skill]:
    if exact:
        return [s for s in catalog.skills.values() if s.matches_exact(aspects)]
    return [s for s in catalog.skills.values() if s.matches_loose(aspects)]


def _join_or(labels: Sequence[str]) -> str:
    if len(labels) == 1:
        return labels[0]
    return f"{', '.join(labels[:-1])} or {labels[-1]}"


@dataclass(frozen=True)
class StationLine:
    soul: str
    wisdom: str
    skill: str
    stations: Tuple[str, ...]

    def render(self) -> str:
        if not self.stations:
            return f"Warning: {self.soul} can't be upgraded with {self.skill} when committed to {self.wisdom}"
        return f"{self.soul} is upgraded at {_join_or(self.stations)} when committed to {self.wisdom}"


@dataclass(frozen=True)
class SkillStations:
    skill: Skill
    lines: Tuple[StationLine, ...]

    def render(self) -> str:
        return "\n".join([self.skill.label] + [line.render() for line in self.lines])


def _stations_for(path: WisdomPath, skill: Skill, workstations: Sequence[Workstation]) -> StationLine:
    soul = path.soul_info
    stations = tuple(
        w.label
        for w in workstations
        if path.wisdom.tag in w.wisdoms
        and w.accepts_principles(skill.principles)
        and w.accepts_principles(soul.principles)
    )
    return StationLine(soul=soul.label, wisdom=path.wisdom.value, skill=skill.label, stations=stations)


def get_skill_stations(skills: Iterable[Skill], workstations: Sequence[Workstation]) -> List[SkillStations]:
    return [
        SkillStations(skill=s, lines=tuple(_stations_for(p, s, workstations) for p in s.wisdoms))
        for s in skills
    ]


def render_skill_stations(skills: Iterable[Skill], workstations: Sequence[Workstation]) -> str:
    blocks = [s.render() for s in get_skill_stations(skills, workstations)]
    return "".join(b + "\n\n" for b in blocks)


@dataclass(frozen=True)
class SolveResult:
    pair: Tuple[str, str]
    skills: Tuple[SkillStations, ...]
    memories: Tuple[MemoryHit, ...]

    @property
    def found(self) -> bool:
        return bool(self.skills)


def solve(
    catalog: Catalog,
    entities: Iterable[OwnedEntity],
    pair: Sequence[str],
    limit: int = DEFAULT_MEMORY_LIMIT,
) -> SolveResult:
    """Skills upgradable with exactly ``pair`` plus memories carrying either aspect."""
    if len(pair) != 2:
        raise ValueError(f"solve needs exactly two aspects, got {list(pair)}")
    a, b = str(pair[0]), str(pair[1])
    skills = matching_skills(catalog, (a, b), exact=True)
    return SolveResult(
        pair=(a, b),
        skills=tuple(get_skill_stations(skills, catalog.workstations)),
        memories=tuple(rank_memories(catalog, entities, (a, b), limit)),
    )


# =========================================================
# Crafting
# =========================================================

@dataclass(frozen=True)
class CraftLine:
    label: str
    principle: str
    ingredient: Optional[str]
    known: bool
    stations: Tuple[str, ...]

    def render(self) -> str:
        text = self.label
        if self.ingredient:
            text += f" using {self.ingredient}"
        text += f" ({self.principle})"
        if not self.known:
            text += " [New Recipe!]"
        return text


@dataclass(frozen=True)
class CraftBrowse:
    query: str
    skill: Optional[Skill]
    principle: Optional[str] = None
    tiers: Dict[str, Tuple[CraftLine, ...]] = field(default_factory=dict)

    @property
    def found(self) -> bool:
        return self.skill is not None or self.principle is not None


def known_recipe_labels(catalog: Catalog, owned_skills: Iterable[str]) -> FrozenSet[str]:
    owned = frozenset(owned_skills)
    return frozenset(r.label for r in catalog.iter_recipes() if r.skill in owned)


def ingredient_label(catalog: Catalog, recipe: Recipe) -> Optional[str]:
    if recipe.ingredient is None:
        return None
    item: Optional[Item] = catalog.items.get(recipe.ingredient)
    return item.label if item is not None else recipe.ingredient


def _craft_lines(catalog: Catalog, recipes: Iterable[Recipe], known: FrozenSet[str]) -> Tuple[CraftLine, ...]:
    lines: List[CraftLine] = []
    for r in recipes:
        if r.skill not in catalog.skills:
            continue
        stations = tuple(w.label for w in catalog.workstations if w.can_craft(r, catalog))
        if not stations:
            continue
        lines.append(
            CraftLine(
                label=r.label,
                principle=r.principle,
                ingredient=ingredient_label(catalog, r),
                known=r.label in known,
                stations=stations,
            )
        )
    return tuple(lines)


def find_skill(catalog: Catalog, query: str) -> Optional[Skill]:
    """First skill whose label starts with ``query`` (case-insensitive)."""
    q = (query or "").strip().lower()
    if not q:
        return None
    for skill in catalog.skills.values():
        if skill.label.lower().startswith(q):
            return skill
    return None


def craft_browse(catalog: Catalog, owned_skills: Iterable[str], query: str) -> CraftBrowse:
    """Craftable recipes of one skill (or of one principle across owned skills)."""
    owned = frozenset(owned_skills)
    known = known_recipe_labels(catalog, owned)
    q = (query or "").strip()

    if is_principle(q.lower()):
        principle = q.lower()
        tiers = {
            tier: _craft_lines(catalog, (r for r in recipes if r.principle == principle and r.skill in owned), known)
            for tier, recipes in catalog.recipes.items()
        }
        return CraftBrowse(query=q, skill=None, principle=principle, tiers=tiers)

    skill = find_skill(catalog, q)
    if skill is None:
        return CraftBrowse(query=q, skill=None)
    tiers = {
        tier: _craft_lines(catalog, (r for r in recipes if r.skill == skill.id), known)
        for tier, recipes in catalog.recipes.items()
    }
    return CraftBrowse(query=q, skill=skill, tiers=tiers)


# =========================================================
# Aspect browser
# =========================================================

def display_key(label: str) -> str:
    if label.startswith(UNGROUPED_PREFIXES):
        return label
    return label.split("(", 1)[0].rstrip()


def find_aspected(
    catalog: Catalog,
    aspects: Sequence[str],
    keep: Optional[Callable[[str], bool]] = None,
) -> Dict[str, AspectMap]:
    """display label -> aspects, first item per label carrying every aspect."""
    found: Dict[str, AspectMap] = {}
    for item in catalog.items.values():
        key = display_key(item.label)
        if key in found:
            continue
        if has_all(item.aspects, aspects):
            shown = item.aspects if keep is None else {k: v for k, v in item.aspects.items() if keep(k)}
            found[key] = dict(shown)
    return found
