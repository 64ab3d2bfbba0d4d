# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from core.aspects import PRINCIPLES, hide_boosts
from core.engine import HelperEngine
from core.logic import CraftBrowse, MemoryHit, SkillStations
from core.version import versions


def get_engine(request: Request) -> HelperEngine:
    """Resolve the engine from app state."""
    return request.app.state.engine  # type: ignore[attr-defined]


router = APIRouter(prefix="/api/v1")


class SolveRequest(BaseModel):
    aspects: List[str] = Field(..., min_length=2, max_length=2)
    limit: int = Field(8, ge=1, le=100)


def _memory_row(hit: MemoryHit) -> Dict[str, Any]:
    return {
        "memory": hit.label,
        "source": hit.source_label,
        "source_kind": hit.source.name.lower(),
        "aspects": dict(hit.aspects),
    }


def _skill_row(block: SkillStations) -> Dict[str, Any]:
    return {
        "id": block.skill.id,
        "label": block.skill.label,
        "principles": list(block.skill.principles),
        "wisdoms": [
            {
                "wisdom": line.wisdom,
                "soul": line.soul,
                "stations": list(line.stations),
                "text": line.render(),
            }
            for line in block.lines
        ],
    }


def _craft_doc(browse: CraftBrowse) -> Dict[str, Any]:
    return {
        "query": browse.query,
        "found": browse.found,
        "skill": browse.skill.label if browse.skill is not None else None,
        "principle": browse.principle,
        "tiers": [
            {
                "tier": tier,
                "recipes": [
                    {
                        "label": line.label,
                        "principle": line.principle,
                        "ingredient": line.ingredient,
                        "known": line.known,
                        "stations": list(line.stations),
                        "text": line.render(),
                    }
                    for line in lines
                ],
            }
            for tier, lines in browse.tiers.items()
        ],
    }


@router.get("/meta")
def meta(engine: HelperEngine = Depends(get_engine)):
    snap = engine.snapshot()
    return {
        "catalog": engine.catalog.stats(),
        "save": {
            "path": str(engine.saves.path),
            "mtime": engine.saves.mtime(),
            "entities": len(snap.entities),
            "skills": len(snap.skills),
            "abilities": len(snap.abilities),
            "error": engine.saves.last_error(),
            "watching": engine.watcher.running,
        },
        "principles": sorted(PRINCIPLES),
        "versions": versions(),
    }


@router.get("/memories")
def memories(
    q: List[str] = Query(..., description="Principle(s) the memory must carry"),
    limit: int = Query(8, ge=1, le=100),
    engine: HelperEngine = Depends(get_engine),
):
    found = engine.memories(q, limit)
    rows = [{"memory": mem, "source": src, "aspects": dict(asp)} for mem, (src, asp) in found.items()]
    return {"q": q, "memories": rows, "count": len(rows)}


@router.post("/solve")
def solve(req: SolveRequest, engine: HelperEngine = Depends(get_engine)):
    try:
        result = engine.solve(req.aspects, req.limit)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "aspects": list(result.pair),
        "found": result.found,
        "skills": [_skill_row(b) for b in result.skills],
        "memories": [_memory_row(h) for h in result.memories],
    }


@router.get("/craft")
def craft(skill: str = Query(..., min_length=1), engine: HelperEngine = Depends(get_engine)):
    return _craft_doc(engine.craft(skill))


@router.get("/aspects")
def aspects(
    q: List[str] = Query(...),
    boosts: bool = Query(False, description="Include boost* aspects"),
    engine: HelperEngine = Depends(get_engine),
):
    found = engine.aspected(q, keep=None if boosts else hide_boosts)
    return {"q": q, "items": found, "count": len(found)}
