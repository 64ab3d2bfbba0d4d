"""
Tests for the web helper API.
"""

import pytest
from fastapi.testclient import TestClient

from apps.webhelper.app import create_app
from apps.webhelper.settings import WebHelperSettings
from core.engine import HelperEngine


@pytest.fixture
def client(config):
    engine = HelperEngine(config)
    app = create_app(engine=engine, settings=WebHelperSettings(watch=False))
    with TestClient(app) as c:
        yield c


def test_healthz(client):
    assert client.get("/healthz").json() == {"ok": True}


def test_meta(client):
    doc = client.get("/api/v1/meta").json()
    assert doc["catalog"]["skills"] == 2
    assert doc["save"]["skills"] == 1
    assert doc["save"]["error"] is None
    assert doc["save"]["watching"] is False
    assert "lantern" in doc["principles"]
    assert set(doc["versions"]) == {"project_version", "content_version"}


def test_memories(client):
    doc = client.get("/api/v1/memories", params={"q": "lantern"}).json()
    assert doc["memories"] == [{"memory": "Glow", "source": "Candle", "aspects": {"lantern": 2, "memory": 1}}]

    doc = client.get("/api/v1/memories", params=[("q", "lantern"), ("q", "sky")]).json()
    assert {m["memory"] for m in doc["memories"]} == {"Glow", "Storm"}


def test_memories_needs_query(client):
    assert client.get("/api/v1/memories").status_code == 422


def test_solve(client):
    doc = client.post("/api/v1/solve", json={"aspects": ["lantern", "sky"]}).json()
    assert doc["found"] is True
    (skill,) = doc["skills"]
    assert skill["label"] == "Illumination Arts"
    assert skill["wisdoms"][0]["stations"] == ["Lantern Desk", "Sky Tower"]
    assert skill["wisdoms"][1]["text"].startswith("Warning: Wist")
    assert {m["source_kind"] for m in doc["memories"]} == {"non_exhaust", "beast"}


def test_solve_rejects_wrong_arity(client):
    assert client.post("/api/v1/solve", json={"aspects": ["lantern"]}).status_code == 422


def test_craft(client):
    doc = client.get("/api/v1/craft", params={"skill": "salt"}).json()
    assert doc["found"] and doc["skill"] == "Salt Craft"
    keeper = next(t for t in doc["tiers"] if t["tier"] == "Keeper")
    assert keeper["recipes"][0]["text"] == "Carve Bone using Bone Knife (edge) [New Recipe!]"
    assert keeper["recipes"][0]["known"] is False

    missing = client.get("/api/v1/craft", params={"skill": "Astrology"}).json()
    assert missing["found"] is False and missing["tiers"] == []


def test_aspects(client):
    doc = client.get("/api/v1/aspects", params={"q": "metal"}).json()
    assert doc["items"]["Cup"] == {"metal": 1}
    doc = client.get("/api/v1/aspects", params={"q": "metal", "boosts": "true"}).json()
    assert doc["items"]["Cup"] == {"metal": 1, "boost.lantern": 1}


def test_create_app_needs_config_or_engine():
    with pytest.raises(ValueError):
        create_app()
