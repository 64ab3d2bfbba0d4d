"""
Pytest configuration and shared fixtures.

The fixtures write a miniature Book of Hours content tree and save file into
``tmp_path`` so the whole pipeline (catalog -> save -> queries) runs on disk.
"""

import codecs
import json
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from core.catalog import build_catalog  # noqa: E402
from core.config import HelperConfig  # noqa: E402


# =============================================================================
# CONTENT
# =============================================================================

def _slots(subject, with_):
    empty = {"label": "", "required": {}}
    return [empty, empty, empty, {"label": "Subject", "required": subject}, {"label": "With", "required": with_}]


PROTOTYPES = {
    "elements": [
        {"id": "_memory", "aspects": {"memory": 1}},
        {"id": "_beast", "aspects": {"beast": 1}, "xtriggers": {"fatiguing": "beast.gone"}},
        {"id": "_consumable", "aspects": {"consumable": 1, "lantern": 2}, "xtriggers": {"fatiguing": "spent"}},
        {"id": "_plain"},
    ]
}

ITEMS = {
    "elements": [
        {"ID": "mem.glow", "Label": "Glow", "aspects": {"lantern": 2}, "inherits": "_memory"},
        {"ID": "mem.storm", "Label": "Storm", "aspects": {"sky": 3, "edge": 1}, "inherits": "_memory"},
        {"ID": "mem.salt", "Label": "Salt", "aspects": {"grail": 1}, "inherits": "_memory"},
        {
            "ID": "candle",
            "Label": "Candle",
            "aspects": {"lantern": 1, "light": 1},
            "inherits": "_consumable",
            "xtriggers": {"scrutiny": [{"id": "mem.glow"}]},
        },
        {
            "ID": "lamp",
            "Label": "Lamp",
            "aspects": {"lantern": 1, "tool": 1},
            "inherits": "",
            "xtriggers": {"scrutiny": [{"id": ""}, {"id": "mem.glow"}]},
        },
        {
            "ID": "gull",
            "Label": "Gull",
            "aspects": {"sky": 1},
            "inherits": "_beast",
            "xtriggers": {"dist": [{"id": "mem.storm"}]},
        },
        {"ID": "knife.bone", "Label": "Bone Knife", "aspects": {"knife": 1, "edge": 2}},
        {"ID": "wire.copper", "Label": "Wire (Copper)", "aspects": {"metal": 1}},
        {"ID": "wire.silver", "Label": "Wire (Silver)", "aspects": {"metal": 1}},
        {"ID": "cup.tin", "Label": "Cup (Tin)", "aspects": {"metal": 1, "boost.lantern": 1}},
        {"ID": "cup.gold", "Label": "Cup (Gold)", "aspects": {"metal": 1}},
    ]
}

TOMES = {
    "elements": [
        {
            "ID": "t.lights",
            "Label": "Of Lights",
            "aspects": {"readable": 1},
            "xtriggers": {
                "mastering.t.lights": [{"id": "s.illumination", "level": 1}],
                "reading.t.lights": [{"id": "mem.glow", "level": 1}],
            },
        },
        {
            "ID": "t.salt",
            "Label": "Salt Book",
            "aspects": {"readable": 1},
            "xtriggers": {
                "mastering.x": [{"id": "s.salt", "level": 2}],
                "reading.x": [{"id": "mem.salt", "level": 1}, {"id": "mem.storm", "level": 1}],
            },
        },
        {"Label": "Template"},
    ]
}

SKILLS = {
    "elements": [
        {
            "id": "s.illumination",
            "Label": "Illumination Arts",
            "aspects": {"lantern": 1, "w.illumination": 1, "sky": 1, "w.birdsong": 1, "skill": 1},
        },
        {
            "id": "s.salt",
            "Label": "Salt Craft",
            "aspects": {"grail": 1, "edge": 1, "w.preservation": 1, "w.hushery": 1},
        },
    ]
}

COMMITMENTS = {
    "recipes": [
        {"id": "commit.ill.s.illumination", "effects": {"xpho": 1}},
        {"id": "commit.bir.s.illumination", "effects": {"xwis": 1}},
        {"id": "commit.pre.s.salt", "effects": {"xere": 1}},
        {"id": "commit.hus.s.salt", "effects": {"xcho": 1}},
    ]
}

WORKSTATIONS = {
    "verbs": [
        {
            "label": "Lantern Desk",
            "slots": _slots({"lantern": 1, "light": 1}, {"tool": 1}),
            "aspects": {"e.illumination": 1, "e.preservation": 1},
            "hints": ["lantern", "sky"],
        },
        {
            "label": "Sky Tower",
            "slots": _slots({"sky": 1}, {"metal": 1}),
            "aspects": {"e.illumination": 1},
            "hints": ["sky", "winter"],
        },
        {
            "label": "Music Room",
            "slots": _slots({"sound": 1}, {"memory": 1}),
            "aspects": {"instrument": 1, "e.birdsong": 1},
            "hints": ["heart", "sky"],
        },
        {
            "label": "Salt Pan",
            "slots": _slots({"grail": 1}, {"salt": 1}),
            "aspects": {"e.hushery": 1},
            "hints": ["edge", "grail"],
        },
    ]
}

PRENTICE = {
    "recipes": [
        {"Label": "Read by Candlelight", "reqs": {"s.illumination": 1, "lantern": 5}},
        {"Label": "Salt Brine", "reqs": {"s.salt": 1, "grail": 5, "ability": 1}},
    ]
}

SCHOLAR = {
    "recipes": [
        {"Label": "Polish Lamp", "reqs": {"s.illumination": 2, "lantern": 10, "tool": 1}},
        {"Label": "Tune Bell", "reqs": {"s.illumination": 2, "sky": 10, "instrument": 1}},
    ]
}

KEEPER = {
    "recipes": [
        {"Label": "Trim Candle", "reqs": {"s.illumination": 3, "lantern": 15, "candle": 1}},
        {"Label": "Carve Bone", "reqs": {"s.salt": 3, "edge": 15, "knife.bone": 1}},
    ]
}


def write_json(path: Path, doc, utf16: bool = False) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(doc)
    if utf16:
        path.write_bytes(codecs.BOM_UTF16_LE + text.encode("utf-16-le"))
    else:
        path.write_text(text, encoding="utf-8")
    return path


def write_content(root: Path, **overrides) -> Path:
    """Write the miniature content tree under ``root``; ``overrides`` replace whole files by stem."""
    files = {
        ("elements", "_prototypes.json"): PROTOTYPES,
        ("elements", "aspecteditems.json"): ITEMS,
        ("elements", "tomes.json"): TOMES,
        ("elements", "skills.json"): SKILLS,
        ("verbs", "workstations_library_world.json"): WORKSTATIONS,
        ("recipes", "wisdom_commitments.json"): COMMITMENTS,
        ("recipes", "crafting_4b_prentice.json"): PRENTICE,
        ("recipes", "crafting_3_scholar.json"): SCHOLAR,
        ("recipes", "crafting_2_keeper.json"): KEEPER,
    }
    for (folder, name), doc in files.items():
        stem = name[: -len(".json")]
        doc = overrides.get(stem, doc)
        if doc is None:
            continue
        # the game ships items and tomes as UTF-16 LE
        write_json(root / folder / name, doc, utf16=name in ("aspecteditems.json", "tomes.json"))
    return root


# =============================================================================
# SAVE
# =============================================================================

def token(entity_id, mutations=None, dominions=None):
    return {
        "Payload": {
            "EntityId": entity_id,
            "Id": f"{entity_id}_1",
            "Mutations": mutations or {},
            "Dominions": dominions or [],
        }
    }


def sphere(sphere_id, tokens):
    return {"GoverningSphereSpec": {"Id": sphere_id}, "Tokens": tokens}


def dominion(*spheres):
    return {"Identifier": "", "Spheres": list(spheres)}


def save_document():
    return {
        "RootPopulationCommand": dominion(
            sphere(
                "portage1",
                [
                    token("candle"),
                    token("t.lights", {"mastery.t.lights": 1}),
                    token("lamp"),
                    token("unknown.thing"),
                    token("chest", dominions=[dominion(sphere("chest.inside", [token("gull")]))]),
                ],
            ),
            sphere("hand.skills", [token("s.illumination")]),
            sphere("hand.abilities", [token("a.sight")]),
            sphere(
                "library",
                [
                    token("brightcorridor", dominions=[dominion(sphere("shelf", [token("t.salt", {"mastery.x": 1})]))]),
                    token("lockedroom", dominions=[dominion(sphere("shelf", [token("knife.bone")]))]),
                    token(
                        "hallofvoices",
                        dominions=[
                            dominion(
                                sphere("hall.table", [token("cup.tin")]),
                                sphere("hall.seasonaldecorations", [token("cup.gold")]),
                            )
                        ],
                    ),
                ],
            ),
            sphere("dealer.stock", [token("wire.copper")]),
        ),
        "PopulateXamanekCommand": {
            "EnviroFxCommands": {
                "weather": "rain",
                "season": "winter",
                "brightcorridor": "lit",
                "hallofvoices": "lit",
            }
        },
    }


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def game_data(tmp_path):
    """Game data folder holding StreamingAssets/bhcontent/core."""
    data = tmp_path / "bh_Data"
    write_content(data / "StreamingAssets" / "bhcontent" / "core")
    return data


@pytest.fixture
def content_root(game_data):
    return game_data / "StreamingAssets" / "bhcontent" / "core"


@pytest.fixture
def catalog(content_root):
    return build_catalog(content_root)


@pytest.fixture
def save_doc():
    return save_document()


@pytest.fixture
def save_file(tmp_path, save_doc):
    return write_json(tmp_path / "AUTOSAVE.json", save_doc)


@pytest.fixture
def config(game_data, save_file):
    return HelperConfig(game_data=game_data, save_path=save_file, interval=0.05)
