from __future__ import annotations

import pytest

from worldgrid.game import structure_rules as rules
from worldgrid.game.errors import UnknownStructureType


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("cottage", "cottage"),
        ("House", "cottage"),
        ("  forge ", "workshop"),
        ("art-gallery", "gallery"),
        ("Mystic Tower", "tower"),
        ("origin", "origin_monument"),
        ("castle", "castle"),
    ],
)
def test_normalize_structure_type(raw, expected):
    assert rules.normalize_structure_type(raw) == expected


def test_buildable_types_exclude_system_structures():
    types = rules.buildable_types()

    assert types[0] == "cottage"
    assert len(types) == 8
    assert "origin_monument" not in types
    assert "legacy_crystal" not in types


def test_structure_costs_are_copies():
    costs = rules.structure_costs("cottage")
    costs["stone"] = 0

    assert rules.structure_costs("cottage") == {"stone": 5, "wood": 3}
    assert rules.structure_costs("castle") == {}


def test_require_buildable():
    assert rules.require_buildable("House") == "cottage"

    with pytest.raises(UnknownStructureType) as exc:
        rules.require_buildable("origin_monument")
    assert exc.value.status_code == 400
    assert "cottage" in exc.value.detail["buildable_types"]


def test_upgrade_cost_floors_each_resource():
    assert rules.upgrade_cost("cottage", 1) == {"stone": 7, "wood": 4}
    assert rules.upgrade_cost("cottage", 3) == {"stone": 22, "wood": 13}
    assert rules.upgrade_cost("tower", 2) == {"crystal_shards": 45, "magic_essence": 30}


def test_customization_merge_keeps_unset_defaults():
    merged = rules.customization_with_defaults("cottage", {"name": "Home", "colors": {"primary": "#000000"}})

    assert merged["name"] == "Home"
    assert merged["colors"] == {"primary": "#000000", "roof": "#654321", "door": "#4A3728"}
    assert merged["style"]["roof"] == "thatched"
    # defaults are not mutated
    assert rules.default_customization("cottage")["colors"]["primary"] == "#8B4513"


def test_presentation_falls_back_for_unknown_types():
    shown = rules.presentation("legacy_crystal", None)

    assert shown == {"name": "Structure", "description": "A building in the world.", "color": "#94A3B8"}


def test_presentation_prefers_custom_values():
    shown = rules.presentation("garden", {"name": "Grove"})

    assert shown["name"] == "Grove"
    assert shown["color"] == "#90EE90"
