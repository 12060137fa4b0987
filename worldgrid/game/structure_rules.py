# worldgrid/game/structure_rules.py
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Dict

from worldgrid.game.errors import UnknownStructureType


# ----------------------------
# Names / normalization
# ----------------------------

TYPE_COTTAGE = "cottage"
TYPE_WORKSHOP = "workshop"
TYPE_GALLERY = "gallery"
TYPE_LIBRARY = "library"
TYPE_ACADEMY = "academy"
TYPE_TOWER = "tower"
TYPE_MONUMENT = "monument"
TYPE_GARDEN = "garden"

# System structures: seeded or granted, never built by players
TYPE_ORIGIN = "origin_monument"
TYPE_LEGACY_CRYSTAL = "legacy_crystal"

ALIAS_TO_CANONICAL: dict[str, str] = {
    "cottage": TYPE_COTTAGE,
    "house": TYPE_COTTAGE,

    "workshop": TYPE_WORKSHOP,
    "forge": TYPE_WORKSHOP,

    "gallery": TYPE_GALLERY,
    "art_gallery": TYPE_GALLERY,

    "library": TYPE_LIBRARY,
    "academy": TYPE_ACADEMY,

    "tower": TYPE_TOWER,
    "mystic_tower": TYPE_TOWER,

    "monument": TYPE_MONUMENT,
    "garden": TYPE_GARDEN,

    "origin": TYPE_ORIGIN,
    "origin_monument": TYPE_ORIGIN,
    "legacy_crystal": TYPE_LEGACY_CRYSTAL,
}

CANONICAL_TO_DISPLAY: dict[str, str] = {
    TYPE_COTTAGE: "Cottage",
    TYPE_WORKSHOP: "Workshop",
    TYPE_GALLERY: "Gallery",
    TYPE_LIBRARY: "Library",
    TYPE_ACADEMY: "Academy",
    TYPE_TOWER: "Tower",
    TYPE_MONUMENT: "Monument",
    TYPE_GARDEN: "Garden",
    TYPE_ORIGIN: "Origin Monument",
    TYPE_LEGACY_CRYSTAL: "Legacy Crystal",
}

TYPE_COLORS: dict[str, str] = {
    TYPE_COTTAGE: "#8b4513",
    TYPE_WORKSHOP: "#4169e1",
    TYPE_GALLERY: "#ff69b4",
    TYPE_LIBRARY: "#2e8b57",
    TYPE_ACADEMY: "#ffa500",
    TYPE_TOWER: "#9370db",
    TYPE_MONUMENT: "#ffd700",
    TYPE_GARDEN: "#90ee90",
    TYPE_ORIGIN: "#ffffff",
    TYPE_LEGACY_CRYSTAL: "#00ffff",
}

DEFAULT_COLOR = "#94a3b8"


def normalize_structure_type(t: str) -> str:
    key = (t or "").strip().lower().replace("-", "_").replace(" ", "_")
    return ALIAS_TO_CANONICAL.get(key, key)


def display_structure_type(canonical: str) -> str:
    return CANONICAL_TO_DISPLAY.get(canonical, canonical.replace("_", " ").title())


def structure_color(canonical: str) -> str:
    return TYPE_COLORS.get(canonical, DEFAULT_COLOR)


# ----------------------------
# Costs
# ----------------------------

@dataclass(frozen=True)
class StructureRule:
    # base cost per resource; upgrades scale it by level
    cost: Dict[str, int]
    buildable: bool = True
    customization: Dict[str, object] = field(default_factory=dict)


RULES: dict[str, StructureRule] = {
    TYPE_COTTAGE: StructureRule(
        cost={"stone": 5, "wood": 3},
        customization={
            "name": "Cozy Cottage",
            "description": "A humble dwelling where ideas take their first breath.",
            "colors": {"primary": "#8B4513", "roof": "#654321", "door": "#4A3728"},
            "style": {"roof": "thatched", "windows": "round"},
            "features": {"smoke": True, "decoration": "none"},
        },
    ),
    TYPE_WORKSHOP: StructureRule(
        cost={"stone": 10, "crystal_shards": 5},
        customization={
            "name": "Creator's Workshop",
            "description": "Where digital artifacts are forged with care.",
            "colors": {"primary": "#4169E1", "glow": "#FFD700", "chimney": "#333333"},
            "style": {"type": "industrial", "chimneys": 1},
            "features": {"gears": True, "sign": "WORKSHOP"},
        },
    ),
    TYPE_GALLERY: StructureRule(
        cost={"wood": 8, "crystal_shards": 8},
        customization={
            "name": "Art Gallery",
            "description": "A sanctuary where visual stories come alive.",
            "colors": {"primary": "#FF69B4", "banner": "#FFFFFF", "trim": "#FFD700"},
            "style": {"architecture": "classical", "entrance": "columns", "roof": "domed"},
            "features": {"spotlight": True},
        },
    ),
    TYPE_LIBRARY: StructureRule(
        cost={"wood": 15, "stone": 5},
        customization={
            "name": "Knowledge Library",
            "description": "Ancient wisdom meets modern tales within these walls.",
            "colors": {"primary": "#2E8B57", "books": "#8B0000", "trim": "#D4AF37"},
            "style": {"type": "classic", "windows": "tall"},
            "features": {"ivy": True, "lanterns": 2},
        },
    ),
    TYPE_ACADEMY: StructureRule(
        cost={"stone": 20, "wood": 10},
        customization={
            "name": "Grand Academy",
            "description": "Where masters share their craft and wisdom flows freely.",
            "colors": {"primary": "#FFA500", "flag": "#FFFFFF", "roof": "#8B4513"},
            "style": {"architecture": "institutional", "towers": 1, "emblem": "book"},
            "features": {"bell": True, "courtyard": False},
        },
    ),
    TYPE_TOWER: StructureRule(
        cost={"crystal_shards": 15, "magic_essence": 10},
        customization={
            "name": "Mystic Tower",
            "description": "Where realms are born and adventures await.",
            "colors": {"primary": "#9370DB", "glow": "#00FFFF", "spire": "#4B0082"},
            "style": {"type": "wizard", "spire": "pointed"},
            "features": {"runes": True, "glow_intensity": 0.5, "weather": "none"},
        },
    ),
    TYPE_MONUMENT: StructureRule(
        cost={"stone": 30, "wood": 30, "crystal_shards": 30, "magic_essence": 30},
        customization={
            "name": "Victory Monument",
            "description": "A testament to great deeds and lasting legacy.",
            "colors": {"primary": "#FFD700", "base": "#FFFFFF", "accent": "#C0C0C0"},
            "style": {"type": "obelisk", "material": "marble"},
            "features": {"pedestal": True, "light_beam": False, "particles": "sparkle"},
            "text": {"inscription": ""},
        },
    ),
    TYPE_GARDEN: StructureRule(
        cost={"wood": 5, "magic_essence": 5},
        customization={
            "name": "Peaceful Garden",
            "description": "A place of growth where community bonds flourish.",
            "colors": {"primary": "#90EE90", "flowers": "#FF6B6B", "path": "#DEB887"},
            "style": {"type": "zen", "tree": "oak", "season": "spring"},
            "features": {"water": False, "bench": True, "fireflies": False},
        },
    ),
    TYPE_ORIGIN: StructureRule(
        cost={},
        buildable=False,
        customization={
            "name": "Origin Monument",
            "description": "Where it all began. The heart of our shared world.",
            "colors": {"primary": "#FFFFFF", "glow": "#FFD700", "base": "#C0C0C0"},
            "style": {"type": "obelisk", "material": "crystal"},
            "features": {"light_beam": True, "particles": "sparkle"},
        },
    ),
    TYPE_LEGACY_CRYSTAL: StructureRule(cost={}, buildable=False),
}

FALLBACK_CUSTOMIZATION: dict = {
    "name": "Structure",
    "description": "A building in the world.",
    "colors": {"primary": DEFAULT_COLOR.upper()},
    "style": {},
    "features": {},
}

UPGRADE_MULTIPLIER = 1.5


def buildable_types() -> list[str]:
    # Catalogue order, which is also cheapest-first for the early game
    return [t for t, rule in RULES.items() if rule.buildable]


def structure_costs(structure_type: str) -> dict[str, int]:
    rule = RULES.get(structure_type)
    if not rule:
        return {}
    return dict(rule.cost)


def require_buildable(structure_type: str) -> str:
    """Normalize a requested type and reject anything players cannot build."""
    canonical = normalize_structure_type(structure_type)
    rule = RULES.get(canonical)
    if not rule or not rule.buildable:
        raise UnknownStructureType(
            "Unknown structure type",
            requested=structure_type,
            buildable_types=buildable_types(),
        )
    return canonical


def upgrade_cost(structure_type: str, current_level: int) -> dict[str, int]:
    """Cost of going from current_level to current_level + 1."""
    return {
        resource: int(amount * UPGRADE_MULTIPLIER * current_level)
        for resource, amount in structure_costs(structure_type).items()
    }


# ----------------------------
# Customization
# ----------------------------

def default_customization(structure_type: str) -> dict:
    rule = RULES.get(structure_type)
    if not rule or not rule.customization:
        return copy.deepcopy(FALLBACK_CUSTOMIZATION)
    return copy.deepcopy(rule.customization)


def _merge(base: dict, override: dict) -> dict:
    out = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def customization_with_defaults(structure_type: str, custom: dict | None) -> dict:
    return _merge(default_customization(structure_type), custom or {})


def presentation(structure_type: str, custom: dict | None) -> dict:
    """Display name/description/primary color, custom values winning over defaults."""
    merged = customization_with_defaults(structure_type, custom)
    colors = merged.get("colors") or {}
    return {
        "name": merged.get("name") or display_structure_type(structure_type),
        "description": merged.get("description") or "",
        "color": colors.get("primary") or structure_color(structure_type),
    }
