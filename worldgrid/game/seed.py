# worldgrid/game/seed.py
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from worldgrid.database import utcnow
from worldgrid.game.structure_rules import TYPE_ORIGIN
from worldgrid.game.zones import reconcile_zone_unlocks
from worldgrid.models.structure import DECAY_ACTIVE, Structure
from worldgrid.models.zone import Zone

logger = logging.getLogger(__name__)

# Keep in sync with the seed_world_zones migration
DEFAULT_ZONES: list[dict] = [
    {
        "zone_key": "central",
        "name": "Origin Valley",
        "zone_type": "origin",
        "min_x": -25, "max_x": 25, "min_y": -25, "max_y": 25,
        "unlock_at": 0,
        "color": "#4ade80",
    },
    {
        "zone_key": "east",
        "name": "Crystal Plains",
        "zone_type": "creative",
        "min_x": 26, "max_x": 75, "min_y": -25, "max_y": 25,
        "unlock_at": 100,
        "color": "#60a5fa",
    },
    {
        "zone_key": "west",
        "name": "Makers Marsh",
        "zone_type": "makers",
        "min_x": -75, "max_x": -26, "min_y": -25, "max_y": 25,
        "unlock_at": 250,
        "color": "#a78bfa",
    },
    {
        "zone_key": "north",
        "name": "Knowledge Heights",
        "zone_type": "knowledge",
        "min_x": -25, "max_x": 25, "min_y": 26, "max_y": 75,
        "unlock_at": 500,
        "color": "#fbbf24",
    },
    {
        "zone_key": "south",
        "name": "Story Depths",
        "zone_type": "stories",
        "min_x": -25, "max_x": 25, "min_y": -75, "max_y": -26,
        "unlock_at": 1000,
        "color": "#f87171",
    },
]


def seed_zones(db: Session, zones: list[dict] | None = None) -> int:
    """Upsert zones by zone_key. Existing unlock flags are left alone."""
    n = 0
    for row in zones or DEFAULT_ZONES:
        zone = db.query(Zone).filter(Zone.zone_key == row["zone_key"]).first()
        if zone is None:
            zone = Zone(zone_key=row["zone_key"], is_unlocked=False)
            db.add(zone)
        for field in ("name", "zone_type", "min_x", "max_x", "min_y", "max_y", "unlock_at", "color"):
            setattr(zone, field, row[field])
        n += 1
    db.flush()
    return n


def seed_origin(db: Session, owner_id: int) -> Structure:
    """The single structure every first placement is adjacent to."""
    origin = db.query(Structure).filter(Structure.structure_type == TYPE_ORIGIN).first()
    if origin:
        return origin

    now = utcnow()
    origin = Structure(
        user_id=owner_id,
        structure_type=TYPE_ORIGIN,
        grid_x=0,
        grid_y=0,
        level=1,
        health=100,
        decay_state=DECAY_ACTIVE,
        placed_at=now,
        last_owner_activity=now,
    )
    db.add(origin)
    db.flush()
    logger.info("Created Origin Monument at (0, 0)")
    return origin


def seed_world(db: Session, owner_id: int) -> dict:
    zones = seed_zones(db)
    origin = seed_origin(db, owner_id)
    unlocked = reconcile_zone_unlocks(db)
    db.commit()
    return {
        "zones": zones,
        "origin": {"id": origin.id, "x": origin.grid_x, "y": origin.grid_y},
        "newly_unlocked": [z.zone_key for z in unlocked],
    }
