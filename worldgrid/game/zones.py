# worldgrid/game/zones.py
from __future__ import annotations

import logging

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from worldgrid.models.structure import Structure
from worldgrid.models.zone import Zone

logger = logging.getLogger(__name__)


def total_structures(db: Session) -> int:
    return int(db.scalar(select(func.count(Structure.id))) or 0)


def reconcile_zone_unlocks(db: Session) -> list[Zone]:
    """
    Flip is_unlocked for every zone whose threshold the world has reached.
    Idempotent and monotonic: a flag is never cleared. Returns the zones
    flipped by this call. Caller commits.
    """
    count = total_structures(db)

    newly = (
        db.query(Zone)
        .filter(Zone.is_unlocked.is_(False), Zone.unlock_at <= count)
        .order_by(Zone.unlock_at, Zone.id)
        .all()
    )
    if not newly:
        return []

    db.execute(
        update(Zone)
        .where(Zone.is_unlocked.is_(False), Zone.unlock_at <= count)
        .values(is_unlocked=True)
        .execution_options(synchronize_session=False)
    )
    for z in newly:
        db.refresh(z)
        logger.info("Zone %s (%s) unlocked at %d structures", z.zone_key, z.name, count)

    return newly


def unlocked_zones(db: Session) -> list[Zone]:
    return db.query(Zone).filter(Zone.is_unlocked.is_(True)).order_by(Zone.id).all()


def zone_containing(db: Session, x: int, y: int) -> Zone | None:
    # Zones are laid out non-overlapping; first match wins
    for zone in db.query(Zone).order_by(Zone.id).all():
        if zone.contains(x, y):
            return zone
    return None


def is_position_in_unlocked_zone(db: Session, x: int, y: int, zones: list[Zone] | None = None) -> bool:
    if zones is None:
        zones = unlocked_zones(db)
    return any(z.contains(x, y) for z in zones)


def _progress_pct(count: int, unlock_at: int) -> float:
    if unlock_at <= 0:
        return 100.0
    return min(100.0, (count / unlock_at) * 100.0)


def progress_to_next_zone(db: Session) -> dict:
    count = total_structures(db)

    next_zone = (
        db.query(Zone)
        .filter(Zone.is_unlocked.is_(False), Zone.unlock_at > count)
        .order_by(Zone.unlock_at, Zone.id)
        .first()
    )

    if not next_zone:
        return {
            "all_unlocked": True,
            "total_structures": count,
        }

    return {
        "all_unlocked": False,
        "current_structures": count,
        "required_structures": next_zone.unlock_at,
        "remaining": max(0, next_zone.unlock_at - count),
        "progress_percentage": _progress_pct(count, next_zone.unlock_at),
        "next_zone": {
            "key": next_zone.zone_key,
            "name": next_zone.name,
            "type": next_zone.zone_type,
            "color": next_zone.color,
        },
    }


def zones_with_status(db: Session) -> list[dict]:
    count = total_structures(db)
    return [
        {
            "id": z.id,
            "key": z.zone_key,
            "name": z.name,
            "type": z.zone_type,
            "bounds": z.bounds,
            "center": z.center,
            "color": z.color,
            "is_unlocked": bool(z.is_unlocked),
            "unlock_at": z.unlock_at,
            "progress": _progress_pct(count, z.unlock_at),
        }
        for z in db.query(Zone).order_by(Zone.id).all()
    ]
