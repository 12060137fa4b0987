# worldgrid/game/adjacency.py
from __future__ import annotations

import math

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from worldgrid.game.structure_rules import TYPE_ORIGIN
from worldgrid.game.zones import is_position_in_unlocked_zone, unlocked_zones
from worldgrid.models.structure import DECAY_ACTIVE, Structure

# Row order: top row, middle (left/right), bottom row
NEIGHBOR_OFFSETS: tuple[tuple[int, int], ...] = (
    (-1, -1), (0, -1), (1, -1),
    (-1, 0),           (1, 0),
    (-1, 1),  (0, 1),  (1, 1),
)

NEAREST_SCAN_LIMIT = 50


def neighbor_positions(x: int, y: int) -> list[tuple[int, int]]:
    return [(x + dx, y + dy) for dx, dy in NEIGHBOR_OFFSETS]


def distance(x1: int, y1: int, x2: int, y2: int) -> float:
    # Euclidean, even though adjacency itself is 8-connected
    return math.hypot(x2 - x1, y2 - y1)


def is_occupied(db: Session, x: int, y: int) -> bool:
    q = select(Structure.id).where(Structure.grid_x == x, Structure.grid_y == y).limit(1)
    return db.scalar(q) is not None


def is_adjacent_to_structure(db: Session, x: int, y: int) -> bool:
    q = (
        select(Structure.id)
        .where(
            Structure.grid_x.between(x - 1, x + 1),
            Structure.grid_y.between(y - 1, y + 1),
            ~and_(Structure.grid_x == x, Structure.grid_y == y),
        )
        .limit(1)
    )
    return db.scalar(q) is not None


def is_valid_position(db: Session, x: int, y: int) -> bool:
    if is_occupied(db, x, y):
        return False

    if not is_position_in_unlocked_zone(db, x, y):
        return False

    if not is_adjacent_to_structure(db, x, y):
        return False

    return True


def available_adjacent_cells(db: Session, limit: int = 100) -> list[dict[str, int]]:
    """
    Free, unlocked cells touching an active structure.

    Scan order is structure id then neighbor row order; the result is the
    first `limit` hits of that scan, not the nearest cells.
    """
    if limit <= 0:
        return []

    occupied = {(sx, sy) for sx, sy in db.execute(select(Structure.grid_x, Structure.grid_y))}
    active = db.execute(
        select(Structure.grid_x, Structure.grid_y)
        .where(Structure.decay_state == DECAY_ACTIVE)
        .order_by(Structure.id)
    ).all()
    zones = unlocked_zones(db)

    found: dict[tuple[int, int], dict[str, int]] = {}
    for sx, sy in active:
        for nx, ny in neighbor_positions(sx, sy):
            key = (nx, ny)
            if key in occupied or key in found:
                continue
            if not is_position_in_unlocked_zone(db, nx, ny, zones=zones):
                continue

            found[key] = {"x": nx, "y": ny}
            if len(found) >= limit:
                return list(found.values())

    return list(found.values())


def user_positions(db: Session, user_id: int) -> list[tuple[int, int]]:
    rows = db.execute(
        select(Structure.grid_x, Structure.grid_y)
        .where(Structure.user_id == user_id, Structure.decay_state == DECAY_ACTIVE)
        .order_by(Structure.id)
    ).all()
    return [(int(x), int(y)) for x, y in rows]


def min_distance_to(x: int, y: int, positions: list[tuple[int, int]]) -> float:
    return min(distance(x, y, px, py) for px, py in positions)


def nearest_available_position(db: Session, user_id: int) -> dict[str, int] | None:
    mine = user_positions(db, user_id)

    if not mine:
        cells = available_adjacent_cells(db, limit=1)
        return cells[0] if cells else None

    best: dict[str, int] | None = None
    best_dist = math.inf
    for cell in available_adjacent_cells(db, limit=NEAREST_SCAN_LIMIT):
        d = min_distance_to(cell["x"], cell["y"], mine)
        # strict: first cell wins ties
        if d < best_dist:
            best_dist = d
            best = cell

    return best


def origin_point(db: Session) -> dict[str, int]:
    origin = (
        db.query(Structure)
        .filter(Structure.structure_type == TYPE_ORIGIN)
        .order_by(Structure.id)
        .first()
    )
    if origin:
        return {"x": origin.grid_x, "y": origin.grid_y}
    return {"x": 0, "y": 0}
