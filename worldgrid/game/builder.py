# worldgrid/game/builder.py
from __future__ import annotations

import json
import logging
from collections import Counter

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from worldgrid.config import RECONCILE_ON_BUILD
from worldgrid.database import utcnow
from worldgrid.game import adjacency, ledger
from worldgrid.game.activity import log_activity
from worldgrid.game.errors import (
    InsufficientResources,
    InvalidPosition,
    NotFound,
    PlacementConflict,
    Unauthorized,
    UnknownStructureType,
)
from worldgrid.game.structure_rules import (
    RULES,
    display_structure_type,
    require_buildable,
    structure_costs,
    upgrade_cost,
)
from worldgrid.game.zones import reconcile_zone_unlocks
from worldgrid.models.activity_log import (
    TARGET_STRUCTURE,
    TYPE_STRUCTURE_PLACED,
    TYPE_STRUCTURE_REMOVED,
    TYPE_STRUCTURE_UPGRADED,
)
from worldgrid.models.structure import DECAY_ACTIVE, Structure

logger = logging.getLogger(__name__)

NEARBY_RADIUS = 3
SUGGESTION_SCAN_LIMIT = 50

# Suggestion scoring
PROXIMITY_CAP = 10
BONUS_WEIGHT = 2
DIVERSITY_MIN_TYPES = 3
CLUSTER_MIN_COUNT = 3


def get_structure(db: Session, structure_id: int) -> Structure:
    structure = db.get(Structure, structure_id)
    if not structure:
        raise NotFound("Structure not found", structure_id=structure_id)
    return structure


def _charge(db: Session, user_id: int, costs: dict[str, int], action: str) -> None:
    # Explicit check first for a useful error, then the atomic spend; both must agree
    wallet = ledger.get_resources(db, user_id)
    if not ledger.can_afford(wallet, costs):
        logger.info("User %s cannot afford %s: %s", user_id, action, costs)
        raise InsufficientResources(
            "Insufficient resources" if action == "build" else "Insufficient resources for upgrade",
            cost=costs,
            missing=ledger.shortfall(wallet, costs),
        )

    if not ledger.spend(db, user_id, costs):
        # Lost a race with another spend between check and update
        logger.warning("Spend for %s by user %s failed after affordability check", action, user_id)
        raise InsufficientResources("Insufficient resources", cost=costs)


def place_structure(
    db: Session,
    *,
    user_id: int,
    structure_type: str,
    x: int,
    y: int,
    metadata: dict | None = None,
    customization: dict | None = None,
) -> Structure:
    canonical = require_buildable(structure_type)

    if not adjacency.is_valid_position(db, x, y):
        logger.info("User %s rejected at (%d, %d): invalid position", user_id, x, y)
        raise InvalidPosition("Invalid position for building", x=x, y=y)

    costs = structure_costs(canonical)
    _charge(db, user_id, costs, "build")

    now = utcnow()
    structure = Structure(
        user_id=user_id,
        structure_type=canonical,
        category_slug=(metadata or {}).get("category_slug"),
        grid_x=x,
        grid_y=y,
        level=1,
        health=100,
        decay_state=DECAY_ACTIVE,
        metadata_json=(json.dumps(metadata) if metadata is not None else None),
        customization_json=(json.dumps(customization) if customization is not None else None),
        placed_at=now,
        last_owner_activity=now,
    )
    db.add(structure)

    # The unique cell constraint is the real arbiter between concurrent builds
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        logger.warning("Cell (%d, %d) taken concurrently; build by user %s rolled back", x, y, user_id)
        raise PlacementConflict("Failed to place structure", x=x, y=y)

    ledger.bump_counter(db, user_id, "total_structures_built")

    log_activity(
        db,
        user_id=user_id,
        activity_type=TYPE_STRUCTURE_PLACED,
        target_kind=TARGET_STRUCTURE,
        target_id=structure.id,
        details={
            "type": canonical,
            "position": {"x": x, "y": y},
            "costs": costs,
        },
    )

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise PlacementConflict("Failed to place structure", x=x, y=y)

    logger.info("User %s placed %s #%s at (%d, %d)", user_id, canonical, structure.id, x, y)

    if RECONCILE_ON_BUILD and reconcile_zone_unlocks(db):
        db.commit()

    db.refresh(structure)
    return structure


def upgrade_structure(db: Session, structure: Structure, *, acting_user_id: int | None = None) -> Structure:
    if acting_user_id is not None and structure.user_id != acting_user_id:
        raise Unauthorized("Unauthorized", structure_id=structure.id)

    rule = RULES.get(structure.structure_type)
    if not rule or not rule.buildable:
        raise UnknownStructureType(
            f"{display_structure_type(structure.structure_type)} cannot be upgraded",
            structure_id=structure.id,
        )

    costs = upgrade_cost(structure.structure_type, structure.level)
    _charge(db, structure.user_id, costs, "upgrade")

    previous_level = structure.level
    structure.level = previous_level + 1
    structure.health = 100
    structure.last_owner_activity = utcnow()

    ledger.bump_counter(db, structure.user_id, "total_upgrades_done")

    log_activity(
        db,
        user_id=structure.user_id,
        activity_type=TYPE_STRUCTURE_UPGRADED,
        target_kind=TARGET_STRUCTURE,
        target_id=structure.id,
        details={
            "previous_level": previous_level,
            "new_level": structure.level,
            "costs": costs,
        },
    )
    db.commit()
    db.refresh(structure)

    logger.info("Structure #%s upgraded %d -> %d", structure.id, previous_level, structure.level)
    return structure


def is_position_available(db: Session, x: int, y: int) -> bool:
    return adjacency.is_valid_position(db, x, y)


def nearby_structures(db: Session, x: int, y: int, radius: int = NEARBY_RADIUS) -> list[Structure]:
    return (
        db.query(Structure)
        .filter(
            Structure.grid_x.between(x - radius, x + radius),
            Structure.grid_y.between(y - radius, y + radius),
            Structure.decay_state == DECAY_ACTIVE,
        )
        .order_by(Structure.id)
        .all()
    )


def calculate_zone_bonuses(db: Session, x: int, y: int) -> dict[str, str]:
    counts = Counter(s.structure_type for s in nearby_structures(db, x, y))

    bonuses: dict[str, str] = {}

    if len(counts) >= DIVERSITY_MIN_TYPES:
        bonuses["diversity"] = "Diverse neighborhood (+10% resource generation)"

    for structure_type, count in counts.items():
        if count >= CLUSTER_MIN_COUNT:
            bonuses[f"cluster_{structure_type}"] = f"{display_structure_type(structure_type)} district forming"

    return bonuses


def suggest_positions(db: Session, *, user_id: int, structure_type: str, limit: int = 5) -> list[dict]:
    # The type does not affect scoring yet; it is validated so callers get a clear error
    require_buildable(structure_type)

    cells = adjacency.available_adjacent_cells(db, limit=SUGGESTION_SCAN_LIMIT)
    mine = adjacency.user_positions(db, user_id)

    scored = []
    for cell in cells:
        score = 0.0

        # Closer to the user's own structures = higher
        if mine:
            score += max(0.0, PROXIMITY_CAP - adjacency.min_distance_to(cell["x"], cell["y"], mine))

        bonuses = calculate_zone_bonuses(db, cell["x"], cell["y"])
        score += len(bonuses) * BONUS_WEIGHT

        scored.append({"x": cell["x"], "y": cell["y"], "score": score, "bonuses": bonuses})

    # sorted() is stable, reverse included: ties keep scan order
    scored = sorted(scored, key=lambda s: s["score"], reverse=True)
    return scored[: max(0, int(limit))]


def remove_structure(db: Session, structure: Structure, reason: str = "manual") -> bool:
    structure_id = structure.id

    log_activity(
        db,
        user_id=structure.user_id,
        activity_type=TYPE_STRUCTURE_REMOVED,
        target_kind=TARGET_STRUCTURE,
        target_id=structure_id,
        details={
            "type": structure.structure_type,
            "position": {"x": structure.grid_x, "y": structure.grid_y},
            "reason": reason,
            "level": structure.level,
        },
    )
    db.delete(structure)
    db.commit()

    logger.info("Structure #%s removed (%s)", structure_id, reason)
    return True
