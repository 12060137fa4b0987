# worldgrid/game/ledger.py
from __future__ import annotations

import logging
from typing import Mapping

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from worldgrid.database import utcnow
from worldgrid.game.activity import log_activity
from worldgrid.game.errors import InvalidEvent
from worldgrid.game.structure_rules import buildable_types, structure_costs
from worldgrid.models.activity_log import TARGET_ELEMENT, TYPE_RESOURCE_EARNED
from worldgrid.models.user_resource import (
    RESOURCE_TYPES,
    STARTING_CRYSTAL_SHARDS,
    UserResource,
)

logger = logging.getLogger(__name__)


# ----------------------------
# Reward tables
# ----------------------------

CONTENT_REWARDS: dict[str, dict[str, int]] = {
    "digital_file": {"stone": 5, "wood": 2, "crystal_shards": 3},
    "image_gallery": {"stone": 2, "wood": 5, "crystal_shards": 3},
    "markdown_post": {"stone": 3, "wood": 5, "crystal_shards": 2},
    "article": {"stone": 5, "wood": 5, "crystal_shards": 2, "magic_essence": 1},
    "rpg_module": {"stone": 3, "wood": 3, "crystal_shards": 5, "magic_essence": 3},
}

DEFAULT_CONTENT_REWARD: dict[str, int] = {"stone": 1, "wood": 1}

ENGAGEMENT_REWARDS: dict[str, dict[str, int]] = {
    "rating_given": {"wood": 1},
    # rating_received pays out the rating itself, see engagement_reward()
    "rating_received": {"crystal_shards": 1},
    # awarded once per 10 views by the caller
    "content_viewed_batch": {"stone": 1},
    "content_downloaded": {"crystal_shards": 1},
    "helpful_rating": {"crystal_shards": 2, "magic_essence": 1},
}


def content_reward(content_type: str) -> dict[str, int]:
    return dict(CONTENT_REWARDS.get(content_type, DEFAULT_CONTENT_REWARD))


def _rating(raw) -> int:
    try:
        rating = int(raw)
    except (TypeError, ValueError):
        raise InvalidEvent("Rating must be a whole number", rating=raw)
    if rating < 0:
        raise InvalidEvent("Rating must not be negative", rating=rating)
    return rating


def engagement_reward(action: str, metadata: Mapping | None = None) -> dict[str, int]:
    reward = dict(ENGAGEMENT_REWARDS.get(action, {}))
    if action == "rating_received" and metadata and metadata.get("rating") is not None:
        reward["crystal_shards"] = _rating(metadata["rating"])
    return reward


# ----------------------------
# Ledger rows
# ----------------------------

def get_resources(db: Session, user_id: int) -> UserResource:
    """
    Fetch the user's ledger row, creating it on first access.

    A concurrent request may create the row between our read and insert; the
    unique user_id makes our insert fail and we read the winner instead. That
    path rolls back the session, so call this before any other writes.
    """
    ledger = db.query(UserResource).filter(UserResource.user_id == user_id).first()
    if ledger:
        return ledger

    ledger = UserResource(
        user_id=int(user_id),
        stone=0,
        wood=0,
        crystal_shards=STARTING_CRYSTAL_SHARDS,
        magic_essence=0,
        total_structures_built=0,
        total_upgrades_done=0,
    )
    db.add(ledger)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        logger.info("Ledger for user %s created concurrently; re-reading", user_id)
        ledger = db.query(UserResource).filter(UserResource.user_id == user_id).one()
    return ledger


def _validate_amounts(amounts: Mapping[str, int]) -> None:
    for resource, amount in amounts.items():
        if int(amount) < 0:
            raise ValueError(f"Negative amount for {resource}: {amount}")


def can_afford(ledger: UserResource, costs: Mapping[str, int]) -> bool:
    for resource, amount in costs.items():
        if resource not in RESOURCE_TYPES:
            return False
        if int(getattr(ledger, resource)) < int(amount):
            return False
    return True


def shortfall(ledger: UserResource, costs: Mapping[str, int]) -> dict[str, dict[str, int]]:
    missing = {}
    for resource, amount in costs.items():
        have = int(getattr(ledger, resource, 0)) if resource in RESOURCE_TYPES else 0
        if have < int(amount):
            missing[resource] = {"need": int(amount), "have": have}
    return missing


def spend(db: Session, user_id: int, costs: Mapping[str, int]) -> bool:
    """
    Deduct every cost or nothing.

    One conditional UPDATE: the row only changes when every balance covers
    its cost, so concurrent spends cannot drive a counter negative.
    """
    _validate_amounts(costs)
    if any(resource not in RESOURCE_TYPES for resource in costs):
        return False

    ledger = get_resources(db, user_id)
    if not costs:
        return True

    stmt = update(UserResource).where(UserResource.user_id == user_id)
    values = {}
    for resource, amount in costs.items():
        col = getattr(UserResource, resource)
        stmt = stmt.where(col >= int(amount))
        values[col] = col - int(amount)

    result = db.execute(stmt.values(values).execution_options(synchronize_session=False))
    db.refresh(ledger)
    return result.rowcount == 1


def add(db: Session, user_id: int, resources: Mapping[str, int]) -> UserResource:
    _validate_amounts(resources)

    ledger = get_resources(db, user_id)

    values = {UserResource.last_resource_claim: utcnow()}
    for resource, amount in resources.items():
        if resource not in RESOURCE_TYPES:
            logger.warning("Ignoring unknown resource %r for user %s", resource, user_id)
            continue
        col = getattr(UserResource, resource)
        values[col] = col + int(amount)

    db.execute(
        update(UserResource)
        .where(UserResource.user_id == user_id)
        .values(values)
        .execution_options(synchronize_session=False)
    )
    db.refresh(ledger)
    return ledger


def bump_counter(db: Session, user_id: int, counter: str) -> None:
    col = getattr(UserResource, counter)
    db.execute(
        update(UserResource)
        .where(UserResource.user_id == user_id)
        .values({col: col + 1})
        .execution_options(synchronize_session=False)
    )


# ----------------------------
# Awards
# ----------------------------

def award_content_resources(
    db: Session,
    *,
    user_id: int,
    content_type: str,
    content_id: int | None = None,
    content_title: str | None = None,
) -> dict[str, int]:
    """Credit the creator of newly published content and record it. Caller commits."""
    reward = content_reward(content_type)
    add(db, user_id, reward)

    log_activity(
        db,
        user_id=user_id,
        activity_type=TYPE_RESOURCE_EARNED,
        details={
            "source": "content_published",
            "content_id": content_id,
            "content_type": content_type,
            "content_title": content_title,
            "resources_earned": reward,
        },
    )
    logger.info("User %s earned %s for publishing %s #%s", user_id, reward, content_type, content_id)
    return reward


def award_engagement_resources(
    db: Session,
    *,
    user_id: int,
    action: str,
    metadata: Mapping | None = None,
    element_id: int | None = None,
) -> dict[str, int]:
    reward = engagement_reward(action, metadata)
    if not reward:
        return {}

    add(db, user_id, reward)
    log_activity(
        db,
        user_id=user_id,
        activity_type=TYPE_RESOURCE_EARNED,
        target_kind=(TARGET_ELEMENT if element_id is not None else None),
        target_id=element_id,
        details={"source": action, "resources_earned": reward},
    )
    return reward


# ----------------------------
# Summaries
# ----------------------------

def affordable_structures(ledger: UserResource) -> list[str]:
    return [t for t in buildable_types() if can_afford(ledger, structure_costs(t))]


def resource_summary(db: Session, user_id: int) -> dict:
    ledger = get_resources(db, user_id)
    return {
        "resources": ledger.to_dict(),
        "can_build": affordable_structures(ledger),
        "total_value": ledger.total_resources,
    }
