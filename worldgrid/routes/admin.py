# worldgrid/routes/admin.py
from __future__ import annotations

import logging
import secrets

from fastapi import APIRouter, Depends, Header, HTTPException, Path, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from worldgrid.config import ADMIN_KEY
from worldgrid.database import get_db
from worldgrid.game import builder, ledger, seed, zones
from worldgrid.game.errors import NotFound
from worldgrid.models.user import User
from worldgrid.routes.world import MAX_ID

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/world", tags=["admin"])


def _is_admin(x_admin_key: str | None) -> bool:
    return bool(ADMIN_KEY) and bool(x_admin_key) and secrets.compare_digest(x_admin_key, ADMIN_KEY)


def require_admin(x_admin_key: str | None = Header(default=None, alias="X-Admin-Key")) -> None:
    if not _is_admin(x_admin_key):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found", user_id=user_id)
    return user


class SeedRequest(BaseModel):
    owner_id: int = Field(ge=1, le=MAX_ID)


class ContentPublishedEvent(BaseModel):
    user_id: int = Field(ge=1, le=MAX_ID)
    content_type: str = Field(min_length=1, max_length=32)
    content_id: int | None = Field(default=None, ge=1, le=MAX_ID)
    content_title: str | None = Field(default=None, max_length=255)


class EngagementEvent(BaseModel):
    user_id: int = Field(ge=1, le=MAX_ID)
    action: str = Field(min_length=1, max_length=32)
    metadata: dict | None = None
    element_id: int | None = Field(default=None, ge=1, le=MAX_ID)


@router.post("/seed", dependencies=[Depends(require_admin)])
def seed_world(payload: SeedRequest, db: Session = Depends(get_db)) -> dict:
    _get_user_or_404(db, payload.owner_id)
    return {"success": True, "data": seed.seed_world(db, payload.owner_id)}


@router.post("/zones/reconcile", dependencies=[Depends(require_admin)])
def reconcile_zones(db: Session = Depends(get_db)) -> dict:
    flipped = zones.reconcile_zone_unlocks(db)
    db.commit()
    return {
        "success": True,
        "data": {
            "newly_unlocked": [z.zone_key for z in flipped],
            "zone_progress": zones.progress_to_next_zone(db),
        },
    }


@router.delete("/structures/{structure_id}", dependencies=[Depends(require_admin)])
def remove_structure(
    structure_id: int = Path(ge=1, le=MAX_ID),
    reason: str = "manual",
    db: Session = Depends(get_db),
) -> dict:
    s = builder.get_structure(db, structure_id)
    builder.remove_structure(db, s, reason=reason)
    return {"success": True, "message": "Structure removed", "data": {"id": structure_id, "reason": reason}}


@router.post("/events/content-published", dependencies=[Depends(require_admin)])
def content_published(payload: ContentPublishedEvent, db: Session = Depends(get_db)) -> dict:
    _get_user_or_404(db, payload.user_id)

    earned = ledger.award_content_resources(
        db,
        user_id=payload.user_id,
        content_type=payload.content_type,
        content_id=payload.content_id,
        content_title=payload.content_title,
    )
    db.commit()
    return {"success": True, "data": {"resources_earned": earned}}


@router.post("/events/engagement", dependencies=[Depends(require_admin)])
def engagement(payload: EngagementEvent, db: Session = Depends(get_db)) -> dict:
    _get_user_or_404(db, payload.user_id)

    earned = ledger.award_engagement_resources(
        db,
        user_id=payload.user_id,
        action=payload.action,
        metadata=payload.metadata,
        element_id=payload.element_id,
    )
    db.commit()
    return {"success": True, "data": {"resources_earned": earned}}
