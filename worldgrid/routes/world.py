# worldgrid/routes/world.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from worldgrid.database import get_db
from worldgrid.game import activity, adjacency, builder, ledger, zones
from worldgrid.game.structure_rules import (
    buildable_types,
    default_customization,
    display_structure_type,
    normalize_structure_type,
    presentation,
    structure_color,
)
from worldgrid.models.structure import DECAY_ACTIVE, Structure
from worldgrid.models.user import User
from worldgrid.models.user_resource import UserResource
from worldgrid.routes.auth import get_current_user

router = APIRouter(prefix="/world", tags=["world"])

MAX_CHUNK_SIZE = 50
MAX_ACTIVITY_HOURS = 24 * 30

# Coordinates and ids past these are rejected with 422 before reaching the db
GRID_BOUND = 1_000_000
MAX_ID = 2**63 - 1


class CustomizationColors(BaseModel):
    model_config = ConfigDict(extra="allow")

    primary: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")


class Customization(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str | None = Field(default=None, max_length=30)
    description: str | None = Field(default=None, max_length=200)
    colors: CustomizationColors | None = None
    style: dict | None = None
    features: dict | None = None


class BuildRequest(BaseModel):
    type: str = Field(min_length=2, max_length=32)
    x: int = Field(ge=-GRID_BOUND, le=GRID_BOUND)
    y: int = Field(ge=-GRID_BOUND, le=GRID_BOUND)
    metadata: dict | None = None
    customization: Customization | None = None


def _ok(data) -> dict:
    return {"success": True, "data": data}


def _position(s: Structure) -> dict:
    return {"x": s.grid_x, "y": s.grid_y}


def _structure_summary(s: Structure) -> dict:
    return {
        "id": s.id,
        "type": s.structure_type,
        "type_name": display_structure_type(s.structure_type),
        "position": _position(s),
        "level": s.level,
        "health": s.health,
        "placed_at": s.placed_at.isoformat() if s.placed_at else None,
        "color": structure_color(s.structure_type),
    }


@router.get("/map")
def get_map(
    chunk_x: int = Query(default=0, ge=-GRID_BOUND, le=GRID_BOUND),
    chunk_y: int = Query(default=0, ge=-GRID_BOUND, le=GRID_BOUND),
    size: int = 20,
    db: Session = Depends(get_db),
) -> dict:
    size = max(1, min(MAX_CHUNK_SIZE, int(size)))

    rows = (
        db.query(Structure, User)
        .join(User, User.id == Structure.user_id)
        .filter(
            Structure.grid_x.between(chunk_x, chunk_x + size),
            Structure.grid_y.between(chunk_y, chunk_y + size),
            Structure.decay_state == DECAY_ACTIVE,
        )
        .order_by(Structure.id)
        .all()
    )

    structures = []
    for s, owner in rows:
        shown = presentation(s.structure_type, s.customization)
        structures.append(
            {
                "id": s.id,
                "type": s.structure_type,
                "type_name": display_structure_type(s.structure_type),
                "name": shown["name"],
                "description": shown["description"],
                "x": s.grid_x,
                "y": s.grid_y,
                "level": s.level,
                "user_id": s.user_id,
                "user_name": owner.username,
                "color": shown["color"],
                "decay_state": s.decay_state,
                "customization": s.customization,
            }
        )

    return _ok(
        {
            "chunk": {"x": chunk_x, "y": chunk_y, "width": size, "height": size},
            "structures": structures,
            "zones": zones.zones_with_status(db),
        }
    )


@router.get("/stats")
def get_stats(db: Session = Depends(get_db)) -> dict:
    active = Structure.decay_state == DECAY_ACTIVE

    type_distribution = {
        t: int(c)
        for t, c in db.execute(
            select(Structure.structure_type, func.count(Structure.id))
            .where(active)
            .group_by(Structure.structure_type)
        )
    }

    return _ok(
        {
            "total_structures": zones.total_structures(db),
            "active_structures": int(db.scalar(select(func.count(Structure.id)).where(active)) or 0),
            "total_builders": int(db.scalar(select(func.count(func.distinct(Structure.user_id)))) or 0),
            "type_distribution": type_distribution,
            "zone_progress": zones.progress_to_next_zone(db),
        }
    )


@router.get("/leaderboard")
def get_leaderboard(
    category: str = "structures",
    limit: int = 10,
    db: Session = Depends(get_db),
) -> dict:
    limit = max(1, min(20, int(limit)))

    if category == "resources":
        total = (
            UserResource.stone + UserResource.wood + UserResource.crystal_shards + UserResource.magic_essence
        ).label("total_resources")
        rows = db.execute(
            select(User.id, User.username, User.avatar, total)
            .join(UserResource, UserResource.user_id == User.id)
            .order_by(desc(total), User.id)
            .limit(limit)
        ).all()
        board = [
            {"user_id": uid, "name": name, "avatar": avatar, "total_resources": int(value)}
            for uid, name, avatar, value in rows
        ]
    elif category == "upgrades":
        rows = db.execute(
            select(User.id, User.username, User.avatar, UserResource.total_upgrades_done)
            .join(UserResource, UserResource.user_id == User.id)
            .order_by(desc(UserResource.total_upgrades_done), User.id)
            .limit(limit)
        ).all()
        board = [
            {"user_id": uid, "name": name, "avatar": avatar, "upgrades": int(value)}
            for uid, name, avatar, value in rows
        ]
    else:
        count = func.count(Structure.id).label("structure_count")
        rows = db.execute(
            select(User.id, User.username, User.avatar, count)
            .join(Structure, Structure.user_id == User.id)
            .group_by(User.id, User.username, User.avatar)
            .order_by(desc(count), User.id)
            .limit(limit)
        ).all()
        board = [
            {"user_id": uid, "name": name, "avatar": avatar, "count": int(value)}
            for uid, name, avatar, value in rows
        ]

    return _ok(board)


@router.get("/zones")
def get_zones(db: Session = Depends(get_db)) -> dict:
    return _ok(zones.zones_with_status(db))


@router.get("/zones/progress")
def get_zone_progress(db: Session = Depends(get_db)) -> dict:
    return _ok(zones.progress_to_next_zone(db))


@router.get("/structure/{structure_id}")
def get_structure(
    structure_id: int = Path(ge=1, le=MAX_ID),
    db: Session = Depends(get_db),
) -> dict:
    s = builder.get_structure(db, structure_id)
    owner = s.owner

    summary = _structure_summary(s)
    summary["decay_state"] = s.decay_state

    return _ok(
        {
            "structure": summary,
            "owner": {"id": owner.id, "name": owner.username, "avatar": owner.avatar},
            "nearby_count": len(builder.nearby_structures(db, s.grid_x, s.grid_y)),
        }
    )


@router.get("/customization/{structure_type}")
def get_customization_options(structure_type: str) -> dict:
    canonical = normalize_structure_type(structure_type)
    return _ok(
        {
            "type": canonical,
            "defaults": default_customization(canonical),
            "structure_types": {t: display_structure_type(t) for t in buildable_types()},
        }
    )


@router.get("/my-resources")
def get_my_resources(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
) -> dict:
    summary = ledger.resource_summary(db, current_user.id)
    db.commit()
    return _ok(summary)


@router.get("/my-structures")
def get_my_structures(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
) -> dict:
    mine = (
        db.query(Structure)
        .filter(Structure.user_id == current_user.id, Structure.decay_state == DECAY_ACTIVE)
        .order_by(Structure.placed_at.desc(), Structure.id.desc())
        .all()
    )
    return _ok([_structure_summary(s) for s in mine])


@router.post("/build")
def build(
    payload: BuildRequest,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
) -> dict:
    customization = payload.customization.model_dump(exclude_none=True) if payload.customization else None

    s = builder.place_structure(
        db,
        user_id=current_user.id,
        structure_type=payload.type,
        x=payload.x,
        y=payload.y,
        metadata=payload.metadata,
        customization=customization,
    )
    shown = presentation(s.structure_type, s.customization)

    return {
        "success": True,
        "message": "Structure placed successfully",
        "data": {
            "structure": {
                "id": s.id,
                "type": s.structure_type,
                "name": shown["name"],
                "position": _position(s),
                "level": s.level,
                "color": shown["color"],
                "customization": s.customization,
            },
            "resources": ledger.resource_summary(db, current_user.id),
        },
    }


@router.post("/upgrade/{structure_id}")
def upgrade(
    structure_id: int = Path(ge=1, le=MAX_ID),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
) -> dict:
    s = builder.get_structure(db, structure_id)
    upgraded = builder.upgrade_structure(db, s, acting_user_id=current_user.id)

    return {
        "success": True,
        "message": "Structure upgraded successfully",
        "data": {
            "structure": {
                "id": upgraded.id,
                "type": upgraded.structure_type,
                "level": upgraded.level,
                "health": upgraded.health,
            },
            "resources": ledger.resource_summary(db, current_user.id),
        },
    }


@router.get("/suggest-positions")
def suggest_positions(
    type: str = Query(default="cottage", min_length=2, max_length=32),
    limit: int = 5,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
) -> dict:
    limit = max(1, min(10, int(limit)))
    return _ok(builder.suggest_positions(db, user_id=current_user.id, structure_type=type, limit=limit))


@router.get("/nearest-position")
def nearest_position(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
) -> dict:
    return _ok(adjacency.nearest_available_position(db, current_user.id))


@router.get("/check-position")
def check_position(
    x: int = Query(ge=-GRID_BOUND, le=GRID_BOUND),
    y: int = Query(ge=-GRID_BOUND, le=GRID_BOUND),
    db: Session = Depends(get_db),
) -> dict:
    available = builder.is_position_available(db, x, y)
    return _ok(
        {
            "x": x,
            "y": y,
            "available": available,
            "bonuses": builder.calculate_zone_bonuses(db, x, y) if available else {},
        }
    )


@router.get("/my-activity")
def my_activity(
    hours: int = Query(default=24, ge=1, le=MAX_ACTIVITY_HOURS),
    limit: int = 20,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
) -> dict:
    limit = max(1, min(50, int(limit)))
    entries = activity.recent_activity(db, user_id=current_user.id, hours=hours, limit=limit)
    return _ok([activity.to_dict(e) for e in entries])
