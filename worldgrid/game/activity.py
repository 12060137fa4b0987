# worldgrid/game/activity.py
from __future__ import annotations

import json
from datetime import timedelta

from sqlalchemy.orm import Session

from worldgrid.database import utcnow
from worldgrid.models.activity_log import ActivityLog


def log_activity(
    db: Session,
    *,
    user_id: int,
    activity_type: str,
    target_kind: str | None = None,
    target_id: int | None = None,
    details: dict | None = None,
) -> ActivityLog:
    entry = ActivityLog(
        user_id=int(user_id),
        activity_type=str(activity_type),
        target_kind=target_kind,
        target_id=(int(target_id) if target_id is not None else None),
        details_json=(json.dumps(details) if details is not None else None),
    )
    db.add(entry)
    db.flush()
    return entry


def recent_activity(
    db: Session,
    *,
    user_id: int | None = None,
    activity_type: str | None = None,
    hours: int = 24,
    limit: int = 50,
) -> list[ActivityLog]:
    q = db.query(ActivityLog).filter(ActivityLog.created_at >= utcnow() - timedelta(hours=hours))
    if user_id is not None:
        q = q.filter(ActivityLog.user_id == user_id)
    if activity_type is not None:
        q = q.filter(ActivityLog.activity_type == activity_type)
    return q.order_by(ActivityLog.id.desc()).limit(limit).all()


def to_dict(entry: ActivityLog) -> dict:
    return {
        "id": entry.id,
        "user_id": entry.user_id,
        "activity_type": entry.activity_type,
        "target": (
            {"kind": entry.target_kind, "id": entry.target_id}
            if entry.target_kind is not None
            else None
        ),
        "details": json.loads(entry.details_json) if entry.details_json else None,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }
