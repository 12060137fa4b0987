# worldgrid/models/activity_log.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from worldgrid.database import Base, utcnow

TYPE_STRUCTURE_PLACED = "structure_placed"
TYPE_STRUCTURE_UPGRADED = "structure_upgraded"
TYPE_STRUCTURE_REMOVED = "structure_removed"
TYPE_RESOURCE_EARNED = "resource_earned"

# What target_id points at
TARGET_STRUCTURE = "structure"
TARGET_ELEMENT = "element"


class ActivityLog(Base):
    __tablename__ = "world_activity_log"
    __table_args__ = (
        Index("ix_world_activity_log_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    activity_type: Mapped[str] = mapped_column(String(32), index=True, nullable=False)

    # Tagged reference, no FK: the row must outlive the structure it describes
    target_kind: Mapped[str | None] = mapped_column(String(16), nullable=True)
    target_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    details_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
