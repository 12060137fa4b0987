# worldgrid/models/structure.py
from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from worldgrid.database import Base, utcnow

DECAY_ACTIVE = "active"
DECAY_FADING = "fading"
DECAY_RUINED = "ruined"

DECAY_STATES = (DECAY_ACTIVE, DECAY_FADING, DECAY_RUINED)

_DECAY_STATES_SQL = ", ".join(f"'{s}'" for s in DECAY_STATES)


def _loads(raw: str | None) -> Any:
    if not raw:
        return None
    return json.loads(raw)


class Structure(Base):
    __tablename__ = "world_structures"
    __table_args__ = (
        # One structure per cell. Concurrent builds on the same cell lose here.
        UniqueConstraint("grid_x", "grid_y", name="uq_world_structures_cell"),
        CheckConstraint("health >= 0 AND health <= 100", name="ck_world_structures_health"),
        CheckConstraint("level >= 1", name="ck_world_structures_level"),
        CheckConstraint(f"decay_state IN ({_DECAY_STATES_SQL})", name="ck_world_structures_decay_state"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # Ownership
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    owner: Mapped["User"] = relationship(back_populates="structures")

    # e.g. "cottage", "workshop", "origin_monument"
    structure_type: Mapped[str] = mapped_column(String(32), index=True, nullable=False)
    category_slug: Mapped[str | None] = mapped_column(String(64), nullable=True)

    grid_x: Mapped[int] = mapped_column(Integer, nullable=False)
    grid_y: Mapped[int] = mapped_column(Integer, nullable=False)

    level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    health: Mapped[int] = mapped_column(Integer, default=100, nullable=False)
    decay_state: Mapped[str] = mapped_column(String(16), default=DECAY_ACTIVE, index=True, nullable=False)

    # JSON strings
    metadata_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    customization_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    placed_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    last_owner_activity: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    decay_started_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def meta(self) -> dict | None:
        return _loads(self.metadata_json)

    @property
    def customization(self) -> dict | None:
        return _loads(self.customization_json)
