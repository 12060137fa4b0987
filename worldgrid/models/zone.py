# worldgrid/models/zone.py
from __future__ import annotations

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from worldgrid.database import Base


class Zone(Base):
    __tablename__ = "world_zones"

    id: Mapped[int] = mapped_column(primary_key=True)

    # stable identifier, e.g. "central", "east"
    zone_key: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    zone_type: Mapped[str] = mapped_column(String(32), nullable=False)

    # Inclusive bounds
    min_x: Mapped[int] = mapped_column(Integer, nullable=False)
    max_x: Mapped[int] = mapped_column(Integer, nullable=False)
    min_y: Mapped[int] = mapped_column(Integer, nullable=False)
    max_y: Mapped[int] = mapped_column(Integer, nullable=False)

    # Total structure count at which the zone opens for building
    unlock_at: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    color: Mapped[str] = mapped_column(String(16), default="#94a3b8", nullable=False)

    # Only ever flips false -> true (see game.zones.reconcile_zone_unlocks)
    is_unlocked: Mapped[bool] = mapped_column(Boolean, default=False, index=True, nullable=False)

    def contains(self, x: int, y: int) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    @property
    def center(self) -> dict[str, int]:
        # int() truncates toward zero
        return {
            "x": int((self.min_x + self.max_x) / 2),
            "y": int((self.min_y + self.max_y) / 2),
        }

    @property
    def bounds(self) -> dict[str, int]:
        return {
            "min_x": self.min_x,
            "max_x": self.max_x,
            "min_y": self.min_y,
            "max_y": self.max_y,
        }
