# worldgrid/models/user_resource.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from worldgrid.database import Base

RESOURCE_TYPES = ("stone", "wood", "crystal_shards", "magic_essence")

STARTING_CRYSTAL_SHARDS = 10


class UserResource(Base):
    __tablename__ = "user_world_resources"
    __table_args__ = tuple(
        CheckConstraint(f"{r} >= 0", name=f"ck_user_world_resources_{r}")
        for r in RESOURCE_TYPES
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True, nullable=False
    )
    user: Mapped["User"] = relationship()

    # Currencies
    stone: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    wood: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    crystal_shards: Mapped[int] = mapped_column(Integer, default=STARTING_CRYSTAL_SHARDS, nullable=False)
    magic_essence: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Lifetime counters
    total_structures_built: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_upgrades_done: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    last_resource_claim: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    def balances(self) -> dict[str, int]:
        return {r: int(getattr(self, r)) for r in RESOURCE_TYPES}

    @property
    def total_resources(self) -> int:
        return sum(self.balances().values())

    def to_dict(self) -> dict:
        d = self.balances()
        d["total_structures_built"] = self.total_structures_built
        d["total_upgrades_done"] = self.total_upgrades_done
        return d
