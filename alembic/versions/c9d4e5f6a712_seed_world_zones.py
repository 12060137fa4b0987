"""seed world zones

Revision ID: c9d4e5f6a712
Revises: 7a2e4c1b8d33
Create Date: 2026-10-12 19:02:37.415906

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "c9d4e5f6a712"
down_revision: Union[str, Sequence[str], None] = "7a2e4c1b8d33"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Idempotent seed for SQLite: if rows already exist, do nothing.
    # Mirrors worldgrid.game.seed.DEFAULT_ZONES
    op.execute(
        """
        INSERT OR IGNORE INTO world_zones
          (zone_key, name, zone_type, min_x, max_x, min_y, max_y, unlock_at, color, is_unlocked)
        VALUES
          ('central', 'Origin Valley',     'origin',    -25,  25, -25,  25,    0, '#4ade80', 1),
          ('east',    'Crystal Plains',    'creative',   26,  75, -25,  25,  100, '#60a5fa', 0),
          ('west',    'Makers Marsh',      'makers',    -75, -26, -25,  25,  250, '#a78bfa', 0),
          ('north',   'Knowledge Heights', 'knowledge', -25,  25,  26,  75,  500, '#fbbf24', 0),
          ('south',   'Story Depths',      'stories',   -25,  25, -75, -26, 1000, '#f87171', 0);
        """
    )


def downgrade() -> None:
    op.execute("DELETE FROM world_zones WHERE zone_key IN ('central','east','west','north','south')")
