"""create world tables

Revision ID: 7a2e4c1b8d33
Revises: 3f1c2a7d9b10
Create Date: 2026-10-12 18:31:52.880412
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "7a2e4c1b8d33"
down_revision: Union[str, Sequence[str], None] = "3f1c2a7d9b10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "world_structures",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("structure_type", sa.String(length=32), nullable=False),
        sa.Column("category_slug", sa.String(length=64), nullable=True),
        sa.Column("grid_x", sa.Integer(), nullable=False),
        sa.Column("grid_y", sa.Integer(), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("health", sa.Integer(), nullable=False, server_default=sa.text("100")),
        sa.Column("decay_state", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("metadata_json", sa.Text(), nullable=True),
        sa.Column("customization_json", sa.Text(), nullable=True),
        sa.Column("placed_at", sa.DateTime(), nullable=False),
        sa.Column("last_owner_activity", sa.DateTime(), nullable=True),
        sa.Column("decay_started_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        # One structure per cell
        sa.UniqueConstraint("grid_x", "grid_y", name="uq_world_structures_cell"),
        sa.CheckConstraint("health >= 0 AND health <= 100", name="ck_world_structures_health"),
        sa.CheckConstraint("level >= 1", name="ck_world_structures_level"),
        sa.CheckConstraint(
            "decay_state IN ('active', 'fading', 'ruined')", name="ck_world_structures_decay_state"
        ),
    )
    op.create_index(op.f("ix_world_structures_user_id"), "world_structures", ["user_id"], unique=False)
    op.create_index(op.f("ix_world_structures_structure_type"), "world_structures", ["structure_type"], unique=False)
    op.create_index(op.f("ix_world_structures_decay_state"), "world_structures", ["decay_state"], unique=False)

    op.create_table(
        "world_zones",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("zone_key", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("zone_type", sa.String(length=32), nullable=False),
        sa.Column("min_x", sa.Integer(), nullable=False),
        sa.Column("max_x", sa.Integer(), nullable=False),
        sa.Column("min_y", sa.Integer(), nullable=False),
        sa.Column("max_y", sa.Integer(), nullable=False),
        sa.Column("unlock_at", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("color", sa.String(length=16), nullable=False, server_default="#94a3b8"),
        sa.Column("is_unlocked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_world_zones_zone_key"), "world_zones", ["zone_key"], unique=True)
    op.create_index(op.f("ix_world_zones_is_unlocked"), "world_zones", ["is_unlocked"], unique=False)

    op.create_table(
        "user_world_resources",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("stone", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("wood", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("crystal_shards", sa.Integer(), nullable=False, server_default=sa.text("10")),
        sa.Column("magic_essence", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_structures_built", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_upgrades_done", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_resource_claim", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("stone >= 0", name="ck_user_world_resources_stone"),
        sa.CheckConstraint("wood >= 0", name="ck_user_world_resources_wood"),
        sa.CheckConstraint("crystal_shards >= 0", name="ck_user_world_resources_crystal_shards"),
        sa.CheckConstraint("magic_essence >= 0", name="ck_user_world_resources_magic_essence"),
    )
    op.create_index(op.f("ix_user_world_resources_user_id"), "user_world_resources", ["user_id"], unique=True)

    op.create_table(
        "world_activity_log",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("activity_type", sa.String(length=32), nullable=False),
        # Tagged reference (structure / element); deliberately no FK
        sa.Column("target_kind", sa.String(length=16), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("details_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_world_activity_log_activity_type"), "world_activity_log", ["activity_type"], unique=False)
    op.create_index(
        "ix_world_activity_log_user_created", "world_activity_log", ["user_id", "created_at"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_world_activity_log_user_created", table_name="world_activity_log")
    op.drop_index(op.f("ix_world_activity_log_activity_type"), table_name="world_activity_log")
    op.drop_table("world_activity_log")

    op.drop_index(op.f("ix_user_world_resources_user_id"), table_name="user_world_resources")
    op.drop_table("user_world_resources")

    op.drop_index(op.f("ix_world_zones_is_unlocked"), table_name="world_zones")
    op.drop_index(op.f("ix_world_zones_zone_key"), table_name="world_zones")
    op.drop_table("world_zones")

    op.drop_index(op.f("ix_world_structures_decay_state"), table_name="world_structures")
    op.drop_index(op.f("ix_world_structures_structure_type"), table_name="world_structures")
    op.drop_index(op.f("ix_world_structures_user_id"), table_name="world_structures")
    op.drop_table("world_structures")
