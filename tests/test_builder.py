from __future__ import annotations

import json

import pytest
from sqlalchemy.exc import IntegrityError

from worldgrid.game import adjacency, builder, ledger
from worldgrid.game.errors import (
    InsufficientResources,
    InvalidPosition,
    NotFound,
    PlacementConflict,
    Unauthorized,
    UnknownStructureType,
)
from worldgrid.models.activity_log import (
    ActivityLog,
    TARGET_STRUCTURE,
    TYPE_STRUCTURE_PLACED,
    TYPE_STRUCTURE_REMOVED,
    TYPE_STRUCTURE_UPGRADED,
)
from worldgrid.models.structure import Structure
from worldgrid.models.zone import Zone

from tests.factories import fund, make_user, put_structure


@pytest.fixture
def player(db, world):
    return make_user(db, "player")


def test_build_next_to_origin(db, player):
    fund(db, player.id, stone=5, wood=3)

    s = builder.place_structure(db, user_id=player.id, structure_type="cottage", x=1, y=1)

    assert (s.grid_x, s.grid_y) == (1, 1)
    assert s.level == 1
    assert s.health == 100
    assert s.decay_state == "active"
    assert s.placed_at is not None and s.last_owner_activity is not None

    wallet = ledger.get_resources(db, player.id)
    assert wallet.balances() == {"stone": 0, "wood": 0, "crystal_shards": 10, "magic_essence": 0}
    assert wallet.total_structures_built == 1

    entries = db.query(ActivityLog).filter_by(user_id=player.id).all()
    assert len(entries) == 1
    assert entries[0].activity_type == TYPE_STRUCTURE_PLACED
    assert (entries[0].target_kind, entries[0].target_id) == (TARGET_STRUCTURE, s.id)
    details = json.loads(entries[0].details_json)
    assert details == {"type": "cottage", "position": {"x": 1, "y": 1}, "costs": {"stone": 5, "wood": 3}}


def test_insufficient_resources_leaves_balances_untouched(db, player):
    # 10 shards, no stone; workshop needs stone 10 + shards 5
    with pytest.raises(InsufficientResources) as exc:
        builder.place_structure(db, user_id=player.id, structure_type="workshop", x=1, y=0)

    assert "stone" in exc.value.detail["missing"]
    db.rollback()

    wallet = ledger.get_resources(db, player.id)
    assert wallet.balances() == {"stone": 0, "wood": 0, "crystal_shards": 10, "magic_essence": 0}
    assert db.query(Structure).count() == 1
    assert db.query(ActivityLog).count() == 0


def test_invalid_position_is_checked_before_cost(db, player):
    fund(db, player.id, stone=5, wood=3)

    with pytest.raises(InvalidPosition):
        builder.place_structure(db, user_id=player.id, structure_type="cottage", x=5, y=5)
    with pytest.raises(InvalidPosition):
        builder.place_structure(db, user_id=player.id, structure_type="cottage", x=0, y=0)

    assert ledger.get_resources(db, player.id).stone == 5


def test_unknown_and_system_types_cannot_be_built(db, player):
    with pytest.raises(UnknownStructureType):
        builder.place_structure(db, user_id=player.id, structure_type="castle", x=1, y=0)
    with pytest.raises(UnknownStructureType):
        builder.place_structure(db, user_id=player.id, structure_type="origin_monument", x=1, y=0)


def test_type_aliases_are_normalized(db, player):
    fund(db, player.id, stone=5, wood=3)

    s = builder.place_structure(db, user_id=player.id, structure_type=" House ", x=1, y=0)

    assert s.structure_type == "cottage"


def test_metadata_and_customization_are_stored(db, player):
    fund(db, player.id, stone=5, wood=3)

    s = builder.place_structure(
        db,
        user_id=player.id,
        structure_type="cottage",
        x=-1,
        y=0,
        metadata={"category_slug": "maps"},
        customization={"name": "Home"},
    )

    assert s.category_slug == "maps"
    assert s.meta == {"category_slug": "maps"}
    assert s.customization == {"name": "Home"}


def test_cell_taken_at_write_time_is_a_conflict(db, player, monkeypatch):
    fund(db, player.id, stone=5, wood=3)
    put_structure(db, player.id, 1, 0)

    # another request passed validation for (1, 0) before it was taken
    monkeypatch.setattr(adjacency, "is_valid_position", lambda db, x, y: True)

    with pytest.raises(PlacementConflict):
        builder.place_structure(db, user_id=player.id, structure_type="cottage", x=1, y=0)

    # the spend was rolled back with the insert
    wallet = ledger.get_resources(db, player.id)
    assert wallet.stone == 5 and wallet.wood == 3
    assert wallet.total_structures_built == 0
    assert db.query(ActivityLog).count() == 0


def test_build_reconciles_zone_unlocks(db, player):
    db.query(Zone).filter_by(zone_key="east").update({"unlock_at": 2})
    db.commit()
    fund(db, player.id, stone=5, wood=3)

    builder.place_structure(db, user_id=player.id, structure_type="cottage", x=1, y=0)

    assert db.query(Zone).filter_by(zone_key="east").one().is_unlocked is True


def test_upgrade_cost_scales_with_level(db, player):
    s = put_structure(db, player.id, 1, 0)
    fund(db, player.id, stone=100, wood=100)

    builder.upgrade_structure(db, s)
    wallet = ledger.get_resources(db, player.id)
    # floor(5 * 1.5 * 1), floor(3 * 1.5 * 1)
    assert (wallet.stone, wallet.wood) == (93, 96)

    builder.upgrade_structure(db, s)
    wallet = ledger.get_resources(db, player.id)
    # floor(5 * 1.5 * 2), floor(3 * 1.5 * 2)
    assert (wallet.stone, wallet.wood) == (78, 87)
    assert wallet.total_upgrades_done == 2


def test_upgrade_resets_health_and_bumps_level_by_one(db, player):
    s = put_structure(db, player.id, 1, 0, health=40, level=3)
    fund(db, player.id, stone=100, wood=100)

    upgraded = builder.upgrade_structure(db, s, acting_user_id=player.id)

    assert upgraded.level == 4
    assert upgraded.health == 100

    entry = db.query(ActivityLog).filter_by(activity_type=TYPE_STRUCTURE_UPGRADED).one()
    details = json.loads(entry.details_json)
    assert details["previous_level"] == 3
    assert details["new_level"] == 4
    assert details["costs"] == {"stone": 22, "wood": 13}


def test_upgrade_without_funds_changes_nothing(db, player):
    s = put_structure(db, player.id, 1, 0)

    with pytest.raises(InsufficientResources):
        builder.upgrade_structure(db, s)
    db.rollback()

    s = db.get(Structure, s.id)
    assert s.level == 1


def test_upgrade_someone_elses_structure(db, player):
    other = make_user(db, "other")
    s = put_structure(db, other.id, 1, 0)

    with pytest.raises(Unauthorized):
        builder.upgrade_structure(db, s, acting_user_id=player.id)


def test_origin_cannot_be_upgraded(db, founder, world):
    origin = db.query(Structure).filter_by(structure_type="origin_monument").one()

    with pytest.raises(UnknownStructureType):
        builder.upgrade_structure(db, origin)


def test_get_structure_not_found(db):
    with pytest.raises(NotFound):
        builder.get_structure(db, 999)


def test_zone_bonuses(db, player):
    for x, t in ((2, "cottage"), (3, "cottage"), (4, "cottage"), (2, "garden"), (3, "library")):
        put_structure(db, player.id, x, 1 if t == "cottage" else 2, t)

    bonuses = builder.calculate_zone_bonuses(db, 3, 0)

    assert set(bonuses) == {"diversity", "cluster_cottage"}
    assert bonuses["cluster_cottage"] == "Cottage district forming"


def test_suggestions_are_free_unlocked_sorted_and_limited(db, player):
    put_structure(db, player.id, 25, 1)
    put_structure(db, player.id, 24, 1)

    suggestions = builder.suggest_positions(db, user_id=player.id, structure_type="cottage", limit=5)

    assert len(suggestions) == 5
    occupied = {(s.grid_x, s.grid_y) for s in db.query(Structure).all()}
    for cell in suggestions:
        assert (cell["x"], cell["y"]) not in occupied
        assert cell["x"] <= 25
    scores = [c["score"] for c in suggestions]
    assert scores == sorted(scores, reverse=True)


def test_suggestions_prefer_own_neighbourhood(db, player):
    put_structure(db, player.id, 1, 0)

    top = builder.suggest_positions(db, user_id=player.id, structure_type="garden", limit=1)[0]

    assert adjacency.min_distance_to(top["x"], top["y"], [(1, 0)]) == 1.0
    assert top["score"] == 9.0


def test_suggestions_for_newcomer_keep_scan_order(db, player):
    suggestions = builder.suggest_positions(db, user_id=player.id, structure_type="cottage", limit=3)

    # no own structures, no bonuses: every score is 0 and scan order is kept
    assert [(c["x"], c["y"]) for c in suggestions] == [(-1, -1), (0, -1), (1, -1)]
    assert all(c["score"] == 0 for c in suggestions)


def test_remove_structure_keeps_the_audit_row(db, player):
    s = put_structure(db, player.id, 1, 0, level=2)
    structure_id = s.id

    assert builder.remove_structure(db, s, reason="decay") is True

    assert db.get(Structure, structure_id) is None
    entry = db.query(ActivityLog).filter_by(activity_type=TYPE_STRUCTURE_REMOVED).one()
    assert entry.target_id == structure_id
    assert json.loads(entry.details_json) == {
        "type": "cottage",
        "position": {"x": 1, "y": 0},
        "reason": "decay",
        "level": 2,
    }


def test_decay_state_is_restricted(db, player):
    with pytest.raises(IntegrityError):
        put_structure(db, player.id, 1, 0, decay_state="crumbling")
    db.rollback()

    put_structure(db, player.id, 1, 0, decay_state="ruined")
    assert db.query(Structure).filter_by(decay_state="ruined").count() == 1
