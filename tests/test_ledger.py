from __future__ import annotations

import pytest

from worldgrid.game import ledger
from worldgrid.game.errors import InvalidEvent
from worldgrid.models.activity_log import ActivityLog, TYPE_RESOURCE_EARNED
from worldgrid.models.user_resource import UserResource

from tests.factories import fund, make_user


def test_new_ledger_starts_with_ten_crystal_shards(db):
    user = make_user(db)

    wallet = ledger.get_resources(db, user.id)
    db.commit()

    assert wallet.balances() == {"stone": 0, "wood": 0, "crystal_shards": 10, "magic_essence": 0}
    assert wallet.total_structures_built == 0
    assert db.query(UserResource).filter_by(user_id=user.id).count() == 1


def test_get_resources_is_idempotent(db):
    user = make_user(db)

    first = ledger.get_resources(db, user.id)
    second = ledger.get_resources(db, user.id)

    assert first.id == second.id


def test_spend_deducts_every_cost(db):
    user = make_user(db)
    fund(db, user.id, stone=7, wood=4)

    assert ledger.spend(db, user.id, {"stone": 5, "wood": 3}) is True

    wallet = ledger.get_resources(db, user.id)
    assert wallet.stone == 2
    assert wallet.wood == 1
    assert wallet.crystal_shards == 10


def test_spend_is_all_or_nothing(db):
    user = make_user(db)
    fund(db, user.id, stone=100)

    # plenty of stone, not enough shards
    assert ledger.spend(db, user.id, {"stone": 10, "crystal_shards": 11}) is False

    wallet = ledger.get_resources(db, user.id)
    assert wallet.stone == 100
    assert wallet.crystal_shards == 10


def test_spend_agrees_with_can_afford(db):
    user = make_user(db)
    fund(db, user.id, wood=3)
    wallet = ledger.get_resources(db, user.id)

    for costs in ({"wood": 3}, {"wood": 4}, {"stone": 1}, {"crystal_shards": 10}, {}):
        before = wallet.balances()
        affordable = ledger.can_afford(wallet, costs)
        assert ledger.spend(db, user.id, costs) is affordable
        if not affordable:
            assert wallet.balances() == before
        assert all(v >= 0 for v in wallet.balances().values())
        db.rollback()


def test_spend_cannot_overdraw_from_stale_reads(db):
    user = make_user(db)
    fund(db, user.id, stone=5)

    wallet = ledger.get_resources(db, user.id)
    assert ledger.can_afford(wallet, {"stone": 5})

    # both callers saw 5 stone; only one spend lands
    assert ledger.spend(db, user.id, {"stone": 5}) is True
    assert ledger.spend(db, user.id, {"stone": 5}) is False
    assert ledger.get_resources(db, user.id).stone == 0


def test_unknown_resource_is_never_affordable(db):
    user = make_user(db)
    wallet = ledger.get_resources(db, user.id)

    assert ledger.can_afford(wallet, {"gold": 1}) is False
    assert ledger.spend(db, user.id, {"gold": 1}) is False


def test_add_ignores_unknown_resources_and_stamps_claim(db):
    user = make_user(db)

    wallet = ledger.add(db, user.id, {"stone": 3, "gold": 99})
    db.commit()

    assert wallet.stone == 3
    assert not hasattr(wallet, "gold")
    assert wallet.last_resource_claim is not None


def test_negative_amounts_are_rejected(db):
    user = make_user(db)

    with pytest.raises(ValueError):
        ledger.add(db, user.id, {"stone": -1})
    with pytest.raises(ValueError):
        ledger.spend(db, user.id, {"stone": -1})


def test_shortfall_reports_missing_resources(db):
    user = make_user(db)
    wallet = ledger.get_resources(db, user.id)

    missing = ledger.shortfall(wallet, {"stone": 5, "crystal_shards": 3})

    assert missing == {"stone": {"need": 5, "have": 0}}


@pytest.mark.parametrize(
    "content_type, expected",
    [
        ("digital_file", {"stone": 5, "wood": 2, "crystal_shards": 3}),
        ("rpg_module", {"stone": 3, "wood": 3, "crystal_shards": 5, "magic_essence": 3}),
        ("podcast", {"stone": 1, "wood": 1}),
    ],
)
def test_content_rewards(content_type, expected):
    assert ledger.content_reward(content_type) == expected


def test_award_content_resources_credits_and_logs(db):
    user = make_user(db)

    earned = ledger.award_content_resources(
        db, user_id=user.id, content_type="article", content_id=42, content_title="Maps"
    )
    db.commit()

    assert earned == {"stone": 5, "wood": 5, "crystal_shards": 2, "magic_essence": 1}
    wallet = ledger.get_resources(db, user.id)
    assert wallet.balances() == {"stone": 5, "wood": 5, "crystal_shards": 12, "magic_essence": 1}

    entry = db.query(ActivityLog).one()
    assert entry.activity_type == TYPE_RESOURCE_EARNED
    assert entry.target_kind is None
    assert '"content_id": 42' in entry.details_json


def test_rating_received_pays_the_rating(db):
    assert ledger.engagement_reward("rating_received", {"rating": 4}) == {"crystal_shards": 4}
    assert ledger.engagement_reward("rating_received") == {"crystal_shards": 1}
    assert ledger.engagement_reward("unknown_action") == {}


@pytest.mark.parametrize("rating", [-1, "five", [4]])
def test_bad_rating_is_an_invalid_event(db, rating):
    user = make_user(db)

    with pytest.raises(InvalidEvent):
        ledger.award_engagement_resources(
            db, user_id=user.id, action="rating_received", metadata={"rating": rating}
        )

    assert db.query(ActivityLog).count() == 0


def test_unknown_engagement_awards_nothing(db):
    user = make_user(db)

    assert ledger.award_engagement_resources(db, user_id=user.id, action="nap") == {}
    assert db.query(ActivityLog).count() == 0


def test_resource_summary_lists_affordable_types(db):
    user = make_user(db)
    fund(db, user.id, stone=5, wood=3)

    summary = ledger.resource_summary(db, user.id)

    assert summary["can_build"] == ["cottage"]
    assert summary["total_value"] == 18
    assert summary["resources"]["crystal_shards"] == 10
