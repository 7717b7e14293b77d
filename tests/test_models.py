"""ORM-level integration tests for jdr data models."""

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from jdr.dice import DiceSpec, evaluate
from jdr.models import (
    Campaign,
    CampaignMember,
    DiceRoll,
    MemberRole,
    RollVisibility,
    User,
)
from jdr.rolls import record_roll

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _make_user(session: AsyncSession, display_name: str = "Dana") -> User:
    user = User(display_name=display_name)
    session.add(user)
    await session.flush()
    return user


async def _make_campaign(session: AsyncSession, name: str = "Test Campaign") -> Campaign:
    campaign = Campaign(name=name)
    session.add(campaign)
    await session.flush()
    return campaign


def _make_roll(campaign: Campaign, user: User | None, **overrides) -> DiceRoll:
    fields = dict(
        campaign_id=campaign.id,
        user_id=user.id if user else None,
        dice_type="d6",
        number_of_dice=2,
        modifier=1,
        results=[3, 5],
        total=9,
        notation="2d6+1",
        formatted_result="[3, 5] + 1 = 9",
        quality="good",
    )
    fields.update(overrides)
    return DiceRoll(**fields)


# ---------------------------------------------------------------------------
# TestUserModel
# ---------------------------------------------------------------------------


class TestUserModel:
    async def test_create_user(self, db: AsyncSession):
        user = await _make_user(db)
        assert user.id is not None
        assert user.display_name == "Dana"
        assert user.email is None

    async def test_user_has_timestamps(self, db: AsyncSession):
        user = await _make_user(db)
        await db.refresh(user)
        assert user.created_at is not None
        assert user.updated_at is not None


# ---------------------------------------------------------------------------
# TestCampaignModel
# ---------------------------------------------------------------------------


class TestCampaignModel:
    async def test_member_defaults_to_player(self, db: AsyncSession):
        user = await _make_user(db)
        campaign = await _make_campaign(db)
        member = CampaignMember(campaign_id=campaign.id, user_id=user.id)
        db.add(member)
        await db.flush()
        assert member.role == MemberRole.player

    async def test_membership_is_unique(self, db: AsyncSession):
        user = await _make_user(db)
        campaign = await _make_campaign(db)
        db.add(CampaignMember(campaign_id=campaign.id, user_id=user.id))
        await db.flush()
        db.add(CampaignMember(campaign_id=campaign.id, user_id=user.id))
        with pytest.raises(IntegrityError):
            await db.flush()

    async def test_campaign_cascade_deletes_rolls(self, db: AsyncSession):
        user = await _make_user(db)
        campaign = await _make_campaign(db)
        roll = _make_roll(campaign, user)
        db.add(roll)
        await db.flush()
        roll_id = roll.id

        await db.delete(campaign)
        await db.flush()

        assert await db.get(DiceRoll, roll_id) is None


# ---------------------------------------------------------------------------
# TestDiceRollModel
# ---------------------------------------------------------------------------


class TestDiceRollModel:
    async def test_results_round_trip_through_json(self, db: AsyncSession):
        campaign = await _make_campaign(db)
        roll = _make_roll(campaign, None, results=[1, 6, 4])
        db.add(roll)
        await db.flush()
        assert roll.results_json == "[1, 6, 4]"
        assert roll.results == [1, 6, 4]

    async def test_defaults(self, db: AsyncSession):
        campaign = await _make_campaign(db)
        roll = _make_roll(campaign, None)
        db.add(roll)
        await db.flush()
        assert roll.visibility == RollVisibility.public
        assert roll.purpose is None

    async def test_number_of_dice_constraint(self, db: AsyncSession):
        campaign = await _make_campaign(db)
        db.add(_make_roll(campaign, None, number_of_dice=21))
        with pytest.raises(IntegrityError):
            await db.flush()

    async def test_modifier_constraint(self, db: AsyncSession):
        campaign = await _make_campaign(db)
        db.add(_make_roll(campaign, None, modifier=-101))
        with pytest.raises(IntegrityError):
            await db.flush()


# ---------------------------------------------------------------------------
# record_roll helper
# ---------------------------------------------------------------------------


class TestRecordRoll:
    async def test_stores_evaluated_result(self, db: AsyncSession):
        user = await _make_user(db)
        campaign = await _make_campaign(db)
        result = evaluate(DiceSpec("d10", 2, -1), lambda sides: 10)

        roll = await record_roll(
            db,
            campaign_id=campaign.id,
            user=user,
            result=result,
            purpose="   ",
            visibility=RollVisibility.gm_only,
        )

        assert roll.id is not None
        assert roll.results == [10, 10]
        assert roll.total == 19
        assert roll.notation == "2d10-1"
        assert roll.quality == "critical_success"
        assert roll.purpose is None
        assert roll.visibility == RollVisibility.gm_only
        assert roll.user.display_name == "Dana"
