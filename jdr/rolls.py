"""Persistence and query helpers for campaign dice rolls."""

from __future__ import annotations

import logging
import math
from collections import Counter
from datetime import datetime, timedelta, timezone

from sqlalchemy import ColumnElement, and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from jdr.dice import DICE_SIDES, DiceRollResult
from jdr.models import CampaignMember, DiceRoll, MemberRole, RollVisibility, User

logger = logging.getLogger(__name__)

STATISTICS_PERIODS: dict[str, timedelta | None] = {
    "all": None,
    "week": timedelta(days=7),
    "month": timedelta(days=30),
}

_FAVORITES_LIMIT = 3


def visible_to(member: CampaignMember) -> ColumnElement[bool]:
    """Return a filter selecting the campaign's rolls this member may see.

    Public rolls are visible to everyone in the campaign, a member always sees
    their own rolls, and game masters additionally see gm_only rolls.
    """
    allowed = [
        DiceRoll.visibility == RollVisibility.public,
        DiceRoll.user_id == member.user_id,
    ]
    if member.role == MemberRole.game_master:
        allowed.append(DiceRoll.visibility == RollVisibility.gm_only)
    return and_(DiceRoll.campaign_id == member.campaign_id, or_(*allowed))


def can_delete(member: CampaignMember, roll: DiceRoll) -> bool:
    """Return True if the member rolled the dice or runs the campaign."""
    return roll.user_id == member.user_id or member.role == MemberRole.game_master


async def record_roll(
    db: AsyncSession,
    *,
    campaign_id: int,
    user: User,
    result: DiceRollResult,
    purpose: str | None = None,
    visibility: RollVisibility = RollVisibility.public,
) -> DiceRoll:
    """Persist an evaluated roll for a campaign and return it with ``user`` loaded.

    Args:
        db: Active database session. The roll is committed.
        campaign_id: Campaign the roll belongs to.
        user: The member who rolled.
        result: The evaluated roll.
        purpose: Optional free-text reason ("Stealth check"), trimmed.
        visibility: Who may see the roll.
    """
    purpose = (purpose or "").strip()[:200] or None
    roll = DiceRoll(
        campaign_id=campaign_id,
        user_id=user.id,
        dice_type=result.dice_type,
        number_of_dice=result.number_of_dice,
        modifier=result.modifier,
        results=list(result.results),
        total=result.total,
        notation=result.notation,
        formatted_result=result.formatted_result,
        quality=result.quality,
        purpose=purpose,
        visibility=visibility,
    )
    db.add(roll)
    await db.commit()

    loaded = await db.execute(
        select(DiceRoll)
        .where(DiceRoll.id == roll.id)
        .options(selectinload(DiceRoll.user))
        .execution_options(populate_existing=True)
    )
    roll = loaded.scalar_one()
    logger.info(
        "User %d rolled %s = %d in campaign %d", user.id, roll.notation, roll.total, campaign_id
    )
    return roll


async def roll_history(
    db: AsyncSession,
    member: CampaignMember,
    *,
    page: int = 1,
    limit: int = 20,
    user_id: int | None = None,
    dice_type: str | None = None,
    visibility: RollVisibility | None = None,
) -> tuple[list[DiceRoll], int]:
    """Return one page of visible rolls, newest first, and the total match count."""
    conditions = [visible_to(member)]
    if user_id is not None:
        conditions.append(DiceRoll.user_id == user_id)
    if dice_type is not None:
        conditions.append(DiceRoll.dice_type == dice_type)
    if visibility is not None:
        conditions.append(DiceRoll.visibility == visibility)

    total = await db.scalar(select(func.count(DiceRoll.id)).where(*conditions))
    result = await db.execute(
        select(DiceRoll)
        .where(*conditions)
        .options(selectinload(DiceRoll.user))
        .order_by(DiceRoll.created_at.desc(), DiceRoll.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total or 0


def page_count(total: int, limit: int) -> int:
    return max(1, math.ceil(total / limit))


async def roll_statistics(
    db: AsyncSession,
    member: CampaignMember,
    *,
    user_id: int | None = None,
    period: str = "all",
    now: datetime | None = None,
) -> dict:
    """Summarise the rolls visible to ``member``.

    Args:
        db: Active database session.
        member: Membership of the caller; defines which rolls count.
        user_id: Restrict to one roller.
        period: One of STATISTICS_PERIODS.
        now: Reference time for the period window (defaults to the current time).

    Raises:
        ValueError: If ``period`` is unknown.
    """
    if period not in STATISTICS_PERIODS:
        raise ValueError(f"Invalid period: {period!r}")

    query = select(DiceRoll.dice_type, DiceRoll.total, DiceRoll.quality).where(visible_to(member))
    if user_id is not None:
        query = query.where(DiceRoll.user_id == user_id)
    window = STATISTICS_PERIODS[period]
    if window is not None:
        since = (now or datetime.now(timezone.utc)) - window
        query = query.where(DiceRoll.created_at >= since)

    rows = (await db.execute(query)).all()

    by_type = Counter(row.dice_type for row in rows)
    qualities = Counter(row.quality for row in rows)
    favorites = sorted(by_type, key=lambda t: (-by_type[t], DICE_SIDES.get(t, 0)))
    average = round(sum(row.total for row in rows) / len(rows), 2) if rows else None

    return {
        "total_rolls": len(rows),
        "by_dice_type": dict(by_type),
        "average_total": average,
        "critical_successes": qualities["critical_success"],
        "critical_failures": qualities["critical_failure"],
        "favorite_dice_types": favorites[:_FAVORITES_LIMIT],
    }
