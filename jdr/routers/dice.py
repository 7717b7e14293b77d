"""Dice API: quick rolls, campaign rolls, history, statistics."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from jdr.config import settings
from jdr.database import get_db
from jdr.dependencies import get_current_user, require_membership
from jdr.dice import evaluate
from jdr.models import DiceRoll, RollVisibility, User
from jdr.rolls import (
    STATISTICS_PERIODS,
    can_delete,
    page_count,
    record_roll,
    roll_history,
    roll_statistics,
)
from jdr.schemas import (
    CampaignRollIn,
    DiceRollOut,
    DiceRollRecordOut,
    DiceSpecIn,
    Pagination,
    RollHistoryOut,
    RollStatisticsOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dice", tags=["dice"])

# Keeps the history OFFSET well inside a 64-bit integer.
MAX_HISTORY_PAGE = 10_000


@router.post("/quick-roll", response_model=DiceRollOut)
async def quick_roll(
    body: DiceSpecIn,
    current_user: User = Depends(get_current_user),
) -> DiceRollOut:
    """Roll without a campaign. Nothing is stored."""
    result = evaluate(body.to_spec())
    return DiceRollOut.from_result(result)


@router.post("/roll", response_model=DiceRollRecordOut, status_code=status.HTTP_201_CREATED)
async def campaign_roll(
    body: CampaignRollIn,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> DiceRollRecordOut:
    """Roll for a campaign and record the result."""
    await require_membership(body.campaign_id, current_user.id, db)
    result = evaluate(body.to_spec())
    roll = await record_roll(
        db,
        campaign_id=body.campaign_id,
        user=current_user,
        result=result,
        purpose=body.purpose,
        visibility=body.visibility,
    )
    return DiceRollRecordOut.from_record(roll)


@router.get("/history/{campaign_id}", response_model=RollHistoryOut)
async def history(
    campaign_id: int,
    page: int = Query(1, ge=1, le=MAX_HISTORY_PAGE),
    limit: int | None = Query(None, ge=1),
    user_id: int | None = Query(None, alias="userId"),
    dice_type: str | None = Query(None, alias="diceType"),
    visibility: RollVisibility | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> RollHistoryOut:
    """Return the campaign's rolls visible to the caller, newest first."""
    member = await require_membership(campaign_id, current_user.id, db)
    limit = min(limit or settings.dice_history_page_size, settings.dice_history_max_page_size)
    rolls, total = await roll_history(
        db,
        member,
        page=page,
        limit=limit,
        user_id=user_id,
        dice_type=dice_type,
        visibility=visibility,
    )
    return RollHistoryOut(
        rolls=[DiceRollRecordOut.from_record(r) for r in rolls],
        pagination=Pagination(current=page, pages=page_count(total, limit), total=total),
    )


@router.get("/statistics/{campaign_id}", response_model=RollStatisticsOut)
async def statistics(
    campaign_id: int,
    user_id: int | None = Query(None, alias="userId"),
    period: str = "all",
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> RollStatisticsOut:
    """Aggregate counts and averages over the caller's visible rolls."""
    if period not in STATISTICS_PERIODS:
        allowed = ", ".join(STATISTICS_PERIODS)
        raise HTTPException(status_code=400, detail=f"period must be one of {allowed}")
    member = await require_membership(campaign_id, current_user.id, db)
    stats = await roll_statistics(db, member, user_id=user_id, period=period)
    return RollStatisticsOut(**stats)


@router.delete("/roll/{roll_id}")
async def delete_roll(
    roll_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, int]:
    """Delete a roll. Allowed for the roller and the campaign's game masters."""
    roll = await db.get(DiceRoll, roll_id)
    if roll is None:
        raise HTTPException(status_code=404, detail="Roll not found")
    member = await require_membership(roll.campaign_id, current_user.id, db)
    if not can_delete(member, roll):
        raise HTTPException(status_code=403, detail="You cannot delete this roll")
    await db.delete(roll)
    await db.commit()
    logger.info("User %d deleted roll %d", current_user.id, roll_id)
    return {"deleted": roll_id}
