"""Server-rendered pages: home and the dice roller."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form
from fastapi.responses import HTMLResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from jdr.database import get_db
from jdr.dependencies import get_current_user, require_membership
from jdr.dice import DiceRollResult, DiceSpec, InvalidSpecError, evaluate
from jdr.models import Campaign, CampaignMember, RollVisibility, User
from jdr.rendering import templates
from jdr.rolls import record_roll, roll_history

logger = logging.getLogger(__name__)

router = APIRouter()

_RECENT_ROLLS = 10


@router.get("/", response_class=HTMLResponse)
async def index(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "index.html")


async def _render_roller(
    request: Request,
    user: User,
    db: AsyncSession,
    *,
    campaign_id: int | None,
    result: DiceRollResult | None = None,
    error: str | None = None,
    form: dict | None = None,
    status_code: int = 200,
) -> HTMLResponse:
    result_campaigns = await db.execute(
        select(Campaign)
        .join(CampaignMember, CampaignMember.campaign_id == Campaign.id)
        .where(CampaignMember.user_id == user.id)
        .order_by(Campaign.name)
    )
    campaigns = result_campaigns.scalars().all()

    recent = []
    if campaign_id is not None:
        member = await require_membership(campaign_id, user.id, db)
        recent, _ = await roll_history(db, member, limit=_RECENT_ROLLS)

    return templates.TemplateResponse(
        request,
        "dice.html",
        {
            "user": user,
            "campaigns": campaigns,
            "campaign_id": campaign_id,
            "recent": recent,
            "result": result,
            "error": error,
            "form": form or {"dice_type": "d20", "number_of_dice": 1, "modifier": 0},
            "visibilities": [v.value for v in RollVisibility],
        },
        status_code=status_code,
    )


@router.get("/dice", response_class=HTMLResponse)
async def dice_page(
    request: Request,
    campaign_id: int | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> HTMLResponse:
    """Show the dice roller, with a campaign's recent rolls when one is chosen."""
    return await _render_roller(request, current_user, db, campaign_id=campaign_id)


def _form_int(value: str, field: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        raise InvalidSpecError(field, f"must be a whole number, got {value!r}") from None


@router.post("/dice", response_class=HTMLResponse)
async def dice_submit(
    request: Request,
    dice_type: str = Form(...),
    number_of_dice: str = Form("1"),
    modifier: str = Form("0"),
    campaign_id: int | None = Form(None),
    purpose: str = Form(""),
    visibility: RollVisibility = Form(RollVisibility.public),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> HTMLResponse:
    """Roll from the form; record the roll when a campaign is selected.

    Counts and modifiers arrive as raw form text; a non-number re-renders the
    page with the error.
    """
    form = {
        "dice_type": dice_type,
        "number_of_dice": number_of_dice,
        "modifier": modifier,
        "purpose": purpose,
        "visibility": visibility.value,
    }

    if campaign_id is not None:
        await require_membership(campaign_id, current_user.id, db)

    try:
        spec = DiceSpec(
            dice_type=dice_type,
            number_of_dice=_form_int(number_of_dice, "numberOfDice"),
            modifier=_form_int(modifier, "modifier"),
        )
        result = evaluate(spec)
    except InvalidSpecError as exc:
        logger.info("Rejected roll from user %d: %s", current_user.id, exc)
        return await _render_roller(
            request,
            current_user,
            db,
            campaign_id=campaign_id,
            error=str(exc),
            form=form,
            status_code=400,
        )

    if campaign_id is not None:
        await record_roll(
            db,
            campaign_id=campaign_id,
            user=current_user,
            result=result,
            purpose=purpose,
            visibility=visibility,
        )

    return await _render_roller(
        request, current_user, db, campaign_id=campaign_id, result=result, form=form
    )
