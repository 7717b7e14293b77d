"""Request dependencies: the signed-in user and their campaign membership."""

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from jdr.database import get_db
from jdr.models import Campaign, CampaignMember, User

logger = logging.getLogger(__name__)


class LoginRequired(Exception):
    """No usable session. main.py answers 401 on the API and redirects pages to /login."""


async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)) -> User:
    user_id = request.session.get("user_id")
    if not user_id:
        raise LoginRequired()
    user = await db.get(User, user_id)
    if user is None:
        # The user row is gone (e.g. a reseeded dev database); drop the stale cookie.
        logger.info("Clearing session for unknown user %s", user_id)
        request.session.clear()
        raise LoginRequired()
    return user


async def require_membership(campaign_id: int, user_id: int, db: AsyncSession) -> CampaignMember:
    """Return the user's membership in the campaign.

    Raises 404 if the campaign does not exist and 403 if the user is not a member.
    """
    if await db.get(Campaign, campaign_id) is None:
        raise HTTPException(status_code=404, detail="Campaign not found")
    member = await db.scalar(
        select(CampaignMember).where(
            CampaignMember.campaign_id == campaign_id,
            CampaignMember.user_id == user_id,
        )
    )
    if member is None:
        raise HTTPException(status_code=403, detail="You are not a member of this campaign")
    return member
