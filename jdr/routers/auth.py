"""Session login routes.

Only the dev fallback is provided: pick a seeded user and the session cookie
carries their id. The routes answer 404 when settings.environment is
"production".
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Form, HTTPException
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from jdr.config import settings
from jdr.database import get_db
from jdr.models import User
from jdr.rendering import templates

router = APIRouter()


def _is_dev() -> bool:
    return settings.environment != "production"


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request, db: AsyncSession = Depends(get_db)) -> HTMLResponse:
    """Show the login page with all seeded users."""
    if not _is_dev():
        raise HTTPException(status_code=404)
    result = await db.execute(select(User).order_by(User.display_name))
    users = result.scalars().all()
    return templates.TemplateResponse(request, "login.html", {"users": users})


@router.post("/login")
async def login(
    request: Request,
    user_id: int = Form(...),
    db: AsyncSession = Depends(get_db),
) -> RedirectResponse:
    """Set the session to the chosen user and redirect to the dice roller."""
    if not _is_dev():
        raise HTTPException(status_code=404)
    if await db.get(User, user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    request.session["user_id"] = user_id
    return RedirectResponse(url="/dice", status_code=303)


@router.post("/logout")
async def logout(request: Request) -> RedirectResponse:
    """Clear the session and redirect to /login."""
    request.session.clear()
    return RedirectResponse(url="/login", status_code=303)
