from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles
from sqlalchemy import select
from starlette.middleware.sessions import SessionMiddleware
from starlette.requests import Request

from jdr import models as _models  # noqa: F401 - registers models with Base.metadata
from jdr.config import settings
from jdr.database import AsyncSessionLocal, Base, engine
from jdr.dependencies import LoginRequired
from jdr.dice import InvalidSpecError
from jdr.models import Campaign, CampaignMember, MemberRole, User
from jdr.routers import auth, dice, pages

logger = logging.getLogger(__name__)

_DEV_USERS = ["Alice", "Bob", "Charlie"]
_DEV_CAMPAIGN = "The Sunken Keep"


async def _seed_dev_data() -> None:
    """Insert named dev users and a shared campaign if they don't already exist.

    The first dev user is the campaign's game master; the others are players.
    """
    async with AsyncSessionLocal() as session:
        users = []
        for name in _DEV_USERS:
            result = await session.execute(select(User).where(User.display_name == name))
            user = result.scalar_one_or_none()
            if user is None:
                user = User(display_name=name)
                session.add(user)
            users.append(user)
        await session.flush()

        result = await session.execute(select(Campaign).where(Campaign.name == _DEV_CAMPAIGN))
        if result.scalar_one_or_none() is None:
            campaign = Campaign(name=_DEV_CAMPAIGN, description="A dev campaign to roll dice in.")
            session.add(campaign)
            await session.flush()
            for i, user in enumerate(users):
                role = MemberRole.game_master if i == 0 else MemberRole.player
                session.add(CampaignMember(campaign_id=campaign.id, user_id=user.id, role=role))
        await session.commit()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logging.getLogger("jdr").setLevel(settings.log_level.upper())
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    if settings.environment != "production":
        await _seed_dev_data()
    yield


app = FastAPI(title="JDR", lifespan=lifespan)

app.add_middleware(SessionMiddleware, secret_key=settings.session_secret_key)

app.mount(
    "/static",
    StaticFiles(directory=Path(__file__).parent / "static"),
    name="static",
)
app.include_router(pages.router)
app.include_router(auth.router)
app.include_router(dice.router)


def _is_api(request: Request) -> bool:
    return request.url.path.startswith("/api/")


@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired) -> Response:
    if _is_api(request):
        return JSONResponse({"detail": "Authentication required"}, status_code=401)
    return RedirectResponse(url="/login", status_code=302)


@app.exception_handler(InvalidSpecError)
async def invalid_spec_handler(request: Request, exc: InvalidSpecError) -> JSONResponse:
    logger.info("Rejected dice spec on %s: %s", request.url.path, exc)
    return JSONResponse({"detail": exc.reason, "field": exc.field}, status_code=400)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
    """Report malformed API input as 400 with the first offending field."""
    if not _is_api(request):
        return await request_validation_exception_handler(request, exc)
    error = exc.errors()[0]
    loc = [part for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    field = str(loc[-1]) if loc else None
    return JSONResponse(
        {"detail": error.get("msg", "Invalid request"), "field": field}, status_code=400
    )
