"""
Jazzlink – FastAPI application entry-point.

Run with:
    uvicorn jazzlink.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

import jazzlink.models  # noqa: F401  (register tables on Base.metadata)
from jazzlink.config import settings
from jazzlink.database import Base, engine
from jazzlink.errors import ConsistencyDrift, JazzlinkError

# ── Import routers ──
from jazzlink.routers import admin, feed, musicians, reviews, teams, users, venues
from jazzlink.routers.auth import create_access_token

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan: create tables on startup ──
@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    description="Jazz community: musicians, bands and venues, with reviews and a schedule.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=("*",))


# ── Error rendering ──
@app.exception_handler(JazzlinkError)
async def jazzlink_error_handler(request: Request, exc: JazzlinkError):
    content = {"detail": exc.message, "error": exc.code}
    if isinstance(exc, ConsistencyDrift):
        content.update(musician_id=exc.musician_id, team_id=exc.team_id, committed=exc.committed)
    elif exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=content)


# ── Register API routers ──
app.include_router(users.router)
app.include_router(musicians.router)
app.include_router(teams.router)
app.include_router(venues.router)
app.include_router(feed.router)
app.include_router(admin.router)
app.include_router(reviews.router)


@app.get("/health")
async def health():
    return {"status": "ok", "app": settings.APP_NAME}


if settings.ENVIRONMENT != "production":

    @app.get("/dev/token/{uid}")
    def dev_token(uid: str, name: str = "", email: str = ""):
        """Stand-in for the identity provider during local development."""
        claims = {"sub": uid}
        if name:
            claims["name"] = name
        if email:
            claims["email"] = email
        return {"access_token": create_access_token(claims), "token_type": "bearer"}
