"""Venues router – venue profiles, performances and the weekly schedule."""

from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jazzlink.database import get_db
from jazzlink.errors import NotFoundError, PermissionDenied, ValidationError
from jazzlink.models.performance import Performance
from jazzlink.models.user import User
from jazzlink.models.venue import Venue
from jazzlink.routers.auth import require_user
from jazzlink.schemas.venue import PerformanceIn, PerformanceOut, VenueIn, VenueOut

router = APIRouter(tags=["venues"])


async def _get_venue(db: AsyncSession, venue_id: int) -> Venue:
    result = await db.execute(select(Venue).where(Venue.id == venue_id))
    venue = result.scalar_one_or_none()
    if not venue:
        raise NotFoundError(f"Venue {venue_id} not found")
    return venue


def _check_owner(venue: Venue, user: User) -> None:
    if venue.owner_uid != user.uid:
        raise PermissionDenied("Only the venue owner can do this")


def week_bounds(day: date) -> tuple[datetime, datetime]:
    """Sunday 00:00 (inclusive) to the next Sunday 00:00 (exclusive), UTC."""
    start = day - timedelta(days=(day.weekday() + 1) % 7)
    start_dt = datetime.combine(start, time.min, tzinfo=timezone.utc)
    return start_dt, start_dt + timedelta(days=7)


# ═══════════════════════════════════════════════════════════════
#  Venue profiles
# ═══════════════════════════════════════════════════════════════

@router.get("/venues/", response_model=List[VenueOut])
async def list_venues(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Venue).order_by(Venue.name))
    return result.scalars().all()


@router.get("/venues/{venue_id}", response_model=VenueOut)
async def read_venue(venue_id: int, db: AsyncSession = Depends(get_db)):
    return await _get_venue(db, venue_id)


@router.post("/venues/", response_model=VenueOut, status_code=status.HTTP_201_CREATED)
async def create_venue(
    body: VenueIn,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    if not body.name.strip():
        raise ValidationError("Venue name is required")
    venue = Venue(owner_uid=current_user.uid, **body.model_dump())
    db.add(venue)
    await db.commit()
    return venue


@router.put("/venues/{venue_id}", response_model=VenueOut)
async def update_venue(
    venue_id: int,
    body: VenueIn,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    venue = await _get_venue(db, venue_id)
    _check_owner(venue, current_user)
    if not body.name.strip():
        raise ValidationError("Venue name is required")
    for field, value in body.model_dump().items():
        setattr(venue, field, value)
    await db.commit()
    return venue


# ═══════════════════════════════════════════════════════════════
#  Performances
# ═══════════════════════════════════════════════════════════════

@router.get("/venues/{venue_id}/performances", response_model=List[PerformanceOut])
async def list_performances(venue_id: int, db: AsyncSession = Depends(get_db)):
    venue = await _get_venue(db, venue_id)
    result = await db.execute(
        select(Performance)
        .where(Performance.venue_id == venue_id)
        .order_by(Performance.date_time)
    )
    return [
        PerformanceOut(id=p.id, venue_id=p.venue_id, venue_name=venue.name, title=p.title, date_time=p.date_time)
        for p in result.scalars().all()
    ]


@router.post(
    "/venues/{venue_id}/performances",
    response_model=PerformanceOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_performance(
    venue_id: int,
    body: PerformanceIn,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    venue = await _get_venue(db, venue_id)
    _check_owner(venue, current_user)
    if not body.title.strip():
        raise ValidationError("Performance title is required")
    when = body.date_time
    if when.tzinfo is not None:
        when = when.astimezone(timezone.utc)
    perf = Performance(venue_id=venue.id, title=body.title.strip(), date_time=when)
    db.add(perf)
    await db.commit()
    return PerformanceOut(
        id=perf.id, venue_id=venue.id, venue_name=venue.name, title=perf.title, date_time=perf.date_time
    )


@router.get("/schedule", response_model=List[PerformanceOut])
async def weekly_schedule(
    day: Optional[date] = None,
    venue_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
):
    """Performances in the Sunday-to-Saturday week containing *day* (default today)."""
    start, end = week_bounds(day or date.today())
    stmt = (
        select(Performance, Venue.name)
        .join(Venue, Performance.venue_id == Venue.id)
        .where(Performance.date_time >= start, Performance.date_time < end)
        .order_by(Performance.date_time)
    )
    if venue_id is not None:
        stmt = stmt.where(Performance.venue_id == venue_id)
    result = await db.execute(stmt)
    return [
        PerformanceOut(id=p.id, venue_id=p.venue_id, venue_name=name, title=p.title, date_time=p.date_time)
        for p, name in result.all()
    ]
