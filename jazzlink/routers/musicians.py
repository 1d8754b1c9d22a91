"""
Musicians router – musician profile CRUD.

Saving a profile keeps the chosen team's roster in step
(see ``jazzlink.services.membership``).
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jazzlink.database import get_db
from jazzlink.errors import NotFoundError, PermissionDenied
from jazzlink.models.musician import Musician
from jazzlink.models.user import User
from jazzlink.routers.auth import require_user
from jazzlink.schemas.musician import MusicianIn, MusicianOut, MusicianUpdate
from jazzlink.services import membership

router = APIRouter(prefix="/musicians", tags=["musicians"])

PROFILE_FIELDS = (
    "name", "instruments", "skill_level", "start_year", "photos", "team_id",
    "profile", "tags", "youtube_url", "instagram_url",
)


async def _get_musician(db: AsyncSession, musician_id: int) -> Musician:
    result = await db.execute(select(Musician).where(Musician.id == musician_id))
    musician = result.scalar_one_or_none()
    if not musician:
        raise NotFoundError(f"Musician {musician_id} not found")
    return musician


async def _sync_account(db: AsyncSession, user: User, musician: Musician) -> None:
    """Mirror the profile's name and first photo onto the account."""
    user.name = musician.name
    user.photo = musician.photos[0] if musician.photos else user.photo
    await db.commit()


@router.get("/", response_model=List[MusicianOut])
async def list_musicians(
    instrument: Optional[str] = None,
    team_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(Musician).order_by(Musician.created_at.desc(), Musician.id.desc()))
    musicians = result.scalars().all()
    # instruments is a JSON list; filter here so it works on every backend
    if instrument:
        musicians = [m for m in musicians if instrument in (m.instruments or [])]
    if team_id is not None:
        musicians = [m for m in musicians if m.team_id == team_id]
    return musicians


@router.get("/{musician_id}", response_model=MusicianOut)
async def read_musician(musician_id: int, db: AsyncSession = Depends(get_db)):
    return await _get_musician(db, musician_id)


@router.post("/", response_model=MusicianOut, status_code=status.HTTP_201_CREATED)
async def create_musician(
    body: MusicianIn,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    musician = Musician(owner_uid=current_user.uid, **body.model_dump())
    musician = await membership.save_musician_profile(db, musician, previous_team_id=None)
    await _sync_account(db, current_user, musician)
    return musician


@router.put("/{musician_id}", response_model=MusicianOut)
async def update_musician(
    musician_id: int,
    body: MusicianUpdate,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    musician = await _get_musician(db, musician_id)
    if musician.owner_uid != current_user.uid:
        raise PermissionDenied("Only the owner can edit this profile")

    if "previous_team_id" in body.model_fields_set:
        previous_team_id = body.previous_team_id
    else:
        previous_team_id = musician.team_id

    for field in PROFILE_FIELDS:
        setattr(musician, field, getattr(body, field))
    musician = await membership.save_musician_profile(db, musician, previous_team_id=previous_team_id)
    await _sync_account(db, current_user, musician)
    return musician


@router.delete("/{musician_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_musician(
    musician_id: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    musician = await _get_musician(db, musician_id)
    if musician.owner_uid != current_user.uid:
        raise PermissionDenied("Only the owner can delete this profile")
    await membership.delete_musician_profile(db, musician)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
