"""
Teams router – team profile CRUD and roster editing.

Endpoints:
    GET    /teams/                       → list teams
    GET    /teams/{team_id}              → one team with its roster
    POST   /teams/                       → create (roster written verbatim)
    PUT    /teams/{team_id}              → edit (roster written verbatim)
    DELETE /teams/{team_id}              → delete, unlinking affiliated musicians
    POST   /teams/{team_id}/members      → append one member
    DELETE /teams/{team_id}/members/{i}  → remove the member at position i
    POST   /teams/{team_id}/leader       → make the member at position i the only leader
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jazzlink.database import get_db
from jazzlink.errors import NotFoundError, PermissionDenied
from jazzlink.models.team import Team
from jazzlink.models.user import User
from jazzlink.routers.auth import require_user
from jazzlink.schemas.team import LeaderUpdate, TeamIn, TeamMemberIn, TeamOut
from jazzlink.services import membership, roster

router = APIRouter(prefix="/teams", tags=["teams"])

PROFILE_FIELDS = (
    "team_name", "team_description", "team_photos", "region", "tags",
    "youtube_url", "instagram_url",
)


def _to_roster(members: List[TeamMemberIn]) -> List[roster.Member]:
    return [roster.make_member(**m.model_dump()) for m in members]


async def _owned_team(db: AsyncSession, team_id: int, user: User) -> Team:
    team = await membership.load_team(db, team_id)
    if not team:
        raise NotFoundError(f"Team {team_id} not found")
    if team.owner_uid != user.uid:
        raise PermissionDenied("Only the team owner can edit this team")
    return team


@router.get("/", response_model=List[TeamOut])
async def list_teams(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Team).order_by(Team.created_at.desc(), Team.id.desc()))
    return result.scalars().all()


@router.get("/{team_id}", response_model=TeamOut)
async def read_team(team_id: int, db: AsyncSession = Depends(get_db)):
    team = await membership.load_team(db, team_id)
    if not team:
        raise NotFoundError(f"Team {team_id} not found")
    return team


@router.post("/", response_model=TeamOut, status_code=status.HTTP_201_CREATED)
async def create_team(
    body: TeamIn,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    team = Team(owner_uid=current_user.uid, **body.model_dump(include=set(PROFILE_FIELDS)))
    return await membership.save_team_profile(db, team, _to_roster(body.members))


@router.put("/{team_id}", response_model=TeamOut)
async def update_team(
    team_id: int,
    body: TeamIn,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    team = await _owned_team(db, team_id, current_user)
    for field in PROFILE_FIELDS:
        setattr(team, field, getattr(body, field))
    return await membership.save_team_profile(db, team, _to_roster(body.members))


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team(
    team_id: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    team = await _owned_team(db, team_id, current_user)
    await membership.delete_team_profile(db, team)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ═══════════════════════════════════════════════════════════════
#  Roster edits (each one rewrites the whole list)
# ═══════════════════════════════════════════════════════════════

@router.post("/{team_id}/members", response_model=TeamOut)
async def add_member(
    team_id: int,
    body: TeamMemberIn,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    team = await _owned_team(db, team_id, current_user)
    members = roster.add_member(team.members or [], roster.make_member(**body.model_dump()))
    return await membership.save_team_profile(db, team, members)


@router.delete("/{team_id}/members/{index}", response_model=TeamOut)
async def remove_member(
    team_id: int,
    index: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    team = await _owned_team(db, team_id, current_user)
    members = roster.remove_member(team.members or [], index)
    return await membership.save_team_profile(db, team, members)


@router.post("/{team_id}/leader", response_model=TeamOut)
async def set_leader(
    team_id: int,
    body: LeaderUpdate,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    team = await _owned_team(db, team_id, current_user)
    members = roster.set_leader(team.members or [], body.index)
    return await membership.save_team_profile(db, team, members)
