"""
Musician ⇄ team affiliation.

``Musician.team_id`` and the linked entries of ``Team.members`` describe the
same relationship from two documents.  Saves on the musician side write the
musician first and then patch the affected rosters as separate commits, so a
failure between the two leaves a ConsistencyDrift that ``reconcile`` can find
and repair.  Team-side roster edits never write back to musicians.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from jazzlink.errors import ConsistencyDrift, NotFoundError, TransientStoreError, ValidationError
from jazzlink.models.musician import MAX_PHOTOS, Musician
from jazzlink.models.rateable import EntityKind
from jazzlink.models.review import Review
from jazzlink.models.team import Team
from jazzlink.services import roster
from jazzlink.utils.avatar import placeholder_avatar

logger = logging.getLogger(__name__)

EARLIEST_START_YEAR = 1900


async def _commit(db: AsyncSession, what: str) -> None:
    try:
        await db.commit()
    except DBAPIError as e:
        await db.rollback()
        logger.warning(f"Could not save {what}: {e}")
        raise TransientStoreError(f"Could not save {what}, please try again") from e


async def load_team(db: AsyncSession, team_id: int) -> Optional[Team]:
    """Read a team straight from the store, discarding any cached copy."""
    result = await db.execute(
        select(Team).where(Team.id == team_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


# ═══════════════════════════════════════════════════════════════
#  Roster patches (one team document each)
# ═══════════════════════════════════════════════════════════════

def member_entry_for(musician: Musician) -> roster.Member:
    instruments = musician.instruments or []
    return roster.make_member(
        name=musician.name,
        instrument=instruments[0] if instruments else "",
        musician_id=musician.id,
        owner_uid=musician.owner_uid,
    )


async def add_to_roster(db: AsyncSession, team_id: int, entry: roster.Member) -> bool:
    """Append a linked roster *entry* to the team unless its musician is already there."""
    team = await load_team(db, team_id)
    if team is None:
        raise NotFoundError(f"Team {team_id} not found")
    members = list(team.members or [])
    if roster.has_musician(members, entry["musician_id"]):
        return False
    team.members = members + [dict(entry)]
    await _commit(db, f"team {team_id} roster")
    return True


async def remove_from_roster(db: AsyncSession, team_id: int, musician_id: int) -> bool:
    """Drop the musician's entry from the team's roster; absent team or entry is a no-op."""
    team = await load_team(db, team_id)
    if team is None:
        return False
    members = list(team.members or [])
    if not roster.has_musician(members, musician_id):
        return False
    team.members = roster.without_musician(members, musician_id)
    await _commit(db, f"team {team_id} roster")
    return True


# ═══════════════════════════════════════════════════════════════
#  Musician side
# ═══════════════════════════════════════════════════════════════

def validate_musician(musician: Musician) -> None:
    if not (musician.name or "").strip():
        raise ValidationError("Name is required")
    if not [i for i in (musician.instruments or []) if i and i.strip()]:
        raise ValidationError("At least one instrument is required")
    if not musician.start_year:
        raise ValidationError("Start year is required")
    if not EARLIEST_START_YEAR <= musician.start_year <= date.today().year:
        raise ValidationError(f"Start year must be between {EARLIEST_START_YEAR} and this year")
    if len(musician.photos or []) > MAX_PHOTOS:
        raise ValidationError(f"At most {MAX_PHOTOS} photos are allowed")


async def save_musician_profile(
    db: AsyncSession,
    musician: Musician,
    previous_team_id: Optional[int] = None,
) -> Musician:
    """
    Create or update *musician* and move its roster entry if the team changed.

    *previous_team_id* is the affiliation seen when the edit began (None for
    a new profile).  Only the delta is applied: the entry is removed from the
    previous team and added to the new one.  Re-running with the same pair
    is harmless.
    """
    musician.name = (musician.name or "").strip()
    musician.instruments = [i.strip() for i in (musician.instruments or []) if i and i.strip()]
    team_changed = previous_team_id != musician.team_id
    try:
        validate_musician(musician)
        if team_changed and musician.team_id is not None:
            if await load_team(db, musician.team_id) is None:
                raise NotFoundError(f"Team {musician.team_id} not found")
    except (ValidationError, NotFoundError):
        await db.rollback()
        raise
    if not musician.photos:
        musician.photos = [placeholder_avatar(musician.name)]

    db.add(musician)
    await _commit(db, "musician profile")
    logger.info(f"Saved musician {musician.id} ({musician.name}), team {musician.team_id}")

    if not team_changed:
        return musician

    # a failed roster commit rolls back and expires the musician
    musician_id, new_team_id = musician.id, musician.team_id
    entry = member_entry_for(musician)

    failed: List[int] = []
    if previous_team_id is not None:
        try:
            await remove_from_roster(db, previous_team_id, musician_id)
        except TransientStoreError:
            failed.append(previous_team_id)
    if new_team_id is not None:
        try:
            await add_to_roster(db, new_team_id, entry)
        except (NotFoundError, TransientStoreError):
            failed.append(new_team_id)

    if failed:
        logger.warning(
            f"Musician {musician_id} saved but roster of team(s) {failed} not updated"
        )
        raise ConsistencyDrift(
            "Profile saved, but the team roster could not be updated. Please save again.",
            musician_id=musician_id,
            team_id=failed[0],
            committed="musician",
        )
    return musician


async def delete_musician_profile(db: AsyncSession, musician: Musician) -> None:
    """Delete a musician and its reviews, then drop it from its team's roster."""
    musician_id, team_id = musician.id, musician.team_id

    await db.execute(
        delete(Review).where(
            Review.entity_kind == EntityKind.musicians, Review.entity_id == musician_id
        )
    )
    await db.delete(musician)
    await _commit(db, "musician deletion")
    logger.info(f"Deleted musician {musician_id}")

    if team_id is None:
        return
    try:
        await remove_from_roster(db, team_id, musician_id)
    except TransientStoreError as e:
        raise ConsistencyDrift(
            "Profile deleted, but the team roster still lists it.",
            musician_id=musician_id,
            team_id=team_id,
            committed="musician",
        ) from e


# ═══════════════════════════════════════════════════════════════
#  Team side
# ═══════════════════════════════════════════════════════════════

async def save_team_profile(db: AsyncSession, team: Team, members: List[roster.Member]) -> Team:
    """
    Create or update *team* with *members* as its whole roster.

    The list is stored verbatim (last writer wins); musician records are
    never touched from here.
    """
    team.team_name = (team.team_name or "").strip()
    if not team.team_name:
        await db.rollback()
        raise ValidationError("Team name is required")
    if not team.team_photos:
        team.team_photos = [placeholder_avatar(team.team_name)]

    team.members = [dict(m) for m in members]
    db.add(team)
    await _commit(db, "team profile")
    logger.info(f"Saved team {team.id} ({team.team_name}) with {len(team.members)} members")
    return team


async def delete_team_profile(db: AsyncSession, team: Team) -> int:
    """Delete a team and clear the affiliation of every musician pointing at it."""
    team_id = team.id
    result = await db.execute(
        update(Musician)
        .where(Musician.team_id == team_id)
        .values(team_id=None)
    )
    await db.execute(
        delete(Review).where(Review.entity_kind == EntityKind.teams, Review.entity_id == team_id)
    )
    await db.delete(team)
    await _commit(db, "team deletion")
    logger.info(f"Deleted team {team_id}, unlinked {result.rowcount} musician(s)")
    return result.rowcount


# ═══════════════════════════════════════════════════════════════
#  Reconciliation
# ═══════════════════════════════════════════════════════════════

class DriftKind(str, enum.Enum):
    MISSING_ROSTER_ENTRY = "missing_roster_entry"
    DANGLING_AFFILIATION = "dangling_affiliation"
    ORPHANED_ROSTER_ENTRY = "orphaned_roster_entry"
    STALE_ROSTER_ENTRY = "stale_roster_entry"
    UNRECIPROCATED_ROSTER_ENTRY = "unreciprocated_roster_entry"


REPAIRABLE = {
    DriftKind.MISSING_ROSTER_ENTRY,
    DriftKind.DANGLING_AFFILIATION,
    DriftKind.ORPHANED_ROSTER_ENTRY,
    DriftKind.STALE_ROSTER_ENTRY,
}


@dataclass
class Drift:
    kind: DriftKind
    musician_id: int
    team_id: int
    repaired: bool = False


async def find_drift(db: AsyncSession) -> List[Drift]:
    """Compare every musician's affiliation with every team roster."""
    musicians: Dict[int, Musician] = {
        m.id: m
        for m in (
            await db.execute(select(Musician).execution_options(populate_existing=True))
        ).scalars()
    }
    teams: Dict[int, Team] = {
        t.id: t
        for t in (
            await db.execute(select(Team).execution_options(populate_existing=True))
        ).scalars()
    }

    found: List[Drift] = []
    for m in musicians.values():
        if m.team_id is None:
            continue
        team = teams.get(m.team_id)
        if team is None:
            found.append(Drift(DriftKind.DANGLING_AFFILIATION, m.id, m.team_id))
        elif not roster.has_musician(team.members or [], m.id):
            found.append(Drift(DriftKind.MISSING_ROSTER_ENTRY, m.id, m.team_id))

    for team in teams.values():
        for member in team.members or []:
            if not roster.is_linked(member):
                continue
            linked = musicians.get(member["musician_id"])
            if linked is None:
                found.append(Drift(DriftKind.ORPHANED_ROSTER_ENTRY, member["musician_id"], team.id))
            elif linked.team_id == team.id:
                continue
            elif linked.team_id in teams:
                # the musician belongs to another existing team
                found.append(Drift(DriftKind.STALE_ROSTER_ENTRY, linked.id, team.id))
            else:
                found.append(Drift(DriftKind.UNRECIPROCATED_ROSTER_ENTRY, linked.id, team.id))

    for d in found:
        logger.warning(f"Affiliation drift: {d.kind.value} musician={d.musician_id} team={d.team_id}")
    return found


async def reconcile(db: AsyncSession, repair: bool = False) -> List[Drift]:
    """
    Report drift and, with *repair*, fix it taking the musician record as truth.

    Stale entries (the musician now names another existing team) are dropped.
    Unreciprocated entries (the musician names no team, or one that is gone)
    are left alone: teams may list unaffiliated musicians on their own.
    """
    found = await find_drift(db)
    if not repair:
        return found

    for d in found:
        if d.kind not in REPAIRABLE:
            continue
        if d.kind == DriftKind.DANGLING_AFFILIATION:
            musician = await db.get(Musician, d.musician_id)
            musician.team_id = None
        else:
            team = await db.get(Team, d.team_id)
            members = list(team.members or [])
            if d.kind == DriftKind.MISSING_ROSTER_ENTRY:
                musician = await db.get(Musician, d.musician_id)
                team.members = members + [member_entry_for(musician)]
            else:
                team.members = roster.without_musician(members, d.musician_id)
        d.repaired = True

    await _commit(db, "affiliation repair")
    repaired = sum(1 for d in found if d.repaired)
    logger.info(f"Reconciled affiliations: {repaired} of {len(found)} finding(s) repaired")
    return found
