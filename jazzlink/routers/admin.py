"""
Admin router – affiliation reconciliation and place enrichment.

Endpoints:
    GET  /admin/affiliations/drift      → report musician/team disagreements
    POST /admin/affiliations/reconcile  → report and (with ?repair=true) fix them
    POST /admin/venues                  → create/update a venue from a place id
    POST /admin/venues/refresh          → re-enrich every venue with a place id
"""

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from jazzlink.database import get_db
from jazzlink.models.user import User
from jazzlink.routers.auth import require_admin
from jazzlink.schemas.venue import PlaceLookup, VenueOut
from jazzlink.services import membership, places

router = APIRouter(prefix="/admin", tags=["admin"])


class DriftOut(BaseModel):
    kind: membership.DriftKind
    musician_id: int
    team_id: int
    repaired: bool = False

    model_config = {"from_attributes": True}


class RefreshOut(BaseModel):
    updated: int
    failed: int


@router.get("/affiliations/drift", response_model=List[DriftOut])
async def affiliation_drift(
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await membership.find_drift(db)


@router.post("/affiliations/reconcile", response_model=List[DriftOut])
async def reconcile_affiliations(
    repair: bool = False,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await membership.reconcile(db, repair=repair)


@router.post("/venues", response_model=VenueOut)
async def add_venue_from_place(
    body: PlaceLookup,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await places.enrich_venue(db, body.place_id, owner_uid=current_user.uid)


@router.post("/venues/refresh", response_model=RefreshOut)
async def refresh_venues(
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await places.refresh_all_venues(db)
