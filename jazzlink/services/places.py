"""
Place enrichment: fill venue details from the Google Places API (v1).

Only fields present in the API response are merged into the venue; anything
the owner entered by hand is kept otherwise.  The HTTP call is blocking
(requests) and runs in a worker thread.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests
from sqlalchemy import select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from jazzlink.config import settings
from jazzlink.errors import EnrichmentError, ValidationError
from jazzlink.models.venue import Venue

logger = logging.getLogger(__name__)

FIELD_MASK = "id,displayName,formattedAddress,location,regularOpeningHours,websiteUri,editorialSummary"


def _headers(api_key: str) -> dict:
    return {
        "Content-Type": "application/json",
        "X-Goog-Api-Key": api_key,
        "X-Goog-FieldMask": FIELD_MASK,
    }


def fetch_place(place_id: str, api_key: Optional[str] = None) -> Dict[str, Any]:
    """GET one place; raises EnrichmentError on any transport or HTTP failure."""
    api_key = api_key or settings.GOOGLE_MAPS_API_KEY
    if not api_key:
        raise EnrichmentError("Places API key is not configured", status_code=503)

    try:
        resp = requests.get(
            f"{settings.PLACES_API_URL}{place_id}",
            headers=_headers(api_key),
            timeout=settings.PLACES_TIMEOUT,
        )
        resp.raise_for_status()
        return resp.json()
    except requests.RequestException as e:
        logger.error(f"Error fetching place {place_id}: {e}")
        raise EnrichmentError(f"Failed to fetch place {place_id}") from e


def place_to_venue_fields(place: Dict[str, Any]) -> Dict[str, Any]:
    """Map a Places API payload onto Venue column values, skipping absent fields."""
    fields: Dict[str, Any] = {}

    name = (place.get("displayName") or {}).get("text")
    if name:
        fields["name"] = name
    if place.get("formattedAddress"):
        fields["address"] = place["formattedAddress"]

    location = place.get("location") or {}
    if location.get("latitude") is not None and location.get("longitude") is not None:
        fields["latitude"] = location["latitude"]
        fields["longitude"] = location["longitude"]

    summary = (place.get("editorialSummary") or {}).get("text")
    if summary:
        fields["description"] = summary

    hours = place.get("regularOpeningHours")
    if hours:
        fields["google_opening_hours"] = hours
        if hours.get("weekdayDescriptions"):
            fields["operating_hours"] = "\n".join(hours["weekdayDescriptions"])

    if place.get("websiteUri"):
        fields["website_url"] = place["websiteUri"]
    return fields


async def enrich_venue(db: AsyncSession, place_id: str, owner_uid: Optional[str] = None) -> Venue:
    """Fetch *place_id* and merge it into the matching venue, creating one if needed."""
    place_id = (place_id or "").strip()
    if not place_id:
        raise ValidationError("A place id is required")

    place = await asyncio.to_thread(fetch_place, place_id)
    fields = place_to_venue_fields(place)
    fields["google_place_id"] = place_id

    result = await db.execute(select(Venue).where(Venue.google_place_id == place_id))
    venue = result.scalar_one_or_none()
    if venue is None:
        venue = Venue(name=fields.get("name") or place_id, address="", owner_uid=owner_uid)
        db.add(venue)

    for key, value in fields.items():
        setattr(venue, key, value)
    venue.enriched_at = datetime.now(timezone.utc)

    await db.commit()
    logger.info(f"Successfully updated venue {venue.id} from place {place_id}")
    return venue


async def refresh_all_venues(db: AsyncSession) -> Dict[str, int]:
    """Re-enrich every venue that has a place id; one failure does not stop the run."""
    if not settings.GOOGLE_MAPS_API_KEY:
        raise EnrichmentError("Places API key is not configured", status_code=503)

    result = await db.execute(
        select(Venue.google_place_id).where(Venue.google_place_id.is_not(None))
    )
    place_ids = [row[0] for row in result.all()]
    if not place_ids:
        logger.info("No venues with a place id to update.")
        return {"updated": 0, "failed": 0}

    logger.info(f"Starting venue refresh for {len(place_ids)} venue(s).")
    updated = failed = 0
    for place_id in place_ids:
        try:
            await enrich_venue(db, place_id)
            updated += 1
        except EnrichmentError:
            await db.rollback()
            failed += 1
        except DBAPIError as e:
            await db.rollback()
            logger.error(f"Could not store place {place_id}: {e}")
            failed += 1
    logger.info(f"Venue refresh finished: {updated} updated, {failed} failed.")
    return {"updated": updated, "failed": failed}
