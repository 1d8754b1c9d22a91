"""
Weekly venue refresh job.

Re-reads every venue that has a Google place id from the Places API.
Scheduled for Mondays 03:00 Asia/Seoul, e.g. with cron:

    0 3 * * 1  cd /srv/jazzlink && TZ=Asia/Seoul python refresh_venues.py
"""

import asyncio
import logging
import sys

import jazzlink.models  # noqa: F401
from jazzlink.database import Base, async_session, engine
from jazzlink.errors import EnrichmentError
from jazzlink.services.places import refresh_all_venues

logger = logging.getLogger("jazzlink.refresh_venues")


async def main() -> int:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with async_session() as db:
        try:
            counts = await refresh_all_venues(db)
        except EnrichmentError as e:
            logger.error(f"Weekly venue update aborted: {e.message}")
            return 1
    print(f"Venues updated: {counts['updated']}, failed: {counts['failed']}")
    return 0 if not counts["failed"] else 1


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(asyncio.run(main()))
