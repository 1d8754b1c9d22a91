"""
Rating aggregation for venues, musicians and teams.

Every accepted review moves ``total_rating`` and ``rating_count`` of its
target together, in the same database transaction that inserts the review.
The increment is done by the store (``SET total = total + :r``) so concurrent
submitters serialise on the row instead of overwriting each other.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Type

from sqlalchemy import select, update
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from jazzlink.errors import NotFoundError, TransientStoreError, ValidationError
from jazzlink.models.musician import Musician
from jazzlink.models.rateable import EntityKind, Rateable, average_rating
from jazzlink.models.review import Review
from jazzlink.models.team import Team
from jazzlink.models.user import User
from jazzlink.models.venue import Venue
from jazzlink.utils.avatar import ANONYMOUS_NAME, placeholder_avatar

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5

RATEABLE_MODELS: Dict[EntityKind, Type[Rateable]] = {
    EntityKind.venues: Venue,
    EntityKind.musicians: Musician,
    EntityKind.teams: Team,
}


@dataclass(frozen=True)
class RatingSummary:
    total_rating: int
    rating_count: int

    @property
    def average_rating(self) -> float:
        return average_rating(self.total_rating, self.rating_count)


def _label(kind: EntityKind) -> str:
    return EntityKind(kind).value[:-1].capitalize()


def rateable_model(kind: EntityKind) -> Type[Rateable]:
    try:
        return RATEABLE_MODELS[EntityKind(kind)]
    except (KeyError, ValueError):
        raise ValidationError(f"'{kind}' cannot be reviewed")


def validate_review(rating: int, content: str) -> str:
    """Check a submission before touching the store; returns the trimmed content."""
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("Rating must be an integer")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
    content = (content or "").strip()
    if not content:
        raise ValidationError("Review content must not be empty")
    return content


async def submit_review(
    db: AsyncSession,
    kind: EntityKind,
    entity_id: int,
    author: User,
    rating: int,
    content: str,
    is_anonymous: bool = False,
) -> tuple[Review, RatingSummary]:
    """
    Append a review and fold its rating into the target's aggregate.

    Returns the stored review and the aggregate as computed by this
    transaction.  Raises NotFoundError (nothing written) when the target
    does not exist.
    """
    content = validate_review(rating, content)
    model = rateable_model(kind)
    kind = EntityKind(kind)

    stmt = (
        update(model)
        .where(model.id == entity_id)
        .values(
            total_rating=model.total_rating + rating,
            rating_count=model.rating_count + 1,
        )
        .returning(model.total_rating, model.rating_count)
        .execution_options(synchronize_session=False)
    )

    try:
        row = (await db.execute(stmt)).first()
        if row is None:
            await db.rollback()
            raise NotFoundError(f"{_label(kind)} {entity_id} not found")

        review = Review(
            entity_kind=kind,
            entity_id=entity_id,
            author_uid=author.uid,
            content=content,
            rating=rating,
            is_anonymous=is_anonymous,
            author_name=author.name,
            author_photo=author.photo,
        )
        db.add(review)
        await db.commit()
    except DBAPIError as e:
        await db.rollback()
        logger.warning(f"Review for {kind.value}/{entity_id} not stored: {e}")
        raise TransientStoreError("Could not save the review, please try again") from e

    await db.refresh(review)
    summary = RatingSummary(total_rating=row[0], rating_count=row[1])
    logger.info(
        f"Review {review.id} on {kind.value}/{entity_id}: "
        f"{summary.rating_count} ratings, average {summary.average_rating:.2f}"
    )
    return review, summary


async def get_rating(db: AsyncSession, kind: EntityKind, entity_id: int) -> RatingSummary:
    model = rateable_model(kind)
    kind = EntityKind(kind)
    result = await db.execute(
        select(model.total_rating, model.rating_count).where(model.id == entity_id)
    )
    row = result.first()
    if row is None:
        raise NotFoundError(f"{_label(kind)} {entity_id} not found")
    return RatingSummary(total_rating=row[0] or 0, rating_count=row[1] or 0)


async def list_reviews(
    db: AsyncSession,
    kind: EntityKind,
    entity_id: int,
    limit: Optional[int] = None,
) -> List[Review]:
    """Reviews of one target, newest first."""
    stmt = (
        select(Review)
        .where(Review.entity_kind == kind, Review.entity_id == entity_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    if limit:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


def display_author(review: Review) -> tuple[str, str]:
    """Name and photo to show for a review; anonymous reviews are masked."""
    if review.is_anonymous:
        return ANONYMOUS_NAME, placeholder_avatar(ANONYMOUS_NAME, size=None)
    name = review.author_name or ANONYMOUS_NAME
    return name, review.author_photo or placeholder_avatar(name, size=None)
