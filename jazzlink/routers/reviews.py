"""
Reviews router – one set of endpoints for every rateable kind.

    POST /{kind}/{entity_id}/reviews   → submit a review (kind: venues, musicians, teams)
    GET  /{kind}/{entity_id}/reviews   → reviews, newest first
    GET  /{kind}/{entity_id}/rating    → aggregate
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from jazzlink.database import get_db
from jazzlink.models.rateable import EntityKind
from jazzlink.models.review import Review
from jazzlink.models.user import User
from jazzlink.routers.auth import require_user
from jazzlink.schemas.review import RatingOut, ReviewCreate, ReviewOut, ReviewSubmitted
from jazzlink.services import ratings

router = APIRouter(tags=["reviews"])


def _review_out(review: Review) -> ReviewOut:
    name, photo = ratings.display_author(review)
    return ReviewOut(
        id=review.id,
        author_uid=review.author_uid,
        author_name=name,
        author_photo=photo,
        content=review.content,
        rating=review.rating,
        is_anonymous=review.is_anonymous,
        created_at=review.created_at,
    )


@router.post(
    "/{kind}/{entity_id}/reviews",
    response_model=ReviewSubmitted,
    status_code=status.HTTP_201_CREATED,
)
async def create_review(
    kind: EntityKind,
    entity_id: int,
    body: ReviewCreate,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    review, summary = await ratings.submit_review(
        db,
        kind,
        entity_id,
        author=current_user,
        rating=body.rating,
        content=body.content,
        is_anonymous=body.is_anonymous,
    )
    return ReviewSubmitted(
        review=_review_out(review),
        rating=RatingOut.model_validate(summary),
    )


@router.get("/{kind}/{entity_id}/reviews", response_model=List[ReviewOut])
async def list_reviews(kind: EntityKind, entity_id: int, db: AsyncSession = Depends(get_db)):
    await ratings.get_rating(db, kind, entity_id)  # 404 for unknown targets
    return [_review_out(r) for r in await ratings.list_reviews(db, kind, entity_id)]


@router.get("/{kind}/{entity_id}/rating", response_model=RatingOut)
async def read_rating(kind: EntityKind, entity_id: int, db: AsyncSession = Depends(get_db)):
    return RatingOut.model_validate(await ratings.get_rating(db, kind, entity_id))
