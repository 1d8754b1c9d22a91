"""Review and rating Pydantic schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    rating: int = Field(..., strict=True)
    content: str
    is_anonymous: bool = False


class ReviewOut(BaseModel):
    id: int
    author_uid: str
    author_name: str
    author_photo: str
    content: str
    rating: int
    is_anonymous: bool
    created_at: Optional[datetime] = None


class RatingOut(BaseModel):
    total_rating: int
    rating_count: int
    average_rating: float

    model_config = {"from_attributes": True}


class ReviewSubmitted(BaseModel):
    review: ReviewOut
    rating: RatingOut
