"""Community feed Pydantic schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from jazzlink.models.feed import FeedCategory


class PostCreate(BaseModel):
    category: FeedCategory = FeedCategory.CHAT
    title: str
    content: str
    images: List[str] = []
    instruments: List[str] = []


class PostOut(BaseModel):
    id: int
    category: FeedCategory
    title: str
    content: str
    images: List[str]
    instruments: List[str]
    author_uid: str
    author_name: str
    author_photo: str
    created_at: Optional[datetime] = None
    like_count: int = 0
    view_count: int = 0
    liked_by_me: bool = False


class CommentCreate(BaseModel):
    content: str


class CommentOut(BaseModel):
    id: int
    author_uid: str
    author_name: Optional[str] = None
    author_photo: Optional[str] = None
    content: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
