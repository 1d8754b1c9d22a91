"""Community feed models: posts, comments, likes and views."""

import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from jazzlink.database import Base


class FeedCategory(str, enum.Enum):
    SEEKING_MUSICIAN = "연주자 구함"
    SEEKING_GIG = "연주 구함"
    CHAT = "잡담"


class FeedPost(Base):
    __tablename__ = "feed_posts"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    category: Mapped[FeedCategory] = mapped_column(Enum(FeedCategory), default=FeedCategory.CHAT)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    images: Mapped[List[str]] = mapped_column(JSON, default=list)
    instruments: Mapped[List[str]] = mapped_column(JSON, default=list)

    author_uid: Mapped[str] = mapped_column(ForeignKey("users.uid"), nullable=False)
    author_name: Mapped[str] = mapped_column(String(200), nullable=False)
    author_photo: Mapped[str] = mapped_column(String(500), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )


class FeedComment(Base):
    __tablename__ = "feed_comments"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    post_id: Mapped[int] = mapped_column(ForeignKey("feed_posts.id", ondelete="CASCADE"), nullable=False, index=True)
    author_uid: Mapped[str] = mapped_column(ForeignKey("users.uid"), nullable=False)
    author_name: Mapped[Optional[str]] = mapped_column(String(200))
    author_photo: Mapped[Optional[str]] = mapped_column(String(500))
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class FeedLike(Base):
    __tablename__ = "feed_likes"

    post_id: Mapped[int] = mapped_column(ForeignKey("feed_posts.id", ondelete="CASCADE"), primary_key=True)
    user_uid: Mapped[str] = mapped_column(ForeignKey("users.uid", ondelete="CASCADE"), primary_key=True)


class FeedView(Base):
    __tablename__ = "feed_views"

    post_id: Mapped[int] = mapped_column(ForeignKey("feed_posts.id", ondelete="CASCADE"), primary_key=True)
    user_uid: Mapped[str] = mapped_column(ForeignKey("users.uid", ondelete="CASCADE"), primary_key=True)
