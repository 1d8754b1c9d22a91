"""Review model – append-only child of a venue, musician or team."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from jazzlink.database import Base
from jazzlink.models.rateable import EntityKind


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        Index("ix_reviews_entity", "entity_kind", "entity_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    entity_kind: Mapped[EntityKind] = mapped_column(Enum(EntityKind), nullable=False)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)

    author_uid: Mapped[str] = mapped_column(ForeignKey("users.uid"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, default=False)

    # Snapshot of the author's display fields at write time
    author_name: Mapped[Optional[str]] = mapped_column(String(200))
    author_photo: Mapped[Optional[str]] = mapped_column(String(500))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
