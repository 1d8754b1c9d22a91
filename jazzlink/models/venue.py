"""Venue (jazz bar) model."""

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import JSON, DateTime, Float, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from jazzlink.database import Base
from jazzlink.models.rateable import Rateable


class Venue(Rateable, Base):
    __tablename__ = "venues"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[str] = mapped_column(String(500), default="")
    owner_uid: Mapped[Optional[str]] = mapped_column(ForeignKey("users.uid"))

    # ── Descriptive ──
    description: Mapped[Optional[str]] = mapped_column(Text)
    photos: Mapped[List[str]] = mapped_column(JSON, default=list)
    tags: Mapped[List[str]] = mapped_column(JSON, default=list)
    operating_hours: Mapped[Optional[str]] = mapped_column(Text)
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)

    # ── Links ──
    naver_maps_url: Mapped[Optional[str]] = mapped_column(String(500))
    instagram_url: Mapped[Optional[str]] = mapped_column(String(500))
    youtube_url: Mapped[Optional[str]] = mapped_column(String(500))
    website_url: Mapped[Optional[str]] = mapped_column(String(500))

    # ── Place enrichment ──
    google_place_id: Mapped[Optional[str]] = mapped_column(String(255), unique=True, index=True)
    google_opening_hours: Mapped[Optional[Any]] = mapped_column(JSON)
    enriched_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
