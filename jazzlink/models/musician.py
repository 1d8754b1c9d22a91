"""Musician profile model."""

import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from jazzlink.database import Base
from jazzlink.models.rateable import Rateable


class SkillLevel(str, enum.Enum):
    BEGINNER = "초보"
    INTERMEDIATE = "중급"
    PRO = "프로"


MAX_PHOTOS = 3


class Musician(Rateable, Base):
    __tablename__ = "musicians"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    instruments: Mapped[List[str]] = mapped_column(JSON, default=list)
    skill_level: Mapped[SkillLevel] = mapped_column(Enum(SkillLevel), default=SkillLevel.BEGINNER)
    start_year: Mapped[int] = mapped_column(Integer, nullable=False)
    photos: Mapped[List[str]] = mapped_column(JSON, default=list)
    owner_uid: Mapped[str] = mapped_column(ForeignKey("users.uid"), nullable=False, index=True)

    # At most one team; the team's roster mirrors this (see services.membership)
    team_id: Mapped[Optional[int]] = mapped_column(ForeignKey("teams.id"), index=True)

    # ── Profile ──
    profile: Mapped[Optional[str]] = mapped_column(Text)
    tags: Mapped[List[str]] = mapped_column(JSON, default=list)
    youtube_url: Mapped[Optional[str]] = mapped_column(String(500))
    instagram_url: Mapped[Optional[str]] = mapped_column(String(500))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
