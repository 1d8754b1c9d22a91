"""User model: account projection of the identity provider."""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, String, func
from sqlalchemy.orm import Mapped, mapped_column

from jazzlink.database import Base


class AccountTypeEnum(str, enum.Enum):
    MUSICIAN = "musician"
    VENUE_OWNER = "venue_owner"
    GENERAL = "general"


class User(Base):
    __tablename__ = "users"

    # ── Identity ──
    uid: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[Optional[str]] = mapped_column(String(200))
    photo: Mapped[Optional[str]] = mapped_column(String(500))
    email: Mapped[Optional[str]] = mapped_column(String(255), index=True)
    account_type: Mapped[Optional[AccountTypeEnum]] = mapped_column(Enum(AccountTypeEnum))

    # ── Timestamps ──
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
