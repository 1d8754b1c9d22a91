"""Team (band) model."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from jazzlink.database import Base
from jazzlink.models.rateable import Rateable


class Team(Rateable, Base):
    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    team_name: Mapped[str] = mapped_column(String(200), nullable=False)
    team_description: Mapped[Optional[str]] = mapped_column(Text)
    team_photos: Mapped[List[str]] = mapped_column(JSON, default=list)
    owner_uid: Mapped[str] = mapped_column(ForeignKey("users.uid"), nullable=False)

    # Ordered roster, rewritten as a whole. Each entry:
    #   {"name", "instrument", "is_leader", "musician_id"?, "owner_uid"?}
    members: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list)

    region: Mapped[Optional[str]] = mapped_column(String(100))
    tags: Mapped[List[str]] = mapped_column(JSON, default=list)
    youtube_url: Mapped[Optional[str]] = mapped_column(String(500))
    instagram_url: Mapped[Optional[str]] = mapped_column(String(500))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
