"""Musician Pydantic schemas."""

from typing import List, Optional

from pydantic import BaseModel

from jazzlink.models.musician import SkillLevel


class MusicianIn(BaseModel):
    name: str
    instruments: List[str] = []
    skill_level: SkillLevel = SkillLevel.BEGINNER
    start_year: int
    photos: List[str] = []
    team_id: Optional[int] = None
    profile: Optional[str] = None
    tags: List[str] = []
    youtube_url: Optional[str] = None
    instagram_url: Optional[str] = None


class MusicianUpdate(MusicianIn):
    # Affiliation observed when the edit form was loaded; defaults to the stored one
    previous_team_id: Optional[int] = None


class MusicianOut(BaseModel):
    id: int
    name: str
    instruments: List[str]
    skill_level: SkillLevel
    start_year: int
    photos: List[str]
    owner_uid: str
    team_id: Optional[int] = None
    profile: Optional[str] = None
    tags: List[str] = []
    youtube_url: Optional[str] = None
    instagram_url: Optional[str] = None
    total_rating: int = 0
    rating_count: int = 0
    average_rating: float = 0.0

    model_config = {"from_attributes": True}
