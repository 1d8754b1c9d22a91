"""Team Pydantic schemas."""

from typing import List, Optional

from pydantic import BaseModel


class TeamMemberIn(BaseModel):
    name: str
    instrument: str = ""
    is_leader: bool = False
    musician_id: Optional[int] = None
    owner_uid: Optional[str] = None


class TeamMemberOut(TeamMemberIn):
    pass


class TeamIn(BaseModel):
    team_name: str
    team_description: Optional[str] = None
    team_photos: List[str] = []
    members: List[TeamMemberIn] = []
    region: Optional[str] = None
    tags: List[str] = []
    youtube_url: Optional[str] = None
    instagram_url: Optional[str] = None


class TeamOut(BaseModel):
    id: int
    team_name: str
    team_description: Optional[str] = None
    team_photos: List[str]
    owner_uid: str
    members: List[TeamMemberOut]
    region: Optional[str] = None
    tags: List[str] = []
    youtube_url: Optional[str] = None
    instagram_url: Optional[str] = None
    total_rating: int = 0
    rating_count: int = 0
    average_rating: float = 0.0

    model_config = {"from_attributes": True}


class LeaderUpdate(BaseModel):
    index: int
