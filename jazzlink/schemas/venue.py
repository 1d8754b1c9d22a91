"""Venue and schedule Pydantic schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class VenueIn(BaseModel):
    name: str
    address: str = ""
    description: Optional[str] = None
    photos: List[str] = []
    tags: List[str] = []
    operating_hours: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    naver_maps_url: Optional[str] = None
    instagram_url: Optional[str] = None
    youtube_url: Optional[str] = None
    website_url: Optional[str] = None


class VenueOut(VenueIn):
    id: int
    owner_uid: Optional[str] = None
    google_place_id: Optional[str] = None
    total_rating: int = 0
    rating_count: int = 0
    average_rating: float = 0.0

    model_config = {"from_attributes": True}


class PlaceLookup(BaseModel):
    place_id: str


class PerformanceIn(BaseModel):
    title: str
    date_time: datetime


class PerformanceOut(BaseModel):
    id: int
    venue_id: int
    venue_name: Optional[str] = None
    title: str
    date_time: datetime
