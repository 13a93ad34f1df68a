from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional

PLACEHOLDER_ERROR = "Details not available"


class Game(BaseModel):
    """
    Canonical, source-agnostic game produced by the sport normalizers.
    """

    id: str
    sport: str = "Unknown Sport"
    league: str = "Unknown League"
    home_team: str = Field("TBD", alias="homeTeam")
    away_team: str = Field("TBD", alias="awayTeam")
    start_time: Optional[str] = Field(None, alias="startTime")
    status: str = "Scheduled"
    venue: Optional[str] = None
    api_source: str = Field(alias="apiSource")

    class Config:
        populate_by_name = True


class GamePlaceholder(BaseModel):
    id: Optional[str]
    error: str = PLACEHOLDER_ERROR


class BarOut(BaseModel):
    id: int
    name: str
    address: str
    description: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    # kilometers from the requesting user; only set when a location was supplied
    distance: Optional[float] = None

    class Config:
        from_attributes = True


class GameScreeningsResponse(BaseModel):
    game: Game
    screenings: list[dict]


class SettingsOut(BaseModel):
    default_sport: str
    cache_ttl_hours: int
    fetch_window_days: int
    default_radius_km: float
    request_timeout_seconds: float
    cache_enabled: bool
    has_api_key: bool
    updated_at_utc: Optional[datetime]


class SettingsUpdate(BaseModel):
    sports_api_key: Optional[str] = None
    default_sport: Optional[str] = None
    cache_ttl_hours: Optional[int] = Field(None, ge=1)
    fetch_window_days: Optional[int] = Field(None, ge=1, le=14)
    default_radius_km: Optional[float] = Field(None, gt=0)
    request_timeout_seconds: Optional[float] = Field(None, gt=0)
    cache_enabled: Optional[bool] = None
