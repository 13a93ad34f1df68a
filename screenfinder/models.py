from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from .db import Base


class Bar(Base):
    __tablename__ = "bars"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, nullable=True)
    name = Column(String, nullable=False, default="")
    address = Column(String, nullable=False, default="")
    description = Column(Text, nullable=True)

    # WGS84 degrees; either may be missing for bars that were never geocoded
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    screenings = relationship("Screening", back_populates="bar")


class Screening(Base):
    __tablename__ = "screenings"
    __table_args__ = (
        UniqueConstraint(
            "bar_id",
            "external_game_id",
            "screening_time",
            name="uq_screenings_bar_game_time",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    bar_id = Column(Integer, ForeignKey("bars.id"), nullable=False)
    external_game_id = Column(String, nullable=True, index=True)
    screening_time = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    bar = relationship("Bar", back_populates="screenings")


class AppSettings(Base):
    __tablename__ = "app_settings"

    id = Column(Integer, primary_key=True)
    sports_api_key_enc = Column(Text, nullable=True)
    default_sport = Column(String, nullable=False, default="soccer")
    cache_ttl_hours = Column(Integer, nullable=False, default=24)
    fetch_window_days = Column(Integer, nullable=False, default=7)
    default_radius_km = Column(Float, nullable=False, default=10.0)
    request_timeout_seconds = Column(Float, nullable=False, default=10.0)
    cache_enabled = Column(Boolean, nullable=False, default=True)
    updated_at_utc = Column(DateTime(timezone=True), server_default=func.now())
