"""
Weather cache model for persistent caching
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.dialects.postgresql import JSONB

from app.core.database import Base


class WeatherCacheEntry(Base):
    """Last fetched forecast per city, kept across restarts"""
    __tablename__ = "weather_cache"

    id = Column(Integer, primary_key=True, autoincrement=True)
    city = Column(String(100), nullable=False, unique=True, index=True)
    weather_data = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)
    cached_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<WeatherCacheEntry(city='{self.city}', expires_at={self.expires_at})>"
