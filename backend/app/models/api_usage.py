"""
API Usage Model

Append-only record of every outbound weather request, served from cache or not.
"""

from sqlalchemy import Column, Integer, String, DateTime

from app.core.database import Base


class ApiUsage(Base):
    """One row per weather lookup attempt"""
    __tablename__ = "api_usage"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # e.g. 'weather_cache_hit', 'weather_api_call', 'city_search_api_error'
    endpoint = Column(String(64), nullable=False, index=True)
    city = Column(String(100), nullable=True)

    timestamp = Column(DateTime, nullable=False, index=True)
    response_time = Column(Integer, nullable=True)  # milliseconds
    status_code = Column(Integer, nullable=True)

    def __repr__(self):
        return f"<ApiUsage(endpoint='{self.endpoint}', city='{self.city}', status={self.status_code})>"
