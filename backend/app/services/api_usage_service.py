"""
API usage accounting

Records every weather lookup (cache hit, upstream call or failure) and
aggregates them over a trailing window for the stats endpoint.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.database import utcnow
from app.models.api_usage import ApiUsage

logger = logging.getLogger(__name__)


class ApiUsageService:
    """Append-only usage log with on-demand statistics"""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory
        self.clock = clock

    async def record(
        self,
        endpoint: str,
        city: Optional[str],
        response_time_ms: int,
        status_code: int,
    ) -> None:
        """Append one usage row. Never raises: failures are only logged."""
        try:
            async with self.session_factory() as db:
                db.add(ApiUsage(
                    endpoint=endpoint,
                    city=city,
                    timestamp=self.clock(),
                    response_time=int(response_time_ms),
                    status_code=status_code,
                ))
                await db.commit()
        except Exception as e:
            logger.error(f"Failed to log API usage for {endpoint} ({city}): {str(e)}")

    async def summarize(self, window_hours: int = 24) -> Dict[str, Any]:
        """Request count, average latency and error count over the last ``window_hours``"""
        since = self.clock() - timedelta(hours=window_hours)

        async with self.session_factory() as db:
            result = await db.execute(
                select(
                    func.count(ApiUsage.id),
                    func.avg(ApiUsage.response_time),
                    func.count(case((ApiUsage.status_code >= 400, 1))),
                ).where(ApiUsage.timestamp >= since)
            )
            total_requests, avg_response_time, error_count = result.one()

        return {
            "total_requests": total_requests or 0,
            "avg_response_time_ms": round(float(avg_response_time), 2) if avg_response_time is not None else 0.0,
            "error_count": error_count or 0,
            "window_hours": window_hours,
        }
