"""
Background Job Scheduler

Periodic cache maintenance using APScheduler:
- sweeps expired entries out of the in-memory cache
- purges expired rows from the database weather cache
"""

import logging
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import EVENT_JOB_EXECUTED, EVENT_JOB_ERROR

from app.services.memory_cache_service import MemoryCache
from app.services.weather_cache_service import WeatherCacheRepository

logger = logging.getLogger(__name__)


class CacheMaintenanceScheduler:
    """Manages cache maintenance job scheduling"""

    MEMORY_SWEEP_JOB = "memory-cache-sweep"
    DB_PURGE_JOB = "db-cache-purge"

    def __init__(
        self,
        memory_cache: MemoryCache,
        weather_cache: WeatherCacheRepository,
        sweep_interval_seconds: int = 600,
        purge_interval_minutes: int = 60,
    ):
        self.memory_cache = memory_cache
        self.weather_cache = weather_cache
        self.sweep_interval_seconds = sweep_interval_seconds
        self.purge_interval_minutes = purge_interval_minutes
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.is_running = False

    async def start(self):
        """Start the background scheduler"""
        if self.is_running:
            return

        try:
            self.scheduler = AsyncIOScheduler(
                timezone='UTC',
                job_defaults={
                    'coalesce': True,  # Combine multiple pending executions into one
                    'max_instances': 1,
                    'misfire_grace_time': 60
                }
            )

            self.scheduler.add_listener(self._job_executed_listener, EVENT_JOB_EXECUTED)
            self.scheduler.add_listener(self._job_error_listener, EVENT_JOB_ERROR)

            self.scheduler.add_job(
                func=self._memory_sweep_job,
                trigger=IntervalTrigger(seconds=self.sweep_interval_seconds),
                id=self.MEMORY_SWEEP_JOB,
                name='In-memory Cache Sweep',
                replace_existing=True
            )

            self.scheduler.add_job(
                func=self._db_purge_job,
                trigger=IntervalTrigger(minutes=self.purge_interval_minutes),
                id=self.DB_PURGE_JOB,
                name='Expired Weather Cache Purge',
                replace_existing=True
            )

            self.scheduler.start()
            self.is_running = True

            logger.info("Background scheduler started successfully")
            logger.info(f"Scheduled jobs: {[job.id for job in self.scheduler.get_jobs()]}")

        except Exception as e:
            logger.error(f"Failed to start background scheduler: {str(e)}", exc_info=True)
            raise

    async def stop(self):
        """Stop the background scheduler"""
        if not self.is_running or not self.scheduler:
            return

        try:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info("Background scheduler stopped successfully")

        except Exception as e:
            logger.error(f"Error stopping background scheduler: {str(e)}", exc_info=True)

    async def _memory_sweep_job(self) -> int:
        return self.memory_cache.cleanup()

    async def _db_purge_job(self) -> int:
        try:
            return await self.weather_cache.purge_expired()
        except Exception as e:
            logger.error(f"Database cache purge failed: {str(e)}", exc_info=True)
            return 0

    def _job_executed_listener(self, event):
        """Listener for successful job executions"""
        logger.debug(f"Job '{event.job_id}' executed, result: {event.retval}")

    def _job_error_listener(self, event):
        """Listener for job execution errors"""
        logger.error(
            f"Job '{event.job_id}' failed: {event.exception}",
            exc_info=event.exception
        )

    def get_job_status(self) -> dict:
        """Get status of all scheduled jobs"""
        if not self.scheduler:
            return {"status": "not_started", "jobs": []}

        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
                "trigger": str(job.trigger)
            })

        return {
            "status": "running" if self.is_running else "stopped",
            "jobs": jobs
        }
