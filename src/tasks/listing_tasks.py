"""
Listing lifecycle task: publishes scheduled posts and expires old ones on an interval
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from src.models import engine as db
from src.service.post_service import PostService

logger = logging.getLogger(__name__)


class ListingTaskManager:
    """
    Listing task manager

    Runs publish_due_posts then expire_posts every listing_task_interval_minutes
    """

    def __init__(self, post_service: PostService, config):
        self.post_service = post_service
        self.config = config
        self.interval_minutes = config.listing_task_interval_minutes

        self.scheduler = AsyncIOScheduler()
        self.last_result = None

    def start(self):
        self.scheduler.add_job(
            self._run_scheduled,
            "interval",
            minutes=self.interval_minutes,
            id="listing_lifecycle",
            replace_existing=True,
            max_instances=1,
        )
        self.scheduler.start()
        logger.info(f"Listing task manager started: every {self.interval_minutes} minutes")

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Listing task manager stopped")

    async def run_once(self) -> dict:
        """
        Publish due posts and expire stale ones

        Returns:
            {published, expired}
        """
        async with db.async_session_factory() as session:
            published = await self.post_service.publish_due_posts(session)
            expired = await self.post_service.expire_posts(session)

        self.last_result = {"published": published, "expired": expired}
        return self.last_result

    async def _run_scheduled(self):
        try:
            await self.run_once()
        except Exception as e:
            logger.error(f"Listing task failed: {e}", exc_info=True)

    def get_status(self) -> dict:
        job = self.scheduler.get_job("listing_lifecycle")
        return {
            "scheduler_running": self.scheduler.running,
            "interval_minutes": self.interval_minutes,
            "last_result": self.last_result,
            "next_run_time": job.next_run_time.isoformat() if job and job.next_run_time else None,
        }


_listing_task_manager: Optional[ListingTaskManager] = None


def get_listing_task_manager() -> Optional[ListingTaskManager]:
    return _listing_task_manager


def init_listing_task_manager(post_service: PostService, config) -> ListingTaskManager:
    global _listing_task_manager
    _listing_task_manager = ListingTaskManager(post_service, config)
    return _listing_task_manager
