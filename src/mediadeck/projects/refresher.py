import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from mediadeck.errors import MediaDeckError

logger = logging.getLogger(__name__)

JOB_ID = "registry-refresh"


class RegistryRefresher:
    """Periodically revalidates the project registry in the background."""

    def __init__(self, manager, interval_seconds: int):
        self.manager = manager
        self.interval_seconds = interval_seconds
        self.scheduler = AsyncIOScheduler()

    def refresh(self) -> None:
        try:
            self.manager.get_projects(force_rescan=False)
        except MediaDeckError as e:
            logger.error(f"Background registry refresh failed: {e}")

    def start(self) -> bool:
        if self.interval_seconds <= 0:
            logger.info("Background registry refresh disabled")
            return False

        self.scheduler.add_job(
            self.refresh,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=JOB_ID,
            replace_existing=True,
            name="Refresh project registry",
            max_instances=1,
            coalesce=True,
        )
        if not self.scheduler.running:
            self.scheduler.start()
        logger.info(f"Refreshing project registry every {self.interval_seconds}s")
        return True

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
