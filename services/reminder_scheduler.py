"""Background job running the follow-up reminder poll."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from services.reminder_service import ReminderService

logger = logging.getLogger(__name__)

JOB_ID = "follow_up_reminders"


class ReminderScheduler:
    """Runs :meth:`ReminderService.check_follow_up_reminders` on a fixed interval.

    The first run happens as soon as the scheduler starts.
    """

    def __init__(self, service: ReminderService, interval_minutes: int = 30) -> None:
        self._service = service
        self._interval_minutes = interval_minutes
        self._scheduler: BackgroundScheduler | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        if self.running:
            return
        scheduler = BackgroundScheduler(timezone=timezone.utc)
        scheduler.add_job(
            self._service.check_follow_up_reminders,
            IntervalTrigger(minutes=self._interval_minutes),
            id=JOB_ID,
            name="Follow-up reminder e-mails",
            replace_existing=True,
            next_run_time=datetime.now(timezone.utc),
            max_instances=1,
            coalesce=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info(
            "Reminder scheduler started, every %s minutes", self._interval_minutes
        )

    def shutdown(self, wait: bool = False) -> None:
        if not self.running:
            return
        self._scheduler.shutdown(wait=wait)
        self._scheduler = None
        logger.info("Reminder scheduler stopped")


__all__ = ["ReminderScheduler", "JOB_ID"]
