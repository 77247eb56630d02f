"""
APScheduler setup for the pending-complaint watcher.

A background job polls for pending complaints on a fixed interval and reports the ones that arrived
since the previous poll. ``stop_scheduler()`` cancels it.
"""

import asyncio
import logging
from typing import List, Optional, Set

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()

WATCH_JOB_ID = 'pending_complaint_watch'


class ComplaintWatcher:
    """Remembers which pending complaints were already seen."""

    def __init__(self, service=None):
        self._service = service
        self._seen: Optional[Set[str]] = None

    @property
    def service(self):
        if self._service is None:
            from ..services.complaint_service import complaint_service
            self._service = complaint_service
        return self._service

    async def poll(self) -> List[dict]:
        """Return pending complaints not reported by an earlier poll (nothing on the first poll)."""
        pending = await self.service.list_pending_complaints()
        current_ids = {c["id"] for c in pending}

        if self._seen is None:
            self._seen = current_ids
            logger.info(f"Complaint watch primed with {len(current_ids)} pending complaint(s)")
            return []

        new_complaints = [c for c in pending if c["id"] not in self._seen]
        self._seen = current_ids
        return new_complaints


watcher = ComplaintWatcher()


def complaint_watch_job():
    """Background job that reports newly registered complaints"""
    try:
        new_complaints = asyncio.run(watcher.poll())
        if new_complaints:
            logger.info(f"{len(new_complaints)} new complaint(s) registered!")
            for complaint in new_complaints:
                logger.info(f"   - {complaint.get('token')} ({complaint.get('complaintType')}) in department {complaint.get('departmentId')}")
    except Exception as e:
        logger.error(f"Complaint watch job failed: {str(e)}", exc_info=True)


def start_scheduler():
    """Start the background scheduler for the complaint watch"""
    if scheduler.running:
        logger.warning("Scheduler already running")
        return

    from .config import settings

    interval = settings.COMPLAINT_WATCH_INTERVAL_SECONDS
    scheduler.add_job(
        complaint_watch_job,
        trigger=IntervalTrigger(seconds=interval),
        id=WATCH_JOB_ID,
        name='Pending Complaint Watch',
        replace_existing=True,
        max_instances=1,
        misfire_grace_time=interval,
    )
    scheduler.start()
    logger.info(f"Scheduler started: checking pending complaints every {interval} second(s)")


def stop_scheduler():
    """Stop the background scheduler"""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
