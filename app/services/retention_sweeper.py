"""
Retention sweeper for the idempotency ledger.

Rows whose processed_at is older than the retention window are bulk-deleted,
either on demand or from a daily APScheduler cron job.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from tortoise import timezone
from tortoise.transactions import in_transaction

from app.core.config import (
    CLEANUP_CRON_HOUR,
    CLEANUP_CRON_MINUTE,
    RETENTION_DAYS,
    SCHEDULER_TIMEZONE,
)
from app.models.processed_message import ProcessedMessage

log = logging.getLogger("retention_sweeper")

CLEANUP_JOB_ID = "ledger_retention_cleanup"

# Global scheduler instance
scheduler: Optional[AsyncIOScheduler] = None

# Held while a sweep runs; a second trigger skips instead of overlapping
_sweep_lock = asyncio.Lock()


async def cleanup_older_than(days: int = RETENTION_DAYS) -> int:
    """
    Deletes every ledger row with processed_at older than now - days, in one transaction.
    Returns the number of rows deleted.
    """
    if days < 0:
        raise ValueError(f"Retention days must be non-negative, got {days}")

    cutoff = timezone.now() - timedelta(days=days)
    async with in_transaction() as conn:
        deleted = await ProcessedMessage.filter(processed_at__lt=cutoff).using_db(conn).delete()

    log.info(f"Cleanup: deleted {deleted} records older than {days} days")
    return deleted


async def cleanup_expired_messages() -> Optional[int]:
    """
    Scheduled entry point. Skips if a sweep is already in progress.
    Failures are logged and left for the next run; returns None in both cases.
    """
    if _sweep_lock.locked():
        log.info("Cleanup already running, skipping this trigger")
        return None

    async with _sweep_lock:
        try:
            deleted = await cleanup_older_than(RETENTION_DAYS)
        except Exception as e:
            log.exception(f"Scheduled cleanup failed: {e}")
            return None

    log.info(f"Cleaned up {deleted} expired message records (older than {RETENTION_DAYS} days)")
    return deleted


def create_cleanup_scheduler() -> AsyncIOScheduler:
    """Builds a scheduler with the daily retention job registered."""
    sched = AsyncIOScheduler(timezone=SCHEDULER_TIMEZONE)
    sched.add_job(
        cleanup_expired_messages,
        trigger=CronTrigger(hour=CLEANUP_CRON_HOUR, minute=CLEANUP_CRON_MINUTE, timezone=SCHEDULER_TIMEZONE),
        id=CLEANUP_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    return sched


def get_scheduler() -> AsyncIOScheduler:
    """Get or create the scheduler instance."""
    global scheduler

    if scheduler is None:
        scheduler = create_cleanup_scheduler()

    return scheduler


async def start_cleanup_scheduler() -> None:
    sched = get_scheduler()
    if not sched.running:
        sched.start()
        log.info(f"Retention scheduler started (daily at {CLEANUP_CRON_HOUR:02d}:{CLEANUP_CRON_MINUTE:02d} {SCHEDULER_TIMEZONE})")


async def stop_cleanup_scheduler() -> None:
    """Stop the scheduler gracefully."""
    global scheduler
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        log.info("Retention scheduler stopped")
    scheduler = None
