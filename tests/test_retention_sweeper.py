import asyncio
from datetime import timedelta

import pytest
from unittest.mock import patch, AsyncMock
from apscheduler.triggers.cron import CronTrigger

from app.models.processed_message import ProcessedMessage
from app.services import retention_sweeper
from app.services.retention_sweeper import (
    CLEANUP_JOB_ID,
    cleanup_expired_messages,
    cleanup_older_than,
    create_cleanup_scheduler,
)


@pytest.mark.asyncio
async def test_cleanup_removes_only_expired_records(ledger, insert_record):
    await insert_record("old", "q", age=timedelta(days=10))
    await insert_record("recent", "q", age=timedelta(days=3))

    deleted = await cleanup_older_than(7)

    assert deleted == 1
    remaining = await ProcessedMessage.all().values_list("message_id", flat=True)
    assert list(remaining) == ["recent"]


@pytest.mark.asyncio
async def test_cleanup_is_idempotent(ledger, insert_record):
    await insert_record("old-1", "q1", age=timedelta(days=30))
    await insert_record("old-2", "q2", age=timedelta(days=8))

    assert await cleanup_older_than(7) == 2
    assert await cleanup_older_than(7) == 0


@pytest.mark.asyncio
async def test_cleanup_zero_days_clears_everything_written_before_now(ledger, insert_record):
    await insert_record("a", "q", age=timedelta(minutes=5))
    assert await cleanup_older_than(0) == 1


@pytest.mark.asyncio
async def test_cleanup_rejects_negative_days():
    with pytest.raises(ValueError):
        await cleanup_older_than(-1)


@pytest.mark.asyncio
async def test_swept_message_can_be_processed_again(ledger, insert_record):
    from app.services.deduplication_service import try_process

    await insert_record("m1", "q", age=timedelta(days=10))
    assert await try_process("m1", "q", "t") is False

    await cleanup_older_than(7)
    assert await try_process("m1", "q", "t") is True


@pytest.mark.asyncio
async def test_scheduled_cleanup_uses_retention_window(ledger, insert_record):
    await insert_record("old", "q", age=timedelta(days=retention_sweeper.RETENTION_DAYS + 1))
    await insert_record("fresh", "q")

    with patch.object(retention_sweeper, "_sweep_lock", asyncio.Lock()):
        assert await cleanup_expired_messages() == 1
    assert await ProcessedMessage.all().count() == 1


@pytest.mark.asyncio
async def test_scheduled_cleanup_skips_when_already_running():
    lock = asyncio.Lock()
    with patch.object(retention_sweeper, "_sweep_lock", lock):
        with patch.object(retention_sweeper, "cleanup_older_than", new_callable=AsyncMock) as mock_cleanup:
            async with lock:
                assert await cleanup_expired_messages() is None
            mock_cleanup.assert_not_called()


@pytest.mark.asyncio
async def test_scheduled_cleanup_logs_and_swallows_failure():
    with patch.object(retention_sweeper, "_sweep_lock", asyncio.Lock()):
        with patch.object(retention_sweeper, "cleanup_older_than", AsyncMock(side_effect=RuntimeError("db down"))):
            assert await cleanup_expired_messages() is None
        # Lock released for the next run
        assert not retention_sweeper._sweep_lock.locked()


def test_scheduler_registers_daily_cron_job():
    sched = create_cleanup_scheduler()
    job = sched.get_job(CLEANUP_JOB_ID)

    assert job is not None
    assert job.func is cleanup_expired_messages
    assert isinstance(job.trigger, CronTrigger)
    assert job.max_instances == 1
    assert job.coalesce is True
    assert not sched.running
