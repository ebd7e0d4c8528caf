import logging
from typing import Dict, List, Optional

from tortoise import timezone
from tortoise.exceptions import IntegrityError
from tortoise.transactions import in_transaction

from app.core.config import ALL_QUEUES
from app.models.processed_message import ProcessedMessage, ProcessingStatus

log = logging.getLogger("deduplication_service")


def _is_blank(message_id: Optional[str]) -> bool:
    return message_id is None or not str(message_id).strip()


async def try_process(message_id: Optional[str], queue_name: str, message_type: Optional[str] = None) -> bool:
    """
    Check-and-mark gate for a queue's handler.

    Returns True exactly once per (message_id, queue_name) while a ledger row exists,
    False for every later call. The insert is guarded by the (message_id, queue_name)
    unique constraint, so two concurrent callers cannot both observe absence and both
    win: the loser's insert fails with IntegrityError and is reported as a duplicate.

    A blank message_id cannot be deduplicated and is let through without writing a row.
    Any other ledger failure propagates to the caller.
    """
    if _is_blank(message_id):
        log.warning(f"Message ID is null or blank on queue {queue_name} - processing without deduplication")
        return True

    try:
        async with in_transaction() as conn:
            if await ProcessedMessage.filter(message_id=message_id, queue_name=queue_name).using_db(conn).exists():
                log.info(f"DUPLICATE detected - messageId: {message_id}, queue: {queue_name}")
                return False

            await ProcessedMessage.create(
                message_id=message_id,
                queue_name=queue_name,
                processed_at=timezone.now(),
                status=ProcessingStatus.PROCESSED,
                message_type=message_type,
                using_db=conn
            )
    except IntegrityError:
        # Lost the race against a concurrent delivery of the same message
        log.info(f"DUPLICATE detected (concurrent insert) - messageId: {message_id}, queue: {queue_name}")
        return False

    log.debug(f"Message marked as processed - messageId: {message_id}, queue: {queue_name}")
    return True


async def is_duplicate(message_id: Optional[str], queue_name: Optional[str] = None) -> bool:
    """
    Read-only existence check. With a queue_name this is the per-queue question the gate
    asks; without one it reports whether any queue holds a record for the ID.
    """
    if _is_blank(message_id):
        return False
    query = ProcessedMessage.filter(message_id=message_id)
    if queue_name is not None:
        query = query.filter(queue_name=queue_name)
    return await query.exists()


async def allow_reprocess(message_id: Optional[str], queue_name: Optional[str] = None) -> int:
    """
    Releases the gate so the message can be processed again.

    Scoped to one queue when queue_name is given (what a failing handler does);
    otherwise releases the ID on every queue (administrative release).
    Returns the number of ledger rows removed.
    """
    if _is_blank(message_id):
        return 0

    async with in_transaction() as conn:
        query = ProcessedMessage.filter(message_id=message_id).using_db(conn)
        if queue_name is not None:
            query = query.filter(queue_name=queue_name)
        deleted = await query.delete()

    scope = queue_name if queue_name is not None else "all queues"
    log.info(f"Message removed from deduplication - messageId: {message_id}, scope: {scope}, rows: {deleted}")
    return deleted


async def mark_as_failed(message_id: Optional[str], queue_name: str, message_type: Optional[str] = None) -> None:
    """
    Records a FAILED row for (message_id, queue_name), replacing any existing row.
    The gate stays closed; call allow_reprocess to permit redelivery.
    """
    if _is_blank(message_id):
        log.warning(f"Cannot mark blank message ID as failed on queue {queue_name}")
        return

    async with in_transaction() as conn:
        await ProcessedMessage.filter(message_id=message_id, queue_name=queue_name).using_db(conn).delete()
        await ProcessedMessage.create(
            message_id=message_id,
            queue_name=queue_name,
            processed_at=timezone.now(),
            status=ProcessingStatus.FAILED,
            message_type=message_type,
            using_db=conn
        )
    log.info(f"Message marked as failed - messageId: {message_id}, queue: {queue_name}")


async def get_processed_count(queue_name: str) -> int:
    """Count of ledger rows for a queue, any status."""
    return await ProcessedMessage.filter(queue_name=queue_name).count()


async def get_total_count() -> int:
    return await ProcessedMessage.all().count()


async def list_processed(queue_name: Optional[str] = None) -> List[ProcessedMessage]:
    query = ProcessedMessage.all()
    if queue_name is not None:
        query = query.filter(queue_name=queue_name)
    return await query.order_by("-processed_at")


async def get_records(message_id: str) -> List[ProcessedMessage]:
    """All ledger rows for an ID, one per queue that has seen it."""
    return await ProcessedMessage.filter(message_id=message_id).order_by("queue_name")


async def get_stats(queue_names: Optional[List[str]] = None) -> Dict[str, int]:
    """Ledger row counts: the total plus one entry per known queue."""
    stats = {"total": await get_total_count()}
    for name in queue_names or ALL_QUEUES:
        stats[name] = await get_processed_count(name)
    return stats
