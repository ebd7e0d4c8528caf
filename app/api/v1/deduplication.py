import logging
from fastapi import APIRouter, HTTPException, Query
from typing import Optional

from app.core.config import RETENTION_DAYS
from app.models.processed_message import ProcessedMessage
from app.schemas.event_message import (
    CleanupResponse,
    MessageCheckResponse,
    ProcessedMessageResponse,
    StatsResponse,
)
from app.schemas.response import SuccessResponse
from app.services.deduplication_service import (
    allow_reprocess,
    get_records,
    get_stats,
    is_duplicate,
    list_processed,
)
from app.services.retention_sweeper import cleanup_older_than

router = APIRouter()
log = logging.getLogger("uvicorn")


def _to_response(record: ProcessedMessage) -> dict:
    return ProcessedMessageResponse(
        message_id=record.message_id,
        queue_name=record.queue_name,
        processed_at=str(record.processed_at),
        status=str(getattr(record.status, "value", record.status)),
        message_type=record.message_type,
    ).model_dump()


@router.get("/stats", response_model=SuccessResponse)
async def get_deduplication_stats():
    """Ledger row counts, total and per queue."""
    stats = await get_stats()
    total = stats.pop("total")
    return SuccessResponse(data=StatsResponse(total=total, queues=stats).model_dump())


@router.get("/messages", response_model=SuccessResponse)
async def get_all_processed_messages():
    records = await list_processed()
    return SuccessResponse(data=[_to_response(r) for r in records])


@router.get("/messages/{queue_name}", response_model=SuccessResponse)
async def get_messages_by_queue(queue_name: str):
    records = await list_processed(queue_name)
    return SuccessResponse(data=[_to_response(r) for r in records])


@router.get("/check/{message_id}", response_model=SuccessResponse)
async def check_message(message_id: str, queue_name: Optional[str] = None):
    """Whether an ID is in the ledger, for one queue or any queue."""
    duplicate = await is_duplicate(message_id, queue_name)
    records = await get_records(message_id)
    if queue_name is not None:
        records = [r for r in records if r.queue_name == queue_name]

    data = MessageCheckResponse(
        message_id=message_id,
        is_duplicate=duplicate,
        details=[_to_response(r) for r in records]
    ).model_dump()
    return SuccessResponse(data=data)


@router.delete("/messages/{message_id}", response_model=SuccessResponse)
async def release_message(message_id: str, queue_name: Optional[str] = None):
    """
    Allows a message to be processed again. Scoped to queue_name when given,
    otherwise released on every queue.
    """
    released = await allow_reprocess(message_id, queue_name=queue_name)
    scope = queue_name or "all queues"
    return SuccessResponse(data={
        "message_id": message_id,
        "released_records": released,
        "message": f"Message {message_id} can now be reprocessed on {scope}",
    })


@router.delete("/cleanup", response_model=SuccessResponse)
async def cleanup(days: int = Query(RETENTION_DAYS, ge=0, description="Delete records older than this many days.")):
    try:
        deleted = await cleanup_older_than(days)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SuccessResponse(data=CleanupResponse(deleted_records=deleted, older_than_days=days).model_dump())
