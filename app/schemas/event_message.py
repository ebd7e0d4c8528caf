from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime, timezone


def _now():
    return datetime.now(timezone.utc)


class EventMessage(BaseModel):
    """Fixed schema of every message travelling through the broker."""
    id: Optional[str] = Field(None, description="Producer-assigned ID, unique per logical event.")
    type: Optional[str] = Field(None, description="Classification, e.g. 'order.created'.")
    content: Optional[str] = None
    timestamp: datetime = Field(default_factory=_now)
    source: Optional[str] = None


class PublishRequest(BaseModel):
    """Optional request body for the publishing endpoints."""
    content: Optional[str] = Field(None, description="Message body; a default is used when omitted.")


class PublishResponse(BaseModel):
    message_id: str
    exchange: str
    routing_key: str
    delivered_to: List[str]
    message: str


class ProcessedMessageResponse(BaseModel):
    """Ledger row as shown on the administrative surface."""
    message_id: str
    queue_name: str
    processed_at: str
    status: str
    message_type: Optional[str] = None


class MessageCheckResponse(BaseModel):
    message_id: str
    is_duplicate: bool
    details: List[ProcessedMessageResponse]


class CleanupResponse(BaseModel):
    deleted_records: int
    older_than_days: int


class StatsResponse(BaseModel):
    total: int
    queues: Dict[str, int]
