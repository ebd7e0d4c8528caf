import logging
from fastapi import APIRouter, HTTPException, status
from typing import Optional

from app.core.config import FANOUT_EXCHANGE
from app.events.producers import broadcast_message, build_event
from app.schemas.event_message import PublishRequest, PublishResponse
from app.schemas.response import SuccessResponse

router = APIRouter()
log = logging.getLogger("uvicorn")


async def _broadcast(message_type: str, source: str, default_content: str, payload: Optional[PublishRequest]):
    content = payload.content if payload and payload.content else default_content
    message = build_event(message_type, content, source)
    try:
        delivered = await broadcast_message(message)
    except Exception as e:
        log.error(f"Error broadcasting {message_type}: {e}")
        raise HTTPException(status_code=500, detail="Server failed to broadcast message.")

    data = PublishResponse(
        message_id=message.id,
        exchange=FANOUT_EXCHANGE,
        routing_key="",
        delivered_to=delivered,
        message="Broadcast sent to ALL subscribers."
    ).model_dump()
    return SuccessResponse(data=data)


@router.post("/broadcast", status_code=status.HTTP_202_ACCEPTED, response_model=SuccessResponse)
async def broadcast_notification(payload: Optional[PublishRequest] = None):
    """Broadcasts a notification to the email, SMS and push queues."""
    return await _broadcast("broadcast", "broadcast-service", "Important system announcement!", payload)


@router.post("/alert", status_code=status.HTTP_202_ACCEPTED, response_model=SuccessResponse)
async def broadcast_alert(payload: Optional[PublishRequest] = None):
    return await _broadcast("system-alert", "alert-service", "ALERT: System maintenance scheduled", payload)


@router.post("/promo", status_code=status.HTTP_202_ACCEPTED, response_model=SuccessResponse)
async def broadcast_promo(payload: Optional[PublishRequest] = None):
    return await _broadcast("promotional", "marketing-service", "Special offer: 50% off today only!", payload)
