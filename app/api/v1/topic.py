import logging
from fastapi import APIRouter, HTTPException, status
from typing import Optional

from app.core.config import TOPIC_EXCHANGE
from app.events.producers import build_event, send_topic_message
from app.schemas.event_message import PublishRequest, PublishResponse
from app.schemas.response import SuccessResponse

router = APIRouter()
log = logging.getLogger("uvicorn")


async def _send(routing_key: str, source: str, default_content: str, payload: Optional[PublishRequest]):
    content = payload.content if payload and payload.content else default_content
    message = build_event(routing_key, content, source)
    try:
        delivered = await send_topic_message(routing_key, message)
    except Exception as e:
        log.error(f"Error sending topic message {routing_key}: {e}")
        raise HTTPException(status_code=500, detail="Server failed to send message.")

    data = PublishResponse(
        message_id=message.id,
        exchange=TOPIC_EXCHANGE,
        routing_key=routing_key,
        delivered_to=delivered,
        message=f"Message sent with routing key: {routing_key}"
    ).model_dump()
    return SuccessResponse(data=data)


@router.post("/send/{routing_key}", status_code=status.HTTP_202_ACCEPTED, response_model=SuccessResponse)
async def send_with_routing_key(routing_key: str, payload: Optional[PublishRequest] = None):
    """
    Sends with a custom routing key. Routing:
    'order.*' -> orders queue, '*.error' -> errors queue, '#' -> all-events queue.
    """
    return await _send(routing_key, "topic-controller", f"Message for {routing_key}", payload)


@router.post("/order/created", status_code=status.HTTP_202_ACCEPTED, response_model=SuccessResponse)
async def send_order_created(payload: Optional[PublishRequest] = None):
    return await _send("order.created", "order-service", "New order has been created", payload)


@router.post("/order/updated", status_code=status.HTTP_202_ACCEPTED, response_model=SuccessResponse)
async def send_order_updated(payload: Optional[PublishRequest] = None):
    return await _send("order.updated", "order-service", "Order has been updated", payload)


@router.post("/system/error", status_code=status.HTTP_202_ACCEPTED, response_model=SuccessResponse)
async def send_system_error(payload: Optional[PublishRequest] = None):
    return await _send("system.error", "monitoring-service", "System error occurred!", payload)


@router.post("/payment/error", status_code=status.HTTP_202_ACCEPTED, response_model=SuccessResponse)
async def send_payment_error(payload: Optional[PublishRequest] = None):
    return await _send("payment.error", "payment-service", "Payment processing failed!", payload)


@router.post("/user/registered", status_code=status.HTTP_202_ACCEPTED, response_model=SuccessResponse)
async def send_user_registered(payload: Optional[PublishRequest] = None):
    """Only the catch-all queue receives this one."""
    return await _send("user.registered", "user-service", "New user registered", payload)
