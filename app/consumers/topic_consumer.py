import logging

from app.consumers.idempotent_handler import idempotent_consumer
from app.core.config import TOPIC_ALL_QUEUE, TOPIC_ERRORS_QUEUE, TOPIC_ORDERS_QUEUE
from app.schemas.event_message import EventMessage

log = logging.getLogger("topic_consumer")


async def process_order(message: EventMessage):
    log.info(f"Processing order business logic for: {message.type} | content={message.content}")


async def raise_error_alert(message: EventMessage):
    log.warning(f"ERROR ALERT: type={message.type}, content={message.content}, source={message.source}")


async def audit_event(message: EventMessage):
    log.info(f"Auditing event: {message.type} from {message.source}")


@idempotent_consumer(TOPIC_ORDERS_QUEUE)
async def handle_order_event(message: EventMessage):
    """Receives 'order.*' messages, e.g. order.created, order.updated."""
    await process_order(message)


@idempotent_consumer(TOPIC_ERRORS_QUEUE)
async def handle_error_event(message: EventMessage):
    """Receives '*.error' messages, e.g. system.error, payment.error."""
    await raise_error_alert(message)


@idempotent_consumer(TOPIC_ALL_QUEUE)
async def handle_any_event(message: EventMessage):
    """Catch-all '#' subscriber."""
    await audit_event(message)


TOPIC_CONSUMERS = [
    handle_order_event,
    handle_error_event,
    handle_any_event,
]
