import logging
from functools import wraps
from typing import Awaitable, Callable

from app.schemas.event_message import EventMessage
from app.services.deduplication_service import allow_reprocess, try_process

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
log = logging.getLogger("idempotent_handler")

BusinessLogic = Callable[[EventMessage], Awaitable[None]]


async def process_idempotently(message: EventMessage, queue_name: str, business_logic: BusinessLogic) -> bool:
    """
    The protocol every consumer follows:
    1. Ask the ledger whether this queue may process the message.
    2. Duplicate -> acknowledge and drop, no error.
    3. New -> run the side effect.
    4. Side effect raised -> release this queue's gate and re-raise so the broker redelivers.

    Returns True if the business logic ran, False if the message was a duplicate.
    """
    if not await try_process(message.id, queue_name, message.type):
        log.info(f"DUPLICATE ignored on {queue_name}: {message.id}")
        return False

    try:
        await business_logic(message)
    except Exception as e:
        log.error(f"Handler on {queue_name} failed for {message.id}: {e}")
        await allow_reprocess(message.id, queue_name=queue_name)
        raise

    return True


def idempotent_consumer(queue_name: str):
    """Decorator turning a plain business handler into an idempotent queue consumer."""
    def decorator(business_logic: BusinessLogic):
        @wraps(business_logic)
        async def consumer(message: EventMessage) -> bool:
            return await process_idempotently(message, queue_name, business_logic)
        consumer.queue_name = queue_name
        return consumer
    return decorator
