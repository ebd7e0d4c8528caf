import logging
import uuid
from typing import List, Optional

from app.broker.message_broker import MessageBroker, get_broker
from app.core.config import FANOUT_EXCHANGE, TOPIC_EXCHANGE
from app.schemas.event_message import EventMessage

log = logging.getLogger("producers")


def build_event(message_type: str, content: str, source: str) -> EventMessage:
    """Creates a new event with a fresh producer-assigned ID."""
    return EventMessage(
        id=str(uuid.uuid4()),
        type=message_type,
        content=content,
        source=source,
    )


async def broadcast_message(message: EventMessage, broker: Optional[MessageBroker] = None) -> List[str]:
    """Publishes to the fanout exchange; every bound queue receives it."""
    broker = broker or get_broker()
    log.info(f"Broadcasting to Fanout Exchange [{FANOUT_EXCHANGE}]: {message.id}")
    # Routing key is ignored by fanout exchanges
    return await broker.publish(FANOUT_EXCHANGE, "", message)


async def send_topic_message(routing_key: str, message: EventMessage, broker: Optional[MessageBroker] = None) -> List[str]:
    """Publishes to the topic exchange; queues are selected by binding pattern."""
    broker = broker or get_broker()
    log.info(f"Sending to Topic Exchange [{TOPIC_EXCHANGE}] with routing key [{routing_key}]: {message.id}")
    return await broker.publish(TOPIC_EXCHANGE, routing_key, message)
