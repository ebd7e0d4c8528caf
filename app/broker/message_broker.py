"""
In-process stand-in for the message broker.

Mirrors the delivery semantics the consumers rely on: a handler that returns is an
acknowledgement, a handler that raises is a negative acknowledgement and the message
is redelivered to the same queue, up to max_delivery_attempts, then dead-lettered.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from app.broker.exchanges import Exchange, ExchangeType
from app.core.config import MAX_DELIVERY_ATTEMPTS
from app.schemas.event_message import EventMessage

log = logging.getLogger("message_broker")

Consumer = Callable[[EventMessage], Awaitable[None]]


class MessageBroker:

    def __init__(self, max_delivery_attempts: int = MAX_DELIVERY_ATTEMPTS):
        self.max_delivery_attempts = max_delivery_attempts
        self.exchanges: Dict[str, Exchange] = {}
        self.queues: Dict[str, Optional[Consumer]] = {}
        self.dead_letters: List[Tuple[str, EventMessage, str]] = []

    def declare_exchange(self, name: str, exchange_type: ExchangeType) -> Exchange:
        exchange = self.exchanges.get(name)
        if exchange is None:
            exchange = Exchange(name, exchange_type)
            self.exchanges[name] = exchange
        elif exchange.exchange_type != exchange_type:
            raise ValueError(f"Exchange {name} already declared as {exchange.exchange_type.value}")
        return exchange

    def declare_queue(self, name: str) -> None:
        self.queues.setdefault(name, None)

    def bind(self, exchange_name: str, queue_name: str, pattern: str = "") -> None:
        if exchange_name not in self.exchanges:
            raise KeyError(f"Unknown exchange: {exchange_name}")
        self.declare_queue(queue_name)
        self.exchanges[exchange_name].bind(queue_name, pattern)

    def subscribe(self, queue_name: str, consumer: Consumer) -> None:
        """Registers the single consumer for a queue."""
        self.declare_queue(queue_name)
        self.queues[queue_name] = consumer

    async def publish(self, exchange_name: str, routing_key: str, message: EventMessage) -> List[str]:
        """
        Routes the message and delivers it to every matched queue concurrently.
        Returns the names of the queues it was routed to.
        """
        exchange = self.exchanges.get(exchange_name)
        if exchange is None:
            raise KeyError(f"Unknown exchange: {exchange_name}")

        targets = exchange.route(routing_key)
        log.info(f"Publishing {message.id} to [{exchange_name}] key='{routing_key}' -> {targets}")
        if not targets:
            log.warning(f"Message {message.id} with routing key '{routing_key}' matched no queue")
            return targets

        await asyncio.gather(*(self.deliver(queue_name, message) for queue_name in targets))
        return targets

    async def deliver(self, queue_name: str, message: EventMessage) -> bool:
        """
        Delivers to one queue with redelivery on failure.
        Returns True once acknowledged, False when dead-lettered.
        """
        consumer = self.queues.get(queue_name)
        if consumer is None:
            log.warning(f"No consumer on queue {queue_name}; message {message.id} dropped")
            return False

        last_error = ""
        for attempt in range(1, self.max_delivery_attempts + 1):
            try:
                await consumer(message)
                return True
            except Exception as e:
                last_error = str(e)
                log.warning(f"Delivery {attempt}/{self.max_delivery_attempts} of {message.id} to {queue_name} nacked: {e}")

        log.error(f"DEAD-LETTER: {message.id} on {queue_name} after {self.max_delivery_attempts} attempts: {last_error}")
        self.dead_letters.append((queue_name, message, last_error))
        return False


# Global broker instance
broker: Optional[MessageBroker] = None


def get_broker() -> MessageBroker:
    """Get or create the broker with the application topology declared."""
    global broker

    if broker is None:
        from app.broker.topology import declare_topology
        broker = declare_topology(MessageBroker())

    return broker
