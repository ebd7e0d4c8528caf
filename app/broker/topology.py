from app.broker.exchanges import ExchangeType
from app.broker.message_broker import MessageBroker
from app.consumers.fanout_consumer import FANOUT_CONSUMERS
from app.consumers.topic_consumer import TOPIC_CONSUMERS
from app.core.config import (
    ALL_EVENTS_BINDING,
    ERRORS_BINDING,
    FANOUT_EXCHANGE,
    FANOUT_QUEUES,
    ORDERS_BINDING,
    TOPIC_ALL_QUEUE,
    TOPIC_ERRORS_QUEUE,
    TOPIC_EXCHANGE,
    TOPIC_ORDERS_QUEUE,
)

# queue -> binding pattern on the topic exchange
TOPIC_BINDINGS = {
    TOPIC_ORDERS_QUEUE: ORDERS_BINDING,   # order.created, not order.payment.completed
    TOPIC_ERRORS_QUEUE: ERRORS_BINDING,   # system.error, not system.critical.error
    TOPIC_ALL_QUEUE: ALL_EVENTS_BINDING,  # everything
}


def declare_topology(broker: MessageBroker) -> MessageBroker:
    """Declares exchanges, binds queues and subscribes the idempotent consumers."""
    broker.declare_exchange(FANOUT_EXCHANGE, ExchangeType.FANOUT)
    for queue_name in FANOUT_QUEUES:
        broker.bind(FANOUT_EXCHANGE, queue_name)

    broker.declare_exchange(TOPIC_EXCHANGE, ExchangeType.TOPIC)
    for queue_name, pattern in TOPIC_BINDINGS.items():
        broker.bind(TOPIC_EXCHANGE, queue_name, pattern)

    for consumer in FANOUT_CONSUMERS + TOPIC_CONSUMERS:
        broker.subscribe(consumer.queue_name, consumer)

    return broker
