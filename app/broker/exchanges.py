"""Exchange types and routing-key matching for the in-process broker."""

from enum import Enum
from typing import List


class ExchangeType(str, Enum):
    FANOUT = "fanout"
    TOPIC = "topic"


def topic_matches(pattern: str, routing_key: str) -> bool:
    """Match a dot-separated routing key against a topic binding pattern.

    * matches exactly one segment (order.* matches order.created, not order.payment.completed)
    # matches zero or more segments (# matches everything, order.# matches order)
    """
    return _match_segments(pattern.split("."), routing_key.split("."))


def _match_segments(pattern: List[str], key: List[str]) -> bool:
    if not pattern:
        return not key

    head, rest = pattern[0], pattern[1:]
    if head == "#":
        # Let '#' swallow 0..len(key) segments
        return any(_match_segments(rest, key[i:]) for i in range(len(key) + 1))

    if not key:
        return False
    if head == "*" or head == key[0]:
        return _match_segments(rest, key[1:])
    return False


class Binding:
    def __init__(self, queue_name: str, pattern: str = ""):
        self.queue_name = queue_name
        self.pattern = pattern

    def __repr__(self):
        return f"Binding({self.queue_name!r}, {self.pattern!r})"


class Exchange:
    """Routes a routing key to the names of the queues bound to it."""

    def __init__(self, name: str, exchange_type: ExchangeType):
        self.name = name
        self.exchange_type = exchange_type
        self.bindings: List[Binding] = []

    def bind(self, queue_name: str, pattern: str = "") -> Binding:
        if self.exchange_type == ExchangeType.TOPIC and not pattern:
            raise ValueError(f"Topic exchange {self.name} requires a binding pattern")
        binding = Binding(queue_name, pattern)
        self.bindings.append(binding)
        return binding

    def route(self, routing_key: str = "") -> List[str]:
        """Bound queue names in binding order, each at most once."""
        queues: List[str] = []
        for binding in self.bindings:
            if binding.queue_name in queues:
                continue
            # Fanout ignores the routing key entirely
            if self.exchange_type == ExchangeType.FANOUT or topic_matches(binding.pattern, routing_key):
                queues.append(binding.queue_name)
        return queues
