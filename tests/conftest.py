"""
Pytest fixtures: a real Tortoise ledger on in-memory SQLite so the unique
constraint and transactions behave as they do in deployment.
"""

from datetime import timedelta

import pytest
import pytest_asyncio
from tortoise import Tortoise, timezone

from app.broker.message_broker import MessageBroker
from app.broker.topology import declare_topology
from app.core.db import MODELS_MODULES
from app.models.processed_message import ProcessedMessage, ProcessingStatus
from app.schemas.event_message import EventMessage

TEST_DATABASE_URL = "sqlite://:memory:"


@pytest_asyncio.fixture
async def ledger():
    """Initialise the ORM against a fresh in-memory database."""
    await Tortoise.init(db_url=TEST_DATABASE_URL, modules={"models": MODELS_MODULES})
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()


@pytest.fixture
def broker():
    """Broker with the application topology, independent of the global instance."""
    return declare_topology(MessageBroker(max_delivery_attempts=3))


@pytest.fixture
def make_message():
    def _make(message_id="m1", message_type="broadcast", content="hello", source="test-suite"):
        return EventMessage(id=message_id, type=message_type, content=content, source=source)
    return _make


@pytest.fixture
def insert_record():
    """Writes a ledger row directly, with a chosen age."""
    async def _insert(message_id, queue_name, age=timedelta(0), status=ProcessingStatus.PROCESSED):
        return await ProcessedMessage.create(
            message_id=message_id,
            queue_name=queue_name,
            processed_at=timezone.now() - age,
            status=status,
            message_type="test",
        )
    return _insert
