"""In-memory doubles for the store drivers and adapters."""

from tests.mocks.adapter import MemoryAdapter
from tests.mocks.nosql import FakeMotorClient, FakeRedis
from tests.mocks.sql import MockAsyncConnection, MockAsyncEngine, MockResult

__all__ = [
    "FakeMotorClient",
    "FakeRedis",
    "MemoryAdapter",
    "MockAsyncConnection",
    "MockAsyncEngine",
    "MockResult",
]
