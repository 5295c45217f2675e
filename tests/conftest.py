"""
Pytest configuration and shared fixtures for the test suite.
"""

from typing import Any, Dict, Hashable, List, Optional

import pytest
import pytest_asyncio

from jobboard.board.context import RequestContext, create_request_context
from jobboard.config import BoardConfig
from jobboard.core.loader import BatchLoader
from jobboard.state.database import Database


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config(tmp_path) -> BoardConfig:
    """Create a test configuration backed by a temporary SQLite file."""
    return BoardConfig(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'jobboard.db'}",
        default_page_limit=10,
        max_page_limit=50,
        log_level="DEBUG",
    )


# ============================================================================
# Fake Batch Functions
# ============================================================================

class RecordingBatchFn:
    """
    Async batch function over an in-memory table.

    Records the keys of every call so tests can assert how lookups were
    batched.
    """

    def __init__(self, table: Optional[Dict[Hashable, Any]] = None):
        self.table = dict(table or {})
        self.calls: List[List[Any]] = []
        self.fail_with: Optional[Exception] = None
        self.override: Optional[Any] = None

    async def __call__(self, keys: List[Any]) -> Any:
        self.calls.append(list(keys))
        if self.fail_with is not None:
            raise self.fail_with
        if self.override is not None:
            return self.override
        return [self.table.get(key) for key in keys]

    @property
    def call_count(self) -> int:
        return len(self.calls)


@pytest.fixture
def batch_fn() -> RecordingBatchFn:
    """Batch function over the table {1: "A", 2: "B"}."""
    return RecordingBatchFn({1: "A", 2: "B"})


@pytest.fixture
def loader(batch_fn) -> BatchLoader:
    """Loader with default options over ``batch_fn``."""
    return BatchLoader(batch_fn)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def database(test_config):
    """Connected database with the sample companies and jobs."""
    db = Database(test_config)
    await db.connect()
    await db.seed_sample_data()
    yield db
    await db.disconnect()


@pytest_asyncio.fixture
async def empty_database(test_config):
    """Connected database without any rows."""
    db = Database(test_config)
    await db.connect()
    yield db
    await db.disconnect()


@pytest.fixture
def facegle_auth() -> dict:
    """Claims of a user working for Facegle."""
    return {"sub": "alice@facegle.io", "company_id": "FjcJCHJALA4i"}


@pytest.fixture
def anonymous_context(database, test_config) -> RequestContext:
    """Request context without authentication."""
    return create_request_context(database, config=test_config)


@pytest.fixture
def facegle_context(database, test_config, facegle_auth) -> RequestContext:
    """Request context authenticated as a Facegle user."""
    return create_request_context(database, auth=facegle_auth, config=test_config)
