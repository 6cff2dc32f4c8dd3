"""Shared fixtures."""
import pytest


@pytest.fixture
def anyio_backend() -> str:
    """Deferred delivery schedules onto the asyncio event loop."""
    return "asyncio"
