# Copyright (c) Microsoft. All rights reserved.

from unittest.mock import AsyncMock, MagicMock

from pytest import fixture
from utils_bridge_a2a import MockAgentRunner


@fixture
def mock_runner() -> MockAgentRunner:
    return MockAgentRunner()


@fixture
def event_queue() -> MagicMock:
    """Event queue recording every published event."""
    queue = MagicMock()
    queue.enqueue_event = AsyncMock()
    return queue
