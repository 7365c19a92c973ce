# Copyright (c) Microsoft. All rights reserved.

from collections.abc import AsyncIterable
from typing import Protocol, runtime_checkable

from ._types import AgentRunEvent, ChatMessage

__all__ = ["AgentRunner"]


@runtime_checkable
class AgentRunner(Protocol):
    """The agent runtime invocation loop, as seen by the bridge.

    A runner owns its sessions: it looks the session up (or creates it) from ``user_id``
    and ``session_id``, appends ``message`` and yields the events of one invocation.
    The bridge consumes the events sequentially and stops reading once the stream ends.

    Examples:
        .. code-block:: python

            class EchoRunner:
                async def run(self, message, *, user_id, session_id):
                    yield AgentRunEvent(contents=[TextContent(message.text)], role="assistant")
    """

    def run(self, message: ChatMessage, *, user_id: str, session_id: str) -> AsyncIterable[AgentRunEvent]:
        """Run one invocation of the agent for ``message``."""
        ...
