# Copyright (c) Microsoft. All rights reserved.

import importlib.metadata

try:
    __version__ = importlib.metadata.version("agent-bridge")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0"  # Fallback for development mode

from ._logging import get_logger, setup_logging
from ._runtime import AgentRunner
from ._serialization import SerializationMixin, SerializationProtocol
from ._settings import load_settings
from ._types import (
    AgentRunEvent,
    BaseContent,
    ChatMessage,
    Contents,
    DataContent,
    FunctionCallContent,
    FunctionResultContent,
    Role,
    TextContent,
    UriContent,
)

__all__ = [
    "AgentRunEvent",
    "AgentRunner",
    "BaseContent",
    "ChatMessage",
    "Contents",
    "DataContent",
    "FunctionCallContent",
    "FunctionResultContent",
    "Role",
    "SerializationMixin",
    "SerializationProtocol",
    "TextContent",
    "UriContent",
    "__version__",
    "get_logger",
    "load_settings",
    "setup_logging",
]
