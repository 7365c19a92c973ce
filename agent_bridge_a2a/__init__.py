# Copyright (c) Microsoft. All rights reserved.

import importlib.metadata

from ._executor import A2AAgentExecutor, A2AExecutorSettings
from ._input_required import InputRequiredProcessor, validate_input_required_resumption
from ._parts import to_a2a_message, to_a2a_parts, to_agent_contents, to_chat_message

try:
    __version__ = importlib.metadata.version("agent-bridge")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0"  # Fallback for development mode

__all__ = [
    "A2AAgentExecutor",
    "A2AExecutorSettings",
    "InputRequiredProcessor",
    "__version__",
    "to_a2a_message",
    "to_a2a_parts",
    "to_agent_contents",
    "to_chat_message",
    "validate_input_required_resumption",
]
