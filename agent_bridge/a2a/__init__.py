# Copyright (c) Microsoft. All rights reserved.

import importlib
from typing import Any

PACKAGE_NAME = "agent_bridge_a2a"
_IMPORTS = [
    "A2AAgentExecutor",
    "A2AExecutorSettings",
    "InputRequiredProcessor",
    "to_a2a_message",
    "to_a2a_parts",
    "to_agent_contents",
    "to_chat_message",
    "validate_input_required_resumption",
]


def __getattr__(name: str) -> Any:
    if name in _IMPORTS:
        try:
            return getattr(importlib.import_module(PACKAGE_NAME), name)
        except ModuleNotFoundError as exc:
            raise ModuleNotFoundError(
                f"The a2a-sdk package is required to use `{name}`, please do `pip install a2a-sdk`"
            ) from exc
    raise AttributeError(f"Module `a2a` has no attribute {name}.")


def __dir__() -> list[str]:
    return _IMPORTS
