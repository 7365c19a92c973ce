# Copyright (c) Microsoft. All rights reserved.

import logging
from typing import Any, Literal

logger = logging.getLogger("agent_bridge")


class AgentBridgeException(Exception):
    """Base exceptions for the agent bridge.

    Automatically logs the message as debug.
    """

    def __init__(
        self,
        message: str,
        inner_exception: Exception | None = None,
        log_level: Literal[0] | Literal[10] | Literal[20] | Literal[30] | Literal[40] | Literal[50] | None = 10,
        *args: Any,
        **kwargs: Any,
    ):
        """Create an AgentBridgeException.

        This emits a debug log (by default), with the inner_exception if provided.
        """
        if log_level is not None:
            logger.log(log_level, message, exc_info=inner_exception)
        self.inner_exception = inner_exception
        super().__init__(message, *args)  # type: ignore


class ContentError(AgentBridgeException):
    """An error occurred while processing content."""

    pass


class ContentConversionError(ContentError):
    """Content could not be converted between the runtime and the A2A part representations."""

    pass


# region Input required


class InputRequiredException(AgentBridgeException):
    """Base class for errors raised while suspending or resuming an input-required task."""

    pass


class InputRequiredProcessingError(InputRequiredException):
    """The input-required status snapshot could not be built from a runtime event."""

    pass


class ResumptionError(InputRequiredException):
    """A task waiting for input cannot be resumed with the provided message."""

    pass


class MissingFunctionResponseError(ResumptionError):
    """The resumption message does not answer a function call the task is waiting for."""

    def __init__(self, call_id: str, **kwargs: Any) -> None:
        """Create a MissingFunctionResponseError for the given function call ID."""
        self.call_id = call_id
        super().__init__(f"No input provided for function call ID '{call_id}'.", **kwargs)


# endregion

# region Settings


class ServiceInitializationError(AgentBridgeException):
    """An error occurred while initializing a service from its settings."""

    pass


class SettingNotFoundError(ServiceInitializationError):
    """A required setting could not be resolved."""

    pass


# endregion
