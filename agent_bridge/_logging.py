# Copyright (c) Microsoft. All rights reserved.

import logging

from .exceptions import AgentBridgeException

__all__ = ["get_logger", "setup_logging"]

_LOG_FORMAT = "[%(asctime)s - %(pathname)s:%(lineno)d - %(levelname)s] %(message)s"
_HANDLER_MARKER = "_agent_bridge_handler"


def setup_logging(level: int = logging.INFO) -> None:
    """Send agent bridge log records to stderr.

    A stream handler is attached to the "agent_bridge" logger once; later calls only change the level.
    The root logger and the handlers of the host application are left alone.

    Args:
        level: The level of the "agent_bridge" logger.
    """
    logger = logging.getLogger("agent_bridge")
    logger.setLevel(level)
    if any(getattr(handler, _HANDLER_MARKER, False) for handler in logger.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    setattr(handler, _HANDLER_MARKER, True)
    logger.addHandler(handler)


def get_logger(name: str = "agent_bridge") -> logging.Logger:
    """Get a logger with the specified name, defaulting to 'agent_bridge'.

    Args:
        name (str): The name of the logger. Defaults to 'agent_bridge'.

    Returns:
        logging.Logger: The configured logger instance.
    """
    if not name.startswith("agent_bridge"):
        raise AgentBridgeException("Logger name must start with 'agent_bridge'.")
    return logging.getLogger(name)
