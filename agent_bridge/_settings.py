# Copyright (c) Microsoft. All rights reserved.

"""Settings loader with environment variable resolution.

``load_settings()`` populates a ``TypedDict`` from explicit overrides, environment
variables and ``.env`` files.

Usage::

    class ExecutorSettings(TypedDict, total=False):
        app_name: str | None
        user_id: str | None


    settings = load_settings(
        ExecutorSettings,
        env_prefix="AGENT_BRIDGE_A2A_",
        required_fields=["app_name"],
        user_id="operator",
    )
    settings["app_name"]  # read from AGENT_BRIDGE_A2A_APP_NAME
"""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence
from contextlib import suppress
from typing import Any, get_args, get_origin, get_type_hints

from dotenv import load_dotenv

from .exceptions import ServiceInitializationError, SettingNotFoundError

if sys.version_info >= (3, 13):
    from typing import TypeVar  # type: ignore # pragma: no cover
else:
    from typing_extensions import TypeVar  # type: ignore # pragma: no cover

__all__ = ["load_settings"]

SettingsT = TypeVar("SettingsT", default=dict[str, Any])


def _coerce_value(value: str, target_type: Any) -> Any:
    """Coerce a string value read from the environment to the target type."""
    args = get_args(target_type)

    # Optional[X]: try each non-None arm
    if args and type(None) in args:
        for arg in args:
            if arg is not type(None):
                with suppress(ValueError, TypeError):
                    return _coerce_value(value, arg)
        return value

    if target_type is str:
        return value
    if target_type is int:
        return int(value)
    if target_type is float:
        return float(value)
    if target_type is bool:
        return value.lower() in ("true", "1", "yes", "on")
    return value


def _check_override_type(value: Any, field_type: Any, field_name: str) -> None:
    """Raise ``ServiceInitializationError`` when an override clearly does not match its field."""
    args = get_args(field_type)
    if get_origin(field_type) is not None and args:
        allowed = tuple(a for a in args if isinstance(a, type) and a is not type(None))
    elif isinstance(field_type, type):
        allowed = (field_type,)
    else:
        return

    if not allowed or isinstance(value, allowed):
        return
    # int is accepted where a float is expected
    if isinstance(value, int) and float in allowed:
        return

    allowed_names = ", ".join(t.__name__ for t in allowed)
    raise ServiceInitializationError(
        f"Invalid type for setting '{field_name}': expected {allowed_names}, got {type(value).__name__}."
    )


def load_settings(
    settings_type: type[SettingsT],
    *,
    env_prefix: str = "",
    env_file_path: str | None = None,
    env_file_encoding: str | None = None,
    required_fields: Sequence[str] | None = None,
    **overrides: Any,
) -> SettingsT:
    """Load settings from explicit overrides, environment variables and a ``.env`` file.

    Values are resolved in this order (highest priority first):

    1. Explicit keyword *overrides* (``None`` values are ignored).
    2. Environment variables (``<env_prefix><FIELD_NAME>``).
    3. A ``.env`` file (loaded via ``python-dotenv``; existing env vars take precedence).
    4. Class-level defaults on the TypedDict, or ``None``.

    Args:
        settings_type: A ``TypedDict`` class describing the settings schema.
        env_prefix: Prefix for environment variable lookup (e.g. ``"AGENT_BRIDGE_A2A_"``).
        env_file_path: Path to the ``.env`` file. Defaults to ``".env"``.
        env_file_encoding: Encoding of the ``.env`` file. Defaults to ``"utf-8"``.
        required_fields: Field names that must resolve to a non-``None`` value.
        **overrides: Field values that win over every other source.

    Returns:
        A populated dict matching *settings_type*.

    Raises:
        SettingNotFoundError: If a required field could not be resolved.
        ServiceInitializationError: If an override value has an incompatible type.
    """
    env_path = env_file_path or ".env"
    if os.path.isfile(env_path):
        load_dotenv(dotenv_path=env_path, encoding=env_file_encoding or "utf-8")

    overrides = {k: v for k, v in overrides.items() if v is not None}
    hints = get_type_hints(settings_type)

    result: dict[str, Any] = {}
    for field_name, field_type in hints.items():
        if field_name in overrides:
            _check_override_type(overrides[field_name], field_type, field_name)
            result[field_name] = overrides[field_name]
            continue

        env_value = os.getenv(f"{env_prefix}{field_name.upper()}")
        if env_value is not None:
            try:
                result[field_name] = _coerce_value(env_value, field_type)
            except (ValueError, TypeError):
                result[field_name] = env_value
            continue

        result[field_name] = getattr(settings_type, field_name, None)

    for field_name in required_fields or ():
        if result.get(field_name) is None:
            raise SettingNotFoundError(
                f"Required setting '{field_name}' was not provided. "
                f"Set it via the '{field_name}' parameter or the "
                f"'{env_prefix}{field_name.upper()}' environment variable."
            )

    return result  # type: ignore[return-value]
