# Copyright (c) Microsoft. All rights reserved.

import json
import re
from collections.abc import Mapping, MutableMapping
from typing import Any, ClassVar, Protocol, TypeVar, runtime_checkable

from ._logging import get_logger

logger = get_logger()

TClass = TypeVar("TClass", bound="SerializationMixin")
TProtocol = TypeVar("TProtocol", bound="SerializationProtocol")

_CAMEL_TO_SNAKE_PATTERN = re.compile(r"(?<!^)(?=[A-Z])")


@runtime_checkable
class SerializationProtocol(Protocol):
    """Protocol for objects that can be turned into plain dictionaries and back.

    Any class implementing both ``to_dict()`` and ``from_dict()`` satisfies this protocol,
    which is how nested values (a ``ChatMessage`` inside an event, a content inside a message)
    are serialized recursively.
    """

    def to_dict(self, **kwargs: Any) -> dict[str, Any]:
        """Convert the instance to a dictionary."""
        ...

    @classmethod
    def from_dict(cls: type[TProtocol], value: MutableMapping[str, Any], /, **kwargs: Any) -> TProtocol:
        """Create an instance from a dictionary."""
        ...


def is_serializable(value: Any) -> bool:
    """Check if a value maps directly onto a JSON type."""
    return isinstance(value, (str, int, float, bool, type(None), list, dict))


class SerializationMixin:
    """Mixin providing dictionary and JSON serialization for bridge types.

    Public instance attributes are written out, together with a ``type`` field used to pick
    the right class when reading the data back. Attributes listed in ``DEFAULT_EXCLUDE``,
    private attributes and values that cannot be represented in JSON are left out.

    Examples:
        .. code-block:: python

            from agent_bridge import ChatMessage

            message = ChatMessage(role="user", text="Approve the purchase order.")
            data = message.to_dict()
            # {"type": "chat_message", "role": {"type": "role", "value": "user"},
            #  "contents": [{"type": "text", "text": "Approve the purchase order."}], ...}

            restored = ChatMessage.from_dict(data)
            assert restored.text == "Approve the purchase order."
    """

    DEFAULT_EXCLUDE: ClassVar[set[str]] = set()

    def to_dict(self, *, exclude: set[str] | None = None, exclude_none: bool = True) -> dict[str, Any]:
        """Convert the instance and any nested objects to a dictionary.

        Keyword Args:
            exclude: Additional field names to exclude beyond ``DEFAULT_EXCLUDE``.
            exclude_none: Whether to exclude None values from the output. Defaults to True.

        Returns:
            Dictionary representation of the instance including a 'type' field.
        """
        combined_exclude = set(self.DEFAULT_EXCLUDE)
        if exclude:
            combined_exclude.update(exclude)

        result: dict[str, Any] = {} if "type" in combined_exclude else {"type": self._get_type_identifier()}
        for key, value in self.__dict__.items():
            if key in combined_exclude or key.startswith("_"):
                continue
            if exclude_none and value is None:
                continue
            if isinstance(value, SerializationProtocol):
                result[key] = value.to_dict(exclude=exclude, exclude_none=exclude_none)
                continue
            if isinstance(value, (list, set, frozenset)):
                value_as_list: list[Any] = []
                for item in value:
                    if isinstance(item, SerializationProtocol):
                        value_as_list.append(item.to_dict(exclude=exclude, exclude_none=exclude_none))
                        continue
                    if is_serializable(item):
                        value_as_list.append(item)
                        continue
                    logger.debug(
                        f"Skipping non-serializable item in list attribute '{key}' of type {type(item).__name__}"
                    )
                # sets have no stable order
                result[key] = value_as_list if isinstance(value, list) else sorted(value_as_list, key=str)
                continue
            if isinstance(value, dict):
                serialized_dict: dict[str, Any] = {}
                for k, v in value.items():
                    if isinstance(v, SerializationProtocol):
                        serialized_dict[k] = v.to_dict(exclude=exclude, exclude_none=exclude_none)
                        continue
                    if is_serializable(v):
                        serialized_dict[k] = v
                        continue
                    logger.debug(
                        f"Skipping non-serializable value for key '{k}' in dict attribute '{key}' "
                        f"of type {type(v).__name__}"
                    )
                result[key] = serialized_dict
                continue
            if is_serializable(value):
                result[key] = value
                continue
            logger.debug(f"Skipping non-serializable attribute '{key}' of type {type(value).__name__}")

        return result

    def to_json(self, *, exclude: set[str] | None = None, exclude_none: bool = True, **kwargs: Any) -> str:
        """Convert the instance to a JSON string.

        Keyword Args:
            exclude: Additional field names to exclude from serialization.
            exclude_none: Whether to exclude None values from the output. Defaults to True.
            **kwargs: Passed through to ``json.dumps()``.
        """
        return json.dumps(self.to_dict(exclude=exclude, exclude_none=exclude_none), **kwargs)

    @classmethod
    def from_dict(cls: type[TClass], value: MutableMapping[str, Any], /) -> TClass:
        """Create an instance from a dictionary.

        Args:
            value: The dictionary containing the instance data (positional-only).

        Raises:
            ValueError: If the 'type' field in the data doesn't match the class type identifier.
        """
        type_id = cls._get_type_identifier()
        if (supplied_type := value.get("type")) and supplied_type != type_id:
            raise ValueError(f"Type mismatch: expected '{type_id}', got '{supplied_type}'")

        kwargs = {k: v for k, v in value.items() if k != "type"}
        return cls(**kwargs)

    @classmethod
    def from_json(cls: type[TClass], value: str, /) -> TClass:
        """Create an instance from a JSON string.

        Raises:
            json.JSONDecodeError: If the JSON string is malformed.
            ValueError: If the parsed data has a mismatching 'type' field.
        """
        return cls.from_dict(json.loads(value))

    @classmethod
    def _get_type_identifier(cls, value: Mapping[str, Any] | None = None) -> str:
        """Get the type identifier for this class.

        The identifier is, in order: the 'type' field of ``value``, a string ``TYPE`` class
        attribute, or the class name converted to snake_case.
        """
        if value and (type_ := value.get("type")) and isinstance(type_, str):
            return type_  # type:ignore[no-any-return]
        if (type_ := getattr(cls, "TYPE", None)) and isinstance(type_, str):
            return type_  # type:ignore[no-any-return]
        return _CAMEL_TO_SNAKE_PATTERN.sub("_", cls.__name__).lower()
