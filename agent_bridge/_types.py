# Copyright (c) Microsoft. All rights reserved.

import base64
import json
import re
from collections.abc import Iterable, MutableMapping, Sequence
from typing import Any, ClassVar, Literal

from ._logging import get_logger
from ._serialization import SerializationMixin
from .exceptions import ContentError

__all__ = [
    "AgentRunEvent",
    "BaseContent",
    "ChatMessage",
    "Contents",
    "DataContent",
    "FunctionCallContent",
    "FunctionResultContent",
    "Role",
    "TextContent",
    "UriContent",
]

logger = get_logger("agent_bridge")

URI_PATTERN = re.compile(r"^data:(?P<media_type>[^;]+);base64,(?P<base64_data>[A-Za-z0-9+/=]+)$")


# region Content Parsing Utilities


class EnumLike(type):
    """Generic metaclass for creating enum-like classes with predefined constants.

    Each entry of the ``_constants`` class attribute becomes a class-level instance,
    built from the entry's value.
    """

    def __new__(mcs, name: str, bases: tuple[type, ...], namespace: dict[str, Any]) -> "EnumLike":
        cls = super().__new__(mcs, name, bases, namespace)

        if (const := getattr(cls, "_constants", None)) and isinstance(const, dict):
            for const_name, const_args in const.items():
                if isinstance(const_args, (list, tuple)):
                    setattr(cls, const_name, cls(*const_args))
                else:
                    setattr(cls, const_name, cls(const_args))

        return cls


def _parse_content(content_data: MutableMapping[str, Any]) -> "Contents":
    """Parse a single content dictionary into the matching content class.

    Raises:
        ContentError: If the content type is unknown.
    """
    content_type = str(content_data.get("type"))
    match content_type:
        case "text":
            return TextContent.from_dict(content_data)
        case "data":
            return DataContent.from_dict(content_data)
        case "uri":
            return UriContent.from_dict(content_data)
        case "function_call":
            return FunctionCallContent.from_dict(content_data)
        case "function_result":
            return FunctionResultContent.from_dict(content_data)
        case _:
            raise ContentError(f"Unknown content type '{content_type}'", log_level=None)


def _parse_content_list(contents_data: Sequence[Any]) -> list["Contents"]:
    """Parse a list of content dictionaries, keeping already constructed contents as they are.

    Unknown or invalid content dictionaries are logged and skipped.
    """
    contents: list["Contents"] = []
    for content_data in contents_data:
        if isinstance(content_data, dict):
            try:
                contents.append(_parse_content(content_data))
            except (ContentError, TypeError) as ex:
                logger.warning(f"Skipping unknown content type or invalid content: {ex}")
        else:
            contents.append(content_data)
    return contents


# endregion

# region Contents


class BaseContent(SerializationMixin):
    """Represents content produced or consumed by the agent runtime.

    Attributes:
        additional_properties: Optional additional properties associated with the content.
        raw_representation: Optional raw representation of the content from an underlying implementation.
    """

    DEFAULT_EXCLUDE: ClassVar[set[str]] = {"raw_representation", "additional_properties"}

    def __init__(
        self,
        *,
        additional_properties: dict[str, Any] | None = None,
        raw_representation: Any | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize BaseContent.

        Args:
            additional_properties: Optional additional properties associated with the content.
            raw_representation: Optional raw representation of the content from an underlying implementation.
            **kwargs: Additional keyword arguments (merged into additional_properties).
        """
        self.additional_properties = additional_properties or {}
        self.additional_properties.update(kwargs)
        self.raw_representation = raw_representation

    def to_dict(self, *, exclude: set[str] | None = None, exclude_none: bool = True) -> dict[str, Any]:
        """Convert the instance to a dictionary, lifting additional_properties to the root level."""
        result = super().to_dict(exclude=exclude, exclude_none=exclude_none)
        if self.additional_properties:
            result.update(self.additional_properties)
        return result


class TextContent(BaseContent):
    """Represents text content.

    Attributes:
        text: The text content.
        type: The type of content, which is always "text" for this class.
    """

    TYPE: ClassVar[str] = "text"

    def __init__(
        self,
        text: str,
        *,
        additional_properties: dict[str, Any] | None = None,
        raw_representation: Any | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            additional_properties=additional_properties,
            raw_representation=raw_representation,
            **kwargs,
        )
        self.text = text
        self.type: Literal["text"] = "text"

    def __str__(self) -> str:
        return self.text


class DataContent(BaseContent):
    """Represents binary data held inline as a base64 data URI.

    Examples:
        .. code-block:: python

            from agent_bridge import DataContent

            image = DataContent(data=b"...", media_type="image/png")
            image.uri  # "data:image/png;base64,..."
            image.get_data_bytes()  # b"..."

    Attributes:
        uri: The data URI.
        media_type: The media type of the data.
        type: The type of content, which is always "data" for this class.
    """

    TYPE: ClassVar[str] = "data"

    def __init__(
        self,
        *,
        uri: str | None = None,
        data: bytes | None = None,
        media_type: str | None = None,
        additional_properties: dict[str, Any] | None = None,
        raw_representation: Any | None = None,
        **kwargs: Any,
    ) -> None:
        """Initializes a DataContent instance from either a data URI or raw bytes.

        Args:
            uri: A base64 data URI, ``data:<media_type>;base64,<data>``.
            data: Raw bytes, requires ``media_type``.
            media_type: The media type of the data.
            additional_properties: Optional additional properties associated with the content.
            raw_representation: Optional raw representation of the content.
            **kwargs: Any additional keyword arguments.

        Raises:
            ContentError: If neither or both of ``uri`` and ``data`` are given, or the URI is not a data URI.
        """
        if (uri is None) == (data is None):
            raise ContentError("Exactly one of 'uri' or 'data' must be provided for DataContent.")
        if data is not None:
            if not media_type:
                raise ContentError("'media_type' is required when creating DataContent from bytes.")
            uri = f"data:{media_type};base64,{base64.b64encode(data).decode('utf-8')}"
        match = URI_PATTERN.match(uri or "")
        if not match:
            raise ContentError(f"Invalid data URI format: {uri}")
        super().__init__(
            additional_properties=additional_properties,
            raw_representation=raw_representation,
            **kwargs,
        )
        self.uri = uri
        self.media_type = media_type or match.group("media_type")
        self.type: Literal["data"] = "data"

    @property
    def base64_data(self) -> str:
        """The base64 encoded payload of the data URI."""
        return URI_PATTERN.match(self.uri).group("base64_data")  # type: ignore[union-attr]

    def get_data_bytes(self) -> bytes:
        """Decode the payload of the data URI."""
        return base64.b64decode(self.base64_data)


class UriContent(BaseContent):
    """Represents a reference to content stored elsewhere.

    Attributes:
        uri: The URI of the content.
        media_type: The media type of the referenced content, if known.
        type: The type of content, which is always "uri" for this class.
    """

    TYPE: ClassVar[str] = "uri"

    def __init__(
        self,
        uri: str,
        media_type: str | None = None,
        *,
        additional_properties: dict[str, Any] | None = None,
        raw_representation: Any | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            additional_properties=additional_properties,
            raw_representation=raw_representation,
            **kwargs,
        )
        self.uri = uri
        self.media_type = media_type
        self.type: Literal["uri"] = "uri"


class FunctionCallContent(BaseContent):
    """Represents a function call request.

    Attributes:
        call_id: The function call identifier.
        name: The name of the function requested.
        arguments: The arguments requested to be provided to the function.
        type: The type of content, which is always "function_call" for this class.
    """

    TYPE: ClassVar[str] = "function_call"

    def __init__(
        self,
        *,
        call_id: str,
        name: str,
        arguments: str | dict[str, Any | None] | None = None,
        additional_properties: dict[str, Any] | None = None,
        raw_representation: Any | None = None,
        **kwargs: Any,
    ) -> None:
        """Initializes a FunctionCallContent instance.

        Args:
            call_id: The function call identifier.
            name: The name of the function requested.
            arguments: The arguments requested to be provided to the function,
                either as a dict or as a JSON string.
            additional_properties: Optional additional properties associated with the content.
            raw_representation: Optional raw representation of the content.
            **kwargs: Any additional keyword arguments.
        """
        super().__init__(
            additional_properties=additional_properties,
            raw_representation=raw_representation,
            **kwargs,
        )
        self.call_id = call_id
        self.name = name
        self.arguments = arguments
        self.type: Literal["function_call"] = "function_call"

    def parse_arguments(self) -> dict[str, Any | None] | None:
        if isinstance(self.arguments, str):
            try:
                loaded = json.loads(self.arguments)
                if isinstance(loaded, dict):
                    return loaded  # type:ignore
                return {"raw": loaded}
            except (json.JSONDecodeError, TypeError):
                return {"raw": self.arguments}
        return self.arguments


class FunctionResultContent(BaseContent):
    """Represents the result of a function call.

    Attributes:
        call_id: The identifier of the function call for which this is the result.
        result: The result of the function call, or a generic error message if the function call failed.
        exception: An exception that occurred if the function call failed.
        type: The type of content, which is always "function_result" for this class.
    """

    TYPE: ClassVar[str] = "function_result"

    def __init__(
        self,
        *,
        call_id: str,
        result: Any | None = None,
        exception: Exception | None = None,
        additional_properties: dict[str, Any] | None = None,
        raw_representation: Any | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            additional_properties=additional_properties,
            raw_representation=raw_representation,
            **kwargs,
        )
        self.call_id = call_id
        self.result = result
        self.exception = exception
        self.type: Literal["function_result"] = "function_result"


Contents = TextContent | DataContent | UriContent | FunctionCallContent | FunctionResultContent

# endregion


class Role(SerializationMixin, metaclass=EnumLike):
    """Describes the intended purpose of a message.

    Properties:
        SYSTEM: The role that instructs or sets the behavior of the AI system.
        USER: The role that provides user input.
        ASSISTANT: The role of the agent answering the user.
        TOOL: The role that provides function results.
    """

    _constants: ClassVar[dict[str, str]] = {
        "SYSTEM": "system",
        "USER": "user",
        "ASSISTANT": "assistant",
        "TOOL": "tool",
    }

    SYSTEM: "Role"
    USER: "Role"
    ASSISTANT: "Role"
    TOOL: "Role"

    def __init__(self, value: str) -> None:
        self.value = value

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"Role(value={self.value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Role):
            return False
        return self.value == other.value

    def __hash__(self) -> int:
        return hash(self.value)


def _to_role(role: "Role | MutableMapping[str, Any] | str") -> Role:
    if isinstance(role, MutableMapping):
        return Role.from_dict(role)
    if isinstance(role, str):
        return Role(value=role)
    return role


class ChatMessage(SerializationMixin):
    """Represents a chat message.

    Attributes:
        role: The role of the author of the message.
        contents: The chat message content items.
        author_name: The name of the author of the message.
        message_id: The ID of the chat message.
        additional_properties: Any additional properties associated with the chat message.
        raw_representation: The raw representation of the chat message from an underlying implementation.
    """

    DEFAULT_EXCLUDE: ClassVar[set[str]] = {"raw_representation"}

    def __init__(
        self,
        role: Role | Literal["system", "user", "assistant", "tool"] | MutableMapping[str, Any],
        *,
        text: str | None = None,
        contents: Sequence[Contents | MutableMapping[str, Any]] | None = None,
        author_name: str | None = None,
        message_id: str | None = None,
        additional_properties: MutableMapping[str, Any] | None = None,
        raw_representation: Any | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize ChatMessage.

        Args:
            role: The role of the author of the message (Role, string, or dict).
            text: Optional text content of the message, appended after ``contents``.
            contents: Optional list of content items or dicts to include in the message.
            author_name: Optional name of the author of the message.
            message_id: Optional ID of the chat message.
            additional_properties: Optional additional properties associated with the chat message.
            raw_representation: Optional raw representation of the chat message.
            kwargs: will be combined with additional_properties if provided.
        """
        parsed_contents = [] if contents is None else _parse_content_list(contents)
        if text is not None:
            parsed_contents.append(TextContent(text=text))

        self.role = _to_role(role)
        self.contents = parsed_contents
        self.author_name = author_name
        self.message_id = message_id
        self.additional_properties = dict(additional_properties or {})
        self.additional_properties.update(kwargs)
        self.raw_representation = raw_representation

    @property
    def text(self) -> str:
        """Returns the text of all TextContent objects in contents, joined by spaces."""
        return " ".join(content.text for content in self.contents if isinstance(content, TextContent))

    @property
    def function_results(self) -> list[FunctionResultContent]:
        return [content for content in self.contents if isinstance(content, FunctionResultContent)]


class AgentRunEvent(SerializationMixin):
    """A single increment of activity emitted by the agent runtime during one invocation.

    Besides the contents produced by the model or by tools, an event carries the IDs of the
    function calls the runtime flagged as long-running: calls that cannot be resolved within
    the current turn and wait for a result supplied from outside the run.
    """

    DEFAULT_EXCLUDE: ClassVar[set[str]] = {"raw_representation"}

    def __init__(
        self,
        *,
        contents: Sequence[Contents | MutableMapping[str, Any]] | None = None,
        role: Role | MutableMapping[str, Any] | str | None = None,
        author_name: str | None = None,
        response_id: str | None = None,
        message_id: str | None = None,
        long_running_call_ids: Iterable[str] | None = None,
        additional_properties: MutableMapping[str, Any] | None = None,
        raw_representation: Any | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize an AgentRunEvent.

        Args:
            contents: Optional list of content items or dicts, in the order the runtime produced them.
            role: The role of the author of the event (Role, string, or dict).
            author_name: Optional name of the agent that produced the event.
            response_id: Optional ID of the response of which this event is a part.
            message_id: Optional ID of the message of which this event is a part.
            long_running_call_ids: IDs of the function calls flagged as long-running for this event.
            additional_properties: Optional additional properties associated with the event.
            raw_representation: Optional raw representation of the event from the runtime.
            kwargs: will be combined with additional_properties if provided.
        """
        self.contents = [] if contents is None else _parse_content_list(contents)
        self.role = None if role is None else _to_role(role)
        self.author_name = author_name
        self.response_id = response_id
        self.message_id = message_id
        self.long_running_call_ids: set[str] = set(long_running_call_ids or ())
        self.additional_properties = dict(additional_properties or {})
        self.additional_properties.update(kwargs)
        self.raw_representation = raw_representation

    @property
    def text(self) -> str:
        """Get the concatenated text of all TextContent objects in contents."""
        return "".join(content.text for content in self.contents if isinstance(content, TextContent))

    @property
    def function_calls(self) -> list[FunctionCallContent]:
        return [content for content in self.contents if isinstance(content, FunctionCallContent)]

    @property
    def function_results(self) -> list[FunctionResultContent]:
        return [content for content in self.contents if isinstance(content, FunctionResultContent)]

    def __str__(self) -> str:
        return self.text
