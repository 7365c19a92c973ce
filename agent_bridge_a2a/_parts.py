# Copyright (c) Microsoft. All rights reserved.

from __future__ import annotations

import json
import uuid
from collections.abc import Collection, Sequence
from typing import Any, Final

from a2a.types import DataPart, FilePart, FileWithBytes, FileWithUri, TextPart
from a2a.types import Message as A2AMessage
from a2a.types import Part as A2APart
from a2a.types import Role as A2ARole
from agent_bridge import (
    ChatMessage,
    Contents,
    DataContent,
    FunctionCallContent,
    FunctionResultContent,
    Role,
    SerializationProtocol,
    TextContent,
    UriContent,
)
from agent_bridge.exceptions import ContentConversionError, ContentError

__all__ = [
    "A2A_DATA_PART_METADATA_IS_LONG_RUNNING_KEY",
    "A2A_DATA_PART_METADATA_TYPE_KEY",
    "A2A_DATA_PART_TYPE_FUNCTION_CALL",
    "A2A_DATA_PART_TYPE_FUNCTION_RESPONSE",
    "get_function_call_id",
    "to_a2a_message",
    "to_a2a_parts",
    "to_agent_contents",
    "to_chat_message",
]

A2A_DATA_PART_METADATA_TYPE_KEY: Final[str] = "agent_bridge_type"
A2A_DATA_PART_METADATA_IS_LONG_RUNNING_KEY: Final[str] = "agent_bridge_is_long_running"
A2A_DATA_PART_TYPE_FUNCTION_CALL: Final[str] = "function_call"
A2A_DATA_PART_TYPE_FUNCTION_RESPONSE: Final[str] = "function_response"

DEFAULT_MEDIA_TYPE: Final[str] = "application/octet-stream"


def _inner_part(part: A2APart | TextPart | FilePart | DataPart) -> TextPart | FilePart | DataPart:
    return part.root if isinstance(part, A2APart) else part


def get_function_call_id(part: A2APart | TextPart | FilePart | DataPart) -> str | None:
    """Return the call ID of an A2A part that records a function call, or None for any other part."""
    inner_part = _inner_part(part)
    if not isinstance(inner_part, DataPart) or not inner_part.metadata:
        return None
    if inner_part.metadata.get(A2A_DATA_PART_METADATA_TYPE_KEY) != A2A_DATA_PART_TYPE_FUNCTION_CALL:
        return None
    call_id = inner_part.data.get("id")
    return call_id if isinstance(call_id, str) else None


def _to_json_payload(result: Any) -> Any:
    """Turn a function payload into a value that can be written as JSON, falling back to its string form."""
    if isinstance(result, SerializationProtocol):
        return _to_json_payload(result.to_dict())
    if isinstance(result, (list, tuple)):
        return [_to_json_payload(item) for item in result]
    if isinstance(result, dict):
        return {str(key): _to_json_payload(value) for key, value in result.items()}
    if result is None or isinstance(result, (str, int, float, bool)):
        return result
    return str(result)


def to_a2a_parts(
    contents: Sequence[Contents],
    long_running_call_ids: Collection[str] | None = None,
) -> list[A2APart]:
    """Convert agent contents into A2A parts.

    Function calls and function results become ``DataPart`` objects whose metadata records
    the kind of the part, so that the contents can be rebuilt from a stored A2A message.
    Calls listed in ``long_running_call_ids`` are additionally marked as long-running.

    Args:
        contents: The contents to convert, in order.
        long_running_call_ids: IDs of the function calls flagged as long-running.

    Raises:
        ContentConversionError: If a content cannot be represented as an A2A part.
    """
    long_running_call_ids = long_running_call_ids or ()
    parts: list[A2APart] = []
    for content in contents:
        content_type = getattr(content, "type", type(content).__name__)
        match content_type:
            case "text":
                parts.append(
                    A2APart(root=TextPart(text=content.text, metadata=content.additional_properties or None))
                )
            case "data":
                parts.append(
                    A2APart(
                        root=FilePart(
                            file=FileWithBytes(bytes=content.base64_data, mime_type=content.media_type),
                            metadata=content.additional_properties or None,
                        )
                    )
                )
            case "uri":
                parts.append(
                    A2APart(
                        root=FilePart(
                            file=FileWithUri(uri=content.uri, mime_type=content.media_type),
                            metadata=content.additional_properties or None,
                        )
                    )
                )
            case "function_call":
                if not content.call_id:
                    raise ContentConversionError(f"Function call '{content.name}' has no call ID.")
                metadata: dict[str, Any] = {A2A_DATA_PART_METADATA_TYPE_KEY: A2A_DATA_PART_TYPE_FUNCTION_CALL}
                if content.call_id in long_running_call_ids:
                    metadata[A2A_DATA_PART_METADATA_IS_LONG_RUNNING_KEY] = True
                parts.append(
                    A2APart(
                        root=DataPart(
                            data={
                                "id": content.call_id,
                                "name": content.name,
                                "args": _to_json_payload(content.parse_arguments() or {}),
                            },
                            metadata=metadata,
                        )
                    )
                )
            case "function_result":
                if not content.call_id:
                    raise ContentConversionError("Function result has no call ID.")
                data: dict[str, Any] = {"id": content.call_id, "response": _to_json_payload(content.result)}
                if content.exception is not None:
                    data["error"] = str(content.exception)
                parts.append(
                    A2APart(
                        root=DataPart(
                            data=data,
                            metadata={A2A_DATA_PART_METADATA_TYPE_KEY: A2A_DATA_PART_TYPE_FUNCTION_RESPONSE},
                        )
                    )
                )
            case _:
                raise ContentConversionError(f"Unsupported content type: {content_type}")
    return parts


def _function_contents_from_data_part(part: DataPart, part_type: str) -> Contents:
    call_id = part.data.get("id")
    if not isinstance(call_id, str) or not call_id:
        raise ContentConversionError(f"A2A {part_type} part is missing a string 'id': {part.data}")
    if part_type == A2A_DATA_PART_TYPE_FUNCTION_CALL:
        name = part.data.get("name")
        if not isinstance(name, str):
            raise ContentConversionError(f"A2A function_call part '{call_id}' is missing a string 'name'.")
        return FunctionCallContent(
            call_id=call_id, name=name, arguments=part.data.get("args"), raw_representation=part
        )
    error = part.data.get("error")
    return FunctionResultContent(
        call_id=call_id,
        result=part.data.get("response"),
        exception=Exception(error) if isinstance(error, str) else None,
        raw_representation=part,
    )


def to_agent_contents(parts: Sequence[A2APart | TextPart | FilePart | DataPart]) -> list[Contents]:
    """Convert A2A parts into agent contents.

    This is the inverse of :func:`to_a2a_parts`. Data parts without a function type marker
    are kept as their JSON text.

    Raises:
        ContentConversionError: If a part cannot be converted.
    """
    contents: list[Contents] = []
    for part in parts:
        inner_part = _inner_part(part)
        match inner_part.kind:
            case "text":
                contents.append(
                    TextContent(
                        text=inner_part.text,
                        additional_properties=inner_part.metadata,
                        raw_representation=inner_part,
                    )
                )
            case "file":
                if isinstance(inner_part.file, FileWithUri):
                    contents.append(
                        UriContent(
                            uri=inner_part.file.uri,
                            media_type=inner_part.file.mime_type,
                            additional_properties=inner_part.metadata,
                            raw_representation=inner_part,
                        )
                    )
                    continue
                media_type = inner_part.file.mime_type or DEFAULT_MEDIA_TYPE
                try:
                    contents.append(
                        DataContent(
                            uri=f"data:{media_type};base64,{inner_part.file.bytes}",
                            additional_properties=inner_part.metadata,
                            raw_representation=inner_part,
                        )
                    )
                except ContentError as ex:
                    raise ContentConversionError("Failed to convert A2A file part.", inner_exception=ex) from ex
            case "data":
                part_type = (inner_part.metadata or {}).get(A2A_DATA_PART_METADATA_TYPE_KEY)
                if part_type in (A2A_DATA_PART_TYPE_FUNCTION_CALL, A2A_DATA_PART_TYPE_FUNCTION_RESPONSE):
                    contents.append(_function_contents_from_data_part(inner_part, part_type))
                    continue
                contents.append(
                    TextContent(
                        text=json.dumps(inner_part.data),
                        additional_properties=inner_part.metadata,
                        raw_representation=inner_part,
                    )
                )
            case _:
                raise ContentConversionError(f"Unknown Part kind: {inner_part.kind}")
    return contents


def to_chat_message(message: A2AMessage) -> ChatMessage:
    """Convert an A2A message into a ChatMessage, mapping the agent role to assistant."""
    return ChatMessage(
        role=Role.ASSISTANT if message.role == A2ARole.agent else Role.USER,
        contents=to_agent_contents(message.parts),
        message_id=message.message_id,
        additional_properties=message.metadata,
        raw_representation=message,
    )


def to_a2a_message(
    message: ChatMessage,
    *,
    task_id: str | None = None,
    context_id: str | None = None,
    long_running_call_ids: Collection[str] | None = None,
) -> A2AMessage:
    """Convert a ChatMessage into an A2A message, mapping the assistant role to agent.

    Raises:
        ContentConversionError: If a content cannot be represented as an A2A part.
    """
    return A2AMessage(
        role=A2ARole.agent if message.role == Role.ASSISTANT else A2ARole.user,
        parts=to_a2a_parts(message.contents, long_running_call_ids),
        message_id=message.message_id or uuid.uuid4().hex,
        task_id=task_id,
        context_id=context_id,
        metadata=message.additional_properties or None,
    )
