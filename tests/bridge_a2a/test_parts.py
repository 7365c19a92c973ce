# Copyright (c) Microsoft. All rights reserved.

import json
from datetime import datetime

from a2a.types import DataPart, FilePart, FileWithBytes, FileWithUri, Part, TextPart
from a2a.types import Message as A2AMessage
from a2a.types import Role as A2ARole
from pytest import mark, raises

from agent_bridge import (
    ChatMessage,
    DataContent,
    FunctionCallContent,
    FunctionResultContent,
    Role,
    TextContent,
    UriContent,
)
from agent_bridge.exceptions import ContentConversionError
from agent_bridge_a2a._parts import (
    A2A_DATA_PART_METADATA_IS_LONG_RUNNING_KEY,
    A2A_DATA_PART_METADATA_TYPE_KEY,
    A2A_DATA_PART_TYPE_FUNCTION_CALL,
    A2A_DATA_PART_TYPE_FUNCTION_RESPONSE,
    get_function_call_id,
    to_a2a_message,
    to_a2a_parts,
    to_agent_contents,
    to_chat_message,
)


def test_text_content_to_text_part():
    parts = to_a2a_parts([TextContent("Checking the budget.")])

    assert len(parts) == 1
    assert isinstance(parts[0].root, TextPart)
    assert parts[0].root.text == "Checking the budget."
    assert parts[0].root.metadata is None


def test_function_call_to_data_part():
    call = FunctionCallContent(call_id="call-1", name="request_approval", arguments='{"amount": 2000}')

    part = to_a2a_parts([call])[0].root

    assert isinstance(part, DataPart)
    assert part.data == {"id": "call-1", "name": "request_approval", "args": {"amount": 2000}}
    assert part.metadata == {A2A_DATA_PART_METADATA_TYPE_KEY: A2A_DATA_PART_TYPE_FUNCTION_CALL}


def test_long_running_function_call_is_marked():
    calls = [
        FunctionCallContent(call_id="call-1", name="request_approval"),
        FunctionCallContent(call_id="call-2", name="lookup_budget"),
    ]

    parts = to_a2a_parts(calls, long_running_call_ids={"call-1"})

    assert parts[0].root.metadata[A2A_DATA_PART_METADATA_IS_LONG_RUNNING_KEY] is True
    assert A2A_DATA_PART_METADATA_IS_LONG_RUNNING_KEY not in parts[1].root.metadata
    assert parts[0].root.data["args"] == {}


def test_function_result_to_data_part():
    result = FunctionResultContent(call_id="call-1", result={"approved": True})

    part = to_a2a_parts([result])[0].root

    assert isinstance(part, DataPart)
    assert part.data == {"id": "call-1", "response": {"approved": True}}
    assert part.metadata == {A2A_DATA_PART_METADATA_TYPE_KEY: A2A_DATA_PART_TYPE_FUNCTION_RESPONSE}


def test_function_result_with_exception_records_error():
    result = FunctionResultContent(call_id="call-1", result=None, exception=RuntimeError("approver offline"))

    part = to_a2a_parts([result])[0].root

    assert part.data == {"id": "call-1", "response": None, "error": "approver offline"}


def test_function_result_error_survives_round_trip():
    result = FunctionResultContent(call_id="call-1", exception=RuntimeError("approver offline"))

    restored = to_agent_contents(to_a2a_parts([result]))[0]

    assert isinstance(restored, FunctionResultContent)
    assert restored.result is None
    assert isinstance(restored.exception, Exception)
    assert str(restored.exception) == "approver offline"


def test_function_result_without_error_has_no_exception():
    restored = to_agent_contents(to_a2a_parts([FunctionResultContent(call_id="call-1", result="ok")]))[0]

    assert restored.exception is None


def test_function_result_with_non_json_payload_is_stringified():
    class Invoice:
        def __str__(self) -> str:
            return "invoice #42"

    due = datetime(2026, 1, 31, 12, 0)
    result = FunctionResultContent(
        call_id="call-1", result={"invoice": Invoice(), "due": due, "lines": (1, 2), 7: "seven"}
    )

    part = to_a2a_parts([result])[0].root

    assert part.data["response"] == {"invoice": "invoice #42", "due": str(due), "lines": [1, 2], "7": "seven"}
    assert json.loads(part.model_dump_json())["data"]["response"]["invoice"] == "invoice #42"


def test_function_result_with_object_payload_can_be_dumped():
    class Quote:
        pass

    part = to_a2a_parts([FunctionResultContent(call_id="call-1", result=Quote())])[0].root

    assert isinstance(part.data["response"], str)
    assert json.loads(part.model_dump_json())["data"]["id"] == "call-1"


def test_function_result_with_content_payload():
    result = FunctionResultContent(call_id="call-1", result=[TextContent("approved")])

    part = to_a2a_parts([result])[0].root

    assert part.data["response"] == [{"type": "text", "text": "approved"}]


def test_data_content_to_file_part():
    content = DataContent(data=b"quote", media_type="application/pdf")

    part = to_a2a_parts([content])[0].root

    assert isinstance(part, FilePart)
    assert isinstance(part.file, FileWithBytes)
    assert part.file.bytes == content.base64_data
    assert part.file.mime_type == "application/pdf"


def test_uri_content_to_file_part():
    part = to_a2a_parts([UriContent("https://example.com/quote.pdf", "application/pdf")])[0].root

    assert isinstance(part, FilePart)
    assert isinstance(part.file, FileWithUri)
    assert part.file.uri == "https://example.com/quote.pdf"


@mark.parametrize(
    "content",
    [
        FunctionCallContent(call_id="", name="request_approval"),
        FunctionResultContent(call_id="", result="ok"),
    ],
)
def test_function_content_without_call_id_fails(content):
    with raises(ContentConversionError):
        to_a2a_parts([content])


def test_unsupported_content_fails():
    class UnknownContent:
        type = "hologram"

    with raises(ContentConversionError, match="Unsupported content type: hologram"):
        to_a2a_parts([UnknownContent()])


def test_to_agent_contents_restores_function_contents():
    contents = [
        TextContent("Approval needed."),
        FunctionCallContent(call_id="call-1", name="request_approval", arguments={"amount": 2000}),
        FunctionResultContent(call_id="call-1", result={"approved": False}),
    ]

    restored = to_agent_contents(to_a2a_parts(contents, long_running_call_ids={"call-1"}))

    assert isinstance(restored[0], TextContent)
    assert restored[0].text == "Approval needed."
    assert isinstance(restored[1], FunctionCallContent)
    assert (restored[1].call_id, restored[1].name, restored[1].arguments) == (
        "call-1",
        "request_approval",
        {"amount": 2000},
    )
    assert isinstance(restored[2], FunctionResultContent)
    assert restored[2].result == {"approved": False}


def test_to_agent_contents_file_parts():
    parts = [
        Part(root=FilePart(file=FileWithBytes(bytes="cXVvdGU=", mime_type="application/pdf"))),
        Part(root=FilePart(file=FileWithUri(uri="https://example.com/quote.pdf", mime_type="application/pdf"))),
    ]

    contents = to_agent_contents(parts)

    assert isinstance(contents[0], DataContent)
    assert contents[0].get_data_bytes() == b"quote"
    assert isinstance(contents[1], UriContent)
    assert contents[1].uri == "https://example.com/quote.pdf"


def test_to_agent_contents_unmarked_data_part_becomes_text():
    contents = to_agent_contents([DataPart(data={"status": "ok"})])

    assert isinstance(contents[0], TextContent)
    assert json.loads(contents[0].text) == {"status": "ok"}


def test_to_agent_contents_function_call_without_id_fails():
    part = DataPart(
        data={"name": "request_approval"},
        metadata={A2A_DATA_PART_METADATA_TYPE_KEY: A2A_DATA_PART_TYPE_FUNCTION_CALL},
    )

    with raises(ContentConversionError, match="missing a string 'id'"):
        to_agent_contents([part])


def test_to_agent_contents_function_call_without_name_fails():
    part = DataPart(
        data={"id": "call-1"},
        metadata={A2A_DATA_PART_METADATA_TYPE_KEY: A2A_DATA_PART_TYPE_FUNCTION_CALL},
    )

    with raises(ContentConversionError, match="missing a string 'name'"):
        to_agent_contents([part])


@mark.parametrize(
    "part, expected",
    [
        (
            Part(
                root=DataPart(
                    data={"id": "call-1", "name": "request_approval"},
                    metadata={A2A_DATA_PART_METADATA_TYPE_KEY: A2A_DATA_PART_TYPE_FUNCTION_CALL},
                )
            ),
            "call-1",
        ),
        (
            DataPart(
                data={"id": "call-1", "response": "ok"},
                metadata={A2A_DATA_PART_METADATA_TYPE_KEY: A2A_DATA_PART_TYPE_FUNCTION_RESPONSE},
            ),
            None,
        ),
        (DataPart(data={"id": "call-1"}), None),
        (
            DataPart(data={"id": 7}, metadata={A2A_DATA_PART_METADATA_TYPE_KEY: A2A_DATA_PART_TYPE_FUNCTION_CALL}),
            None,
        ),
        (Part(root=TextPart(text="call-1")), None),
    ],
)
def test_get_function_call_id(part, expected):
    assert get_function_call_id(part) == expected


def test_to_chat_message_maps_roles():
    agent_message = A2AMessage(role=A2ARole.agent, parts=[Part(root=TextPart(text="hi"))], message_id="m-1")
    user_message = A2AMessage(role=A2ARole.user, parts=[Part(root=TextPart(text="hello"))], message_id="m-2")

    assert to_chat_message(agent_message).role == Role.ASSISTANT
    assert to_chat_message(user_message).role == Role.USER
    assert to_chat_message(user_message).message_id == "m-2"
    assert to_chat_message(user_message).text == "hello"


def test_to_chat_message_collects_function_results():
    message = A2AMessage(
        role=A2ARole.user,
        parts=to_a2a_parts([FunctionResultContent(call_id="call-1", result={"approved": True})]),
        message_id="m-1",
    )

    chat_message = to_chat_message(message)

    assert [result.call_id for result in chat_message.function_results] == ["call-1"]


def test_to_a2a_message():
    message = ChatMessage(
        role=Role.ASSISTANT,
        contents=[FunctionCallContent(call_id="call-1", name="request_approval")],
    )

    a2a_message = to_a2a_message(message, task_id="task-1", context_id="ctx-1", long_running_call_ids={"call-1"})

    assert a2a_message.role == A2ARole.agent
    assert a2a_message.message_id
    assert a2a_message.task_id == "task-1"
    assert a2a_message.context_id == "ctx-1"
    assert a2a_message.parts[0].root.metadata[A2A_DATA_PART_METADATA_IS_LONG_RUNNING_KEY] is True


def test_to_a2a_message_keeps_message_id():
    message = ChatMessage(role=Role.USER, text="hello", message_id="msg-9")

    a2a_message = to_a2a_message(message)

    assert a2a_message.role == A2ARole.user
    assert a2a_message.message_id == "msg-9"
