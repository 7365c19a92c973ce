# Copyright (c) Microsoft. All rights reserved.

from __future__ import annotations

import uuid

from a2a.types import Message as A2AMessage
from a2a.types import Part as A2APart
from a2a.types import Role as A2ARole
from a2a.types import Task, TaskState, TaskStatus, TaskStatusUpdateEvent
from agent_bridge import AgentRunEvent, ChatMessage, Contents, FunctionCallContent, FunctionResultContent, get_logger
from agent_bridge.exceptions import (
    ContentConversionError,
    InputRequiredProcessingError,
    MissingFunctionResponseError,
    ResumptionError,
)

from ._parts import get_function_call_id, to_a2a_parts, to_agent_contents

__all__ = ["InputRequiredProcessor", "validate_input_required_resumption"]

logger = get_logger("agent_bridge.a2a")


class InputRequiredProcessor:
    """Builds the input-required status of a task from the events of one agent run.

    The first event that contains a long-running function call creates a final
    ``input-required`` status update whose message holds that call. Later long-running calls,
    and responses to calls already recorded in that message, are appended to the same status
    update. Once the run ends, :attr:`event` is the status to publish for the task, or None
    when the run was not suspended.

    A processor belongs to a single run and is not shared between tasks.

    Examples:
        .. code-block:: python

            processor = InputRequiredProcessor(task_id=context.task_id, context_id=context.context_id)
            async for event in runner.run(message, user_id=user_id, session_id=session_id):
                processor.process(event)
            if processor.event is not None:
                await event_queue.enqueue_event(processor.event)
    """

    def __init__(self, task_id: str, context_id: str) -> None:
        """Initialize the processor for the task the run belongs to.

        Args:
            task_id: The A2A task ID the status update is published for.
            context_id: The A2A context ID of the task.
        """
        self.task_id = task_id
        self.context_id = context_id
        self._event: TaskStatusUpdateEvent | None = None

    @property
    def event(self) -> TaskStatusUpdateEvent | None:
        """The input-required status update built so far, if any."""
        return self._event

    @property
    def has_snapshot(self) -> bool:
        """Whether a long-running call has been recorded during this run."""
        return self._event is not None

    @property
    def pending_call_ids(self) -> list[str]:
        """IDs of the function calls recorded in the status message, in the order they were recorded."""
        if self._event is None or self._event.status.message is None:
            return []
        return [
            call_id for part in self._event.status.message.parts if (call_id := get_function_call_id(part)) is not None
        ]

    def process(self, event: AgentRunEvent) -> None:
        """Record the long-running function calls and responses contained in ``event``.

        A function call is recorded when its ID is flagged long-running on the event. A function
        result is recorded when it answers a call that is already recorded, either in the status
        message or earlier in the same event.

        Raises:
            InputRequiredProcessingError: If the recorded contents cannot be converted to A2A parts.
                The status update is left as it was.
        """
        if not event.contents:
            return

        recorded_call_ids = set(self.pending_call_ids)
        input_required_contents: list[Contents] = []
        for content in event.contents:
            if isinstance(content, FunctionCallContent) and content.call_id in event.long_running_call_ids:
                input_required_contents.append(content)
                recorded_call_ids.add(content.call_id)
                continue
            if isinstance(content, FunctionResultContent) and content.call_id in recorded_call_ids:
                input_required_contents.append(content)

        if not input_required_contents:
            return

        try:
            parts = to_a2a_parts(input_required_contents, event.long_running_call_ids)
        except ContentConversionError as ex:
            raise InputRequiredProcessingError(
                "Failed to convert input required contents to A2A parts.", inner_exception=ex
            ) from ex

        if self._event is not None and self._event.status.message is not None:
            self._event.status.message.parts.extend(parts)
            logger.debug(f"Appended {len(parts)} input required part(s) to task {self.task_id}.")
            return

        self._event = self._new_status_update(parts)
        logger.info(f"Task {self.task_id} requires input for {len(self.pending_call_ids)} function call(s).")

    def _new_status_update(self, parts: list[A2APart]) -> TaskStatusUpdateEvent:
        message = A2AMessage(
            role=A2ARole.agent,
            parts=parts,
            message_id=uuid.uuid4().hex,
            task_id=self.task_id,
            context_id=self.context_id,
        )
        return TaskStatusUpdateEvent(
            task_id=self.task_id,
            context_id=self.context_id,
            status=TaskStatus(state=TaskState.input_required, message=message),
            final=True,
        )


def validate_input_required_resumption(task: Task | None, message: ChatMessage) -> None:
    """Check that ``message`` answers every function call an input-required task is waiting for.

    Tasks that do not exist, are not in the ``input-required`` state, or have no status message
    need no input and always pass. Calls are checked in the order they appear in the stored
    status message and the first unanswered one is reported.

    Args:
        task: The stored task the message is sent to, if any.
        message: The message resuming the task.

    Raises:
        ResumptionError: If the stored status message cannot be parsed.
        MissingFunctionResponseError: If no function result in ``message`` answers a pending call.
    """
    if task is None:
        return
    status_message = task.status.message
    if task.status.state != TaskState.input_required or status_message is None:
        return

    try:
        task_contents = to_agent_contents(status_message.parts)
    except ContentConversionError as ex:
        raise ResumptionError("Failed to parse task status message.", inner_exception=ex) from ex

    answered_call_ids = {content.call_id for content in message.function_results}
    for content in task_contents:
        if not isinstance(content, FunctionCallContent):
            continue
        if content.call_id not in answered_call_ids:
            raise MissingFunctionResponseError(content.call_id)
