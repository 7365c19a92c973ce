# Copyright (c) Microsoft. All rights reserved.

from __future__ import annotations

import uuid
from typing import Final, TypedDict

from a2a.server.agent_execution import AgentExecutor, RequestContext
from a2a.server.events import EventQueue
from a2a.server.tasks import TaskUpdater
from a2a.types import TaskState, TaskStatus, TaskStatusUpdateEvent
from a2a.utils.message import new_agent_text_message
from opentelemetry import trace
from agent_bridge import AgentRunner, ChatMessage, get_logger, load_settings
from agent_bridge.exceptions import (
    AgentBridgeException,
    ContentConversionError,
    MissingFunctionResponseError,
    ResumptionError,
)
from agent_bridge.observability import OtelAttr, bridge_tracer, capture_exception

from ._input_required import InputRequiredProcessor, validate_input_required_resumption
from ._parts import to_a2a_parts, to_chat_message

__all__ = ["A2AAgentExecutor", "A2AExecutorSettings"]

logger = get_logger("agent_bridge.a2a")

ERROR_METADATA_KEY: Final[str] = "agent_bridge_error"


class A2AExecutorSettings(TypedDict, total=False):
    """Settings of the A2A agent executor.

    Read from ``AGENT_BRIDGE_A2A_``-prefixed environment variables, e.g.
    ``AGENT_BRIDGE_A2A_APP_NAME`` and ``AGENT_BRIDGE_A2A_USER_ID``.

    Keys:
        app_name: The application name, used as the name of the artifacts the executor publishes.
        user_id: The user the agent runtime runs sessions for.
    """

    app_name: str | None
    user_id: str | None


class A2AAgentExecutor(AgentExecutor):
    """Serves an agent runtime as an A2A agent.

    Every A2A request runs the agent once, with the A2A context ID as the session ID.
    Contents produced by the run are streamed as chunks of one artifact. When the run
    records long-running function calls, the task ends the turn in the ``input-required``
    state, and the next request for that task must carry a function result for each of
    those calls before the agent runs again.

    Examples:
        .. code-block:: python

            from a2a.server.apps import A2AStarletteApplication
            from a2a.server.request_handlers import DefaultRequestHandler
            from a2a.server.tasks import InMemoryTaskStore

            from agent_bridge.a2a import A2AAgentExecutor

            handler = DefaultRequestHandler(
                agent_executor=A2AAgentExecutor(my_runner, app_name="purchasing", user_id="operator"),
                task_store=InMemoryTaskStore(),
            )
            app = A2AStarletteApplication(agent_card=card, http_handler=handler).build()
    """

    def __init__(
        self,
        runner: AgentRunner,
        *,
        app_name: str | None = None,
        user_id: str | None = None,
        env_file_path: str | None = None,
        env_file_encoding: str | None = None,
    ) -> None:
        """Initialize the A2AAgentExecutor.

        Args:
            runner: The agent runtime to invoke for each request.

        Keyword Args:
            app_name: The application name. Read from ``AGENT_BRIDGE_A2A_APP_NAME`` when not provided.
            user_id: The user sessions are run for. Read from ``AGENT_BRIDGE_A2A_USER_ID`` when not provided.
            env_file_path: Path to a ``.env`` file to read settings from.
            env_file_encoding: Encoding of the ``.env`` file.

        Raises:
            SettingNotFoundError: If the app name or the user ID cannot be resolved.
        """
        settings = load_settings(
            A2AExecutorSettings,
            env_prefix="AGENT_BRIDGE_A2A_",
            env_file_path=env_file_path,
            env_file_encoding=env_file_encoding,
            required_fields=["app_name", "user_id"],
            app_name=app_name,
            user_id=user_id,
        )
        self.runner = runner
        self.app_name: str = settings["app_name"]  # type: ignore[assignment]
        self.user_id: str = settings["user_id"]  # type: ignore[assignment]

    async def execute(self, context: RequestContext, event_queue: EventQueue) -> None:
        """Run the agent for the request and publish the resulting task updates.

        Raises:
            ValueError: If the request context has no task or context ID.
            AgentBridgeException: If the run's contents cannot be published; the task is failed first.
        """
        task_id, context_id = context.task_id, context.context_id
        if not task_id or not context_id:
            raise ValueError("The request context must have a task_id and a context_id.")

        attributes = {OtelAttr.TASK_ID: task_id, OtelAttr.CONTEXT_ID: context_id}
        with bridge_tracer().start_as_current_span("execute_task", attributes=attributes) as span:
            try:
                state = await self._execute(context, event_queue, task_id, context_id)
            except Exception as exception:
                capture_exception(span=span, exception=exception)
                raise
            span.set_attribute(OtelAttr.TASK_STATE, state.value)

    async def _execute(
        self,
        context: RequestContext,
        event_queue: EventQueue,
        task_id: str,
        context_id: str,
    ) -> TaskState:
        updater = TaskUpdater(event_queue, task_id, context_id)

        message = await self._read_message(context, updater, task_id, context_id)
        if message is None:
            return TaskState.failed

        try:
            validate_input_required_resumption(context.current_task, message)
        except MissingFunctionResponseError as ex:
            # the task keeps waiting on the same calls
            logger.warning(f"Rejected input for task {task_id}: {ex}")
            await event_queue.enqueue_event(
                TaskStatusUpdateEvent(
                    task_id=task_id,
                    context_id=context_id,
                    status=TaskStatus(
                        state=TaskState.input_required,
                        message=context.current_task.status.message,  # type: ignore[union-attr]
                    ),
                    final=True,
                    metadata={ERROR_METADATA_KEY: str(ex)},
                )
            )
            return TaskState.input_required
        except ResumptionError as ex:
            logger.error(f"Cannot resume task {task_id}: {ex}")
            await updater.failed(message=new_agent_text_message(str(ex), context_id=context_id, task_id=task_id))
            return TaskState.failed

        if context.current_task is None:
            await updater.submit()
        await updater.start_work()

        processor = InputRequiredProcessor(task_id=task_id, context_id=context_id)
        artifact_id = uuid.uuid4().hex
        has_artifact = False
        try:
            async for event in self.runner.run(message, user_id=self.user_id, session_id=context_id):
                processor.process(event)
                if not event.contents:
                    continue
                await updater.add_artifact(
                    to_a2a_parts(event.contents, event.long_running_call_ids),
                    artifact_id=artifact_id,
                    name=self.app_name,
                    append=has_artifact,
                )
                has_artifact = True
        except AgentBridgeException as ex:
            await updater.failed(message=new_agent_text_message(str(ex), context_id=context_id, task_id=task_id))
            raise
        except Exception as ex:
            logger.exception(f"Agent run failed for task {task_id}.")
            await updater.failed(
                message=new_agent_text_message(f"Agent run failed: {ex}", context_id=context_id, task_id=task_id)
            )
            return TaskState.failed

        if processor.event is not None:
            trace.get_current_span().set_attribute(OtelAttr.PENDING_CALL_COUNT, len(processor.pending_call_ids))
            await event_queue.enqueue_event(processor.event)
            return TaskState.input_required

        await updater.complete()
        logger.info(f"Task {task_id} completed.")
        return TaskState.completed

    async def _read_message(
        self, context: RequestContext, updater: TaskUpdater, task_id: str, context_id: str
    ) -> ChatMessage | None:
        """Convert the request message, failing the task when it is missing or cannot be converted."""
        if context.message is None or not context.message.parts:
            await updater.failed(
                message=new_agent_text_message(
                    "The request has no message to process.", context_id=context_id, task_id=task_id
                )
            )
            return None
        try:
            return to_chat_message(context.message)
        except ContentConversionError as ex:
            await updater.failed(
                message=new_agent_text_message(str(ex), context_id=context_id, task_id=task_id)
            )
            return None

    async def cancel(self, context: RequestContext, event_queue: EventQueue) -> None:
        """Cancel the task; the agent run itself is not interrupted."""
        logger.info(f"Cancelling task {context.task_id}")
        updater = TaskUpdater(event_queue, context.task_id, context.context_id)  # type: ignore[arg-type]
        await updater.cancel()
