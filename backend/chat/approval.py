"""
Human-in-the-loop tool execution.

Gated tools are never executed by the model loop. The model's call is sent to
the client, the user approves or denies it, and the client returns the call
with the decision written into its output. This module turns those decisions
into real results before the history reaches the model again.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from chat.history import to_model_messages
from chat.stream import TurnStream
from models.schemas import Message, ToolInvocationPart, ToolState
from utils.errors import ErrorKind

logger = logging.getLogger(__name__)


class ApprovalDecision(str, Enum):
    APPROVED = "Yes, confirmed."
    DENIED = "No, denied."
    PENDING = "pending"

    @classmethod
    def from_output(cls, output: Any) -> "ApprovalDecision":
        if output == cls.APPROVED.value:
            return cls.APPROVED
        if output == cls.DENIED.value:
            return cls.DENIED
        return cls.PENDING


DENIAL_MESSAGE = "Error: User denied access to tool execution"
MISSING_EXECUTOR_MESSAGE = "Error: No execute function found on tool"


@dataclass
class ToolCallContext:
    """Passed to a gated executor alongside the call input."""
    call_id: str
    messages: List[Dict[str, Any]] = field(default_factory=list)


ToolExecutor = Callable[[Dict[str, Any], ToolCallContext], Awaitable[Any]]


async def resolve_tool_calls(
    history: Sequence[Message],
    executions: Mapping[str, Optional[ToolExecutor]],
    stream: Optional[TurnStream] = None,
) -> List[Message]:
    """
    Replace approval markers on gated tool calls with real results.

    Approved calls run their executor, denied calls get the denial message,
    and calls without a decision are left as they are. All executions run
    concurrently and finish before this returns, also when one of them
    raises; the first error is re-raised once the others are done. A call id
    that shows up in several parts is executed and reported once.
    """
    model_messages = to_model_messages(history)
    pending: Dict[str, "asyncio.Task[Any]"] = {}

    async def _run(part: ToolInvocationPart, decision: ApprovalDecision) -> Any:
        if decision == ApprovalDecision.DENIED:
            logger.info(f"{ErrorKind.TOOL_EXECUTION_DENIED.value}: {part.tool_name} ({part.call_id})")
            result: Any = DENIAL_MESSAGE
        else:
            executor = executions.get(part.tool_name)
            if executor is None:
                result = MISSING_EXECUTOR_MESSAGE
            else:
                logger.info(f"Executing approved tool {part.tool_name} ({part.call_id})")
                result = await executor(
                    part.input,
                    ToolCallContext(call_id=part.call_id, messages=model_messages),
                )
        if stream is not None:
            stream.tool_output(part.call_id, result)
        return result

    async def _resolve_part(part: Any) -> Any:
        if not isinstance(part, ToolInvocationPart):
            return part
        if part.tool_name not in executions or part.state != ToolState.OUTPUT_AVAILABLE:
            return part

        decision = ApprovalDecision.from_output(part.output)
        if decision == ApprovalDecision.PENDING:
            return part

        task = pending.get(part.call_id)
        if task is None:
            task = asyncio.ensure_future(_run(part, decision))
            pending[part.call_id] = task
        result = await task
        return part.model_copy(update={"output": result})

    async def _resolve_message(message: Message) -> Message:
        if not message.tool_parts():
            return message
        parts = await asyncio.gather(*(_resolve_part(p) for p in message.parts))
        return message.model_copy(update={"parts": list(parts)})

    try:
        resolved = await asyncio.gather(*(_resolve_message(m) for m in history))
    finally:
        # Executors write session state; none may outlive the turn
        if pending:
            await asyncio.gather(*pending.values(), return_exceptions=True)
    return list(resolved)
