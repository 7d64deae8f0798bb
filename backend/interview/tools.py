"""
Tools the recruiter model can call.

Tools are bound to one session's state machine for the duration of a turn;
they reach state only through its operations. Tools with an ``execute``
function run as soon as the model asks for them. Tools without one need a
human decision first and are run by the approval executor through
``executions``.
"""
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from chat.approval import ToolCallContext, ToolExecutor
from interview.state import InterviewStateMachine

logger = logging.getLogger(__name__)


@dataclass
class ToolDefinition:
    """A model-callable tool."""
    name: str
    description: str
    parameters: Dict[str, Any]
    execute: Optional[Callable[[Dict[str, Any]], Awaitable[Any]]] = None

    @property
    def requires_approval(self) -> bool:
        return self.execute is None

    def to_schema(self) -> Dict[str, Any]:
        """Function schema in chat-completions format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


@dataclass
class ToolRegistry:
    tools: Dict[str, ToolDefinition]
    executions: Dict[str, ToolExecutor]

    def schemas(self) -> List[Dict[str, Any]]:
        return [tool.to_schema() for tool in self.tools.values()]

    def get(self, name: str) -> Optional[ToolDefinition]:
        return self.tools.get(name)


def build_tool_registry(machine: InterviewStateMachine) -> ToolRegistry:
    """Create the tool set for one turn of one session."""

    async def save_interview_setup(args: Dict[str, Any]) -> Dict[str, Any]:
        job_description = args.get("jobDescription") or args.get("job_description") or ""
        questions = args.get("questions") or []
        logger.info(f"TOOL EXECUTE: save_interview_setup ({len(questions)} questions)")
        if not isinstance(questions, list) or not questions:
            return {"success": False, "error": "At least one question is required"}
        state = machine.setup_interview(job_description, [str(q) for q in questions])
        return {
            "success": True,
            "message": f"Interview setup saved successfully. {len(state.questions)} questions stored.",
        }

    async def clear_interview(args: Dict[str, Any], context: ToolCallContext) -> Dict[str, Any]:
        logger.info(f"TOOL EXECUTE: clear_interview ({context.call_id})")
        machine.reset()
        return {"success": True, "message": "Interview cleared successfully"}

    tools = {
        "save_interview_setup": ToolDefinition(
            name="save_interview_setup",
            description="Save the job description and the 5 generated interview questions to the system.",
            parameters={
                "type": "object",
                "properties": {
                    "jobDescription": {
                        "type": "string",
                        "description": "The full job description provided by the user",
                    },
                    "questions": {
                        "type": "array",
                        "items": {"type": "string"},
                        "minItems": 1,
                        "description": "The interview questions generated from the JD",
                    },
                },
                "required": ["jobDescription", "questions"],
            },
            execute=save_interview_setup,
        ),
        "clear_interview": ToolDefinition(
            name="clear_interview",
            description=(
                "CRITICAL: Only use this if the user specifically asks to 'reset', 'clear' or "
                "'start over'. Requires the user's confirmation before it runs."
            ),
            parameters={"type": "object", "properties": {}},
        ),
    }

    return ToolRegistry(tools=tools, executions={"clear_interview": clear_interview})
