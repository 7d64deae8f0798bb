"""
Agent orchestration for the AI recruiter.
Coordinates the model-backed agents: question generator, scorecard writer
and the recruiter chat assistant.
"""
import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from chat.stream import TurnStream
from interview.scoring import ScorecardBuilder
from interview.tools import ToolRegistry
from llm.client import LLMClient, llm_client
from llm.prompts import Prompts, FALLBACK_QUESTIONS
from models.schemas import RecruiterState
from utils.config import config
from utils.errors import ErrorKind

logger = logging.getLogger(__name__)


class QuestionAgent:
    """
    Generates interview questions from a job description.
    """

    def __init__(self, llm: LLMClient):
        self.llm = llm

    async def generate_questions(self, job_description: str) -> Tuple[List[str], bool]:
        """
        Ask the model for questions.

        Returns:
            Tuple of (questions, used_fallback)
        """
        logger.info("Generating interview questions from job description...")
        parsed = await asyncio.to_thread(
            self.llm.generate_json,
            Prompts.question_generator(config.recruiter.question_count),
            Prompts.job_description(job_description),
        )

        questions = parsed.get("questions") if parsed else None
        if isinstance(questions, list):
            questions = [q.strip() for q in questions if isinstance(q, str) and q.strip()]
            if questions:
                return questions, False

        logger.warning(f"{ErrorKind.PARSE_FAILURE.value}: no usable questions in model output, using fallback set")
        return list(FALLBACK_QUESTIONS), True


class ScorecardAgent:
    """
    Writes the candidate scorecard from the recorded interview.
    """

    def __init__(self, llm: LLMClient):
        self.llm = llm

    async def generate(self, state: RecruiterState) -> str:
        transcript = ScorecardBuilder.build_transcript(state.questions, state.responses)
        report = await asyncio.to_thread(
            self.llm.generate_json,
            "You are an expert Technical Recruiter writing interview scorecards.",
            Prompts.scorecard(state.job_description or "", transcript),
        )
        if not report:
            logger.warning(f"{ErrorKind.PARSE_FAILURE.value}: scorecard assessment unusable, using fallback")
            return ScorecardBuilder.fallback(state.questions, state.responses)
        return ScorecardBuilder.render(report, state.questions)


class RecruiterChatAgent:
    """
    Generic chat with tool calling.

    Auto-executing tools run inside the loop and their results are fed back
    to the model. A gated tool call ends the turn: it is sent to the client
    for approval and resolved on a later turn.
    """

    def __init__(self, llm: LLMClient):
        self.llm = llm

    @staticmethod
    def _tool_exchange(call_id: str, name: str, arguments: Dict[str, Any], result: Any) -> List[Dict[str, Any]]:
        return [
            {
                "role": "assistant",
                "content": None,
                "tool_calls": [{
                    "id": call_id,
                    "type": "function",
                    "function": {"name": name, "arguments": json.dumps(arguments)},
                }],
            },
            {
                "role": "tool",
                "tool_call_id": call_id,
                "content": result if isinstance(result, str) else json.dumps(result),
            },
        ]

    async def reply(
        self,
        model_messages: List[Dict[str, Any]],
        registry: ToolRegistry,
        questions: List[str],
        stream: TurnStream,
        max_steps: Optional[int] = None,
    ) -> None:
        messages = list(model_messages)
        system = Prompts.recruiter_assistant(questions)
        steps = max_steps or config.recruiter.max_tool_steps

        for _ in range(steps):
            completion = await asyncio.to_thread(
                self.llm.chat, system, messages, registry.schemas()
            )
            if completion.content:
                stream.text(completion.content, part_id="chat-reply")
            if not completion.tool_calls:
                return

            awaiting_approval = False
            for call in completion.tool_calls:
                tool = registry.get(call.name)
                stream.tool_input(call.call_id, call.name, call.arguments)

                if tool is None or call.invalid:
                    error_text = f"Error: Unknown tool '{call.name}'" if tool is None else "Error: Invalid tool arguments"
                    logger.warning(f"{ErrorKind.MALFORMED_HISTORY.value}: {error_text}")
                    stream.tool_error(call.call_id, error_text)
                    messages += self._tool_exchange(call.call_id, call.name, call.arguments, error_text)
                elif tool.requires_approval:
                    logger.info(f"Tool {call.name} ({call.call_id}) awaiting user approval")
                    awaiting_approval = True
                else:
                    result = await tool.execute(call.arguments)
                    stream.tool_output(call.call_id, result)
                    messages += self._tool_exchange(call.call_id, call.name, call.arguments, result)

            if awaiting_approval:
                return

        logger.warning(f"Tool loop stopped after {steps} step(s)")


class AgentController:
    """
    Orchestrates all agents.
    """

    def __init__(self, llm: Optional[LLMClient] = None):
        self.llm = llm or llm_client
        self.questions = QuestionAgent(self.llm)
        self.scorecards = ScorecardAgent(self.llm)
        self.chat = RecruiterChatAgent(self.llm)


# Global controller instance
agent_controller = AgentController()
