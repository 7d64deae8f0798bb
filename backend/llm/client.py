"""
LLM client wrapper for an OpenAI-compatible chat completions endpoint
(llama.cpp server, vLLM, or a hosted gateway).
Handles retries, tool-call decoding and response cleaning.
"""
import json
import time
import requests
import logging
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field

from utils.config import config
from utils.cleaning import ResponseCleaner
from utils.errors import ProviderFailure

logger = logging.getLogger(__name__)


@dataclass
class ToolCallRequest:
    """A tool call requested by the model."""
    call_id: str
    name: str
    arguments: Dict[str, Any]
    invalid: bool = False


@dataclass
class ChatCompletion:
    """Structured response from the model."""
    content: str
    tool_calls: List[ToolCallRequest] = field(default_factory=list)
    raw_response: Dict[str, Any] = field(default_factory=dict)
    tokens_used: int = 0


class LLMClient:
    """
    Client for the /v1/chat/completions endpoint.
    """

    def __init__(self, base_url: Optional[str] = None, model: Optional[str] = None):
        self.base_url = base_url or config.llm.base_url
        self.chat_url = f"{self.base_url}{config.llm.chat_endpoint}"
        self.model = model or config.llm.model
        self.timeout = config.llm.timeout
        self.max_retries = config.llm.max_retries
        logger.info(f"LLM Client initialized: {self.chat_url} (model={self.model}, timeout={self.timeout}s)")

    def _make_request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Make HTTP request to the model server with retries."""
        last_error = None

        for attempt in range(self.max_retries + 1):
            try:
                response = requests.post(
                    self.chat_url,
                    json=payload,
                    timeout=self.timeout
                )
                response.raise_for_status()
                return response.json()
            except ValueError as e:
                # Body was not JSON; retrying will not help
                raise ProviderFailure(f"Model server returned a non-JSON body: {e}") from e
            except requests.exceptions.Timeout as e:
                last_error = e
                if attempt < self.max_retries:
                    time.sleep(1 * (attempt + 1))
            except requests.exceptions.RequestException as e:
                last_error = e
                if attempt < self.max_retries:
                    time.sleep(0.5 * (attempt + 1))

        raise ProviderFailure(f"Failed to reach model server after {self.max_retries + 1} attempts: {last_error}")

    @staticmethod
    def _decode_tool_calls(message: Dict[str, Any]) -> List[ToolCallRequest]:
        calls = []
        for i, raw in enumerate(message.get("tool_calls") or []):
            function = raw.get("function") or {}
            arguments = function.get("arguments") or {}
            invalid = False
            if isinstance(arguments, str):
                try:
                    arguments = json.loads(arguments) if arguments.strip() else {}
                except json.JSONDecodeError:
                    logger.warning(f"Unparseable arguments for tool {function.get('name')}: {arguments[:100]}")
                    arguments, invalid = {}, True
            if not isinstance(arguments, dict):
                arguments, invalid = {}, True
            calls.append(ToolCallRequest(
                call_id=raw.get("id") or f"call_{int(time.time() * 1000)}_{i}",
                name=function.get("name", ""),
                arguments=arguments,
                invalid=invalid,
            ))
        return calls

    def chat(
        self,
        system: str,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        temperature: Optional[float] = None,
        max_tokens: int = 800,
    ) -> ChatCompletion:
        """
        Run one chat completion.

        Args:
            system: System prompt
            messages: Prior conversation in chat-completion format
            tools: Optional tool schemas the model may call
            temperature: Sampling temperature (None uses default)
            max_tokens: Maximum tokens to generate

        Returns:
            ChatCompletion with cleaned content and decoded tool calls

        Raises:
            ProviderFailure: if the server cannot be reached or answers malformed data
        """
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "system", "content": system}, *messages],
            "temperature": temperature if temperature is not None else config.llm.default_temperature,
            "max_tokens": max_tokens,
        }
        if tools:
            payload["tools"] = tools

        response = self._make_request(payload)
        try:
            message = response["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderFailure(f"Unexpected model response shape: {str(response)[:200]}") from e

        content = ResponseCleaner.clean_chat_reply(message.get("content"))
        usage = response.get("usage") or {}
        return ChatCompletion(
            content=content,
            tool_calls=self._decode_tool_calls(message),
            raw_response=response,
            tokens_used=usage.get("total_tokens", 0),
        )

    def generate_json(
        self,
        system: str,
        prompt: str,
        max_tokens: int = 600,
    ) -> Optional[Dict[str, Any]]:
        """
        Ask for a JSON object and parse it.

        Returns:
            Parsed dict, or None when the model answered something unparseable
        """
        completion = self.chat(
            system=system,
            messages=[{"role": "user", "content": prompt}],
            temperature=config.llm.json_temperature,
            max_tokens=max_tokens,
        )
        logger.debug(f"Raw model JSON: {completion.content[:200]}")
        return ResponseCleaner.parse_json_object(completion.content)

    def health_check(self) -> bool:
        """Check if the model server is responding."""
        try:
            self.chat("Reply with OK.", [{"role": "user", "content": "Hello"}], max_tokens=5)
            return True
        except ProviderFailure:
            return False


# Global client instance
llm_client = LLMClient()
