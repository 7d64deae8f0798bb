"""
Response cleaning utilities for model outputs.
Handles reasoning-tag removal and JSON extraction from chatty completions.
"""
import json
import logging
import re
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ResponseCleaner:
    """
    Cleans model responses before they reach the client or a JSON parser.
    """

    THINK_BLOCK = re.compile(r"<think>.*?</think>", flags=re.DOTALL | re.IGNORECASE)
    CODE_FENCE = re.compile(r"```(?:json)?", flags=re.IGNORECASE)

    @classmethod
    def clean_chat_reply(cls, text: Optional[str]) -> str:
        """Strip reasoning blocks and surrounding whitespace from a chat reply."""
        if not text:
            return ""
        cleaned = cls.THINK_BLOCK.sub("", text)
        # Unterminated block: drop everything up to the closing tag
        if "</think>" in cleaned.lower():
            cleaned = re.split(r"</think>", cleaned, flags=re.IGNORECASE)[-1]
        return cleaned.strip()

    @classmethod
    def clean_json_response(cls, text: str) -> str:
        """Remove markdown fences and any prose around the first JSON object."""
        cleaned = cls.CODE_FENCE.sub("", cls.clean_chat_reply(text)).strip()
        start = cleaned.find("{")
        end = cleaned.rfind("}")
        if start == -1 or end < start:
            return cleaned
        return cleaned[start:end + 1]

    @classmethod
    def parse_json_object(cls, text: str) -> Optional[Dict[str, Any]]:
        """
        Parse a JSON object out of model output.

        Returns:
            The parsed dict, or None if nothing usable was found
        """
        cleaned = cls.clean_json_response(text or "")
        for candidate in (cleaned, cleaned.replace(",}", "}").replace(",]", "]")):
            try:
                parsed = json.loads(candidate)
            except json.JSONDecodeError:
                continue
            if isinstance(parsed, dict):
                return parsed
        logger.warning(f"JSON parsing failed for model output: {cleaned[:120]!r}")
        return None
