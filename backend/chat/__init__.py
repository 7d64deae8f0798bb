"""
Conversation pipeline: history preparation, approval-gated tools and the
per-turn event stream. The dispatcher lives in ``chat.dispatcher``.
"""

from .history import sanitize, window, extract_text, to_model_messages
from .stream import TurnStream
from .approval import ApprovalDecision, ToolCallContext, resolve_tool_calls

__all__ = [
    'sanitize',
    'window',
    'extract_text',
    'to_model_messages',
    'TurnStream',
    'ApprovalDecision',
    'ToolCallContext',
    'resolve_tool_calls',
]
