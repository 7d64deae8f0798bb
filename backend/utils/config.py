"""
Configuration settings for the AI Recruiter backend.
All settings can be overridden via environment variables.
"""
import os
from typing import FrozenSet
from dataclasses import dataclass, field


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass
class LLMConfig:
    """Model server configuration (OpenAI-compatible chat endpoint)."""
    base_url: str = field(default_factory=lambda: os.getenv("LLM_URL", "http://localhost:9000"))
    chat_endpoint: str = "/v1/chat/completions"
    model: str = field(default_factory=lambda: os.getenv("LLM_MODEL", "llama-3.1-70b-instruct"))
    timeout: int = 60
    max_retries: int = 3

    # Default generation parameters
    default_temperature: float = 0.7
    json_temperature: float = 0.3


@dataclass
class WhisperConfig:
    """Whisper STT configuration."""
    model_path: str = field(default_factory=lambda: os.getenv("WHISPER_MODEL_PATH", "base"))
    device: str = field(default_factory=lambda: os.getenv("WHISPER_DEVICE", "cpu"))
    compute_type: str = field(default_factory=lambda: os.getenv("WHISPER_COMPUTE_TYPE", "int8"))


@dataclass
class StorageConfig:
    """Persistence for recruiter state."""
    backend: str = field(default_factory=lambda: os.getenv("STATE_BACKEND", "memory"))  # memory | file
    persist_dir: str = field(default_factory=lambda: os.getenv("STATE_DIR", "./recruiter_state"))
    key_prefix: str = "recruiter_state"


@dataclass
class RecruiterConfig:
    """Conversation and interview flow configuration."""
    question_count: int = 5
    max_history_messages: int = field(default_factory=lambda: _env_int("MAX_HISTORY_MESSAGES", 10))
    jd_min_length: int = field(default_factory=lambda: _env_int("JD_MIN_LENGTH", 50))
    max_tool_steps: int = 5
    results_prefix: str = "INTERVIEW_RESULTS:"
    reset_commands: FrozenSet[str] = field(default_factory=lambda: frozenset({
        "reset",
        "clear",
        "start over",
        "restart",
        "new session",
        "forget everything. i want to start a completely new recruiter session from scratch.",
    }))


class Config:
    """Main configuration class combining all config sections."""

    def __init__(self):
        self.llm = LLMConfig()
        self.whisper = WhisperConfig()
        self.storage = StorageConfig()
        self.recruiter = RecruiterConfig()
        self.log_level = os.getenv("LOG_LEVEL", "INFO")


# Global config instance
config = Config()
