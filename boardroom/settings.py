from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


INTERJECTION_PROBABILITY = 0.4
DEFAULT_LEAD_TURNS_TO_ADVANCE = 2
STRICT_MAX_ATTEMPTS = 3
LENIENT_MAX_ATTEMPTS = 2


def load_env() -> None:
    """Load the first .env found (repo root, then cwd) without overriding the environment."""
    here = Path(__file__).resolve().parents[1]
    for env_path in (here / ".env", Path.cwd() / ".env"):
        if env_path.is_file():
            load_dotenv(dotenv_path=str(env_path), override=False)
            return


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    model: str = "gpt-4o-mini"
    temperature: float = 0.7
    generation_max_tokens: int = 1024
    evaluation_max_tokens: int = 256
    call_timeout: float = 30.0
    interjection_probability: float = INTERJECTION_PROBABILITY
    lead_turns_to_advance: int = DEFAULT_LEAD_TURNS_TO_ADVANCE
    max_gate_attempts: int = STRICT_MAX_ATTEMPTS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables; bad numbers fall back to defaults.

        Env vars:
          - OPENAI_MODEL, OPENAI_TEMPERATURE
          - BOARD_GENERATION_MAX_TOKENS, BOARD_EVALUATION_MAX_TOKENS
          - BOARD_CALL_TIMEOUT (seconds)
          - BOARD_INTERJECTION_PROBABILITY, BOARD_LEAD_TURNS_TO_ADVANCE
          - BOARD_MAX_GATE_ATTEMPTS, BOARD_LOG_LEVEL
        """
        load_env()
        return cls(
            model=os.getenv("OPENAI_MODEL", cls.model),
            temperature=_env_float("OPENAI_TEMPERATURE", cls.temperature),
            generation_max_tokens=_env_int("BOARD_GENERATION_MAX_TOKENS", cls.generation_max_tokens),
            evaluation_max_tokens=_env_int("BOARD_EVALUATION_MAX_TOKENS", cls.evaluation_max_tokens),
            call_timeout=_env_float("BOARD_CALL_TIMEOUT", cls.call_timeout),
            interjection_probability=_env_float("BOARD_INTERJECTION_PROBABILITY", cls.interjection_probability),
            lead_turns_to_advance=max(1, _env_int("BOARD_LEAD_TURNS_TO_ADVANCE", cls.lead_turns_to_advance)),
            max_gate_attempts=max(1, _env_int("BOARD_MAX_GATE_ATTEMPTS", cls.max_gate_attempts)),
            log_level=os.getenv("BOARD_LOG_LEVEL", cls.log_level).upper(),
        )
