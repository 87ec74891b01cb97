from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Optional, Tuple


class Role(Enum):
    USER = "user"
    PERSONA = "persona"


class GateOutcome(Enum):
    ACCEPTED = "accepted"
    TOO_BRIEF = "too_brief"
    NOT_SPECIFIC = "not_specific"
    ATTEMPTS_EXHAUSTED = "attempts_exhausted"
    EVALUATOR_UNAVAILABLE = "evaluator_unavailable"


@dataclass(frozen=True)
class ConversationTurn:
    role: Role
    content: str
    persona_id: Optional[str] = None
    phase_index: Optional[int] = None

    @classmethod
    def user(cls, content: str, phase_index: int | None = None) -> "ConversationTurn":
        return cls(role=Role.USER, content=content, phase_index=phase_index)

    @classmethod
    def persona(cls, persona_id: str, content: str, phase_index: int) -> "ConversationTurn":
        return cls(role=Role.PERSONA, content=content, persona_id=persona_id, phase_index=phase_index)

    def as_message(self) -> dict[str, str]:
        """Role + content only, as handed to the response generator."""
        return {"role": "user" if self.role is Role.USER else "assistant", "content": self.content}


@dataclass(frozen=True)
class OrchestratorState:
    """Per-session conversation state. Never mutated; every change yields a new value."""

    current_phase_index: int
    active_persona_id: str
    history: Tuple[ConversationTurn, ...] = ()
    phase_prompt_index: int = 0
    completed: bool = False

    def with_turns(self, *turns: ConversationTurn) -> "OrchestratorState":
        return replace(self, history=self.history + tuple(turns))

    def lead_turns_in_phase(self, lead_persona_id: str, phase_index: int | None = None) -> int:
        phase_index = self.current_phase_index if phase_index is None else phase_index
        return sum(
            1
            for t in self.history
            if t.role is Role.PERSONA and t.persona_id == lead_persona_id and t.phase_index == phase_index
        )


@dataclass(frozen=True)
class Evaluation:
    is_specific: bool
    reason: str

    @classmethod
    def from_mapping(cls, obj: Mapping[str, Any]) -> "Evaluation":
        """Read the {isSpecific, reason} wire shape; anything but a literal true is not specific."""
        reason = obj.get("reason")
        return cls(
            is_specific=obj.get("isSpecific") is True,
            reason=reason if isinstance(reason, str) and reason else "Unable to evaluate",
        )


@dataclass(frozen=True)
class GateResult:
    passed: bool
    is_specific: bool
    reason: str
    attempt_number: int
    outcome: GateOutcome
    challenge_message: Optional[str] = None


@dataclass
class ConversationMetrics:
    turn_count: int = 0
    interjections: int = 0
    phase_transitions: int = 0
    personas_heard: list[str] = field(default_factory=list)
