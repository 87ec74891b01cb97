from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple

from .errors import UnknownPersona
from .personas import PersonaRegistry
from .settings import DEFAULT_LEAD_TURNS_TO_ADVANCE


@dataclass(frozen=True)
class Phase:
    index: int
    name: str
    description: str
    lead_persona_id: str
    seed_prompts: Tuple[str, ...]
    lead_turns_to_advance: Optional[int] = None

    def seed_prompt(self, prompt_index: int) -> str:
        if not self.seed_prompts:
            return ""
        return self.seed_prompts[max(0, min(prompt_index, len(self.seed_prompts) - 1))]


@dataclass(frozen=True)
class PhaseTransition:
    index: int
    advanced: bool
    completed: bool


class PhasePlan:
    """Ordered, read-only list of phases shared by every session."""

    def __init__(self, phases: Iterable[Phase], registry: PersonaRegistry | None = None) -> None:
        self._phases: Tuple[Phase, ...] = tuple(phases)
        if not self._phases:
            raise ValueError("phase plan cannot be empty")
        for pos, phase in enumerate(self._phases):
            if phase.index != pos:
                raise ValueError(f"phase '{phase.name}' has index {phase.index}, expected {pos}")
            if phase.lead_turns_to_advance is not None and phase.lead_turns_to_advance < 1:
                raise ValueError(f"phase '{phase.name}' needs lead_turns_to_advance >= 1")
            if registry is not None and phase.lead_persona_id not in registry:
                raise UnknownPersona(phase.lead_persona_id)

    def __iter__(self) -> Iterator[Phase]:
        return iter(self._phases)

    def __len__(self) -> int:
        return len(self._phases)

    def __getitem__(self, index: int) -> Phase:
        if not 0 <= index < len(self._phases):
            raise IndexError(f"phase index {index} out of range 0..{len(self._phases) - 1}")
        return self._phases[index]

    @property
    def last_index(self) -> int:
        return len(self._phases) - 1

    def lead_for(self, index: int) -> str:
        return self[index].lead_persona_id


def next_phase(
    plan: PhasePlan,
    current_index: int,
    lead_turns_in_phase: int,
    threshold: int = DEFAULT_LEAD_TURNS_TO_ADVANCE,
) -> PhaseTransition:
    """Advance once the lead has spoken `threshold` times in the current phase.

    The index is clamped at the last phase; reaching the threshold there reports
    completion instead of moving on.
    """
    if lead_turns_in_phase < threshold:
        return PhaseTransition(index=current_index, advanced=False, completed=False)
    if current_index >= plan.last_index:
        return PhaseTransition(index=plan.last_index, advanced=False, completed=True)
    return PhaseTransition(index=current_index + 1, advanced=True, completed=False)


BOARD_MEETING_PHASES: Tuple[Phase, ...] = (
    Phase(
        index=0,
        name="Opening",
        description="Set the context for the meeting",
        lead_persona_id="strategist",
        seed_prompts=(
            "Let's start with the big picture. What quarter are we reviewing, and what did you set out to accomplish?",
        ),
    ),
    Phase(
        index=1,
        name="Last Quarter Review",
        description="Review commitments and results",
        lead_persona_id="accountability_hawk",
        seed_prompts=(
            "What were your specific bets from last quarter? Let's see the receipts.",
            "For each bet, were you right or wrong? What's the evidence?",
        ),
    ),
    Phase(
        index=2,
        name="Avoidance Audit",
        description="Surface avoided decisions and conversations",
        lead_persona_id="avoidance_hunter",
        seed_prompts=(
            "What decision have you been avoiding? Be specific.",
            "What conversation have you been putting off? Who, about what?",
        ),
    ),
    Phase(
        index=3,
        name="Market Check",
        description="Assess market position and value",
        lead_persona_id="market_reality",
        seed_prompts=(
            "How has your market value changed this quarter? What evidence do you have?",
            "Which of your skills is depreciating fastest? What are you doing about it?",
        ),
    ),
    Phase(
        index=4,
        name="Strategy Review",
        description="Evaluate long-term trajectory",
        lead_persona_id="strategist",
        seed_prompts=(
            "Zoom out: where is your current path leading in 5 years?",
            "Are you playing the right game, or just playing the current game well?",
        ),
    ),
    Phase(
        index=5,
        name="Next Quarter Bets",
        description="Set falsifiable commitments",
        lead_persona_id="devils_advocate",
        seed_prompts=(
            "What are your bets for next quarter? Make them falsifiable.",
            "How will you know if you were wrong? What would make these bets fail?",
        ),
    ),
)


def default_plan(registry: PersonaRegistry | None = None) -> PhasePlan:
    return PhasePlan(BOARD_MEETING_PHASES, registry)
