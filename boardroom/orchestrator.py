from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Union

from loguru import logger

from .calls import guarded_call
from .errors import EmptyCompletionError, GenerationFailed
from .personas import Persona, PersonaRegistry
from .phases import Phase, PhasePlan, next_phase
from .settings import DEFAULT_LEAD_TURNS_TO_ADVANCE, INTERJECTION_PROBABILITY
from .states import ConversationTurn, OrchestratorState


class ResponseGenerator(Protocol):
    async def generate(
        self,
        system_contract: str,
        prior_turns: List[Dict[str, str]],
        instruction: str,
    ) -> str: ...


class RandomSource(Protocol):
    def random(self) -> float: ...


@dataclass(frozen=True)
class PortfolioProblem:
    name: str
    what_breaks: str
    classification: str
    classification_reasoning: Optional[str] = None
    time_allocation: Optional[float] = None


ProblemLike = Union[PortfolioProblem, Mapping[str, Any]]


def _field(problem: ProblemLike, name: str, camel: str) -> Any:
    if isinstance(problem, Mapping):
        return problem.get(name, problem.get(camel))
    return getattr(problem, name, None)


def format_portfolio(problems: Optional[Sequence[ProblemLike]]) -> str:
    if not problems:
        return ""
    lines = ["THE USER'S PROBLEM PORTFOLIO (what they're paid to solve):"]
    for i, p in enumerate(problems, start=1):
        name = _field(p, "name", "name") or "Untitled"
        classification = _field(p, "classification", "classification") or "unclassified"
        allocation = _field(p, "time_allocation", "timeAllocation") or 0
        lines.append(f'{i}. "{name}" ({classification}, {allocation}% of time)')
        lines.append(f"   - What breaks if ignored: {_field(p, 'what_breaks', 'whatBreaks') or 'unknown'}")
        reasoning = _field(p, "classification_reasoning", "classificationReasoning")
        if reasoning:
            lines.append(f"   - Classification reasoning: {reasoning}")
    lines.append("")
    lines.append("Use this portfolio knowledge in your responses. Reference specific problems by name when relevant.")
    return "\n".join(lines)


@dataclass(frozen=True)
class OpeningMessage:
    message: str
    persona: Persona


@dataclass(frozen=True)
class BoardResponse:
    utterance: str
    persona: Persona
    new_state: OrchestratorState
    interjected: bool = False
    phase_advanced: bool = False
    completed: bool = False


class ConversationOrchestrator:
    """Drives one board meeting: who speaks next, what they are told, and when the phase moves on.

    Registries are shared read-only; session state goes in and comes out by value.
    """

    def __init__(
        self,
        registry: PersonaRegistry,
        plan: PhasePlan,
        generator: ResponseGenerator,
        rng: Optional[RandomSource] = None,
        interjection_probability: float = INTERJECTION_PROBABILITY,
        lead_turns_to_advance: int = DEFAULT_LEAD_TURNS_TO_ADVANCE,
        timeout: Optional[float] = None,
    ) -> None:
        self.registry = registry
        self.plan = plan
        self.generator = generator
        self.rng: RandomSource = rng or random.Random()
        self.interjection_probability = interjection_probability
        self.lead_turns_to_advance = max(1, int(lead_turns_to_advance))
        self.timeout = timeout

    def initial_state(self) -> OrchestratorState:
        return OrchestratorState(current_phase_index=0, active_persona_id=self.plan.lead_for(0))

    def current_phase(self, state: OrchestratorState) -> Phase:
        return self.plan[state.current_phase_index]

    def opening_message(self, state: OrchestratorState) -> OpeningMessage:
        phase = self.current_phase(state)
        return OpeningMessage(message=phase.seed_prompt(0), persona=self.registry.require(phase.lead_persona_id))

    def check_for_interjection(self, user_text: str, lead_persona_id: str) -> Optional[Persona]:
        for persona in self.registry.others(lead_persona_id):
            if persona.is_triggered_by(user_text) and self.rng.random() < self.interjection_probability:
                return persona
        return None

    def build_instruction(
        self,
        phase: Phase,
        state: OrchestratorState,
        user_text: str,
        context: Optional[Sequence[ProblemLike]],
        interjecting: bool,
    ) -> str:
        blocks = [
            f'You are in a quarterly board meeting, currently in the "{phase.name}" phase.',
            f"Phase description: {phase.description}",
        ]
        portfolio = format_portfolio(context)
        if portfolio:
            blocks.append(portfolio)
        seed = phase.seed_prompt(state.phase_prompt_index)
        if seed and not interjecting:
            blocks.append(f"Question this phase is working through: {seed}")
        blocks.append(f'The user just said: "{user_text}"')
        if interjecting:
            blocks.append("You are interjecting because something the user said triggered your attention.")
        else:
            blocks.append("You are the lead director for this phase.")
        blocks.append(
            "Respond naturally but stay in character. Keep it concise. Reference the user's specific "
            "problems from their portfolio when appropriate."
        )
        return "\n\n".join(blocks) + f"\n\nUser: {user_text}"

    async def respond(
        self,
        state: OrchestratorState,
        user_text: str,
        context: Optional[Sequence[ProblemLike]] = None,
        timeout: Optional[float] = None,
    ) -> BoardResponse:
        if not (user_text or "").strip():
            raise ValueError("user message must be non-empty")
        phase = self.current_phase(state)
        lead = self.registry.require(phase.lead_persona_id)

        interjector = self.check_for_interjection(user_text, lead.id)
        speaker = interjector or lead
        instruction = self.build_instruction(phase, state, user_text, context, interjector is not None)
        prior = [t.as_message() for t in state.history]

        call = await guarded_call(
            "generate",
            lambda: self._generate(speaker, prior, instruction),
            timeout=self.timeout if timeout is None else timeout,
        )
        if not call.ok:
            logger.error(f"board_generation_failed | persona={speaker.id} phase={phase.index} err={call.error!r}")
            raise GenerationFailed(speaker.id, call.error) from call.error
        utterance = call.value

        updated = state.with_turns(
            ConversationTurn.user(user_text, phase.index),
            ConversationTurn.persona(speaker.id, utterance, phase.index),
        )
        transition = next_phase(
            self.plan,
            phase.index,
            updated.lead_turns_in_phase(lead.id, phase.index),
            phase.lead_turns_to_advance or self.lead_turns_to_advance,
        )
        if transition.advanced:
            new_state = replace(
                updated,
                current_phase_index=transition.index,
                active_persona_id=self.plan.lead_for(transition.index),
                phase_prompt_index=0,
            )
            logger.info(f"board_phase_transition | from={phase.index} to={transition.index} name={self.plan[transition.index].name}")
        else:
            prompt_index = state.phase_prompt_index
            if speaker.id == lead.id:
                prompt_index = min(prompt_index + 1, max(0, len(phase.seed_prompts) - 1))
            new_state = replace(
                updated,
                active_persona_id=speaker.id,
                phase_prompt_index=prompt_index,
                completed=state.completed or transition.completed,
            )
            if transition.completed and not state.completed:
                logger.info(f"board_meeting_complete | phase={phase.index} turns={len(new_state.history)}")

        self._log_turn(speaker, new_state, utterance, interjector is not None)
        return BoardResponse(
            utterance=utterance,
            persona=speaker,
            new_state=new_state,
            interjected=interjector is not None,
            phase_advanced=transition.advanced,
            completed=new_state.completed,
        )

    async def _generate(self, speaker: Persona, prior: List[Dict[str, str]], instruction: str) -> str:
        text = await self.generator.generate(speaker.system_prompt, prior, instruction)
        text = (text or "").strip()
        if not text:
            raise EmptyCompletionError(f"empty reply from persona '{speaker.id}'")
        return text

    @staticmethod
    def _log_turn(speaker: Persona, state: OrchestratorState, text: str, interjected: bool) -> None:
        raw = text or ""
        snippet = raw if len(raw) <= 400 else raw[:400] + "..."
        one_line = " ".join(snippet.split())
        logger.info(
            f"board_turn | spk={speaker.id} phase={state.current_phase_index} "
            f"t={len(state.history)} interjection={interjected} | msg='{one_line}'"
        )
