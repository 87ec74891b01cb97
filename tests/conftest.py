import sys
from pathlib import Path
from typing import Dict, List

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from boardroom.personas import Persona, PersonaRegistry, default_registry
from boardroom.phases import Phase, PhasePlan, default_plan
from boardroom.questions import QuestionSpec
from boardroom.states import Evaluation


class FakeEvaluator:
    """Counts calls; returns a fixed verdict or raises."""

    def __init__(self, is_specific: bool = True, reason: str = "ok", error: Exception | None = None):
        self.is_specific = is_specific
        self.reason = reason
        self.error = error
        self.calls: List[tuple] = []

    async def evaluate(self, rubric_prompt: str, answer_text: str) -> Evaluation:
        self.calls.append((rubric_prompt, answer_text))
        if self.error is not None:
            raise self.error
        return Evaluation(is_specific=self.is_specific, reason=self.reason)


class ScriptedGenerator:
    """Returns canned replies in order (or echoes a counter) and records every request."""

    def __init__(self, replies: List[str] | None = None, error: Exception | None = None):
        self.replies = list(replies or [])
        self.error = error
        self.calls: List[Dict] = []

    async def generate(self, system_contract: str, prior_turns: List[Dict[str, str]], instruction: str) -> str:
        self.calls.append({"system": system_contract, "prior": list(prior_turns), "instruction": instruction})
        if self.error is not None:
            raise self.error
        if self.replies:
            return self.replies.pop(0)
        return f"reply {len(self.calls)}"


class FixedRandom:
    def __init__(self, value: float):
        self.value = value
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        return self.value


ALWAYS_INTERJECT = 0.0
NEVER_INTERJECT = 0.99


@pytest.fixture
def registry() -> PersonaRegistry:
    return default_registry()


@pytest.fixture
def plan(registry) -> PhasePlan:
    return default_plan(registry)


@pytest.fixture
def two_phase_setup():
    personas = PersonaRegistry([
        Persona(id="a", name="A", title="Lead A", focus="", description="", system_prompt="You are A.",
                interjection_triggers=("alpha",)),
        Persona(id="b", name="B", title="Lead B", focus="", description="", system_prompt="You are B.",
                interjection_triggers=("bravo",)),
        Persona(id="c", name="C", title="Critic", focus="", description="", system_prompt="You are C.",
                interjection_triggers=("money", "salary")),
    ])
    phases = PhasePlan([
        Phase(index=0, name="First", description="first phase", lead_persona_id="a",
              seed_prompts=("Opening question?", "Follow-up?")),
        Phase(index=1, name="Second", description="second phase", lead_persona_id="b",
              seed_prompts=("Second question?",)),
    ], personas)
    return personas, phases


@pytest.fixture
def question() -> QuestionSpec:
    return QuestionSpec(
        id="avoided_decision",
        question="What decision have you been avoiding?",
        gate_prompt="Is this specific? Respond with JSON.",
        challenge_messages=("first challenge", "second challenge", "third challenge"),
        min_words=5,
    )
