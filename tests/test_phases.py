"""
Tests for the persona catalog, the phase plan and the pure transition rule.

Run with: pytest tests/test_phases.py -v
"""

import pytest

from boardroom.errors import UnknownPersona
from boardroom.personas import DIRECTOR_PERSONAS, Persona, PersonaRegistry
from boardroom.phases import BOARD_MEETING_PHASES, Phase, PhasePlan, next_phase


def _persona(pid: str, *triggers: str) -> Persona:
    return Persona(id=pid, name=pid, title="", focus="", description="", system_prompt="", interjection_triggers=triggers)


class TestPersonaRegistry:
    def test_default_catalog(self, registry) -> None:
        assert [p.id for p in registry] == [
            "accountability_hawk",
            "market_reality",
            "avoidance_hunter",
            "strategist",
            "devils_advocate",
        ]
        assert len(registry) == len(DIRECTOR_PERSONAS)

    def test_require_unknown_raises(self, registry) -> None:
        with pytest.raises(UnknownPersona):
            registry.require("ghost")
        assert registry.get("ghost") is None

    def test_others_excludes_given_persona(self, registry) -> None:
        ids = [p.id for p in registry.others("strategist")]
        assert "strategist" not in ids
        assert len(ids) == 4

    def test_duplicate_ids_rejected(self) -> None:
        with pytest.raises(ValueError):
            PersonaRegistry([_persona("x"), _persona("x")])

    def test_empty_registry_rejected(self) -> None:
        with pytest.raises(ValueError):
            PersonaRegistry([])

    @pytest.mark.parametrize("text,expected", [
        ("I MADE HEADWAY", True),
        ("made head way", False),
        ("I Made Headway on it", True),
        ("nothing here", False),
    ])
    def test_trigger_match_is_case_insensitive_substring(self, text, expected) -> None:
        assert _persona("p", "made headway").is_triggered_by(text) is expected


class TestPhasePlan:
    def test_default_plan_shape(self, plan) -> None:
        assert len(plan) == 6
        assert [p.lead_persona_id for p in plan] == [p.lead_persona_id for p in BOARD_MEETING_PHASES]
        assert plan.last_index == 5
        assert all(p.seed_prompts for p in plan)

    def test_unknown_lead_rejected(self) -> None:
        registry = PersonaRegistry([_persona("a")])
        with pytest.raises(UnknownPersona):
            PhasePlan([Phase(0, "Only", "", "missing", ("q",))], registry)

    def test_out_of_order_indices_rejected(self) -> None:
        with pytest.raises(ValueError):
            PhasePlan([Phase(1, "Wrong", "", "a", ("q",))])

    def test_empty_plan_rejected(self) -> None:
        with pytest.raises(ValueError):
            PhasePlan([])

    def test_index_out_of_range(self, plan) -> None:
        with pytest.raises(IndexError):
            plan[6]

    def test_seed_prompt_clamped(self) -> None:
        phase = Phase(0, "P", "", "a", ("one", "two"))
        assert phase.seed_prompt(0) == "one"
        assert phase.seed_prompt(7) == "two"
        assert Phase(0, "P", "", "a", ()).seed_prompt(0) == ""

    @pytest.mark.parametrize("threshold", [0, -1])
    def test_phase_threshold_must_be_positive(self, threshold) -> None:
        with pytest.raises(ValueError):
            PhasePlan([Phase(0, "P", "", "a", ("q",), lead_turns_to_advance=threshold)])

    def test_phase_threshold_defaults_to_none(self, plan) -> None:
        assert all(p.lead_turns_to_advance is None for p in plan)


class TestNextPhase:
    @pytest.mark.parametrize("count,expected_index,advanced", [(0, 2, False), (1, 2, False), (2, 3, True), (3, 3, True)])
    def test_threshold(self, plan, count, expected_index, advanced) -> None:
        t = next_phase(plan, 2, count, threshold=2)
        assert t.index == expected_index
        assert t.advanced is advanced
        assert t.completed is False

    def test_last_phase_reports_completion(self, plan) -> None:
        t = next_phase(plan, plan.last_index, 2, threshold=2)
        assert t.index == plan.last_index
        assert t.advanced is False
        assert t.completed is True

    def test_last_phase_below_threshold(self, plan) -> None:
        t = next_phase(plan, plan.last_index, 1, threshold=2)
        assert t.completed is False
