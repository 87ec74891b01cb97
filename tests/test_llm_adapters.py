"""
Tests for the LangChain-backed evaluator and response generator, using
mocked chat clients.

Run with: pytest tests/test_llm_adapters.py -v
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from boardroom.agents import LLMResponseGenerator, build_messages
from boardroom.errors import EvaluationParseError
from boardroom.evaluator import LLMTextEvaluator, content_text, parse_evaluation


def _chat(content):
    chat = SimpleNamespace()
    chat.ainvoke = AsyncMock(return_value=SimpleNamespace(content=content))
    return chat


class TestParseEvaluation:
    def test_plain_json(self) -> None:
        e = parse_evaluation('{"isSpecific": true, "reason": "names a person"}')
        assert e.is_specific is True
        assert e.reason == "names a person"

    def test_json_inside_prose_and_fences(self) -> None:
        raw = 'Here you go:\n```json\n{"isSpecific": false, "reason": "too vague"}\n```'
        e = parse_evaluation(raw)
        assert e.is_specific is False
        assert e.reason == "too vague"

    def test_missing_fields_default(self) -> None:
        e = parse_evaluation("{}")
        assert e.is_specific is False
        assert e.reason == "Unable to evaluate"

    def test_truthy_non_bool_is_not_specific(self) -> None:
        assert parse_evaluation('{"isSpecific": "yes"}').is_specific is False

    @pytest.mark.parametrize("raw", ["", "no json here", "{not: json}"])
    def test_unparseable_raises(self, raw) -> None:
        with pytest.raises(EvaluationParseError):
            parse_evaluation(raw)

    def test_content_blocks(self) -> None:
        assert content_text([{"type": "text", "text": "hi"}, {"type": "text", "text": "ignored"}]) == "hi"
        assert content_text(None) == ""


class TestLLMTextEvaluator:
    @pytest.mark.asyncio
    async def test_sends_rubric_and_answer(self) -> None:
        chat = _chat('{"isSpecific": true, "reason": "ok"}')
        result = await LLMTextEvaluator(chat=chat).evaluate("RUBRIC", "my answer")

        assert result.is_specific is True
        (messages,), _ = chat.ainvoke.call_args
        assert len(messages) == 1
        assert isinstance(messages[0], HumanMessage)
        assert messages[0].content == 'RUBRIC\n\nUser\'s response: "my answer"'

    @pytest.mark.asyncio
    async def test_parse_failure_propagates(self) -> None:
        with pytest.raises(EvaluationParseError):
            await LLMTextEvaluator(chat=_chat("sorry")).evaluate("RUBRIC", "answer")


class TestLLMResponseGenerator:
    def test_build_messages_maps_roles(self) -> None:
        msgs = build_messages(
            "contract",
            [{"role": "user", "content": "u1"}, {"role": "assistant", "content": "a1"}],
            "instruction",
        )
        assert [type(m) for m in msgs] == [SystemMessage, HumanMessage, AIMessage, HumanMessage]
        assert msgs[0].content == "contract"
        assert msgs[-1].content == "instruction"

    @pytest.mark.asyncio
    async def test_generate_strips_reply(self) -> None:
        chat = _chat("  Where's the proof?  ")
        text = await LLMResponseGenerator(chat=chat).generate("contract", [], "go")
        assert text == "Where's the proof?"
        chat.ainvoke.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_generate_propagates_api_errors(self) -> None:
        chat = SimpleNamespace(ainvoke=AsyncMock(side_effect=RuntimeError("429")))
        with pytest.raises(RuntimeError):
            await LLMResponseGenerator(chat=chat).generate("contract", [], "go")
