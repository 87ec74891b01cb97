from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

from loguru import logger
from langchain_core.messages import HumanMessage

from .errors import EvaluationParseError
from .llm import require_chat
from .states import Evaluation


_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


def _strip_fences(s: str) -> str:
    s = s.strip()
    if s.startswith("```"):
        lines = [ln for ln in s.splitlines() if not ln.strip().startswith("```")]
        return "\n".join(lines).strip()
    return s


def parse_evaluation(raw: str) -> Evaluation:
    """Pull the first {...} object out of a model reply and read isSpecific/reason from it."""
    match = _OBJECT_RE.search(_strip_fences(raw or ""))
    if not match:
        raise EvaluationParseError(f"no JSON object in evaluator reply: {(raw or '')[:120]!r}")
    try:
        obj: Dict[str, Any] = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise EvaluationParseError(f"invalid JSON in evaluator reply: {e}") from e
    if not isinstance(obj, dict):
        raise EvaluationParseError("evaluator reply is not a JSON object")
    return Evaluation.from_mapping(obj)


def content_text(content: Any) -> str:
    # Chat models may return a list of content blocks; only the first text block counts.
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        for block in content:
            if isinstance(block, str):
                return block
            if isinstance(block, dict) and block.get("type") == "text":
                return block.get("text", "")
    return ""


class LLMTextEvaluator:
    def __init__(self, chat: Optional[Any] = None, max_tokens: int = 256, model: Optional[str] = None) -> None:
        self.llm = chat if chat is not None else require_chat(model=model, temperature=0.0, max_tokens=max_tokens)

    async def evaluate(self, rubric_prompt: str, answer_text: str) -> Evaluation:
        msg = HumanMessage(content=f'{rubric_prompt}\n\nUser\'s response: "{answer_text}"')
        res = await self.llm.ainvoke([msg])
        evaluation = parse_evaluation(content_text(getattr(res, "content", None)))
        logger.debug(f"evaluation | specific={evaluation.is_specific} reason='{evaluation.reason[:120]}'")
        return evaluation
