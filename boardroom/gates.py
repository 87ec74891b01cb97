"""Specificity gate: accept a free-text answer or challenge the user to sharpen it.

Each call evaluates one attempt. The caller owns the attempt counter and hands it
back on every call; the gate keeps no state of its own. Three checks run in
order:

1. A word-count floor rejects short answers without calling the evaluator.
2. Once ``attempt_number`` reaches ``max_attempts`` the answer is accepted as-is,
   so the exchange always terminates.
3. Otherwise the evaluator judges the answer against the question's rubric; a
   rejection carries the next, more direct challenge message.

When the evaluator is unavailable (error, timeout, unparseable reply) the answer
is accepted. A user is never blocked by a broken model call. An evaluator that
returns neither an Evaluation nor an {isSpecific, reason} mapping is logged as an
error and the answer is accepted the same way.
"""
from __future__ import annotations

from typing import Mapping, Optional, Protocol

from loguru import logger

from .calls import guarded_call
from .questions import QuestionSpec
from .settings import LENIENT_MAX_ATTEMPTS, STRICT_MAX_ATTEMPTS
from .states import Evaluation, GateOutcome, GateResult


TOO_BRIEF_CHALLENGE = "Please expand on your answer. A few words isn't enough to work with."
EXHAUSTED_REASON = "max attempts reached - response accepted for review"
UNAVAILABLE_REASON = "Evaluation unavailable - response accepted"


class TextEvaluator(Protocol):
    async def evaluate(self, rubric_prompt: str, answer_text: str) -> Evaluation: ...


def count_words(text: str) -> int:
    return len((text or "").split())


def as_evaluation(value: object) -> Optional[Evaluation]:
    """Accept an Evaluation or the plain {isSpecific, reason} mapping; anything else is None."""
    if isinstance(value, Evaluation):
        return value
    if isinstance(value, Mapping) and "isSpecific" in value:
        return Evaluation.from_mapping(value)
    return None


def challenge_for(question: QuestionSpec, attempt_number: int, reason: str) -> str:
    messages = question.challenge_messages
    if not messages:
        base = TOO_BRIEF_CHALLENGE
    else:
        base = messages[min(attempt_number, len(messages)) - 1]
    return f"{base}\n\n({reason})" if reason else base


class SpecificityGate:
    def __init__(
        self,
        evaluator: TextEvaluator,
        timeout: Optional[float] = None,
        default_max_attempts: int = STRICT_MAX_ATTEMPTS,
    ) -> None:
        self.evaluator = evaluator
        self.timeout = timeout
        self.default_max_attempts = default_max_attempts

    async def evaluate(
        self,
        answer_text: str,
        question: QuestionSpec,
        attempt_number: int = 1,
        max_attempts: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> GateResult:
        max_attempts = self.default_max_attempts if max_attempts is None else max_attempts
        if attempt_number < 1:
            raise ValueError(f"attempt_number must be >= 1, got {attempt_number}")
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

        words = count_words(answer_text)
        if words < question.min_words:
            return self._log(question, GateResult(
                passed=False,
                is_specific=False,
                reason=f"Response too brief. Please provide more detail (at least {question.min_words} words).",
                challenge_message=TOO_BRIEF_CHALLENGE,
                attempt_number=attempt_number,
                outcome=GateOutcome.TOO_BRIEF,
            ))

        if attempt_number >= max_attempts:
            return self._log(question, GateResult(
                passed=True,
                is_specific=False,
                reason=EXHAUSTED_REASON,
                attempt_number=attempt_number,
                outcome=GateOutcome.ATTEMPTS_EXHAUSTED,
            ))

        call = await guarded_call(
            "evaluate",
            lambda: self.evaluator.evaluate(question.gate_prompt, answer_text),
            timeout=self.timeout if timeout is None else timeout,
        )
        evaluation = as_evaluation(call.value) if call.ok else None
        if evaluation is None:
            # fail open
            if call.ok:
                logger.error(
                    f"gate_evaluator_bad_return | question={question.id} attempt={attempt_number} "
                    f"type={type(call.value).__name__}"
                )
            else:
                logger.warning(
                    f"gate_evaluator_unavailable | question={question.id} attempt={attempt_number} "
                    f"err={call.error!r}"
                )
            return self._log(question, GateResult(
                passed=True,
                is_specific=True,
                reason=UNAVAILABLE_REASON,
                attempt_number=attempt_number,
                outcome=GateOutcome.EVALUATOR_UNAVAILABLE,
            ))

        if evaluation.is_specific:
            return self._log(question, GateResult(
                passed=True,
                is_specific=True,
                reason=evaluation.reason,
                attempt_number=attempt_number,
                outcome=GateOutcome.ACCEPTED,
            ))
        return self._log(question, GateResult(
            passed=False,
            is_specific=False,
            reason=evaluation.reason,
            challenge_message=challenge_for(question, attempt_number, evaluation.reason),
            attempt_number=attempt_number,
            outcome=GateOutcome.NOT_SPECIFIC,
        ))

    async def check_strict(self, answer_text: str, question: QuestionSpec, attempt_number: int = 1) -> GateResult:
        return await self.evaluate(answer_text, question, attempt_number, STRICT_MAX_ATTEMPTS)

    async def check_lenient(self, answer_text: str, question: QuestionSpec, attempt_number: int = 1) -> GateResult:
        return await self.evaluate(answer_text, question, attempt_number, LENIENT_MAX_ATTEMPTS)

    @staticmethod
    def _log(question: QuestionSpec, result: GateResult) -> GateResult:
        logger.info(
            f"gate_result | question={question.id} attempt={result.attempt_number} "
            f"outcome={result.outcome.value} passed={result.passed}"
        )
        return result
