from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from .errors import SessionCompleted, SessionNotFound
from .gates import SpecificityGate
from .orchestrator import BoardResponse, ConversationOrchestrator, OpeningMessage, ProblemLike
from .questions import AUDIT_QUESTIONS, QuestionSpec
from .states import ConversationMetrics, GateResult, OrchestratorState


class SessionKind(Enum):
    BOARD_MEETING = "board_meeting"
    AUDIT = "audit"


class SessionStatus(Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def current_quarter(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"Q{(now.month - 1) // 3 + 1} {now.year}"


def utc_stamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class SessionRecord:
    session_id: str
    kind: SessionKind
    status: SessionStatus = SessionStatus.IN_PROGRESS
    quarter: Optional[str] = None
    state: Optional[OrchestratorState] = None
    question_index: int = 0
    attempt_number: int = 1
    log: List[Dict[str, Any]] = field(default_factory=list)
    metrics: ConversationMetrics = field(default_factory=ConversationMetrics)
    started_at: str = field(default_factory=utc_stamp)
    completed_at: Optional[str] = None

    def note(self, speaker: str, message: str, kind: str, **meta: Any) -> None:
        self.log.append({
            "speaker": speaker,
            "message": message,
            "type": kind,
            "timestamp": utc_stamp(),
            **meta,
        })

    def complete(self) -> None:
        self.status = SessionStatus.COMPLETED
        self.completed_at = utc_stamp()


class InMemorySessionStore:
    """Session records keyed by id. Writes are last-write-wins; callers serialize via `lock`."""

    def __init__(self) -> None:
        self._records: Dict[str, SessionRecord] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def create(self, kind: SessionKind, **fields: Any) -> SessionRecord:
        record = SessionRecord(session_id=uuid.uuid4().hex, kind=kind, **fields)
        self._records[record.session_id] = record
        self._locks[record.session_id] = asyncio.Lock()
        return record

    def get(self, session_id: str) -> SessionRecord:
        try:
            return self._records[session_id]
        except KeyError:
            raise SessionNotFound(session_id) from None

    def save(self, record: SessionRecord) -> None:
        self._records[record.session_id] = record

    def lock(self, session_id: str) -> asyncio.Lock:
        """Per-session lock; raises SessionNotFound for unknown ids instead of minting a lock."""
        self.get(session_id)
        lock = self._locks.get(session_id)
        # released sessions are closed to writes; a throwaway lock is enough to reach that check
        return lock if lock is not None else asyncio.Lock()

    def release(self, session_id: str) -> None:
        self._locks.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._records)


@dataclass(frozen=True)
class BoardReply:
    session_id: str
    response: BoardResponse
    is_complete: bool

    @property
    def current_phase(self) -> int:
        return self.response.new_state.current_phase_index


@dataclass(frozen=True)
class AuditReply:
    session_id: str
    gate: GateResult
    next_question: Optional[QuestionSpec]
    is_complete: bool


class SessionRunner:
    """Loads state, calls the core, persists what comes back."""

    def __init__(
        self,
        store: InMemorySessionStore,
        orchestrator: ConversationOrchestrator,
        gate: SpecificityGate,
        questions: Sequence[QuestionSpec] = AUDIT_QUESTIONS,
        max_attempts: Optional[int] = None,
    ) -> None:
        self.store = store
        self.orchestrator = orchestrator
        self.gate = gate
        self.questions = tuple(questions)
        self.max_attempts = max_attempts

    def start_board_meeting(self, quarter: Optional[str] = None) -> Tuple[SessionRecord, OpeningMessage]:
        state = self.orchestrator.initial_state()
        record = self.store.create(SessionKind.BOARD_MEETING, quarter=quarter or current_quarter(), state=state)
        opening = self.orchestrator.opening_message(state)
        record.note(opening.persona.id, opening.message, "opening", phase=state.current_phase_index)
        self.store.save(record)
        logger.info(f"board_session_start | id={record.session_id} quarter={record.quarter}")
        return record, opening

    async def send_message(
        self,
        session_id: str,
        text: str,
        context: Optional[Sequence[ProblemLike]] = None,
    ) -> BoardReply:
        if not isinstance(text, str) or not text.strip():
            raise ValueError("message is required")
        async with self.store.lock(session_id):
            record = self._open_record(session_id, SessionKind.BOARD_MEETING)
            state = record.state or self.orchestrator.initial_state()
            response = await self.orchestrator.respond(state, text, context)

            record.state = response.new_state
            record.note("user", text, "user_message", phase=state.current_phase_index)
            record.note(
                response.persona.id,
                response.utterance,
                "director_response",
                phase=response.new_state.current_phase_index,
                director_name=response.persona.name,
                director_title=response.persona.title,
            )
            record.metrics.turn_count += 1
            record.metrics.personas_heard.append(response.persona.id)
            if response.interjected:
                record.metrics.interjections += 1
            if response.phase_advanced:
                record.metrics.phase_transitions += 1
            if response.completed:
                record.complete()
                logger.info(f"board_session_complete | id={session_id} turns={record.metrics.turn_count}")
            self.store.save(record)
            if record.status is SessionStatus.COMPLETED:
                self.store.release(session_id)
            return BoardReply(session_id=session_id, response=response, is_complete=response.completed)

    def start_audit(self) -> Tuple[SessionRecord, QuestionSpec]:
        if not self.questions:
            raise ValueError("audit requires at least one question")
        record = self.store.create(SessionKind.AUDIT)
        logger.info(f"audit_session_start | id={record.session_id} questions={len(self.questions)}")
        return record, self.questions[0]

    def current_question(self, session_id: str) -> Optional[QuestionSpec]:
        record = self.store.get(session_id)
        if record.kind is not SessionKind.AUDIT:
            raise SessionNotFound(session_id)
        if record.question_index >= len(self.questions):
            return None
        return self.questions[record.question_index]

    async def submit_answer(self, session_id: str, answer: str) -> AuditReply:
        if not isinstance(answer, str) or not answer:
            raise ValueError("response is required")
        async with self.store.lock(session_id):
            record = self._open_record(session_id, SessionKind.AUDIT)
            question = self.questions[record.question_index]
            result = await self.gate.evaluate(answer, question, record.attempt_number, self.max_attempts)
            record.note(
                "user",
                answer,
                "answer",
                question_id=question.id,
                gate_result="passed" if result.passed else "challenged",
                attempt=record.attempt_number,
            )

            if not result.passed:
                record.note("system", result.challenge_message or result.reason, "challenge", question_id=question.id)
                record.attempt_number += 1
                self.store.save(record)
                return AuditReply(session_id=session_id, gate=result, next_question=None, is_complete=False)

            if not result.is_specific:
                record.note("system", result.reason, "gate_note", question_id=question.id)
            record.question_index += 1
            record.attempt_number = 1
            is_complete = record.question_index >= len(self.questions)
            if is_complete:
                record.complete()
                logger.info(f"audit_session_complete | id={session_id}")
            self.store.save(record)
            if is_complete:
                self.store.release(session_id)
            next_question = None if is_complete else self.questions[record.question_index]
            return AuditReply(session_id=session_id, gate=result, next_question=next_question, is_complete=is_complete)

    def _open_record(self, session_id: str, kind: SessionKind) -> SessionRecord:
        record = self.store.get(session_id)
        if record.kind is not kind:
            raise SessionNotFound(session_id)
        if record.status is SessionStatus.COMPLETED:
            raise SessionCompleted(session_id)
        return record
