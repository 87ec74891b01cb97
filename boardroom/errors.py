from __future__ import annotations


class BoardroomError(Exception):
    pass


class GenerationFailed(BoardroomError):
    """The response generator failed; no persona reply exists for this turn."""

    def __init__(self, persona_id: str, cause: BaseException | None = None) -> None:
        self.persona_id = persona_id
        self.cause = cause
        detail = f": {cause!r}" if cause is not None else ""
        super().__init__(f"response generation failed for persona '{persona_id}'{detail}")


class EvaluationParseError(BoardroomError):
    pass


class EmptyCompletionError(BoardroomError):
    pass


class UnknownPersona(BoardroomError, KeyError):
    def __init__(self, persona_id: str) -> None:
        self.persona_id = persona_id
        super().__init__(persona_id)

    def __str__(self) -> str:
        return f"unknown persona '{self.persona_id}'"


class SessionNotFound(BoardroomError, LookupError):
    pass


class SessionCompleted(BoardroomError):
    pass
