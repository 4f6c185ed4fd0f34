from __future__ import annotations


class FunnelError(Exception):
    pass


class SessionNotFound(FunnelError):
    # No remote record exists for the session id.
    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class StoreUnavailable(FunnelError):
    # Remote store unreachable or answered with a server error.
    pass


class AnswerValidationError(FunnelError):
    def __init__(self, message: str, question_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.question_id = question_id


class ConfigurationError(FunnelError):
    # Required remote credentials are missing.
    pass


class EnrichmentNotReady(FunnelError):
    pass
