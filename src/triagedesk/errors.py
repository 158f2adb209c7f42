"""Error kinds surfaced to API and CLI callers."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    PERSISTENCE_UNAVAILABLE = "persistence_unavailable"
    INVALID_INPUT = "invalid_input"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UPSTREAM_UNAVAILABLE: 502,
    ErrorKind.PERSISTENCE_UNAVAILABLE: 500,
    ErrorKind.INVALID_INPUT: 400,
}


class TriageError(Exception):
    """Base error carrying an ErrorKind."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind.value}


class NotFoundError(TriageError):
    kind = ErrorKind.NOT_FOUND


class UpstreamUnavailableError(TriageError):
    kind = ErrorKind.UPSTREAM_UNAVAILABLE


class PersistenceUnavailableError(TriageError):
    kind = ErrorKind.PERSISTENCE_UNAVAILABLE


class InvalidInputError(TriageError):
    kind = ErrorKind.INVALID_INPUT


class DuplicateEmailError(Exception):
    """An email with the same message_id is already stored."""

    def __init__(self, message_id: str):
        super().__init__(f"Email already stored: {message_id}")
        self.message_id = message_id
