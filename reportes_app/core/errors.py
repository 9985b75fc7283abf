"""Error taxonomy and the Ok/Err result type returned by the remote client."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    SERVER = "server"
    NETWORK = "network"


class ReportEngineError(Exception):
    kind: ErrorKind = ErrorKind.SERVER

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail


class ValidationError(ReportEngineError):
    kind = ErrorKind.VALIDATION


# User-facing guidance per failure kind.
GUIDANCE: dict[ErrorKind, str] = {
    ErrorKind.VALIDATION: "Check the highlighted fields and try again.",
    ErrorKind.AUTHORIZATION: "Your role cannot perform this action; sign in again if this is unexpected.",
    ErrorKind.NOT_FOUND: "The report no longer exists.",
    ErrorKind.SERVER: "The server failed to process the request; you may retry.",
    ErrorKind.NETWORK: "Could not reach the server; changes will resync on the next refresh.",
}


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T = None  # type: ignore[assignment]

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Err:
    kind: ErrorKind
    detail: str = ""

    @property
    def ok(self) -> bool:
        return False

    def message(self) -> str:
        guidance = GUIDANCE[self.kind]
        if self.detail:
            return f"{self.detail}. {guidance}"
        return guidance


Result = Ok[Any] | Err
