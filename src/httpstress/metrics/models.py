from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    HTTP_ERROR = "http_error"
    TRANSPORT_ERROR = "transport_error"
    TIMEOUT = "timeout"


class ErrorType(str, Enum):
    TIMEOUT = "timeout"
    CONNECTION_REFUSED = "connection_refused"
    CONNECT = "connect"
    READ = "read"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class RequestOutcome:
    kind: OutcomeKind
    elapsed_ms: int
    status_code: int | None = None
    error_type: ErrorType | None = None
    error: str | None = None

    @property
    def reached_server(self) -> bool:
        return self.status_code is not None

    @property
    def failed(self) -> bool:
        return self.kind is not OutcomeKind.SUCCESS

    def describe(self) -> str:
        if self.status_code is not None:
            return str(self.status_code)
        return f"{self.kind.value} ({self.error or self.error_type})"
