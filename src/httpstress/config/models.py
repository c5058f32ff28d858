from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

import httpx


@dataclass(frozen=True, slots=True)
class StressConfig:
    url: str
    method: str = "GET"
    concurrency: int = 1
    requests: int = 1
    timeout_sec: float = 10.0
    verify_tls: bool = True
    verbose: bool = False
    headers: Mapping[str, str] = field(default_factory=dict)
    abort_on_connection_refused: bool = True
    notes: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if not self.url:
            msg = "A target URL is required"
            raise ValueError(msg)
        if any(char.isspace() for char in self.url):
            msg = f"URL must not contain whitespace: {self.url!r}"
            raise ValueError(msg)
        try:
            parsed = httpx.URL(self.url)
        except httpx.InvalidURL as exc:
            msg = f"Invalid URL {self.url!r}: {exc}"
            raise ValueError(msg) from exc
        if parsed.scheme not in ("http", "https") or not parsed.host:
            msg = f"URL must be absolute http(s): {self.url}"
            raise ValueError(msg)
        if not self.method.strip():
            msg = "HTTP method must not be empty"
            raise ValueError(msg)
        if self.concurrency < 1:
            msg = f"Concurrency must be at least 1, got {self.concurrency}"
            raise ValueError(msg)
        if self.requests < 0:
            msg = f"Request count must not be negative, got {self.requests}"
            raise ValueError(msg)
        if self.timeout_sec <= 0:
            msg = f"Timeout must be positive, got {self.timeout_sec}"
            raise ValueError(msg)
        object.__setattr__(self, "method", self.method.strip().upper())

    def to_metadata(self) -> Mapping[str, Any]:
        return {
            "created_at": self.created_at.isoformat(),
            "notes": self.notes,
            "target": {
                "url": self.url,
                "method": self.method,
                "timeout_sec": self.timeout_sec,
                "verify_tls": self.verify_tls,
                "headers": dict(self.headers),
            },
            "concurrency": self.concurrency,
            "requests": self.requests,
            "verbose": self.verbose,
            "abort_on_connection_refused": self.abort_on_connection_refused,
        }
