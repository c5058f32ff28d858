from __future__ import annotations

import logging
import time

import httpx

from httpstress.config import StressConfig
from httpstress.metrics import ErrorType, OutcomeKind, RequestOutcome

logger = logging.getLogger(__name__)


class ConnectionRefusedAbort(RuntimeError):
    """Raised when the target refuses a connection; stops the whole run."""

    def __init__(self, url: str, error: Exception, elapsed_ms: int = 0) -> None:
        super().__init__(f"Connection refused by {url}: {error}")
        self.url = url
        self.error = error
        self.elapsed_ms = elapsed_ms


class DeadlineExceeded(httpx.TimeoutException):
    """The whole request, body included, ran past the configured timeout."""


def build_client(config: StressConfig, transport: httpx.BaseTransport | None = None) -> httpx.Client:
    return httpx.Client(
        verify=config.verify_tls,
        timeout=httpx.Timeout(config.timeout_sec),
        headers=dict(config.headers),
        transport=transport,
    )


def send_request(client: httpx.Client, config: StressConfig) -> RequestOutcome:
    """Issue one request and classify it.

    Elapsed time stops when the response headers arrive. The body is still
    drained, and the whole exchange must finish within ``timeout_sec`` or the
    attempt counts as a timeout.
    """
    start_mono = time.perf_counter()
    deadline = start_mono + config.timeout_sec
    try:
        with client.stream(config.method, config.url) as resp:
            elapsed_ms = _elapsed_ms(start_mono)
            _check_deadline(deadline)
            for _ in resp.iter_raw():
                _check_deadline(deadline)
    except httpx.TimeoutException as exc:
        return RequestOutcome(
            kind=OutcomeKind.TIMEOUT,
            elapsed_ms=_elapsed_ms(start_mono),
            error_type=ErrorType.TIMEOUT,
            error=str(exc) or type(exc).__name__,
        )
    except httpx.ConnectError as exc:
        elapsed_ms = _elapsed_ms(start_mono)
        if not is_connection_refused(exc):
            err = ErrorType.CONNECT
        elif config.abort_on_connection_refused:
            raise ConnectionRefusedAbort(config.url, exc, elapsed_ms) from exc
        else:
            err = ErrorType.CONNECTION_REFUSED
        return _transport_error(err, elapsed_ms, exc)
    except httpx.ReadError as exc:
        return _transport_error(ErrorType.READ, _elapsed_ms(start_mono), exc)
    except httpx.HTTPError as exc:
        return _transport_error(ErrorType.OTHER, _elapsed_ms(start_mono), exc)
    kind = OutcomeKind.SUCCESS if resp.status_code == 200 else OutcomeKind.HTTP_ERROR
    return RequestOutcome(kind=kind, elapsed_ms=elapsed_ms, status_code=resp.status_code)


def _check_deadline(deadline: float) -> None:
    if time.perf_counter() > deadline:
        msg = "Request exceeded its overall timeout"
        raise DeadlineExceeded(msg)


def is_connection_refused(exc: BaseException) -> bool:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, ConnectionRefusedError):
            return True
        if "connection refused" in str(current).lower():
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False


def _transport_error(err: ErrorType, elapsed_ms: int, exc: Exception) -> RequestOutcome:
    logger.debug("Transport error (%s): %s", err.value, exc)
    return RequestOutcome(
        kind=OutcomeKind.TRANSPORT_ERROR,
        elapsed_ms=elapsed_ms,
        error_type=err,
        error=str(exc) or type(exc).__name__,
    )


def _elapsed_ms(start_mono: float) -> int:
    return max(0, int((time.perf_counter() - start_mono) * 1000.0))
