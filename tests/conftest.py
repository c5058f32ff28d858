from __future__ import annotations

import itertools
import threading
from typing import Callable, Iterable

import httpx
import pytest


def sequenced_transport(statuses: Iterable[int]) -> httpx.MockTransport:
    """Serve the given status codes in order, one per request, across threads."""
    lock = threading.Lock()
    codes = iter(statuses)

    def handler(request: httpx.Request) -> httpx.Response:
        with lock:
            code = next(codes)
        return httpx.Response(code)

    return httpx.MockTransport(handler)


@pytest.fixture
def transport_for() -> Callable[[Iterable[int]], httpx.MockTransport]:
    return sequenced_transport


@pytest.fixture
def always_ok() -> httpx.MockTransport:
    return sequenced_transport(itertools.repeat(200))
