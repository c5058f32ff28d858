from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from httpstress.loadgen.runner import partition_requests


def test_partition_with_remainder() -> None:
    shares = partition_requests(10, 3)
    assert shares == [3, 3, 3, 1]
    assert sum(shares) == 10


def test_partition_fewer_requests_than_workers() -> None:
    assert partition_requests(2, 5) == [1, 1]


def test_partition_zero_requests() -> None:
    assert partition_requests(0, 4) == []


def test_partition_rejects_zero_concurrency() -> None:
    with pytest.raises(ValueError):
        partition_requests(10, 0)


@given(
    requests=st.integers(min_value=0, max_value=10_000),
    concurrency=st.integers(min_value=1, max_value=500),
)
def test_partition_covers_all_requests(requests: int, concurrency: int) -> None:
    shares = partition_requests(requests, concurrency)
    assert sum(shares) == requests
    assert all(share > 0 for share in shares)
    assert shares.count(1) >= requests % concurrency
    assert len(shares) <= concurrency + (concurrency - 1)
