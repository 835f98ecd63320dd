from __future__ import annotations

import pyarrow as pa
import pytest

from rangeframe import ExecutionConfig, execution_config_ctx

NANOS_PER_DAY = 86_400 * 1_000_000_000


def days_to_timestamps(days: list[int | None], unit: str = "ns") -> pa.Array:
    """Day offsets since the epoch as a timestamp column of the given resolution."""
    ticks_per_day = NANOS_PER_DAY // {"s": 10**9, "ms": 10**6, "us": 10**3, "ns": 1}[unit]
    ticks = [None if d is None else d * ticks_per_day for d in days]
    return pa.array(ticks, type=pa.int64()).cast(pa.timestamp(unit))


def with_nulls(values: list, validity: list[int]) -> list:
    """Masks ``values`` wherever ``validity`` is 0."""
    return [v if ok else None for v, ok in zip(values, validity)]


@pytest.fixture(scope="function", params=[1, 4], ids=["serial", "threaded"])
def num_workers(request):
    """Runs a test with window resolution both on the calling thread and on a thread pool."""
    with execution_config_ctx(num_workers=request.param, parallel_min_groups=1):
        yield request.param


@pytest.fixture(scope="function")
def serial_config() -> ExecutionConfig:
    return ExecutionConfig(num_workers=1, parallel_min_groups=1)
