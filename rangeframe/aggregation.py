from __future__ import annotations

import collections
import dataclasses
import enum
import logging
from typing import TYPE_CHECKING, Callable

from rangeframe.dependencies import np, pa
from rangeframe.exceptions import InvalidArgumentError, UnsupportedTypeError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rangeframe.window import RowWindows

logger = logging.getLogger(__name__)

_INT32_MAX = 2**31 - 1


class AggregationKind(enum.Enum):
    COUNT = "count"
    SUM = "sum"
    MIN = "min"
    MAX = "max"
    MEAN = "mean"
    COLLECT_LIST = "collect_list"


class NullPolicy(enum.Enum):
    """Whether null aggregation values take part in the reduction."""

    INCLUDE = "include"
    EXCLUDE = "exclude"


@dataclasses.dataclass(frozen=True)
class AggregationRequest:
    """An aggregation to apply over every row's window.

    Use the per-kind constructors rather than building one directly:

    Examples:
        >>> AggregationRequest.count(NullPolicy.INCLUDE)
        AggregationRequest(kind=<AggregationKind.COUNT: 'count'>, null_policy=<NullPolicy.INCLUDE: 'include'>, min_periods=1)
        >>> AggregationRequest.mean(min_periods=3).min_periods
        3
    """

    kind: AggregationKind
    null_policy: NullPolicy = NullPolicy.EXCLUDE
    min_periods: int = 1

    def __post_init__(self) -> None:
        if not isinstance(self.min_periods, int) or isinstance(self.min_periods, bool) or self.min_periods < 1:
            raise InvalidArgumentError(f"min_periods must be a positive integer, got {self.min_periods!r}")

    @classmethod
    def count(cls, null_policy: NullPolicy = NullPolicy.EXCLUDE, min_periods: int = 1) -> AggregationRequest:
        return cls(AggregationKind.COUNT, null_policy, min_periods)

    @classmethod
    def sum(cls, min_periods: int = 1) -> AggregationRequest:
        return cls(AggregationKind.SUM, NullPolicy.EXCLUDE, min_periods)

    @classmethod
    def min(cls, min_periods: int = 1) -> AggregationRequest:
        return cls(AggregationKind.MIN, NullPolicy.EXCLUDE, min_periods)

    @classmethod
    def max(cls, min_periods: int = 1) -> AggregationRequest:
        return cls(AggregationKind.MAX, NullPolicy.EXCLUDE, min_periods)

    @classmethod
    def mean(cls, min_periods: int = 1) -> AggregationRequest:
        return cls(AggregationKind.MEAN, NullPolicy.EXCLUDE, min_periods)

    @classmethod
    def collect_list(cls, null_policy: NullPolicy = NullPolicy.INCLUDE, min_periods: int = 1) -> AggregationRequest:
        return cls(AggregationKind.COLLECT_LIST, null_policy, min_periods)

    def with_min_periods(self, min_periods: int) -> AggregationRequest:
        return dataclasses.replace(self, min_periods=min_periods)


def _is_orderable(dtype: pa.DataType) -> bool:
    return (
        pa.types.is_integer(dtype)
        or pa.types.is_floating(dtype)
        or pa.types.is_temporal(dtype)
        or pa.types.is_string(dtype)
        or pa.types.is_large_string(dtype)
        or pa.types.is_binary(dtype)
        or pa.types.is_large_binary(dtype)
        or pa.types.is_boolean(dtype)
    )


def check_aggregation_supported(request: AggregationRequest, dtype: pa.DataType) -> None:
    """Fails if ``request`` cannot reduce values of type ``dtype``.

    Raises:
        UnsupportedTypeError: e.g. ``mean`` over strings, or ``sum`` over booleans.
    """
    kind = request.kind
    if kind in (AggregationKind.COUNT, AggregationKind.COLLECT_LIST):
        return
    numeric = pa.types.is_integer(dtype) or pa.types.is_floating(dtype)
    if kind is AggregationKind.SUM:
        supported = numeric or pa.types.is_duration(dtype)
    elif kind is AggregationKind.MEAN:
        supported = numeric
    else:
        supported = _is_orderable(dtype)
    if not supported:
        raise UnsupportedTypeError(f"Cannot compute {kind.value} over a column of type {dtype}")


@dataclasses.dataclass
class _Column:
    """Aggregation column plus the per-window facts every reducer shares."""

    values: pa.Array
    valid: np.ndarray
    windows: RowWindows
    non_null_counts: np.ndarray

    @classmethod
    def prepare(cls, values: pa.Array, windows: RowWindows) -> _Column:
        if values.null_count == 0:
            valid = np.ones(len(values), dtype=np.bool_)
        else:
            valid = values.is_valid().to_numpy(zero_copy_only=False)
        prefix = np.zeros(len(values) + 1, dtype=np.int64)
        np.cumsum(valid, out=prefix[1:])
        return cls(values, valid, windows, prefix[windows.ends] - prefix[windows.starts])

    def numeric(self, dtype: np.dtype) -> np.ndarray:
        arr = self.values
        if pa.types.is_duration(arr.type):
            arr = arr.cast(pa.int64())
        return arr.fill_null(0).to_numpy(zero_copy_only=False).astype(dtype, copy=False)


def _windows_are_monotonic(windows: RowWindows) -> bool:
    return bool(np.all(np.diff(windows.starts) >= 0) and np.all(np.diff(windows.ends) >= 0))


def _window_sums(column: _Column, dtype: np.dtype) -> np.ndarray:
    values = column.numeric(dtype)
    starts, ends = column.windows.starts, column.windows.ends
    if dtype.kind == "f":
        # Prefix sums lose precision to cancellation on floats.
        return np.array([values[s:e].sum() for s, e in column.windows], dtype=dtype)
    # Differences of wrapped prefix sums are exact whenever the window's own sum fits.
    prefix = np.zeros(len(values) + 1, dtype=dtype)
    np.cumsum(values, out=prefix[1:])
    return prefix[ends] - prefix[starts]


def _count(column: _Column, request: AggregationRequest) -> pa.Array:
    sizes = column.windows.sizes()
    if request.null_policy is NullPolicy.INCLUDE:
        return pa.array(sizes.astype(np.uint64), type=pa.uint64())
    return pa.array(
        column.non_null_counts.astype(np.uint64), type=pa.uint64(), mask=sizes < request.min_periods
    )


def _sum(column: _Column, request: AggregationRequest) -> pa.Array:
    dtype = column.values.type
    invalid = column.non_null_counts < request.min_periods
    if pa.types.is_floating(dtype):
        return pa.array(_window_sums(column, np.dtype(np.float64)), type=pa.float64(), mask=invalid)
    if pa.types.is_unsigned_integer(dtype):
        return pa.array(_window_sums(column, np.dtype(np.uint64)), type=pa.uint64(), mask=invalid)
    sums = pa.array(_window_sums(column, np.dtype(np.int64)), type=pa.int64(), mask=invalid)
    if pa.types.is_duration(dtype):
        return sums.cast(dtype)
    return sums


def _mean(column: _Column, request: AggregationRequest) -> pa.Array:
    # Integer sums can pass 2**63 even when the mean fits, so every input accumulates in float64.
    sums = _window_sums(column, np.dtype(np.float64))
    counts = column.non_null_counts
    means = np.divide(sums, counts, out=np.zeros(len(counts), dtype=np.float64), where=counts > 0)
    return pa.array(means, type=pa.float64(), mask=counts < request.min_periods)


def _comparable_items(values: pa.Array) -> list:
    """Python values of ``values`` that compare the way the column's type orders them"""
    dtype = values.type
    if pa.types.is_integer(dtype) or pa.types.is_floating(dtype):
        return values.fill_null(0).to_numpy(zero_copy_only=False).tolist()
    if pa.types.is_temporal(dtype):
        if pa.types.is_date32(dtype) or pa.types.is_time32(dtype):
            values = values.cast(pa.int32())
        return values.cast(pa.int64()).fill_null(0).to_numpy(zero_copy_only=False).tolist()
    return values.to_pylist()


def _sliding_extremum(
    items: Sequence, valid: np.ndarray, windows: RowWindows, prefer: Callable[[object, object], bool]
) -> np.ndarray:
    """Index of the preferred non-null item in each window, or -1 for windows without one.

    Requires window starts and ends to be non-decreasing, which lets a monotonic deque visit every
    row at most twice.
    """
    result = np.full(len(windows), -1, dtype=np.int64)
    candidates: collections.deque[int] = collections.deque()
    right = 0
    for row, (start, end) in enumerate(windows):
        right = max(right, start)
        while right < end:
            if valid[right]:
                while candidates and not prefer(items[candidates[-1]], items[right]):
                    candidates.pop()
                candidates.append(right)
            right += 1
        while candidates and candidates[0] < start:
            candidates.popleft()
        if candidates:
            result[row] = candidates[0]
    return result


def _windowed_extremum(
    items: Sequence, valid: np.ndarray, windows: RowWindows, prefer: Callable[[object, object], bool]
) -> np.ndarray:
    result = np.full(len(windows), -1, dtype=np.int64)
    for row, (start, end) in enumerate(windows):
        best = -1
        for i in range(start, end):
            if valid[i] and (best < 0 or not prefer(items[best], items[i])):
                best = i
        result[row] = best
    return result


def _extremum(column: _Column, request: AggregationRequest, prefer: Callable[[object, object], bool]) -> pa.Array:
    items = _comparable_items(column.values)
    if _windows_are_monotonic(column.windows):
        picks = _sliding_extremum(items, column.valid, column.windows, prefer)
    else:
        logger.debug("Windows are not monotonic, falling back to per-window scans")
        picks = _windowed_extremum(items, column.valid, column.windows, prefer)
    mask = (picks < 0) | (column.non_null_counts < request.min_periods)
    return column.values.take(pa.array(picks, type=pa.int64(), mask=mask))


def _min(column: _Column, request: AggregationRequest) -> pa.Array:
    return _extremum(column, request, lambda kept, new: kept < new)


def _max(column: _Column, request: AggregationRequest) -> pa.Array:
    return _extremum(column, request, lambda kept, new: kept > new)


def _collect_list(column: _Column, request: AggregationRequest) -> pa.Array:
    starts, ends = column.windows.starts, column.windows.ends
    sizes = ends - starts
    total = int(sizes.sum())
    # Row indices of every window laid end to end.
    firsts = np.zeros(len(sizes), dtype=np.int64)
    np.cumsum(sizes[:-1], out=firsts[1:])
    indices = np.repeat(starts - firsts, sizes) + np.arange(total, dtype=np.int64)

    if request.null_policy is NullPolicy.EXCLUDE:
        indices = indices[column.valid[indices]]
        sizes = column.non_null_counts

    offsets = np.zeros(len(sizes) + 1, dtype=np.int64)
    np.cumsum(sizes, out=offsets[1:])
    child = column.values.take(pa.array(indices, type=pa.int64()))
    if offsets[-1] > _INT32_MAX:
        return pa.LargeListArray.from_arrays(pa.array(offsets, type=pa.int64()), child)
    return pa.ListArray.from_arrays(pa.array(offsets, type=pa.int32()), child)


_REDUCERS: dict[AggregationKind, Callable[[_Column, AggregationRequest], pa.Array]] = {
    AggregationKind.COUNT: _count,
    AggregationKind.SUM: _sum,
    AggregationKind.MIN: _min,
    AggregationKind.MAX: _max,
    AggregationKind.MEAN: _mean,
    AggregationKind.COLLECT_LIST: _collect_list,
}


def aggregate_windows(values: pa.Array, windows: RowWindows, request: AggregationRequest) -> pa.Array:
    """Reduces ``values`` over every row's window.

    Output types: ``count`` is uint64, ``sum`` widens integers to 64 bits, ``mean`` is float64,
    ``min``/``max`` keep the input type and ``collect_list`` is a list of the input type.

    A row's result is null when its window holds fewer than ``request.min_periods`` non-null values,
    with three exceptions: ``count`` with ``NullPolicy.INCLUDE`` is never null, ``count`` with
    ``NullPolicy.EXCLUDE`` is null only when the window holds fewer than ``min_periods`` rows, and
    ``collect_list`` is never null (a window without selected values yields an empty list).

    Raises:
        UnsupportedTypeError: If ``request`` cannot be computed over ``values``' type.
        InvalidArgumentError: If ``windows`` is not aligned with ``values``.
    """
    check_aggregation_supported(request, values.type)
    if len(windows) != len(values):
        raise InvalidArgumentError(f"Got {len(windows)} windows for an aggregation column of {len(values)} rows")
    column = _Column.prepare(values, windows)
    return _REDUCERS[request.kind](column, request)
