from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING

from rangeframe.arrow_utils import order_key_values, validity_mask
from rangeframe.config import get_execution_config
from rangeframe.datatype import OrderKeyType
from rangeframe.dependencies import np
from rangeframe.exceptions import InvalidArgumentError
from rangeframe.partitioning import GroupSubranges, partition_nulls
from rangeframe.scaling import scale_bound
from rangeframe.window import NullOrder, RowWindows, SortOrder

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rangeframe.config import ExecutionConfig
    from rangeframe.dependencies import pa
    from rangeframe.partitioning import GroupDescriptor
    from rangeframe.window import RangeBound

logger = logging.getLogger(__name__)

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def _shift(keys: np.ndarray, magnitude: int | float, up: bool) -> np.ndarray:
    """``keys + magnitude`` (or minus), saturating at the int64 limits instead of wrapping.

    A saturated target still orders before (or after) every key in the run, which is all the search needs.
    """
    if keys.dtype.kind == "f":
        return keys + magnitude if up else keys - magnitude
    if up:
        shifted = keys + np.int64(magnitude)
        return np.where(keys > _INT64_MAX - magnitude, np.int64(_INT64_MAX), shifted)
    shifted = keys - np.int64(magnitude)
    return np.where(keys < _INT64_MIN + magnitude, np.int64(_INT64_MIN), shifted)


def check_value_run(keys: np.ndarray, values: GroupDescriptor, order: SortOrder) -> None:
    """Verifies the non-null order keys of a group are sorted in ``order``."""
    run = keys[values.start : values.end]
    if run.dtype.kind == "f" and np.isnan(run).any():
        raise InvalidArgumentError(f"Order-by column holds NaN within rows [{values.start}, {values.end})")
    if len(run) < 2:
        return
    if order.is_ascending:
        sorted_ok = bool(np.all(run[1:] >= run[:-1]))
    else:
        sorted_ok = bool(np.all(run[1:] <= run[:-1]))
    if not sorted_ok:
        raise InvalidArgumentError(
            f"Order-by column is not sorted {order.value} within rows [{values.start}, {values.end})"
        )


def resolve_group_windows(
    subranges: GroupSubranges,
    keys: np.ndarray,
    preceding: int | float | None,
    following: int | float | None,
    order: SortOrder,
    starts: np.ndarray,
    ends: np.ndarray,
) -> None:
    """Writes the window of every row of one group into ``starts`` and ``ends``.

    Every null order-key row gets exactly the group's null run, whatever the bounds. A non-null row
    with key ``v`` gets the rows whose key lies within ``[v - preceding, v + following]`` (mirrored for
    descending order), both ends inclusive, so tied keys always enter and leave a window together.
    A ``None`` magnitude is unbounded and extends the window to the group's edge on that side, taking
    in the null run when it sorts there.
    """
    nulls, values = subranges
    starts[nulls.start : nulls.end] = nulls.start
    ends[nulls.start : nulls.end] = nulls.end

    vs, ve = values
    if vs == ve:
        return
    group = subranges.group
    run = keys[vs:ve]

    if order.is_ascending:
        if preceding is None:
            starts[vs:ve] = group.start
        else:
            starts[vs:ve] = vs + np.searchsorted(run, _shift(run, preceding, up=False), side="left")
        if following is None:
            ends[vs:ve] = group.end
        else:
            ends[vs:ve] = vs + np.searchsorted(run, _shift(run, following, up=True), side="right")
        return

    # Search the descending run through its ascending reversal.
    rev = run[::-1]
    if preceding is None:
        starts[vs:ve] = group.start
    else:
        starts[vs:ve] = ve - np.searchsorted(rev, _shift(run, preceding, up=True), side="right")
    if following is None:
        ends[vs:ve] = group.end
    else:
        ends[vs:ve] = ve - np.searchsorted(rev, _shift(run, following, up=False), side="left")


def resolve_windows(
    groups: Sequence[GroupDescriptor],
    order_by: pa.Array,
    preceding: RangeBound,
    following: RangeBound,
    order: SortOrder = SortOrder.ASCENDING,
    null_order: NullOrder = NullOrder.BEFORE,
    config: ExecutionConfig | None = None,
) -> RowWindows:
    """Computes the ``[start, end)`` window of every row of ``order_by``.

    ``groups`` must partition the rows of ``order_by``. Every group is validated before any window is
    resolved, so a failure never leaves behind partially computed output.

    Raises:
        InvalidArgumentError: On negative or mismatched bounds, misplaced null order keys, or order keys
            that are not sorted in ``order`` within a group.
        RangeOverflowError: If a bound cannot be scaled to the order key's unit.
        UnsupportedTypeError: If ``order_by`` is neither numeric nor temporal.
    """
    config = config if config is not None else get_execution_config()
    key_type = OrderKeyType.from_arrow_type(order_by.type)
    lower = scale_bound(preceding, key_type)
    upper = scale_bound(following, key_type)
    for magnitude in (lower, upper):
        if magnitude is not None and magnitude < 0:
            raise InvalidArgumentError(f"Window bound magnitude must be non-negative, got {magnitude}")

    num_rows = len(order_by)
    keys = order_key_values(order_by, key_type)
    valid = validity_mask(order_by)

    subranges = [partition_nulls(group, valid, order, null_order) for group in groups]
    for sub in subranges:
        check_value_run(keys, sub.values, order)

    starts = np.empty(num_rows, dtype=np.int64)
    ends = np.empty(num_rows, dtype=np.int64)

    if config.use_thread_pool(len(subranges)):
        logger.debug("Resolving %d groups on %d worker threads", len(subranges), config.num_workers)
        with ThreadPoolExecutor(max_workers=config.num_workers) as executor:
            futures = [
                executor.submit(resolve_group_windows, sub, keys, lower, upper, order, starts, ends)
                for sub in subranges
            ]
            for future in as_completed(futures):
                future.result()
    else:
        for sub in subranges:
            resolve_group_windows(sub, keys, lower, upper, order, starts, ends)

    return RowWindows(starts, ends)
