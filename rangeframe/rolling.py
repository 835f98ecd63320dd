from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from rangeframe.aggregation import aggregate_windows, check_aggregation_supported
from rangeframe.arrow_utils import check_lengths, ensure_array
from rangeframe.bounds import resolve_windows
from rangeframe.dependencies import np, pa
from rangeframe.partitioning import find_groups
from rangeframe.window import NullOrder, RangeWindow, SortOrder, to_range_bound

if TYPE_CHECKING:
    from rangeframe.aggregation import AggregationRequest
    from rangeframe.config import ExecutionConfig
    from rangeframe.window import BoundLike, RowWindows

logger = logging.getLogger(__name__)


def _key_columns(group_keys: Any) -> list[pa.Array]:
    """Several key columns must be given as a list of arrays; a plain Python list is always one column."""
    if group_keys is None:
        return []
    column_types = (pa.Array, pa.ChunkedArray, np.ndarray)
    if isinstance(group_keys, (list, tuple)) and group_keys and all(isinstance(k, column_types) for k in group_keys):
        return [ensure_array(keys, f"group key {i}") for i, keys in enumerate(group_keys)]
    return [ensure_array(group_keys, "group key")]


def range_windows(
    order_by: Any,
    window: RangeWindow,
    group_keys: Any = None,
    config: ExecutionConfig | None = None,
) -> RowWindows:
    """Computes each row's ``[start, end)`` window without aggregating anything.

    Args:
        order_by: The order-by column, sorted within each group as ``window`` declares.
        window: Direction, null placement and bounds of the frame.
        group_keys: One group-key column, a list of Arrow or numpy arrays, or None for a single group.
        config: Execution config to use instead of the global one.
    """
    order_by = ensure_array(order_by, "order_by")
    keys = _key_columns(group_keys)
    check_lengths(order_by=order_by, **{f"group_key_{i}": k for i, k in enumerate(keys)})
    groups = find_groups(keys, len(order_by))
    return resolve_windows(
        groups, order_by, window.preceding, window.following, window.order, window.null_order, config=config
    )


def rolling_aggregate(
    order_by: Any,
    values: Any,
    window: RangeWindow,
    request: AggregationRequest,
    group_keys: Any = None,
    config: ExecutionConfig | None = None,
) -> pa.Array:
    """Aggregates ``values`` over a range window around every row.

    Every check (column lengths, aggregation type, bound scaling, null placement, sortedness) runs
    before any window is computed, so the call either returns a full column or raises.

    Returns:
        An Arrow array aligned 1:1 with the input rows.
    """
    order_by = ensure_array(order_by, "order_by")
    values = ensure_array(values, "values")
    keys = _key_columns(group_keys)
    check_lengths(order_by=order_by, values=values, **{f"group_key_{i}": k for i, k in enumerate(keys)})
    check_aggregation_supported(request, values.type)

    groups = find_groups(keys, len(order_by))
    windows = resolve_windows(
        groups, order_by, window.preceding, window.following, window.order, window.null_order, config=config
    )
    logger.debug(
        "Aggregating %s over %d rows in %d groups (%s, nulls %s)",
        request.kind.value,
        len(values),
        len(groups),
        window.order.value,
        window.null_order.value,
    )
    return aggregate_windows(values, windows, request)


def grouped_range_rolling_window(
    group_keys: Any,
    order_by: Any,
    values: Any,
    preceding: BoundLike,
    following: BoundLike,
    request: AggregationRequest,
    *,
    order: SortOrder = SortOrder.ASCENDING,
    null_order: NullOrder = NullOrder.BEFORE,
    min_periods: int | None = None,
    config: ExecutionConfig | None = None,
) -> pa.Array:
    """Range rolling aggregate over grouped data.

    Rows must be clustered by ``group_keys`` and, within each group, sorted by ``order_by`` in
    ``order`` with null order keys at the edge ``null_order`` implies.

    Args:
        group_keys: One group-key column or a list of Arrow or numpy arrays. A Python list of values,
            even list-valued ones, is always read as a single column.
        order_by: Numeric or temporal column whose values define window distance.
        values: Column to aggregate.
        preceding: Distance behind the current row's order key, ``None`` for unbounded.
        following: Distance ahead of the current row's order key, ``None`` for unbounded.
        request: The aggregation to compute.
        order: Sort direction of ``order_by`` within each group.
        null_order: Where null order keys sort relative to values.
        min_periods: Overrides ``request.min_periods`` when given.
        config: Execution config to use instead of the global one.

    Examples:
        >>> import datetime
        >>> import pyarrow as pa
        >>> from rangeframe import AggregationRequest, grouped_range_rolling_window
        >>> days = pa.array([1, 5, 6, 8, 9], type=pa.int32()).cast(pa.date32())
        >>> grouped_range_rolling_window(
        ...     [0, 0, 0, 0, 0],
        ...     days,
        ...     [0, 8, 4, 6, 2],
        ...     datetime.timedelta(days=2),
        ...     datetime.timedelta(days=1),
        ...     AggregationRequest.sum(),
        ... ).to_pylist()
        [0, 12, 12, 12, 8]
    """
    window = RangeWindow(
        order=order,
        null_order=null_order,
        preceding=to_range_bound(preceding, "preceding"),
        following=to_range_bound(following, "following"),
    )
    if min_periods is not None:
        request = request.with_min_periods(min_periods)
    return rolling_aggregate(order_by, values, window, request, group_keys=group_keys, config=config)


def range_rolling_window(
    order_by: Any,
    values: Any,
    preceding: BoundLike,
    following: BoundLike,
    request: AggregationRequest,
    **kwargs: Any,
) -> pa.Array:
    """Range rolling aggregate treating all rows as one group. See ``grouped_range_rolling_window``."""
    return grouped_range_rolling_window(None, order_by, values, preceding, following, request, **kwargs)
