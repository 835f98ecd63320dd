from __future__ import annotations

import os
from itertools import groupby

import pyarrow as pa
from hypothesis import given, note, settings
from hypothesis.strategies import sampled_from

from rangeframe import (
    AggregationRequest,
    ExecutionConfig,
    NullPolicy,
    RangeWindow,
    SortOrder,
    range_windows,
    rolling_aggregate,
)
from tests.property_based_testing.strategies import bound_magnitudes, bounds, sorted_groups

hypothesis_settings = settings(max_examples=int(os.getenv("HYPOTHESIS_MAX_EXAMPLES", 100)), deadline=None)

worker_configs = sampled_from(
    [ExecutionConfig(num_workers=1, parallel_min_groups=1), ExecutionConfig(num_workers=3, parallel_min_groups=1)]
)


def _window(frame: dict, preceding, following) -> RangeWindow:
    return RangeWindow(order=frame["order"], null_order=frame["null_order"]).range_between(preceding, following)


def _windows(frame: dict, preceding, following, config: ExecutionConfig | None = None) -> list[tuple[int, int]]:
    result = range_windows(
        pa.array(frame["order_by"], type=pa.int64()),
        _window(frame, preceding, following),
        group_keys=pa.array(frame["group_keys"], type=pa.int64()),
        config=config,
    )
    note(f"Windows: {list(result)}")
    return list(result)


def _group_spans(group_keys: list[int]) -> list[tuple[int, int]]:
    spans, start = [], 0
    for _, rows in groupby(group_keys):
        size = len(list(rows))
        spans.append((start, start + size))
        start += size
    return spans


def _expected_windows(frame: dict, preceding, following) -> list[tuple[int, int]]:
    """Windows by direct definition: every peer whose key is in range, checked row by row."""
    order_by, descending = frame["order_by"], frame["order"] is SortOrder.DESCENDING
    expected = []
    for start, end in _group_spans(frame["group_keys"]):
        rows = range(start, end)
        null_rows = [j for j in rows if order_by[j] is None]
        nulls_lead = frame["null_order"].nulls_lead(frame["order"])
        for i in rows:
            key = order_by[i]
            if key is None:
                expected.append((min(null_rows), max(null_rows) + 1))
                continue
            # Rows before the current one in row order are on the preceding side in both directions.
            low_side, high_side = (following, preceding) if descending else (preceding, following)
            peers = [
                j
                for j in rows
                if order_by[j] is not None
                and (low_side is None or order_by[j] >= key - low_side)
                and (high_side is None or order_by[j] <= key + high_side)
            ]
            if null_rows and ((preceding is None and nulls_lead) or (following is None and not nulls_lead)):
                peers.extend(null_rows)
            expected.append((min(peers), max(peers) + 1))
    return expected


@hypothesis_settings
@given(frame=sorted_groups(), preceding=bounds, following=bounds, config=worker_configs)
def test_windows_match_definition(frame, preceding, following, config):
    assert _windows(frame, preceding, following, config) == _expected_windows(frame, preceding, following)


@hypothesis_settings
@given(frame=sorted_groups(), preceding=bounds, following=bounds)
def test_windows_stay_within_group_and_hold_current_row(frame, preceding, following):
    windows = _windows(frame, preceding, following)
    for start, end in _group_spans(frame["group_keys"]):
        for i in range(start, end):
            window_start, window_end = windows[i]
            assert start <= window_start <= i < window_end <= end


@hypothesis_settings
@given(frame=sorted_groups(), preceding=bounds, following=bounds)
def test_tied_keys_share_a_window(frame, preceding, following):
    windows = _windows(frame, preceding, following)
    order_by, group_keys = frame["order_by"], frame["group_keys"]
    for i in range(1, len(order_by)):
        if group_keys[i] == group_keys[i - 1] and order_by[i] == order_by[i - 1]:
            assert windows[i] == windows[i - 1]


@hypothesis_settings
@given(
    frame=sorted_groups(),
    preceding=bound_magnitudes,
    following=bound_magnitudes,
    widen_preceding=bound_magnitudes,
    widen_following=bound_magnitudes,
)
def test_wider_bounds_give_wider_windows(frame, preceding, following, widen_preceding, widen_following):
    narrow = _windows(frame, preceding, following)
    wide = _windows(frame, preceding + widen_preceding, following + widen_following)
    unbounded = _windows(frame, None, None)
    for (ns, ne), (ws, we), (us, ue) in zip(narrow, wide, unbounded):
        assert us <= ws <= ns
        assert ne <= we <= ue


@hypothesis_settings
@given(frame=sorted_groups(), preceding=bounds, following=bounds)
def test_reversed_rows_mirror_windows(frame, preceding, following):
    """Reversing every row flips the sort direction and swaps which side each bound reaches."""
    num_rows = len(frame["order_by"])
    reversed_frame = {
        **frame,
        "group_keys": frame["group_keys"][::-1],
        "order_by": frame["order_by"][::-1],
        "order": SortOrder.ASCENDING if frame["order"] is SortOrder.DESCENDING else SortOrder.DESCENDING,
    }

    windows = _windows(frame, preceding, following)
    mirrored = _windows(reversed_frame, following, preceding)

    assert mirrored == [(num_rows - end, num_rows - start) for start, end in reversed(windows)]


@hypothesis_settings
@given(frame=sorted_groups(), preceding=bounds, following=bounds)
def test_counts_differ_by_nulls_in_window(frame, preceding, following):
    window = _window(frame, preceding, following)
    order_by = pa.array(frame["order_by"], type=pa.int64())
    values = pa.array(frame["values"], type=pa.int64())
    group_keys = pa.array(frame["group_keys"], type=pa.int64())

    count_all = rolling_aggregate(
        order_by, values, window, AggregationRequest.count(NullPolicy.INCLUDE), group_keys=group_keys
    ).to_pylist()
    count_valid = rolling_aggregate(
        order_by, values, window, AggregationRequest.count(), group_keys=group_keys
    ).to_pylist()
    sums = rolling_aggregate(order_by, values, window, AggregationRequest.sum(), group_keys=group_keys).to_pylist()

    for i, (start, end) in enumerate(_windows(frame, preceding, following)):
        in_window = frame["values"][start:end]
        valid = [v for v in in_window if v is not None]
        assert count_all[i] == end - start
        assert count_all[i] - count_valid[i] == len(in_window) - len(valid)
        assert sums[i] == (sum(valid) if valid else None)
