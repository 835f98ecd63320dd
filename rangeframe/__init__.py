from __future__ import annotations

__version__ = "0.1.0"


def get_version() -> str:
    return __version__


###
# rangeframe top-level imports
###

from rangeframe.aggregation import AggregationKind, AggregationRequest, NullPolicy, aggregate_windows
from rangeframe.bounds import resolve_windows
from rangeframe.config import ExecutionConfig, execution_config_ctx, get_execution_config, set_execution_config
from rangeframe.datatype import TimeUnit
from rangeframe.exceptions import (
    InvalidArgumentError,
    RangeFrameCoreException,
    RangeOverflowError,
    UnsupportedTypeError,
)
from rangeframe.logging import setup_logger
from rangeframe.partitioning import GroupDescriptor, GroupSubranges, find_groups, partition_nulls
from rangeframe.rolling import grouped_range_rolling_window, range_rolling_window, range_windows, rolling_aggregate
from rangeframe.scaling import scale_bound
from rangeframe.window import NullOrder, RangeBound, RangeWindow, RowWindows, SortOrder

__all__ = [
    "AggregationKind",
    "AggregationRequest",
    "ExecutionConfig",
    "GroupDescriptor",
    "GroupSubranges",
    "InvalidArgumentError",
    "NullOrder",
    "NullPolicy",
    "RangeBound",
    "RangeFrameCoreException",
    "RangeOverflowError",
    "RangeWindow",
    "RowWindows",
    "SortOrder",
    "TimeUnit",
    "UnsupportedTypeError",
    "aggregate_windows",
    "execution_config_ctx",
    "find_groups",
    "get_execution_config",
    "grouped_range_rolling_window",
    "partition_nulls",
    "range_rolling_window",
    "range_windows",
    "resolve_windows",
    "rolling_aggregate",
    "scale_bound",
    "set_execution_config",
    "setup_logger",
]
