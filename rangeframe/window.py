from __future__ import annotations

import dataclasses
import datetime
import enum
import numbers
from typing import TYPE_CHECKING, Any, Union

from rangeframe.datatype import TimeUnit
from rangeframe.exceptions import InvalidArgumentError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rangeframe.dependencies import np


class SortOrder(enum.Enum):
    """Direction in which the order-by column is sorted within each group."""

    ASCENDING = "ascending"
    DESCENDING = "descending"

    @property
    def is_ascending(self) -> bool:
        return self is SortOrder.ASCENDING


class NullOrder(enum.Enum):
    """Where null order keys sort relative to values.

    ``BEFORE`` treats null as smaller than any value, so nulls lead an ascending group and trail a
    descending one. ``AFTER`` is the reverse.
    """

    BEFORE = "before"
    AFTER = "after"

    def nulls_lead(self, order: SortOrder) -> bool:
        """Whether a group sorted in ``order`` starts with its null order keys."""
        return order.is_ascending == (self is NullOrder.BEFORE)


@dataclasses.dataclass(frozen=True)
class RangeBound:
    """Maximum distance from the current row's order key on one side of the window.

    A bound is either unbounded (``magnitude is None``) or a non-negative magnitude, optionally
    tagged with a ``TimeUnit`` when the order key is temporal.
    """

    magnitude: int | float | None
    unit: TimeUnit | None = None

    @classmethod
    def unbounded(cls) -> RangeBound:
        return cls(None)

    @classmethod
    def current_row(cls) -> RangeBound:
        """A zero-distance bound: the window reaches only rows tied with the current row on this side."""
        return cls(0)

    @classmethod
    def of(cls, magnitude: int | float, unit: TimeUnit | str | None = None) -> RangeBound:
        if isinstance(unit, str):
            unit = TimeUnit.from_str(unit)
        return cls(magnitude, unit)

    @classmethod
    def from_timedelta(cls, delta: datetime.timedelta) -> RangeBound:
        """Expresses ``delta`` in the coarsest unit that represents it exactly.

        Keeping the unit coarse lets one bound apply to order keys of any finer resolution.

        Examples:
            >>> RangeBound.from_timedelta(datetime.timedelta(days=2))
            RangeBound(magnitude=2, unit=TimeUnit(D))
            >>> RangeBound.from_timedelta(datetime.timedelta(seconds=1.5))
            RangeBound(magnitude=1500, unit=TimeUnit(ms))
        """
        micros = (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
        for unit in (TimeUnit.days(), TimeUnit.s(), TimeUnit.ms()):
            ticks, remainder = divmod(micros, unit.nanos // 1_000)
            if remainder == 0:
                return cls(ticks, unit)
        return cls(micros, TimeUnit.us())

    @property
    def is_unbounded(self) -> bool:
        return self.magnitude is None

    def __repr__(self) -> str:
        if self.is_unbounded:
            return "RangeBound(unbounded)"
        return f"RangeBound(magnitude={self.magnitude!r}, unit={self.unit!r})"


BoundLike = Union[RangeBound, datetime.timedelta, int, float, None]


def to_range_bound(value: BoundLike, side: str = "bound") -> RangeBound:
    """Coerces the accepted shorthand forms of a bound into a ``RangeBound``.

    ``None`` means unbounded, a ``timedelta`` carries its own unit and a bare number is unit-less.
    """
    if value is None:
        return RangeBound.unbounded()
    if isinstance(value, RangeBound):
        return value
    if isinstance(value, datetime.timedelta):
        return RangeBound.from_timedelta(value)
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return RangeBound(value)
    raise InvalidArgumentError(f"Unsupported {side} window bound: {value!r}")


@dataclasses.dataclass(frozen=True)
class RangeWindow:
    """Describes a range-based window frame over an ordered column.

    Examples:
        >>> import datetime
        >>> from rangeframe import RangeWindow
        >>> # Rows from 2 days before to 1 day after the current row's timestamp
        >>> window = RangeWindow().range_between(datetime.timedelta(days=2), datetime.timedelta(days=1))
        >>> # Running window over a column sorted in descending order, nulls at the end
        >>> window = RangeWindow().order_by(desc=True, nulls_first=False).range_between(None, 0)
    """

    order: SortOrder = SortOrder.ASCENDING
    null_order: NullOrder = NullOrder.BEFORE
    preceding: RangeBound = dataclasses.field(default_factory=RangeBound.unbounded)
    following: RangeBound = dataclasses.field(default_factory=RangeBound.current_row)

    def order_by(self, desc: bool = False, nulls_first: bool | None = None) -> RangeWindow:
        """Declares how the order-by column is sorted within each group.

        Args:
            desc: Whether order keys are sorted descending. Default is False (ascending).
            nulls_first: Whether null order keys sit at the beginning (True) or end (False) of each group.
                Default is None, which places nulls first for ascending order and last for descending order.
        """
        order = SortOrder.DESCENDING if desc else SortOrder.ASCENDING
        if nulls_first is None:
            null_order = NullOrder.BEFORE
        else:
            null_order = NullOrder.BEFORE if nulls_first == order.is_ascending else NullOrder.AFTER
        return dataclasses.replace(self, order=order, null_order=null_order)

    def range_between(self, preceding: Any, following: Any) -> RangeWindow:
        """Restricts each window to rows whose order key is within a distance of the current row's.

        Args:
            preceding: How far behind the current row's order key the window reaches. ``None`` is unbounded,
                numbers are unit-less distances and ``datetime.timedelta`` values carry their own unit.
            following: How far ahead of the current row's order key the window reaches, same forms as ``preceding``.
        """
        return dataclasses.replace(
            self,
            preceding=to_range_bound(preceding, "preceding"),
            following=to_range_bound(following, "following"),
        )


@dataclasses.dataclass(frozen=True)
class RowWindows:
    """Per-row ``[start, end)`` offsets into the aggregation column."""

    starts: np.ndarray
    ends: np.ndarray

    def __len__(self) -> int:
        return len(self.starts)

    def __iter__(self) -> Iterator[tuple[int, int]]:
        return zip(self.starts.tolist(), self.ends.tolist())

    def sizes(self) -> np.ndarray:
        return self.ends - self.starts
