from __future__ import annotations

import dataclasses
from typing import ClassVar

from rangeframe.dependencies import pa
from rangeframe.exceptions import UnsupportedTypeError


class TimeUnit:
    """Resolution of a temporal order key or of a window bound magnitude."""

    _unit: str

    # Nanoseconds in one tick of each unit, coarsest first.
    _NANOS: ClassVar[dict[str, int]] = {
        "D": 86_400 * 1_000_000_000,
        "s": 1_000_000_000,
        "ms": 1_000_000,
        "us": 1_000,
        "ns": 1,
    }
    _ALIASES: ClassVar[dict[str, str]] = {
        "d": "D",
        "day": "D",
        "days": "D",
        "s": "s",
        "seconds": "s",
        "ms": "ms",
        "milliseconds": "ms",
        "us": "us",
        "microseconds": "us",
        "ns": "ns",
        "nanoseconds": "ns",
    }

    def __init__(self) -> None:
        raise NotImplementedError("Please use TimeUnit.from_str(), .days(), .s(), .ms(), .us(), or .ns() instead.")

    @classmethod
    def _from_str_unchecked(cls, unit: str) -> TimeUnit:
        timeunit = cls.__new__(cls)
        timeunit._unit = unit
        return timeunit

    @classmethod
    def days(cls) -> TimeUnit:
        """Represents days."""
        return cls._from_str_unchecked("D")

    @classmethod
    def s(cls) -> TimeUnit:
        """Represents seconds."""
        return cls._from_str_unchecked("s")

    @classmethod
    def ms(cls) -> TimeUnit:
        """Represents milliseconds."""
        return cls._from_str_unchecked("ms")

    @classmethod
    def us(cls) -> TimeUnit:
        """Represents microseconds."""
        return cls._from_str_unchecked("us")

    @classmethod
    def ns(cls) -> TimeUnit:
        """Represents nanoseconds."""
        return cls._from_str_unchecked("ns")

    @classmethod
    def from_str(cls, unit: str) -> TimeUnit:
        """Attempts to parse a string into a TimeUnit.

        Supported strings are
        - "D" | "day" | "days" -> days
        - "s" | "seconds" -> seconds
        - "ms" | "milliseconds" -> milliseconds
        - "us" | "microseconds" -> microseconds
        - "ns" | "nanoseconds" -> nanoseconds

        Args:
            unit: The string to parse.

        Examples:
            >>> TimeUnit.from_str("s")
            TimeUnit(s)
            >>> TimeUnit.from_str("days")
            TimeUnit(D)
        """
        key = unit if unit == "D" else unit.lower()
        if key not in cls._ALIASES:
            raise ValueError(f"Unrecognized time unit: {unit!r}")
        return cls._from_str_unchecked(cls._ALIASES[key])

    @property
    def nanos(self) -> int:
        """Number of nanoseconds in one tick of this unit."""
        return self._NANOS[self._unit]

    def is_coarser_than(self, other: TimeUnit) -> bool:
        return self.nanos > other.nanos

    def ratio_to(self, finer: TimeUnit) -> int:
        """Number of ``finer`` ticks in one tick of this unit.

        Raises:
            ValueError: If ``finer`` is coarser than this unit.
        """
        if finer.is_coarser_than(self):
            raise ValueError(f"Cannot express {self} in the coarser unit {finer}")
        return self.nanos // finer.nanos

    def __str__(self) -> str:
        return self._unit

    def __repr__(self) -> str:
        return f"TimeUnit({self._unit})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, TimeUnit) and self._unit == other._unit

    def __hash__(self) -> int:
        return hash(self._unit)


@dataclasses.dataclass(frozen=True)
class OrderKeyType:
    """What the range arithmetic needs to know about an order-by column's type.

    Temporal columns carry a native ``unit``; their values are compared as int64 ticks of that unit.
    """

    arrow_type: pa.DataType
    unit: TimeUnit | None
    is_floating: bool

    @property
    def is_temporal(self) -> bool:
        return self.unit is not None

    @classmethod
    def from_arrow_type(cls, arrow_type: pa.DataType) -> OrderKeyType:
        if pa.types.is_timestamp(arrow_type) or pa.types.is_duration(arrow_type):
            return cls(arrow_type, TimeUnit.from_str(arrow_type.unit), False)
        if pa.types.is_date32(arrow_type):
            return cls(arrow_type, TimeUnit.days(), False)
        if pa.types.is_date64(arrow_type):
            return cls(arrow_type, TimeUnit.ms(), False)
        if pa.types.is_integer(arrow_type):
            if arrow_type == pa.uint64():
                raise UnsupportedTypeError("uint64 order-by columns are not supported, cast to int64 first")
            return cls(arrow_type, None, False)
        if pa.types.is_floating(arrow_type):
            return cls(arrow_type, None, True)
        # All-null columns built from Python lists infer the null type.
        if pa.types.is_null(arrow_type):
            return cls(arrow_type, None, False)
        raise UnsupportedTypeError(
            f"Range windows require a numeric or temporal order-by column, got {arrow_type}"
        )

    def storage_type(self) -> pa.DataType:
        """Arrow type holding the comparable representation of the column's values."""
        return pa.float64() if self.is_floating else pa.int64()
