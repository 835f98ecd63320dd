from __future__ import annotations

import logging
import math
import numbers
from typing import TYPE_CHECKING

from rangeframe.exceptions import InvalidArgumentError, RangeOverflowError

if TYPE_CHECKING:
    from rangeframe.datatype import OrderKeyType
    from rangeframe.window import RangeBound

logger = logging.getLogger(__name__)

INT64_MAX = 2**63 - 1


def _check_magnitude(magnitude: object) -> None:
    if not isinstance(magnitude, numbers.Real) or isinstance(magnitude, bool):
        raise InvalidArgumentError(f"Window bound magnitude must be a real number, got {magnitude!r}")
    if math.isnan(magnitude):
        raise InvalidArgumentError("Window bound magnitude must not be NaN")
    if magnitude < 0:
        raise InvalidArgumentError(f"Window bound magnitude must be non-negative, got {magnitude!r}")


def _as_integral(magnitude: numbers.Real, key_type: OrderKeyType) -> int:
    if isinstance(magnitude, numbers.Integral):
        return int(magnitude)
    if math.isinf(magnitude) or not float(magnitude).is_integer():
        raise InvalidArgumentError(
            f"Window bound magnitude {magnitude!r} is not integral, as required by order-by type {key_type.arrow_type}"
        )
    return int(magnitude)


def scale_bound(bound: RangeBound, key_type: OrderKeyType) -> int | float | None:
    """Re-expresses a bound's magnitude in the native unit of the order-by column.

    Only widening conversions are allowed: a bound in days applies to a nanosecond timestamp column,
    but a bound in nanoseconds cannot be applied to a day-resolution column.

    Returns:
        The magnitude in order-key ticks, or None for an unbounded bound.

    Raises:
        InvalidArgumentError: If the magnitude is negative or not a number, its unit is finer than the
            column's, or the bound and the column disagree on being temporal.
        RangeOverflowError: If the scaled magnitude does not fit in a signed 64-bit integer.
    """
    if bound.is_unbounded:
        return None
    magnitude = bound.magnitude
    _check_magnitude(magnitude)

    if key_type.is_floating:
        if bound.unit is not None:
            raise InvalidArgumentError(f"Bound unit {bound.unit} cannot apply to order-by type {key_type.arrow_type}")
        return float(magnitude)

    ticks = _as_integral(magnitude, key_type)
    if key_type.is_temporal:
        if bound.unit is None:
            # A distance of zero means "current row" in any unit.
            if ticks != 0:
                raise InvalidArgumentError(
                    f"Bound {magnitude!r} needs a time unit to apply to order-by type {key_type.arrow_type}"
                )
        elif key_type.unit.is_coarser_than(bound.unit):
            raise InvalidArgumentError(
                f"Cannot narrow a bound in unit {bound.unit} to order-by unit {key_type.unit}, "
                "only widening conversions are supported"
            )
        else:
            ratio = bound.unit.ratio_to(key_type.unit)
            if ticks > INT64_MAX // ratio:
                raise RangeOverflowError(
                    f"Bound of {magnitude} {bound.unit} overflows int64 when scaled to unit {key_type.unit}"
                )
            ticks *= ratio
    elif bound.unit is not None:
        raise InvalidArgumentError(f"Bound unit {bound.unit} cannot apply to order-by type {key_type.arrow_type}")

    if ticks > INT64_MAX:
        raise RangeOverflowError(f"Bound of {magnitude} overflows int64")
    logger.debug("Scaled bound %r to %d ticks of %s", bound, ticks, key_type.unit or key_type.arrow_type)
    return ticks
