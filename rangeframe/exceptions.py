class RangeFrameCoreException(ValueError):
    """Base class for every error raised while evaluating a range window"""

    pass


class InvalidArgumentError(RangeFrameCoreException):
    """Inputs violate the call contract

    Raised for mismatched column lengths, negative bound magnitudes, nulls that are not
    contiguous at the expected edge of a group, unsorted order keys and narrowing unit conversions.
    """

    pass


class RangeOverflowError(RangeFrameCoreException, OverflowError):
    """Scaling a window bound into the order key's unit left the signed 64-bit range"""

    pass


class UnsupportedTypeError(RangeFrameCoreException, TypeError):
    """The requested aggregation cannot be computed over the aggregation column's type"""

    pass
