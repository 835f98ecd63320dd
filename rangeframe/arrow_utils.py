from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rangeframe.dependencies import np, pa
from rangeframe.exceptions import InvalidArgumentError

if TYPE_CHECKING:
    from rangeframe.datatype import OrderKeyType


def ensure_array(data: Any, name: str = "column") -> pa.Array:
    """Normalizes any supported column input into a single contiguous Arrow array"""
    if isinstance(data, pa.ChunkedArray):
        arr_type = data.type
        if isinstance(arr_type, pa.BaseExtensionType):
            return arr_type.wrap_array(data.cast(arr_type.storage_type).combine_chunks())
        return data.combine_chunks()
    if isinstance(data, pa.Array):
        return data
    if isinstance(data, np.ndarray):
        if data.ndim != 1:
            raise InvalidArgumentError(f"{name} must be one-dimensional, got an array of shape {data.shape}")
        return pa.array(data)
    try:
        return pa.array(data)
    except (pa.ArrowInvalid, pa.ArrowTypeError) as e:
        raise InvalidArgumentError(f"Could not convert {name} into an Arrow array: {e}") from e


def validity_mask(arr: pa.Array) -> np.ndarray:
    """Boolean numpy mask, True where ``arr`` holds a value"""
    if arr.null_count == 0:
        return np.ones(len(arr), dtype=np.bool_)
    return arr.is_valid().to_numpy(zero_copy_only=False)


def order_key_values(arr: pa.Array, key_type: OrderKeyType) -> np.ndarray:
    """Comparable numpy view of an order-by column: int64 ticks for temporal and integer keys,
    float64 for floating keys. Null slots are filled with zero and must be masked by the caller.
    """
    if pa.types.is_date32(arr.type):
        arr = arr.cast(pa.int32())
    storage = arr.cast(key_type.storage_type())
    return storage.fill_null(0).to_numpy(zero_copy_only=False)


def check_lengths(**columns: pa.Array) -> int:
    """Returns the shared length of ``columns``, failing if any two differ"""
    lengths = {name: len(col) for name, col in columns.items()}
    distinct = set(lengths.values())
    if len(distinct) > 1:
        described = ", ".join(f"{name}={length}" for name, length in lengths.items())
        raise InvalidArgumentError(f"All columns must have the same length, got {described}")
    return distinct.pop() if distinct else 0
