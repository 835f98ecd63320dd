from __future__ import annotations

import logging
from typing import TYPE_CHECKING, NamedTuple

from rangeframe.dependencies import np, pa, pc
from rangeframe.exceptions import InvalidArgumentError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rangeframe.window import NullOrder, SortOrder

logger = logging.getLogger(__name__)


class GroupDescriptor(NamedTuple):
    """Half-open ``[start, end)`` span of rows sharing one group key."""

    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start


class GroupSubranges(NamedTuple):
    """The null and non-null order-key runs of one group. Together they cover the group exactly."""

    nulls: GroupDescriptor
    values: GroupDescriptor

    @property
    def group(self) -> GroupDescriptor:
        return GroupDescriptor(min(self.nulls.start, self.values.start), max(self.nulls.end, self.values.end))


def _key_changes(keys: pa.Array) -> np.ndarray:
    """Mask of length ``len(keys) - 1``: True where row ``i + 1`` has a different key than row ``i``.

    Nulls compare equal to each other and unequal to any value.
    """
    prev, cur = keys.slice(0, len(keys) - 1), keys.slice(1)
    if pa.types.is_null(keys.type):
        return np.zeros(len(keys) - 1, dtype=np.bool_)
    differ = pc.fill_null(pc.not_equal(prev, cur), False).to_numpy(zero_copy_only=False)
    if keys.null_count == 0:
        return differ
    prev_valid = prev.is_valid().to_numpy(zero_copy_only=False)
    cur_valid = cur.is_valid().to_numpy(zero_copy_only=False)
    return differ | (prev_valid != cur_valid)


def find_groups(group_keys: Sequence[pa.Array], num_rows: int) -> list[GroupDescriptor]:
    """Splits ``num_rows`` rows into maximal runs of equal group keys.

    Rows must already be clustered by key: a new group starts every time any key column differs
    from the previous row's. With no key columns every row belongs to one group.

    Raises:
        InvalidArgumentError: If a key column's length differs from ``num_rows``.
    """
    for i, keys in enumerate(group_keys):
        if len(keys) != num_rows:
            raise InvalidArgumentError(f"Group key column {i} has {len(keys)} rows, expected {num_rows}")
    if num_rows == 0:
        return []

    changes = np.zeros(num_rows - 1, dtype=np.bool_)
    for keys in group_keys:
        changes |= _key_changes(keys)

    boundaries = np.concatenate(([0], np.flatnonzero(changes) + 1, [num_rows])).tolist()
    groups = [GroupDescriptor(start, end) for start, end in zip(boundaries[:-1], boundaries[1:])]
    logger.debug("Found %d groups over %d rows", len(groups), num_rows)
    return groups


def partition_nulls(
    group: GroupDescriptor,
    order_key_valid: np.ndarray,
    order: SortOrder,
    null_order: NullOrder,
) -> GroupSubranges:
    """Locates the contiguous run of null order keys at the edge of ``group``.

    Which edge holds the nulls follows from ``order`` and ``null_order``.

    Raises:
        InvalidArgumentError: If the group's nulls are not all packed at that edge.
    """
    start, end = group
    num_nulls = int(end - start - np.count_nonzero(order_key_valid[start:end]))

    if null_order.nulls_lead(order):
        nulls = GroupDescriptor(start, start + num_nulls)
        values = GroupDescriptor(start + num_nulls, end)
    else:
        values = GroupDescriptor(start, end - num_nulls)
        nulls = GroupDescriptor(end - num_nulls, end)

    if num_nulls and order_key_valid[nulls.start : nulls.end].any():
        edge = "start" if nulls.start == start else "end"
        raise InvalidArgumentError(
            f"Null order keys of the group at rows [{start}, {end}) are not contiguous at the group's {edge} "
            f"({order.value} order, nulls {null_order.value} values)"
        )
    return GroupSubranges(nulls, values)
