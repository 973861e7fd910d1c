"""Conversions between binner capacity and number of binning levels.

A binner with ``N`` levels can absorb ``2**N - 1`` raw values before the
deepest level starts emitting into the overflow buffer.
"""

import numbers

from .exceptions import InvalidCapacityError

#: Number of levels used when no capacity is requested (about 4.3e9 values).
DEFAULT_N_LEVELS = 32


def capacity_for_levels(n_levels: int) -> int:
    """Return how many raw values ``n_levels`` levels hold without overflowing."""
    return 2**n_levels - 1


def levels_for_capacity(capacity: int) -> int:
    """Return the smallest level count whose capacity is at least ``capacity``.

    Args:
        capacity: Number of raw values the binner must absorb.

    Returns:
        Smallest ``N`` with ``2**N - 1 >= capacity``.

    Raises:
        InvalidCapacityError: If ``capacity`` is not a positive integer.
    """
    if isinstance(capacity, bool) or not isinstance(capacity, numbers.Integral):
        raise InvalidCapacityError(capacity)
    if capacity <= 0:
        raise InvalidCapacityError(capacity)
    # 2**N > capacity  <=>  N >= bit_length(capacity)
    return int(capacity).bit_length()


DEFAULT_CAPACITY = capacity_for_levels(DEFAULT_N_LEVELS)
