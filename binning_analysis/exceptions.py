"""Exceptions raised by the binning engine and its statistics layer.

Every error derives from :class:`BinningError` and from the builtin exception
that best matches it, so ``except ValueError`` style handlers keep working.
All errors are raised synchronously at the offending call; nothing is
downgraded to NaN or zero.
"""

from typing import Optional, Tuple


class BinningError(Exception):
    """Base class for all binning_analysis errors."""


class InvalidCapacityError(BinningError, ValueError):
    """Raised when a requested capacity is not a positive integer."""

    def __init__(self, capacity: object) -> None:
        self.capacity = capacity
        super().__init__(f"Capacity must be a finite, positive integer (got {capacity!r}).")


class InvalidZeroPrototypeError(BinningError, ValueError):
    """Raised when an element prototype cannot seed the accumulators.

    Either the element category (scalar/array, real/complex) cannot be
    determined, or the prototype is not all-zero.
    """


class DimensionMismatchError(BinningError, ValueError):
    """Raised when a value's shape disagrees with the binner's element shape.

    Attributes:
        expected: Element shape the binner was configured with.
        actual: Shape of the rejected value.
    """

    def __init__(self, expected: Tuple[int, ...], actual: Tuple[int, ...]) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Expected {len(expected)} dimensions with shape {expected} "
            f"but got {len(actual)} dimensions with shape {actual}."
        )


class ElementTypeError(BinningError, TypeError):
    """Raised when a value's numeric type cannot be accumulated.

    This covers non-numeric payloads and complex values pushed into a binner
    configured for real elements.
    """


class CapacityNotIncreasedError(BinningError, ValueError):
    """Raised when growing a binner would not add at least one level.

    Attributes:
        current_capacity: Capacity of the binner being grown.
        requested_capacity: Capacity passed to ``grow``.
    """

    def __init__(self, current_capacity: int, requested_capacity: int) -> None:
        self.current_capacity = current_capacity
        self.requested_capacity = requested_capacity
        super().__init__(
            "The new LogBinner must have a larger capacity than the one it is "
            f"built from (current capacity {current_capacity}, requested "
            f"{requested_capacity}; try capacity >= {current_capacity + 1})."
        )


class InsufficientDataError(BinningError, ValueError):
    """Raised when a level holds too few values for the requested statistic.

    Attributes:
        level: Binning level that was queried.
        count: Number of values accumulated at that level.
        required: Minimum number of values the statistic needs.
    """

    def __init__(self, level: int, count: int, required: int, statistic: Optional[str] = None) -> None:
        self.level = level
        self.count = count
        self.required = required
        what = statistic or "this statistic"
        super().__init__(
            f"Level {level} holds {count} "
            f"{'value' if count == 1 else 'values'}; {what} needs at least {required}."
        )


class InvalidLevelError(BinningError, IndexError):
    """Raised when a binning level index is outside the binner's range."""

    def __init__(self, level: object, n_levels: int, minimum: int = 0) -> None:
        self.level = level
        self.n_levels = n_levels
        super().__init__(
            f"Level must be an integer in [{minimum}, {n_levels - 1}] (got {level!r})."
        )
