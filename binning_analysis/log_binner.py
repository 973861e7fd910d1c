"""Logarithmic binning of correlated time series.

The :class:`LogBinner` compresses an unbounded stream of samples into a fixed
number of levels. Level ``l`` keeps running statistics (count, sum and sum of
squares) over non-overlapping blocks of ``2**l`` consecutive samples, so block
averaging at every power-of-two block size is available at any time without
storing the series itself. Memory use is O(number of levels).

Each level owns a pairing cell. A value reaching a level is added to the
level's sums; if the cell is empty the value waits there, otherwise the two
values are averaged and the average moves on to the next level. Values leaving
the deepest level go to an overflow buffer, which :meth:`LogBinner.grow`
replays into the new levels of a larger binner.

Examples:
    Estimate the error of a correlated chain::

        from binning_analysis import LogBinner, level_statistics as ls

        binner = LogBinner(capacity=len(chain))
        binner.append(chain)
        ls.mean(binner), ls.std_error(binner, level=6)

    Vector-valued observables use an all-zero prototype of the right shape::

        binner = LogBinner(np.zeros(3), capacity=100_000)
"""

from dataclasses import dataclass
import logging
from typing import Any, Iterable, List, Optional, Tuple
import warnings

import numpy as np

from ._warnings import CapacityOverflowWarning
from .capacity import capacity_for_levels, levels_for_capacity
from .config import BinnerConfig
from .element_model import ElementModel
from .exceptions import CapacityNotIncreasedError, InvalidLevelError, InvalidZeroPrototypeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LevelSnapshot:
    """Read-only copy of the aggregates held by one binning level.

    Attributes:
        level: Level index, 0 for raw samples.
        count: Number of values presented to this level.
        sum: Sum of those values.
        sum_squares: Sum of their squares (component-wise for complex values).
        pending: Value waiting in the pairing cell, or ``None`` if it is empty.
    """

    level: int
    count: int
    sum: Any
    sum_squares: Any
    pending: Optional[Any]

    @property
    def block_size(self) -> int:
        """Number of raw samples averaged into each value of this level."""
        return 2**self.level

    @property
    def is_waiting(self) -> bool:
        return self.pending is not None


class LogBinner:
    """Online logarithmic binning analysis.

    Args:
        zero: All-zero prototype element. Its shape and dtype fix the element
            category; ``0.0`` (the default) for real scalars, ``0j`` for complex
            scalars, ``np.zeros(shape)`` for arrays.
        capacity: Number of values the binner absorbs before overflowing.
            Rounded up to ``2**N - 1`` for ``N`` levels. Defaults to
            ``config.default_capacity``.
        config: Optional :class:`BinnerConfig`.

    Raises:
        InvalidCapacityError: If ``capacity`` is not a positive integer.
        InvalidZeroPrototypeError: If ``zero`` cannot be classified or is not
            all-zero.

    Note:
        A binner is not thread-safe. Pushes must not run concurrently with
        each other or with statistics queries on the same instance.
    """

    def __init__(
        self,
        zero: Any = 0.0,
        capacity: Optional[int] = None,
        config: Optional[BinnerConfig] = None,
    ):
        self.config = config if config is not None else BinnerConfig()
        if capacity is None:
            capacity = self.config.default_capacity
        n_levels = levels_for_capacity(capacity)
        self._setup(ElementModel.from_prototype(zero), n_levels)

    @classmethod
    def from_dtype(
        cls,
        dtype: Any = np.float64,
        capacity: Optional[int] = None,
        config: Optional[BinnerConfig] = None,
    ) -> "LogBinner":
        """Create a scalar binner for a numeric dtype, e.g. ``complex``."""
        config = config if config is not None else BinnerConfig()
        if capacity is None:
            capacity = config.default_capacity
        return cls._build(ElementModel.from_dtype(dtype), levels_for_capacity(capacity), config)

    @classmethod
    def from_series(
        cls,
        series: Iterable[Any],
        capacity: Optional[int] = None,
        config: Optional[BinnerConfig] = None,
    ) -> "LogBinner":
        """Create a binner sized for ``series`` and push all of its values.

        The element category is taken from the first sample. Without an
        explicit ``capacity`` the binner gets just enough levels to hold the
        whole series.

        Raises:
            InvalidZeroPrototypeError: If the series is empty, ragged or
                non-numeric.
        """
        if not hasattr(series, "__len__"):
            try:
                series = list(series)
            except TypeError as err:
                raise InvalidZeroPrototypeError(
                    f"Cannot build a binner from a non-iterable {type(series).__name__}."
                ) from err
        try:
            values = np.asarray(series)
        except ValueError as err:
            raise InvalidZeroPrototypeError(
                "Cannot determine element category of a ragged series."
            ) from err
        if values.ndim == 0 or len(values) == 0:
            raise InvalidZeroPrototypeError("Cannot determine element category of an empty series.")

        model = ElementModel.from_sample(values[0])
        if capacity is None:
            capacity = len(values)
        config = config if config is not None else BinnerConfig()
        binner = cls._build(model, levels_for_capacity(capacity), config)
        for value in values:
            binner._push(value, stacklevel=5)
        return binner

    @classmethod
    def _build(cls, model: ElementModel, n_levels: int, config: BinnerConfig) -> "LogBinner":
        binner = cls.__new__(cls)
        binner.config = config
        binner._setup(model, n_levels)
        return binner

    def _setup(self, model: ElementModel, n_levels: int) -> None:
        self._model = model
        self._square = model.square
        self._n_levels = n_levels

        # One row per level; row l belongs to block size 2**l.
        self._count = np.zeros(n_levels, dtype=np.int64)
        self._sum = model.zeros(n_levels)
        self._sum_squares = model.zeros(n_levels)
        self._pending = model.zeros(n_levels)
        self._waiting = np.zeros(n_levels, dtype=bool)

        self._overflow: List[Any] = []
        self._overflow_warned = False
        logger.debug(
            "Created LogBinner with %d levels (capacity %d) for %s elements of shape %s",
            n_levels,
            capacity_for_levels(n_levels),
            model.kind.value,
            model.shape,
        )

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def push(self, value: Any) -> None:
        """Add one sample.

        The value is validated and converted before any state changes, so a
        rejected value leaves the binner untouched.

        Raises:
            DimensionMismatchError: If the value's shape differs from the
                element shape.
            ElementTypeError: If the value is non-numeric, or complex while the
                binner holds real elements.

        Warns:
            CapacityOverflowWarning: Before the first value that overflows the
                deepest level is stored.
        """
        self._push(value, stacklevel=5)

    def append(self, values: Iterable[Any]) -> None:
        """Push every element of ``values`` in order.

        Order matters: the levels measure correlations between consecutive
        samples. Iterating a 2-D array pushes its rows.
        """
        for value in values:
            self._push(value, stacklevel=5)

    def _push(self, value: Any, stacklevel: int) -> None:
        self._propagate(0, self._model.coerce(value), stacklevel)

    def _propagate(self, level: int, value: Any, stacklevel: int) -> None:
        # stacklevel counts frames from _check_overflow up to the user's call
        self._check_overflow(level, stacklevel)
        last = self._n_levels - 1
        while True:
            self._sum[level] += value
            self._sum_squares[level] += self._square(value)
            self._count[level] += 1

            if not self._waiting[level]:
                self._pending[level] = value
                self._waiting[level] = True
                return

            self._waiting[level] = False
            value = 0.5 * (self._pending[level] + value)
            if level == last:
                self._overflow.append(value)
                return
            level += 1

    def _check_overflow(self, level: int, stacklevel: int) -> None:
        """Warn before the first value that would reach the overflow buffer.

        A value entering ``level`` overflows exactly when every pairing cell
        from ``level`` down to the deepest level is waiting. The warning is
        issued before any state changes, so a warning turned into an error
        rejects the value like any other failed push.
        """
        if self._overflow_warned or not self._waiting[level:].all():
            return
        logger.debug(
            "LogBinner with %d levels is full after %d samples; "
            "block averages now go to the overflow buffer",
            self._n_levels,
            self.raw_count,
        )
        if self.config.warn_on_overflow:
            warnings.warn(
                f"LogBinner exceeded its capacity of {self.capacity} values; "
                "further block averages are kept in the overflow buffer. "
                "Use grow() to bin them.",
                CapacityOverflowWarning,
                stacklevel=stacklevel,
            )
        self._overflow_warned = True

    def reset(self) -> None:
        """Clear all levels and the overflow buffer."""
        self._count.fill(0)
        self._sum.fill(0)
        self._sum_squares.fill(0)
        self._pending.fill(0)
        self._waiting.fill(False)
        self._overflow.clear()
        self._overflow_warned = False
        logger.debug("Reset LogBinner with %d levels", self._n_levels)

    def grow(self, capacity: int) -> "LogBinner":
        """Return a new binner with more levels and the same history.

        Levels of this binner are copied exactly; the new deeper levels are
        filled by replaying the overflow buffer in arrival order. This binner
        is left unchanged and shares no state with the result.

        Args:
            capacity: Capacity of the new binner. Must need more levels than
                this binner has.

        Raises:
            CapacityNotIncreasedError: If ``capacity`` does not add a level.
            InvalidCapacityError: If ``capacity`` is not a positive integer.
        """
        return self._grow(capacity, stacklevel=5)

    def _grow(self, capacity: int, stacklevel: int) -> "LogBinner":
        n_levels = levels_for_capacity(capacity)
        if n_levels <= self._n_levels:
            raise CapacityNotIncreasedError(self.capacity, capacity)

        grown = self._build(self._model, n_levels, self.config)
        n = self._n_levels
        grown._count[:n] = self._count
        grown._sum[:n] = self._sum
        grown._sum_squares[:n] = self._sum_squares
        grown._pending[:n] = self._pending
        grown._waiting[:n] = self._waiting

        for value in self._overflow:
            grown._propagate(n, value, stacklevel)

        logger.debug(
            "Grew LogBinner from %d to %d levels, replayed %d overflow values",
            n,
            n_levels,
            len(self._overflow),
        )
        return grown

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        """Number of samples that fit before the overflow buffer is used."""
        return capacity_for_levels(self._n_levels)

    @property
    def n_levels(self) -> int:
        return self._n_levels

    @property
    def raw_count(self) -> int:
        """Number of samples pushed since construction or the last reset."""
        return int(self._count[0])

    @property
    def counts(self) -> np.ndarray:
        """Per-level value counts (a copy)."""
        return self._count.copy()

    @property
    def element_model(self) -> ElementModel:
        return self._model

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._model.shape

    @property
    def ndim(self) -> int:
        return self._model.ndim

    @property
    def dtype(self) -> np.dtype:
        """Accumulator dtype (``float64`` or ``complex128``)."""
        return self._model.dtype

    @property
    def overflow(self) -> Tuple[Any, ...]:
        """Block averages that did not fit into the deepest level."""
        return tuple(np.copy(value) if self._model.is_array else value for value in self._overflow)

    def is_empty(self) -> bool:
        return self.raw_count == 0

    def level(self, level: int) -> LevelSnapshot:
        """Snapshot of one level's aggregates.

        Raises:
            InvalidLevelError: If ``level`` is not in ``[0, n_levels)``.
        """
        self.validate_level(level)
        waiting = bool(self._waiting[level])
        if self._model.is_array:
            pending = self._pending[level].copy() if waiting else None
            return LevelSnapshot(
                level,
                int(self._count[level]),
                self._sum[level].copy(),
                self._sum_squares[level].copy(),
                pending,
            )
        return LevelSnapshot(
            level,
            int(self._count[level]),
            self._sum[level],
            self._sum_squares[level],
            self._pending[level] if waiting else None,
        )

    def validate_level(self, level: int, minimum: int = 0) -> None:
        """Raise :class:`InvalidLevelError` unless ``minimum <= level < n_levels``."""
        if isinstance(level, (bool, np.bool_)) or not isinstance(level, (int, np.integer)):
            raise InvalidLevelError(level, self._n_levels, minimum)
        if not minimum <= level < self._n_levels:
            raise InvalidLevelError(level, self._n_levels, minimum)

    def __len__(self) -> int:
        return self.raw_count

    def __repr__(self) -> str:
        return (
            f"LogBinner(n_levels={self._n_levels}, kind={self._model.kind.value!r}, "
            f"shape={self._model.shape}, count={self.raw_count})"
        )


def create(
    prototype: Any = 0.0,
    capacity: Optional[int] = None,
    config: Optional[BinnerConfig] = None,
) -> LogBinner:
    """Create a :class:`LogBinner` from an all-zero prototype element."""
    return LogBinner(prototype, capacity=capacity, config=config)


def grow(binner: LogBinner, capacity: int) -> LogBinner:
    """Return a larger copy of ``binner``; see :meth:`LogBinner.grow`."""
    return binner._grow(capacity, stacklevel=5)
