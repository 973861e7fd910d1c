"""Statistics derived from the per-level aggregates of a :class:`LogBinner`.

All functions are read-only. Level ``l`` holds averages over blocks of
``2**l`` raw samples. For correlated data the naive standard error at level 0
underestimates the true error; it grows with the block size until the blocks
are longer than the correlation time, where it plateaus. The plateau value is
the error estimate to report.

Scalar binners return Python ``float`` (or ``complex`` for the mean of a
complex binner); array binners return ndarrays of the element shape. The
``all_*`` functions return one entry per level that holds enough values for
the statistic, in ascending level order, stacked along the first axis.

Examples:
    Find the block size where the error estimate has settled::

        from binning_analysis import level_statistics as ls

        plateau = ls.find_plateau(binner)
        if plateau is not None:
            error = ls.std_error(binner, plateau)
            tau = ls.autocorrelation_time(binner, plateau)
"""

from typing import Any, List, Optional

import numpy as np

from .exceptions import InsufficientDataError
from .log_binner import LevelSnapshot, LogBinner

_MIN_COUNT_MEAN = 1
_MIN_COUNT_VARIANCE = 2


def _snapshot(binner: LogBinner, level: int, required: int, statistic: str) -> LevelSnapshot:
    snap = binner.level(level)
    if snap.count < required:
        raise InsufficientDataError(level, snap.count, required, statistic)
    return snap


def _result(binner: LogBinner, value: Any) -> Any:
    if binner.element_model.is_array:
        return np.asarray(value)
    if np.iscomplexobj(value):
        return complex(value)
    return float(value)


def _variance(binner: LogBinner, snap: LevelSnapshot) -> Any:
    # Bessel-corrected: sum(x^2)/(n-1) - sum(x)^2/((n-1)n)
    model = binner.element_model
    n = snap.count
    var = model.component_sum(snap.sum_squares) / (n - 1) - model.squared_norm(snap.sum) / (
        (n - 1) * n
    )
    # Round-off in the two-sum formula can dip just below zero for constant data.
    return np.maximum(var, 0.0)


def _scaled_variance(binner: LogBinner, level: int, statistic: str) -> Any:
    snap = _snapshot(binner, level, _MIN_COUNT_VARIANCE, statistic)
    return _variance(binner, snap) / snap.count


def _levels_with(binner: LogBinner, required: int, statistic: str) -> List[int]:
    counts = binner.counts
    if counts[0] < required:
        raise InsufficientDataError(0, int(counts[0]), required, statistic)
    return [lvl for lvl in range(binner.n_levels) if counts[lvl] >= required]


def mean(binner: LogBinner, level: int = 0) -> Any:
    """Mean of the values at ``level``.

    Every level averages the same raw samples, so all levels agree up to the
    samples still waiting in lower pairing cells.

    Raises:
        InsufficientDataError: If the level holds no values.
        InvalidLevelError: If ``level`` is out of range.
    """
    snap = _snapshot(binner, level, _MIN_COUNT_MEAN, "mean")
    return _result(binner, snap.sum / snap.count)


def variance(binner: LogBinner, level: int = 0) -> Any:
    """Unbiased sample variance of the block averages at ``level``.

    Complex values contribute the variance of their real part plus the
    variance of their imaginary part, so the result is always real. Arrays
    are handled elementwise.

    Raises:
        InsufficientDataError: If the level holds fewer than two values.
        InvalidLevelError: If ``level`` is out of range.
    """
    snap = _snapshot(binner, level, _MIN_COUNT_VARIANCE, "variance")
    return _result(binner, _variance(binner, snap))


def scaled_variance(binner: LogBinner, level: int = 0) -> Any:
    """Variance at ``level`` divided by the level's count.

    This is the squared standard error of the mean estimated with blocks of
    ``2**level`` samples.
    """
    return _result(binner, _scaled_variance(binner, level, "scaled variance"))


def std_error(binner: LogBinner, level: int = 0) -> Any:
    """Standard error of the mean estimated at block size ``2**level``."""
    return _result(binner, np.sqrt(_scaled_variance(binner, level, "standard error")))


def autocorrelation_time(binner: LogBinner, level: int = 0) -> Any:
    """Integrated autocorrelation time estimated at ``level``.

    Computed as ``0.5 * (scaled_variance(level) / scaled_variance(0) - 1)``,
    so it is exactly zero at level 0. A zero variance at level 0 gives
    ``inf`` or ``nan`` rather than an error.
    """
    binner.validate_level(level)
    sv_0 = _scaled_variance(binner, 0, "autocorrelation time")
    if level == 0:
        return _result(binner, np.zeros_like(sv_0))
    sv_l = _scaled_variance(binner, level, "autocorrelation time")
    with np.errstate(divide="ignore", invalid="ignore"):
        tau = 0.5 * (sv_l / sv_0 - 1)
    return _result(binner, tau)


def convergence(binner: LogBinner, level: int) -> float:
    """Relative change of the scaled variance from ``level - 1`` to ``level``.

    Values close to zero mean doubling the block size no longer changes the
    error estimate. For arrays the elementwise relative changes are averaged.

    Raises:
        InvalidLevelError: If ``level`` is not in ``[1, n_levels)``.
        InsufficientDataError: If either level holds fewer than two values.
    """
    binner.validate_level(level, minimum=1)
    sv_prev = _scaled_variance(binner, level - 1, "convergence")
    sv_l = _scaled_variance(binner, level, "convergence")
    with np.errstate(divide="ignore", invalid="ignore"):
        ratio = np.abs((sv_l - sv_prev) / sv_prev)
    return float(np.mean(ratio))


def has_converged(binner: LogBinner, level: int, threshold: Optional[float] = None) -> bool:
    """Whether the error estimate has settled at ``level``.

    Args:
        binner: Binner to inspect.
        level: Level to test, at least 1.
        threshold: Maximum relative change; defaults to
            ``binner.config.convergence_threshold`` (0.05).
    """
    if threshold is None:
        threshold = binner.config.convergence_threshold
    return bool(convergence(binner, level) <= threshold)


def find_plateau(binner: LogBinner, threshold: Optional[float] = None) -> Optional[int]:
    """Lowest level at which the binning analysis has converged.

    Returns:
        The first level ``l >= 1`` for which :func:`has_converged` holds, or
        ``None`` if no populated level qualifies yet.
    """
    counts = binner.counts
    for lvl in range(1, binner.n_levels):
        if counts[lvl] < _MIN_COUNT_VARIANCE:
            break
        if has_converged(binner, lvl, threshold):
            return lvl
    return None


def all_means(binner: LogBinner) -> np.ndarray:
    """Means of every level holding at least one value."""
    return np.array([mean(binner, lvl) for lvl in _levels_with(binner, _MIN_COUNT_MEAN, "mean")])


def all_variances(binner: LogBinner) -> np.ndarray:
    """Variances of every level holding at least two values."""
    levels = _levels_with(binner, _MIN_COUNT_VARIANCE, "variance")
    return np.array([variance(binner, lvl) for lvl in levels])


def all_scaled_variances(binner: LogBinner) -> np.ndarray:
    """Scaled variances of every level holding at least two values."""
    levels = _levels_with(binner, _MIN_COUNT_VARIANCE, "scaled variance")
    return np.array([scaled_variance(binner, lvl) for lvl in levels])


def all_std_errors(binner: LogBinner) -> np.ndarray:
    """Standard errors of every level holding at least two values."""
    levels = _levels_with(binner, _MIN_COUNT_VARIANCE, "standard error")
    return np.array([std_error(binner, lvl) for lvl in levels])


def all_autocorrelation_times(binner: LogBinner) -> np.ndarray:
    """Autocorrelation times of every level holding at least two values."""
    levels = _levels_with(binner, _MIN_COUNT_VARIANCE, "autocorrelation time")
    return np.array([autocorrelation_time(binner, lvl) for lvl in levels])


def all_convergences(binner: LogBinner) -> np.ndarray:
    """Convergence of levels 1, 2, ... while both neighbours hold two values.

    Entry ``i`` belongs to level ``i + 1``; the result is empty when only
    level 0 qualifies.
    """
    levels = _levels_with(binner, _MIN_COUNT_VARIANCE, "convergence")
    return np.array([convergence(binner, lvl) for lvl in levels[1:]], dtype=np.float64)
