"""Tabular summary of a binning analysis across all levels."""

from dataclasses import dataclass
from typing import List, Optional, Union

import numpy as np
import pandas as pd

from . import level_statistics as ls
from .exceptions import ElementTypeError
from .log_binner import LogBinner


@dataclass
class BinningSummary:
    """Per-level results of a scalar binning analysis.

    Only levels holding at least two values are listed. ``convergence`` is
    ``nan`` at level 0, where it is undefined.
    """

    levels: List[int]
    block_sizes: List[int]
    counts: List[int]
    means: List[Union[float, complex]]
    std_errors: List[float]
    autocorrelation_times: List[float]
    convergence: List[float]
    converged: List[bool]
    plateau_level: Optional[int]
    threshold: float

    @property
    def best_std_error(self) -> float:
        """Standard error at the plateau, or at the deepest level if none."""
        if self.plateau_level is not None:
            return self.std_errors[self.levels.index(self.plateau_level)]
        return self.std_errors[-1]

    def to_dataframe(self) -> pd.DataFrame:
        """Convert summary to pandas DataFrame indexed by level.

        Returns:
            DataFrame with one row per level
        """
        return pd.DataFrame(
            {
                "block_size": self.block_sizes,
                "count": self.counts,
                "mean": self.means,
                "std_error": self.std_errors,
                "autocorrelation_time": self.autocorrelation_times,
                "convergence": self.convergence,
                "converged": self.converged,
            },
            index=pd.Index(self.levels, name="level"),
        )


def summarize(binner: LogBinner, threshold: Optional[float] = None) -> BinningSummary:
    """Collect the per-level statistics of a scalar binner.

    Args:
        binner: Binner holding at least two samples.
        threshold: Convergence threshold; defaults to
            ``binner.config.convergence_threshold``.

    Raises:
        ElementTypeError: If the binner holds array elements.
        InsufficientDataError: If fewer than two samples were pushed.
    """
    if binner.element_model.is_array:
        raise ElementTypeError(
            "Summaries are only available for scalar binners; "
            "query level_statistics directly for array elements."
        )
    if threshold is None:
        threshold = binner.config.convergence_threshold

    std_errors = ls.all_std_errors(binner).tolist()
    levels = list(range(len(std_errors)))
    convergence = [float("nan")] + ls.all_convergences(binner).tolist()

    return BinningSummary(
        levels=levels,
        block_sizes=[2**lvl for lvl in levels],
        counts=[int(c) for c in binner.counts[: len(levels)]],
        means=[ls.mean(binner, lvl) for lvl in levels],
        std_errors=std_errors,
        autocorrelation_times=ls.all_autocorrelation_times(binner).tolist(),
        convergence=convergence,
        converged=[bool(np.isfinite(c) and c <= threshold) for c in convergence],
        plateau_level=ls.find_plateau(binner, threshold),
        threshold=threshold,
    )
