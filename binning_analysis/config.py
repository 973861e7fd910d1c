"""Configuration for log binners and their diagnostics.

Uses a Pydantic v2 model so defaults are validated once, when the config is
built, rather than on every push.
"""

from pydantic import BaseModel, Field

from .capacity import DEFAULT_CAPACITY

#: Relative change in scaled variance below which a level counts as converged.
DEFAULT_CONVERGENCE_THRESHOLD = 0.05


class BinnerConfig(BaseModel):
    """Defaults applied by :class:`~binning_analysis.log_binner.LogBinner`.

    Attributes:
        default_capacity: Capacity used when a binner is built without an
            explicit one. The default of ``2**32 - 1`` gives 32 levels.
        convergence_threshold: Threshold used by ``has_converged``,
            ``find_plateau`` and ``summarize`` when none is passed.
        warn_on_overflow: Emit a ``CapacityOverflowWarning`` the first time a
            value lands in the overflow buffer.

    Examples:
        Small binner for a short test run::

            config = BinnerConfig(default_capacity=1023)
            binner = LogBinner(0.0, config=config)

        Quiet production binner with a looser plateau criterion::

            config = BinnerConfig(convergence_threshold=0.1, warn_on_overflow=False)
    """

    default_capacity: int = Field(
        default=DEFAULT_CAPACITY, gt=0, description="Capacity used when none is given"
    )
    convergence_threshold: float = Field(
        default=DEFAULT_CONVERGENCE_THRESHOLD,
        gt=0,
        description="Maximum relative change in scaled variance for convergence",
    )
    warn_on_overflow: bool = Field(
        default=True, description="Warn when samples exceed the binner's capacity"
    )
