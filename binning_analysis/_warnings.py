"""Custom warning classes for the binning_analysis package.

These warning classes allow users to programmatically filter, suppress,
or capture warnings using Python's standard ``warnings`` module.

Example:
    Silence overflow notices in a long production run::

        import warnings
        from binning_analysis._warnings import CapacityOverflowWarning

        warnings.filterwarnings("ignore", category=CapacityOverflowWarning)
"""


class BinningAnalysisWarning(UserWarning):
    """Base class for all binning_analysis warnings."""


class CapacityOverflowWarning(BinningAnalysisWarning):
    """Samples exceeded the configured capacity of a binner.

    Emitted once per binner (until it is reset) when the deepest level
    starts handing averaged values to the overflow buffer. Level statistics
    stay valid, but the deepest block sizes are no longer tracked; grow the
    binner to recover them.
    """
