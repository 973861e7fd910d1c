"""Binning analysis for correlated time series"""

import importlib

from ._version import __version__

# Use lazy imports so importing the package stays cheap (pandas is only
# needed for summaries). Modules are imported only when accessed.

__all__ = [
    "__version__",
    "BinnerConfig",
    "BinningError",
    "BinningSummary",
    "CapacityNotIncreasedError",
    "CapacityOverflowWarning",
    "DimensionMismatchError",
    "ElementKind",
    "ElementModel",
    "ElementTypeError",
    "InsufficientDataError",
    "InvalidCapacityError",
    "InvalidLevelError",
    "InvalidZeroPrototypeError",
    "LevelSnapshot",
    "LogBinner",
    "capacity_for_levels",
    "create",
    "grow",
    "level_statistics",
    "levels_for_capacity",
    "summarize",
]

_EXCEPTIONS = {
    "BinningError",
    "CapacityNotIncreasedError",
    "DimensionMismatchError",
    "ElementTypeError",
    "InsufficientDataError",
    "InvalidCapacityError",
    "InvalidLevelError",
    "InvalidZeroPrototypeError",
}


def __getattr__(name):
    """Lazy import modules on first attribute access."""
    if name in ("LogBinner", "LevelSnapshot", "create", "grow"):
        from .log_binner import LevelSnapshot, LogBinner, create, grow

        return locals()[name]
    elif name in _EXCEPTIONS:
        from . import exceptions

        return getattr(exceptions, name)
    elif name == "BinnerConfig":
        from .config import BinnerConfig

        return BinnerConfig
    elif name == "ElementKind" or name == "ElementModel":
        from .element_model import ElementKind, ElementModel

        return locals()[name]
    elif name == "capacity_for_levels" or name == "levels_for_capacity":
        from .capacity import capacity_for_levels, levels_for_capacity

        return locals()[name]
    elif name == "CapacityOverflowWarning":
        from ._warnings import CapacityOverflowWarning

        return CapacityOverflowWarning
    elif name == "BinningSummary" or name == "summarize":
        from .summary import BinningSummary, summarize

        return locals()[name]
    elif name == "level_statistics":
        # "from . import level_statistics" would re-enter this hook via hasattr
        return importlib.import_module(".level_statistics", __name__)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
