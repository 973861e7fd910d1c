"""Version information for binning_analysis."""

__version__ = "0.1.0"
