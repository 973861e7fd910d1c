"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from binning_analysis.config import BinnerConfig


@pytest.fixture
def rng():
    """Seeded random generator for reproducible series."""
    return np.random.default_rng(42)


@pytest.fixture
def quiet_config():
    """Config that does not warn when a binner overflows."""
    return BinnerConfig(warn_on_overflow=False)


@pytest.fixture
def iid_series(rng):
    """2**14 independent standard normal samples."""
    return rng.standard_normal(2**14)


@pytest.fixture
def ar1_series(rng):
    """2**16 samples of an AR(1) process with rho = 0.9 and unit variance.

    The variance of the mean is (1 + rho) / (1 - rho) = 19 times the naive
    estimate, i.e. an autocorrelation time of 9 in the binning convention.
    """
    rho = 0.9
    n = 2**16
    noise = rng.standard_normal(n) * np.sqrt(1 - rho**2)
    chain = np.empty(n)
    chain[0] = rng.standard_normal()
    for i in range(1, n):
        chain[i] = rho * chain[i - 1] + noise[i]
    return chain
