"""Test the public API exposed from the package root."""

import importlib
from pathlib import Path
import subprocess
import sys

import pytest

import binning_analysis


class TestPublicApi:
    """Test lazy attribute access on the package."""

    @pytest.mark.parametrize("name", binning_analysis.__all__)
    def test_all_names_resolve(self, name):
        assert getattr(binning_analysis, name) is not None

    def test_lazy_names_are_the_module_objects(self):
        from binning_analysis import exceptions, log_binner, summary

        assert binning_analysis.LogBinner is log_binner.LogBinner
        assert binning_analysis.grow is log_binner.grow
        assert binning_analysis.summarize is summary.summarize
        assert binning_analysis.InsufficientDataError is exceptions.InsufficientDataError

    def test_level_statistics_module(self):
        ls = binning_analysis.level_statistics
        assert ls is importlib.import_module("binning_analysis.level_statistics")
        assert callable(ls.std_error)

    def test_unknown_attribute(self):
        with pytest.raises(AttributeError):
            binning_analysis.NoSuchThing  # pylint: disable=pointless-statement

    def test_version(self):
        assert binning_analysis.__version__ == "0.1.0"

    def test_exceptions_share_base(self):
        for name in (
            "CapacityNotIncreasedError",
            "DimensionMismatchError",
            "ElementTypeError",
            "InsufficientDataError",
            "InvalidCapacityError",
            "InvalidLevelError",
            "InvalidZeroPrototypeError",
        ):
            assert issubclass(getattr(binning_analysis, name), binning_analysis.BinningError)

    def test_create_from_package_root(self):
        binner = binning_analysis.create(0j, capacity=3)
        binner.push(1 + 2j)
        assert binning_analysis.level_statistics.mean(binner) == 1 + 2j


class TestFreshInterpreterImports:
    """Import forms run in a new interpreter, where no submodule is loaded yet."""

    @pytest.mark.parametrize(
        "statement",
        [
            "from binning_analysis import level_statistics",
            "from binning_analysis import level_statistics as ls; ls.mean",
            "import binning_analysis; binning_analysis.level_statistics.std_error",
            "from binning_analysis import summarize",
            "from binning_analysis.summary import summarize",
        ],
    )
    def test_import_statement(self, statement):
        result = subprocess.run(
            [sys.executable, "-c", statement],
            cwd=Path(__file__).parents[2],
            capture_output=True,
            text=True,
            timeout=120,
            check=False,
        )
        assert result.returncode == 0, result.stderr
