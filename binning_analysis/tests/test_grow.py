"""Tests for growing a binner into one with more levels."""

import numpy as np
import pytest

from binning_analysis import level_statistics as ls
from binning_analysis._warnings import CapacityOverflowWarning
from binning_analysis.exceptions import CapacityNotIncreasedError, InvalidCapacityError
from binning_analysis.log_binner import LogBinner, grow


def _assert_same_levels(actual: LogBinner, expected: LogBinner, n_levels: int) -> None:
    for lvl in range(n_levels):
        a, e = actual.level(lvl), expected.level(lvl)
        assert a.count == e.count, f"count differs at level {lvl}"
        np.testing.assert_allclose(a.sum, e.sum, rtol=1e-12, err_msg=f"level {lvl}")
        np.testing.assert_allclose(a.sum_squares, e.sum_squares, rtol=1e-12, err_msg=f"level {lvl}")
        assert a.is_waiting == e.is_waiting, f"pairing cell differs at level {lvl}"
        if a.is_waiting:
            np.testing.assert_allclose(a.pending, e.pending, rtol=1e-12)


class TestGrowValidation:
    @pytest.mark.parametrize("capacity", [1, 4, 7])
    def test_capacity_must_add_a_level(self, capacity):
        binner = LogBinner(capacity=7)
        with pytest.raises(CapacityNotIncreasedError) as exc_info:
            binner.grow(capacity)
        assert exc_info.value.current_capacity == 7
        assert exc_info.value.requested_capacity == capacity

    def test_invalid_capacity(self):
        binner = LogBinner(capacity=7)
        with pytest.raises(InvalidCapacityError):
            binner.grow(-1)

    def test_capacity_not_increased_is_value_error(self):
        with pytest.raises(ValueError):
            LogBinner(capacity=7).grow(7)


class TestGrowEquivalence:
    """A grown binner matches one built large from the start."""

    @pytest.mark.parametrize("n_values", [0, 1, 7, 20, 64, 333])
    def test_matches_fresh_binner(self, rng, quiet_config, n_values):
        data = rng.standard_normal(n_values)

        small = LogBinner(capacity=7, config=quiet_config)
        small.append(data)
        grown = small.grow(1023)

        fresh = LogBinner(capacity=1023, config=quiet_config)
        fresh.append(data)

        assert grown.n_levels == fresh.n_levels == 10
        np.testing.assert_array_equal(grown.counts, fresh.counts)
        _assert_same_levels(grown, fresh, grown.n_levels)
        assert grown.overflow == ()

    def test_statistics_match_on_original_levels(self, rng, quiet_config):
        data = rng.normal(1.0, 3.0, size=500)
        small = LogBinner(capacity=31, config=quiet_config)
        small.append(data)
        grown = grow(small, 2**12)

        fresh = LogBinner(capacity=2**12, config=quiet_config)
        fresh.append(data)

        for lvl in range(small.n_levels):
            assert ls.mean(grown, lvl) == pytest.approx(ls.mean(fresh, lvl), rel=1e-12)
            assert ls.variance(grown, lvl) == pytest.approx(ls.variance(fresh, lvl), rel=1e-10)

    def test_pushes_after_grow_continue_the_stream(self, rng, quiet_config):
        data = rng.standard_normal(100)
        small = LogBinner(capacity=3, config=quiet_config)
        small.append(data[:60])
        grown = small.grow(127)
        grown.append(data[60:])

        fresh = LogBinner(capacity=127, config=quiet_config)
        fresh.append(data)
        _assert_same_levels(grown, fresh, fresh.n_levels)

    def test_array_elements(self, rng, quiet_config):
        data = rng.standard_normal((50, 2)) + 1j * rng.standard_normal((50, 2))
        small = LogBinner(np.zeros(2, dtype=complex), capacity=3, config=quiet_config)
        small.append(data)
        grown = small.grow(63)

        fresh = LogBinner(np.zeros(2, dtype=complex), capacity=63, config=quiet_config)
        fresh.append(data)
        _assert_same_levels(grown, fresh, fresh.n_levels)


class TestOverflowReplay:
    def test_replay_fills_new_levels(self, quiet_config):
        small = LogBinner(capacity=1, config=quiet_config)
        small.append([1.0, 3.0, 5.0, 7.0])
        assert small.overflow == (2.0, 6.0)

        grown = small.grow(3)
        new_level = grown.level(1)
        assert new_level.count == 2
        assert new_level.sum == 8.0
        assert not new_level.is_waiting
        # the replayed pair overflows the grown binner's deepest level in turn
        assert grown.overflow == (4.0,)

    def test_replay_preserves_order(self, quiet_config):
        small = LogBinner(capacity=1, config=quiet_config)
        small.append([1.0, 3.0, 10.0, 20.0, 100.0, 300.0])
        grown = small.grow(7)
        # overflow (2, 15, 200) enters level 1 in arrival order
        assert grown.level(1).count == 3
        assert grown.level(1).pending == 200.0
        assert grown.level(2).pending == pytest.approx(8.5)

    @pytest.mark.parametrize("use_function", [False, True])
    def test_replay_overflow_warning_points_at_caller(self, use_function):
        small = LogBinner(capacity=1)
        with pytest.warns(CapacityOverflowWarning):
            small.append([1.0, 3.0, 5.0, 7.0])

        with pytest.warns(CapacityOverflowWarning) as record:
            grown = grow(small, 3) if use_function else small.grow(3)
        caught = [w for w in record if issubclass(w.category, CapacityOverflowWarning)]
        assert caught[0].filename == __file__
        assert grown.overflow == (4.0,)


class TestGrowIndependence:
    def test_source_is_unchanged(self, quiet_config):
        small = LogBinner(capacity=1, config=quiet_config)
        small.append([1.0, 3.0, 5.0])
        before = (small.counts, small.overflow, small.level(0))

        grown = small.grow(15)
        grown.append([10.0, 20.0, 30.0])

        assert np.array_equal(small.counts, before[0])
        assert small.overflow == before[1]
        assert small.level(0) == before[2]
        assert small.n_levels == 1

    def test_no_shared_array_state(self):
        small = LogBinner(np.zeros(2), capacity=3)
        small.push([1.0, 2.0])
        grown = small.grow(7)
        grown.push([3.0, 4.0])
        small.push([5.0, 6.0])

        np.testing.assert_array_equal(small.level(0).sum, [6.0, 8.0])
        np.testing.assert_array_equal(grown.level(0).sum, [4.0, 6.0])
        np.testing.assert_array_equal(grown.level(1).pending, [2.0, 3.0])
        np.testing.assert_array_equal(small.level(1).pending, [3.0, 4.0])

    def test_config_carried_over(self, quiet_config):
        small = LogBinner(capacity=1, config=quiet_config)
        assert small.grow(3).config is quiet_config
