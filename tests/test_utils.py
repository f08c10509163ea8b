"""Tests for the cumulative-table search and validation helpers."""
import numpy as np
import pytest

from gp_lowrank.errors import NumericalInstability, PreconditionViolation
from gp_lowrank.utils import (
    check_number_of_points,
    check_reseedable,
    check_positive_measure,
    cumulative_weights,
    lower_bound,
    resolve_rng,
    weighted_choice,
)


class TestLowerBound:

    @pytest.mark.parametrize("value, expected", [
        (0.0, 0),
        (0.5, 0),
        (1.0, 0),   # exact match
        (1.5, 1),   # insertion point
        (3.0, 1),
        (3.5, 2),
        (6.0, 2),
        (7.0, 2),   # beyond the total, clipped to the last bin
    ])
    def test_scalar(self, value, expected):
        assert lower_bound(np.array([1.0, 3.0, 6.0]), value) == expected

    def test_vectorized(self):
        table = np.array([1.0, 3.0, 6.0])
        result = lower_bound(table, np.array([0.2, 1.0, 2.9, 5.9]))
        assert result.tolist() == [0, 0, 1, 2]

    def test_skips_zero_width_bins(self):
        table = cumulative_weights(np.array([1.0, 0.0, 2.0]))
        draws = np.linspace(1e-9, 3.0, 1000)
        assert 1 not in set(lower_bound(table, draws).tolist())

    def test_empty_table_rejected(self):
        with pytest.raises(PreconditionViolation):
            lower_bound(np.array([]), 0.5)


class TestCumulativeWeights:

    def test_non_decreasing(self):
        table = cumulative_weights(np.array([0.5, 0.0, 2.0, 1.5]))
        assert np.all(np.diff(table) >= 0)
        assert table[-1] == pytest.approx(4.0)

    def test_negative_rejected(self):
        with pytest.raises(PreconditionViolation):
            cumulative_weights(np.array([1.0, -0.1]))

    def test_nan_rejected(self):
        with pytest.raises(PreconditionViolation):
            cumulative_weights(np.array([1.0, np.nan]))


class TestWeightedChoice:

    def test_single_nonzero_weight(self):
        rng = np.random.default_rng(0)
        idx = weighted_choice(np.array([0.0, 1.0, 0.0]), 200, rng)
        assert np.all(idx == 1)

    def test_frequencies(self):
        rng = np.random.default_rng(1)
        idx = weighted_choice(np.array([1.0, 3.0]), 20000, rng)
        assert np.mean(idx == 1) == pytest.approx(0.75, abs=0.02)

    def test_all_zero_rejected(self):
        with pytest.raises(PreconditionViolation):
            weighted_choice(np.zeros(3), 5, np.random.default_rng(0))


class TestValidation:

    @pytest.mark.parametrize("measure", [0.0, -1.0, np.inf, np.nan])
    def test_bad_measure(self, measure):
        with pytest.raises(PreconditionViolation):
            check_positive_measure(measure)

    def test_good_measure(self):
        assert check_positive_measure(2) == 2.0

    def test_negative_count(self):
        with pytest.raises(PreconditionViolation):
            check_number_of_points(-1)

    def test_zero_count_allowed(self):
        assert check_number_of_points(0) == 0

    def test_errors_are_standard_exceptions(self):
        assert issubclass(PreconditionViolation, ValueError)
        err = NumericalInstability("bad values", step="projection")
        assert isinstance(err, ArithmeticError)
        assert err.step == "projection"
        assert "projection" in str(err)


class TestResolveRng:

    def test_seed_reproducible(self):
        assert resolve_rng(5).random() == resolve_rng(5).random()

    def test_generator_passthrough(self):
        rng = np.random.default_rng(3)
        assert resolve_rng(rng) is rng

    def test_none_is_not_fixed(self):
        draws = {resolve_rng(None).integers(0, 2**62) for _ in range(5)}
        assert len(draws) > 1

    def test_reseedable_accepts_int_and_none(self):
        assert check_reseedable(7) == 7
        assert check_reseedable(None) is None

    def test_reseedable_rejects_generator(self):
        with pytest.raises(PreconditionViolation):
            check_reseedable(np.random.default_rng(0))
