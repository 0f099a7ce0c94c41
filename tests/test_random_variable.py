"""Tests for the numpy-backed path-wise value."""

import numpy as np
import pytest

from pathwise_aad import RandomVariable


class TestConstruction:
    """Test construction and inspection."""

    def test_scalar_is_deterministic(self):
        """A number becomes a deterministic value of size 1."""
        x = RandomVariable(2.5, time=1.0)
        assert x.is_deterministic()
        assert x.size() == 1
        assert x.double_value() == 2.5
        assert x.time == 1.0

    def test_array_is_stochastic(self):
        """A 1-d array holds one realization per path."""
        x = RandomVariable([1.0, 2.0, 3.0])
        assert not x.is_deterministic()
        assert x.size() == 3
        assert x.get(1) == 2.0
        np.testing.assert_array_equal(x.get_realizations(), [1.0, 2.0, 3.0])

    def test_input_array_is_copied_and_frozen(self):
        """Mutating the source array does not change the value; the value is read-only."""
        source = np.array([1.0, 2.0])
        x = RandomVariable(source)
        source[0] = 99.0
        assert x.get(0) == 1.0
        with pytest.raises(ValueError):
            x.realizations[0] = 5.0

    def test_zero_dimensional_array_is_scalar(self):
        x = RandomVariable(np.array(1.5), time=2.0)
        assert x.is_deterministic()
        assert x.double_value() == 1.5
        assert x.time == 2.0

    def test_invalid_shapes_rejected(self):
        """Empty and 2-d inputs are rejected."""
        with pytest.raises(ValueError):
            RandomVariable([])
        with pytest.raises(ValueError):
            RandomVariable(np.ones((2, 2)))

    def test_copy_keeps_time(self):
        """Copy construction keeps the filtration time unless overridden."""
        x = RandomVariable([1.0, 2.0], time=3.0)
        assert RandomVariable(x).time == 3.0
        assert RandomVariable(x, time=4.0).time == 4.0

    def test_double_value_of_stochastic_raises(self):
        with pytest.raises(ValueError):
            RandomVariable([1.0, 2.0]).double_value()


class TestElementwise:
    """Test elementwise arithmetic."""

    def test_broadcast_scalar_over_paths(self):
        """A deterministic operand is broadcast over the paths."""
        x = RandomVariable([1.0, 2.0, 3.0])
        np.testing.assert_allclose(x.add(1.0).get_realizations(), [2.0, 3.0, 4.0])
        np.testing.assert_allclose((2.0 * x).get_realizations(), [2.0, 4.0, 6.0])
        np.testing.assert_allclose((1.0 - x).get_realizations(), [0.0, -1.0, -2.0])
        np.testing.assert_allclose((6.0 / x).get_realizations(), [6.0, 3.0, 2.0])

    def test_reversed_operations(self):
        x = RandomVariable([1.0, 4.0])
        np.testing.assert_allclose(x.bus(10.0).get_realizations(), [9.0, 6.0])
        np.testing.assert_allclose(x.vid(8.0).get_realizations(), [8.0, 2.0])

    def test_mismatched_path_counts_raise(self):
        """Shape errors surface from numpy."""
        with pytest.raises(ValueError):
            RandomVariable([1.0, 2.0]).add(RandomVariable([1.0, 2.0, 3.0]))

    def test_time_is_maximum_of_operands(self):
        x = RandomVariable([1.0, 2.0], time=1.0)
        y = RandomVariable([1.0, 2.0], time=2.0)
        assert x.mult(y).time == 2.0
        assert x.add(5.0).time == 1.0

    def test_fused_operations(self):
        x = RandomVariable([1.0, 2.0])
        np.testing.assert_allclose(x.add_product(2.0, 3.0).get_realizations(), [7.0, 8.0])
        np.testing.assert_allclose(x.add_ratio(3.0, 2.0).get_realizations(), [2.5, 3.5])
        np.testing.assert_allclose(x.sub_ratio(3.0, 2.0).get_realizations(), [-0.5, 0.5])
        np.testing.assert_allclose(x.accrue(0.1, 2.0).get_realizations(), [1.2, 2.4])
        np.testing.assert_allclose(x.discount(0.5, 2.0).get_realizations(), [0.5, 1.0])

    def test_cap_floor_abs(self):
        x = RandomVariable([-2.0, 0.5, 3.0])
        np.testing.assert_array_equal(x.cap(1.0).get_realizations(), [-2.0, 0.5, 1.0])
        np.testing.assert_array_equal(x.floor(0.0).get_realizations(), [0.0, 0.5, 3.0])
        np.testing.assert_array_equal(x.abs().get_realizations(), [2.0, 0.5, 3.0])

    def test_choose_on_non_negative(self):
        """choose selects the first value where the trigger is >= 0 (zero included)."""
        trigger = RandomVariable([-1.0, 0.0, 1.0])
        np.testing.assert_array_equal(trigger.choose(10.0, 20.0).get_realizations(), [20.0, 10.0, 10.0])

    def test_invert_of_zero_is_infinite(self):
        assert np.isinf(RandomVariable(0.0).invert().double_value())


class TestAggregates:
    """Test path aggregates."""

    def test_average_variance(self):
        x = RandomVariable([1.0, 2.0, 3.0, 4.0])
        assert x.get_average() == pytest.approx(2.5)
        assert x.get_variance() == pytest.approx(1.25)
        assert x.get_sample_variance() == pytest.approx(1.25 * 4 / 3)
        assert x.get_standard_deviation() == pytest.approx(np.sqrt(1.25))
        assert x.get_standard_error() == pytest.approx(np.sqrt(1.25) / 2.0)
        assert x.get_min() == 1.0
        assert x.get_max() == 4.0
        assert x.average().double_value() == pytest.approx(2.5)

    def test_weighted_average_and_variance(self):
        """Weighted aggregates use the measure P / E[P]."""
        x = RandomVariable([1.0, 2.0, 3.0])
        p = RandomVariable([1.0, 1.0, 2.0])
        assert x.get_average(p) == pytest.approx(9.0 / 4.0)
        m = 9.0 / 4.0
        expected = ((1 - m) ** 2 + (2 - m) ** 2 + 2 * (3 - m) ** 2) / 4.0
        assert x.get_variance(p) == pytest.approx(expected)

    def test_deterministic_aggregates(self):
        x = RandomVariable(3.0)
        assert x.get_variance() == 0.0
        assert x.get_standard_deviation() == 0.0
        assert x.get_min() == x.get_max() == x.get_average() == 3.0

    def test_quantile(self):
        x = RandomVariable(np.arange(9.0, 0.0, -1.0))
        assert x.get_quantile(0.5) == 5.0
        assert x.get_quantile(0.0) == 1.0
        assert x.get_quantile(1.0) == 9.0
        assert x.get_quantile_expectation(0.1, 0.3) == pytest.approx(2.0)

    def test_histogram(self):
        x = RandomVariable([-1.0, 0.0, 0.5, 1.0, 2.0])
        np.testing.assert_allclose(x.get_histogram([0.0, 1.0]), [0.4, 0.4, 0.2])
