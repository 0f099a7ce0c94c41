# pathwise_aad/stochastic/random_variable.py
from __future__ import annotations

import math
from typing import Any, Callable, Optional, Sequence, Union

import numpy as np

NEGATIVE_INFINITY = float("-inf")


class RandomVariable:
    """
    Path-wise numeric value: a deterministic scalar or one value per path.

    Attributes
    ----------
    time : float
        Filtration time, i.e. the simulation time at which the value is known.
    realizations : float | np.ndarray
        The scalar (deterministic case) or a 1-d float64 array with one
        entry per path (stochastic case).

    Instances are immutable: every operation returns a new RandomVariable and
    never writes into an existing array. Binary operations broadcast a
    deterministic operand over the paths of a stochastic one; two stochastic
    operands with different path counts make numpy raise a ValueError.
    """

    __slots__ = ("time", "_scalar", "_values")
    __array_priority__ = 1000  # keep numpy from hijacking ndarray <op> RandomVariable

    def __init__(self, value: Any, time: Optional[float] = None):
        if isinstance(value, RandomVariable):
            self.time = float(value.time if time is None else time)
            self._scalar = value._scalar
            self._values = value._values
            return

        self.time = 0.0 if time is None else float(time)
        if isinstance(value, (int, float, np.integer, np.floating)):
            self._scalar = float(value)
            self._values = None
            return

        arr = np.asarray(value, dtype=np.float64)
        if arr.ndim == 0:
            self._scalar = float(arr)
            self._values = None
            return
        if arr.ndim != 1:
            raise ValueError(f"RandomVariable expects a scalar or a 1-d array, got shape {arr.shape}")
        if arr.size == 0:
            raise ValueError("RandomVariable requires at least one path")
        arr = arr.copy() if arr is value else arr
        arr.setflags(write=False)
        self._scalar = None
        self._values = arr

    # ------------------------------------------------------------------ #
    # Construction helpers
    # ------------------------------------------------------------------ #
    @classmethod
    def _from_raw(cls, raw, time: float) -> "RandomVariable":
        # results of numpy operations are fresh arrays: adopt them without copying
        rv = cls.__new__(cls)
        rv.time = float(time)
        if np.ndim(raw) == 0:
            rv._scalar = float(raw)
            rv._values = None
            return rv
        arr = np.asarray(raw, dtype=np.float64)
        if arr.ndim != 1:
            raise ValueError(f"RandomVariable expects a scalar or a 1-d array, got shape {arr.shape}")
        arr.setflags(write=False)
        rv._scalar = None
        rv._values = arr
        return rv

    @property
    def realizations(self) -> Union[float, np.ndarray]:
        """Raw numeric payload, suitable for numpy broadcasting."""
        return np.float64(self._scalar) if self._values is None else self._values

    # ------------------------------------------------------------------ #
    # Inspection
    # ------------------------------------------------------------------ #
    def is_deterministic(self) -> bool:
        return self._values is None

    def size(self) -> int:
        return 1 if self._values is None else int(self._values.size)

    def get_filtration_time(self) -> float:
        return self.time

    def get(self, path: int) -> float:
        if self._values is None:
            return self._scalar
        return float(self._values[path])

    def get_realizations(self) -> np.ndarray:
        if self._values is None:
            return np.array([self._scalar])
        return self._values.copy()

    def double_value(self) -> float:
        if self._values is None:
            return self._scalar
        if self._values.size == 1:
            return float(self._values[0])
        raise ValueError("The random variable is non-deterministic")

    def __float__(self) -> float:
        return self.double_value()

    def equals(self, other: "RandomVariable") -> bool:
        if not isinstance(other, RandomVariable):
            return False
        if self.time != other.time or self.is_deterministic() != other.is_deterministic():
            return False
        return bool(np.array_equal(self.realizations, other.realizations))

    def __repr__(self):
        if self._values is None:
            return f"RandomVariable({self._scalar!r}, time={self.time!r})"
        return f"RandomVariable(paths={self._values.size}, mean={self.get_average():.6g}, time={self.time!r})"

    # ------------------------------------------------------------------ #
    # Elementwise operations
    # ------------------------------------------------------------------ #
    def _unary(self, f: Callable) -> "RandomVariable":
        return RandomVariable._from_raw(f(self.realizations), self.time)

    def _nary(self, f: Callable, *others) -> "RandomVariable":
        raws, time = [self.realizations], self.time
        for other in others:
            raw, t = _raw_and_time(other)
            raws.append(raw)
            time = max(time, t)
        return RandomVariable._from_raw(f(*raws), time)

    def apply(self, function: Callable, *arguments) -> "RandomVariable":
        """Apply a vectorized function to this value (and optional further arguments)."""
        return self._nary(function, *arguments)

    def add(self, other) -> "RandomVariable":
        return self._nary(np.add, other)

    def sub(self, other) -> "RandomVariable":
        return self._nary(np.subtract, other)

    def bus(self, other) -> "RandomVariable":
        """Reversed subtraction: other - self."""
        return self._nary(lambda a, b: b - a, other)

    def mult(self, other) -> "RandomVariable":
        return self._nary(np.multiply, other)

    def div(self, other) -> "RandomVariable":
        return self._nary(np.divide, other)

    def vid(self, other) -> "RandomVariable":
        """Reversed division: other / self."""
        return self._nary(lambda a, b: b / a, other)

    def pow(self, exponent) -> "RandomVariable":
        return self._nary(np.power, exponent)

    def squared(self) -> "RandomVariable":
        return self._unary(np.square)

    def sqrt(self) -> "RandomVariable":
        return self._unary(np.sqrt)

    def exp(self) -> "RandomVariable":
        return self._unary(np.exp)

    def log(self) -> "RandomVariable":
        return self._unary(np.log)

    def sin(self) -> "RandomVariable":
        return self._unary(np.sin)

    def cos(self) -> "RandomVariable":
        return self._unary(np.cos)

    def invert(self) -> "RandomVariable":
        return self._unary(lambda x: np.divide(1.0, x))

    def abs(self) -> "RandomVariable":
        return self._unary(np.abs)

    def cap(self, cap) -> "RandomVariable":
        return self._nary(np.minimum, cap)

    def floor(self, floor) -> "RandomVariable":
        return self._nary(np.maximum, floor)

    def accrue(self, rate, period_length) -> "RandomVariable":
        """x * (1 + rate * period_length)"""
        return self._nary(lambda x, r, dt: x * (1.0 + r * dt), rate, period_length)

    def discount(self, rate, period_length) -> "RandomVariable":
        """x / (1 + rate * period_length)"""
        return self._nary(lambda x, r, dt: x / (1.0 + r * dt), rate, period_length)

    def choose(self, value_if_non_negative, value_if_negative) -> "RandomVariable":
        """Per path: value_if_non_negative where self >= 0, else value_if_negative."""
        return self._nary(lambda t, a, b: np.where(t >= 0.0, a, b), value_if_non_negative, value_if_negative)

    def barrier(self, trigger, value_if_non_negative, value_if_negative) -> "RandomVariable":
        trigger = trigger if isinstance(trigger, RandomVariable) else RandomVariable(trigger)
        result = trigger.choose(value_if_non_negative, value_if_negative)
        return RandomVariable(result, max(result.time, self.time))

    def add_product(self, factor1, factor2) -> "RandomVariable":
        return self._nary(lambda a, b, c: a + b * c, factor1, factor2)

    def add_ratio(self, numerator, denominator) -> "RandomVariable":
        return self._nary(lambda a, b, c: a + b / c, numerator, denominator)

    def sub_ratio(self, numerator, denominator) -> "RandomVariable":
        return self._nary(lambda a, b, c: a - b / c, numerator, denominator)

    def get_conditional_expectation(self, estimator) -> "RandomVariable":
        return estimator.get_conditional_expectation(self)

    # Python operators
    def __add__(self, other):
        return self.add(other)

    def __radd__(self, other):
        return self.add(other)

    def __sub__(self, other):
        return self.sub(other)

    def __rsub__(self, other):
        return self.bus(other)

    def __mul__(self, other):
        return self.mult(other)

    def __rmul__(self, other):
        return self.mult(other)

    def __truediv__(self, other):
        return self.div(other)

    def __rtruediv__(self, other):
        return self.vid(other)

    def __pow__(self, other):
        return self.pow(other)

    def __neg__(self):
        return self.mult(-1.0)

    # ------------------------------------------------------------------ #
    # Path aggregates (non-differentiable end points returning floats)
    # ------------------------------------------------------------------ #
    def average(self) -> "RandomVariable":
        return RandomVariable(self.get_average(), self.time)

    def get_average(self, probabilities: Optional["RandomVariable"] = None) -> float:
        if probabilities is None:
            if self._values is None:
                return self._scalar
            return float(np.mean(self._values))
        p = _raw_and_time(probabilities)[0]
        x, p = np.broadcast_arrays(self.realizations, p)
        return float(np.mean(x * p) / np.mean(p))

    def get_variance(self, probabilities: Optional["RandomVariable"] = None) -> float:
        if self._values is None:
            return 0.0
        if probabilities is None:
            return float(np.mean(np.square(self._values - np.mean(self._values))))
        p = _raw_and_time(probabilities)[0]
        x, p = np.broadcast_arrays(self._values, p)
        m = np.mean(x * p) / np.mean(p)
        return float(np.mean(np.square(x - m) * p) / np.mean(p))

    def get_sample_variance(self) -> float:
        n = self.size()
        if self._values is None or n == 1:
            return 0.0
        return self.get_variance() * n / (n - 1)

    def get_standard_deviation(self, probabilities: Optional["RandomVariable"] = None) -> float:
        if self._values is None:
            return 0.0
        return math.sqrt(self.get_variance(probabilities))

    def get_standard_error(self, probabilities: Optional["RandomVariable"] = None) -> float:
        if self._values is None:
            return 0.0
        return self.get_standard_deviation(probabilities) / math.sqrt(self.size())

    def get_min(self) -> float:
        return self._scalar if self._values is None else float(np.min(self._values))

    def get_max(self) -> float:
        return self._scalar if self._values is None else float(np.max(self._values))

    def _quantile_index(self, quantile: float) -> int:
        n = self.size()
        return min(max(int(round((n + 1) * quantile - 1)), 0), n - 1)

    def get_quantile(self, quantile: float) -> float:
        if self._values is None:
            return self._scalar
        return float(np.sort(self._values)[self._quantile_index(quantile)])

    def get_quantile_expectation(self, quantile_start: float, quantile_end: float) -> float:
        """Average of the sorted realizations between two quantile levels (inclusive)."""
        if self._values is None:
            return self._scalar
        if quantile_start > quantile_end:
            quantile_start, quantile_end = quantile_end, quantile_start
        ordered = np.sort(self._values)
        i0, i1 = self._quantile_index(quantile_start), self._quantile_index(quantile_end)
        return float(np.mean(ordered[i0:i1 + 1]))

    def get_histogram(self, interval_points: Sequence[float]) -> np.ndarray:
        """
        Relative frequencies of the realizations in the intervals
        (-inf, p0], (p0, p1], ..., (p_{n-1}, +inf).
        """
        points = np.asarray(interval_points, dtype=np.float64)
        values = self.get_realizations()
        bins = np.searchsorted(points, values, side="left")
        counts = np.bincount(bins, minlength=points.size + 1).astype(np.float64)
        return counts / values.size


def _raw_and_time(value):
    """Numeric payload and filtration time of an operand (plain numbers carry no time)."""
    if isinstance(value, RandomVariable):
        return value.realizations, value.time
    if isinstance(value, (int, float, np.integer, np.floating)):
        return np.float64(value), NEGATIVE_INFINITY
    rv = RandomVariable(value)
    return rv.realizations, NEGATIVE_INFINITY


def as_random_variable(value, time: float = 0.0) -> RandomVariable:
    """Return value unchanged if it is a RandomVariable, otherwise wrap it."""
    return value if isinstance(value, RandomVariable) else RandomVariable(value, time)
