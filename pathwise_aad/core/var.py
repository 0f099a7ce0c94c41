# pathwise_aad/core/var.py
from __future__ import annotations
from typing import Dict, Iterable, Optional

import numpy as np


class ADVar:
    """
    Differentiable path-wise value: a handle on exactly one graph node.

    Attributes
    ----------
    node : OperatorNode
        The graph node this handle refers to. Copying the handle does not
        copy the node.
    factory : ADFactory
        Factory the node was built with; results of operations on this
        handle are recorded through it.
    name : Optional[str]
        Optional debug/pretty-print name.

    Every operation returns a new ADVar wrapping a new node. Operands may be
    ADVars, RandomVariables, numbers or 1-d arrays; anything that is not an
    ADVar enters the graph as a constant leaf.
    """

    __array_priority__ = 1000  # keep numpy from hijacking ndarray <op> ADVar

    def __init__(self, node, factory, name: Optional[str] = None):
        self.node = node
        self.factory = factory
        self.name = name

    def __repr__(self):
        kind = "const" if self.node.is_constant else (
            self.node.operator_type.name if self.node.operator_type is not None else "leaf")
        return f"ADVar(id={self.id}, {kind}, {self.value()!r}, name={self.name!r})"

    @property
    def id(self) -> int:
        return self.node.id

    @property
    def config(self):
        return self.node.config

    def value(self):
        """Forward (primal) value as a RandomVariable."""
        return self.node.value

    def is_constant(self) -> bool:
        return self.node.is_constant

    def get_gradient(self, independent_ids: Optional[Iterable[int]] = None) -> Dict:
        """Map node id -> adjoint of this value with respect to that node."""
        from .engine import gradient
        return gradient(self, independent_ids)

    def get_clone_independent(self) -> "ADVar":
        """
        New leaf with the same value, detached from this value's graph.

        Gradients taken through the clone stop at the clone; they never
        reach the inputs this value was computed from.
        """
        value = self.value()
        return self.factory.create_variable(value, time=value.time, name=self.name)

    # ------------------------------------------------------------------ #
    # Operator overloading
    # ------------------------------------------------------------------ #
    def __add__(self, other):
        from ..ops.arithmetic import add
        return add(self, other)

    def __radd__(self, other):
        from ..ops.arithmetic import add
        return add(other, self)

    def __sub__(self, other):
        from ..ops.arithmetic import sub
        return sub(self, other)

    def __rsub__(self, other):
        from ..ops.arithmetic import sub
        return sub(other, self)

    def __mul__(self, other):
        from ..ops.arithmetic import mult
        return mult(self, other)

    def __rmul__(self, other):
        from ..ops.arithmetic import mult
        return mult(other, self)

    def __truediv__(self, other):
        from ..ops.arithmetic import div
        return div(self, other)

    def __rtruediv__(self, other):
        from ..ops.arithmetic import div
        return div(other, self)

    def __neg__(self):
        from ..ops.arithmetic import neg
        return neg(self)

    def __pow__(self, other):
        from ..ops.arithmetic import pow
        return pow(self, other)

    def __rpow__(self, other):
        from ..ops.arithmetic import pow
        return pow(other, self)

    def __abs__(self):
        from ..ops.arithmetic import abs
        return abs(self)

    # ------------------------------------------------------------------ #
    # Named operations
    # ------------------------------------------------------------------ #
    def add(self, other):
        from ..ops.arithmetic import add
        return add(self, other)

    def sub(self, other):
        from ..ops.arithmetic import sub
        return sub(self, other)

    def bus(self, other):
        """other - self"""
        from ..ops.arithmetic import bus
        return bus(self, other)

    def mult(self, other):
        from ..ops.arithmetic import mult
        return mult(self, other)

    def div(self, other):
        from ..ops.arithmetic import div
        return div(self, other)

    def vid(self, other):
        """other / self"""
        from ..ops.arithmetic import vid
        return vid(self, other)

    def pow(self, exponent):
        from ..ops.arithmetic import pow
        return pow(self, exponent)

    def squared(self):
        from ..ops.arithmetic import squared
        return squared(self)

    def invert(self):
        from ..ops.arithmetic import invert
        return invert(self)

    def abs(self):
        from ..ops.arithmetic import abs
        return abs(self)

    def cap(self, cap):
        from ..ops.arithmetic import cap as _cap
        return _cap(self, cap)

    def floor(self, floor):
        from ..ops.arithmetic import floor as _floor
        return _floor(self, floor)

    def add_product(self, factor1, factor2):
        from ..ops.arithmetic import add_product
        return add_product(self, factor1, factor2)

    def add_ratio(self, numerator, denominator):
        from ..ops.arithmetic import add_ratio
        return add_ratio(self, numerator, denominator)

    def sub_ratio(self, numerator, denominator):
        from ..ops.arithmetic import sub_ratio
        return sub_ratio(self, numerator, denominator)

    def accrue(self, rate, period_length):
        from ..ops.arithmetic import accrue
        return accrue(self, rate, period_length)

    def discount(self, rate, period_length):
        from ..ops.arithmetic import discount
        return discount(self, rate, period_length)

    def sqrt(self):
        from ..ops.transcendental import sqrt
        return sqrt(self)

    def exp(self):
        from ..ops.transcendental import exp
        return exp(self)

    def log(self):
        from ..ops.transcendental import log
        return log(self)

    def sin(self):
        from ..ops.transcendental import sin
        return sin(self)

    def cos(self):
        from ..ops.transcendental import cos
        return cos(self)

    def choose(self, value_if_non_negative, value_if_negative):
        """Per path: value_if_non_negative where self >= 0, else value_if_negative."""
        from ..ops.special import choose
        return choose(self, value_if_non_negative, value_if_negative)

    def barrier(self, trigger, value_if_non_negative, value_if_negative):
        from ..ops.special import barrier
        return barrier(trigger, value_if_non_negative, value_if_negative, factory=self.factory)

    def average(self, probabilities=None):
        from ..ops.statistics import average
        return average(self, probabilities)

    def variance(self, probabilities=None):
        from ..ops.statistics import variance
        return variance(self, probabilities)

    def sample_variance(self):
        from ..ops.statistics import sample_variance
        return sample_variance(self)

    def stdev(self, probabilities=None):
        from ..ops.statistics import stdev
        return stdev(self, probabilities)

    def stderror(self, probabilities=None):
        from ..ops.statistics import stderror
        return stderror(self, probabilities)

    def min(self):
        from ..ops.statistics import min
        return min(self)

    def max(self):
        from ..ops.statistics import max
        return max(self)

    def conditional_expectation(self, estimator):
        from ..ops.statistics import conditional_expectation
        return conditional_expectation(self, estimator)

    # ------------------------------------------------------------------ #
    # Non-differentiable end points (read the forward value)
    # ------------------------------------------------------------------ #
    def size(self) -> int:
        return self.value().size()

    def is_deterministic(self) -> bool:
        return self.value().is_deterministic()

    def get_filtration_time(self) -> float:
        return self.value().time

    def get(self, path: int) -> float:
        return self.value().get(path)

    def get_realizations(self) -> np.ndarray:
        return self.value().get_realizations()

    def double_value(self) -> float:
        return self.value().double_value()

    def __float__(self) -> float:
        return self.double_value()

    def get_average(self, probabilities=None) -> float:
        return self.value().get_average(_plain(probabilities))

    def get_variance(self, probabilities=None) -> float:
        return self.value().get_variance(_plain(probabilities))

    def get_sample_variance(self) -> float:
        return self.value().get_sample_variance()

    def get_standard_deviation(self, probabilities=None) -> float:
        return self.value().get_standard_deviation(_plain(probabilities))

    def get_standard_error(self, probabilities=None) -> float:
        return self.value().get_standard_error(_plain(probabilities))

    def get_min(self) -> float:
        return self.value().get_min()

    def get_max(self) -> float:
        return self.value().get_max()

    def get_quantile(self, quantile: float) -> float:
        return self.value().get_quantile(quantile)

    def get_quantile_expectation(self, quantile_start: float, quantile_end: float) -> float:
        return self.value().get_quantile_expectation(quantile_start, quantile_end)

    def get_histogram(self, interval_points) -> np.ndarray:
        return self.value().get_histogram(interval_points)


def _plain(x):
    return x.value() if isinstance(x, ADVar) else x
