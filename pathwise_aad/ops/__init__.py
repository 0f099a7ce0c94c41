# pathwise_aad/ops/__init__.py

# Convenience re-exports so users can do: from pathwise_aad.ops import mult, exp, ...
from .arithmetic import (
    add, sub, bus, mult, div, vid, neg, pow, squared, invert, abs,
    cap, floor, add_product, add_ratio, sub_ratio, accrue, discount,
)
from .transcendental import exp, log, sqrt, sin, cos
from .special import barrier, choose
from .statistics import (
    average, variance, sample_variance, stdev, stderror, min, max,
    conditional_expectation,
)

__all__ = [
    "add", "sub", "bus", "mult", "div", "vid", "neg", "pow", "squared", "invert", "abs",
    "cap", "floor", "add_product", "add_ratio", "sub_ratio", "accrue", "discount",
    "exp", "log", "sqrt", "sin", "cos",
    "barrier", "choose",
    "average", "variance", "sample_variance", "stdev", "stderror", "min", "max",
    "conditional_expectation",
]
