# pathwise_aad/stochastic/__init__.py

"""
Numpy-backed path-wise values consumed by the AAD engine.

Exports:
    RandomVariable                    : Deterministic scalar or one realization per path.
    ConditionalExpectationEstimator   : Interface of E[Y | F] estimators.
    RegressionConditionalExpectation  : Least-squares projection on basis functions.
    LinearRegression                  : Regression coefficients on basis functions.
"""

from .random_variable import RandomVariable, as_random_variable
from .conditional_expectation import (
    ConditionalExpectationEstimator,
    LinearRegression,
    RegressionConditionalExpectation,
)

__all__ = [
    "RandomVariable", "as_random_variable",
    "ConditionalExpectationEstimator",
    "LinearRegression",
    "RegressionConditionalExpectation",
]
