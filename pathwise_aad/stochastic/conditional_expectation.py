# pathwise_aad/stochastic/conditional_expectation.py

"""
Regression based conditional expectation estimators.

E[Y | F] is estimated by the least-squares projection of Y onto the span of
F-measurable basis functions B_1, ..., B_k (Longstaff-Schwartz):

    E[Y | F] ~ sum_i a_i B_i,   a = argmin || Y - B a ||^2

The projection matrix B (B^T B)^+ B^T is symmetric, so the same estimator
applied to an adjoint is its own adjoint. The backward rule of the
conditional expectation operator depends on this.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence

import numpy as np
from scipy import linalg

from .random_variable import RandomVariable, as_random_variable


class ConditionalExpectationEstimator(ABC):
    """Maps a random variable Y to an estimate of E[Y | F]."""

    @abstractmethod
    def get_conditional_expectation(self, value: RandomVariable) -> RandomVariable:
        pass


class LinearRegression:
    """Ordinary least squares on path-wise basis functions."""

    def __init__(self, basis_functions: Sequence):
        if len(basis_functions) == 0:
            raise ValueError("LinearRegression requires at least one basis function")
        self.basis_functions: List[RandomVariable] = [as_random_variable(b) for b in basis_functions]

    def design_matrix(self, number_of_paths: int) -> np.ndarray:
        """Basis functions as columns; deterministic ones are broadcast to all paths."""
        columns = []
        for b in self.basis_functions:
            raw = b.realizations
            if np.ndim(raw) == 0:
                columns.append(np.full(number_of_paths, float(raw)))
            elif raw.size != number_of_paths:
                raise ValueError(
                    f"Basis function has {raw.size} paths, regressand has {number_of_paths}"
                )
            else:
                columns.append(raw)
        return np.column_stack(columns)

    def _number_of_paths(self, value: RandomVariable) -> int:
        return max([value.size()] + [b.size() for b in self.basis_functions])

    def get_regression_coefficients(self, value) -> np.ndarray:
        value = as_random_variable(value)
        n = self._number_of_paths(value)
        X = self.design_matrix(n)
        y = np.array(np.broadcast_to(value.realizations, (n,)), dtype=np.float64)
        coefficients, *_ = linalg.lstsq(X, y)
        return coefficients


class RegressionConditionalExpectation(ConditionalExpectationEstimator):
    """
    Conditional expectation estimator via linear regression on basis functions.

    Args:
        basis_functions: F-measurable random variables spanning the regression space.
            Include a constant (e.g. ``RandomVariable(1.0)``) to reproduce
            deterministic values exactly.
    """

    def __init__(self, basis_functions: Sequence):
        self.regression = LinearRegression(basis_functions)

    @property
    def basis_functions(self) -> List[RandomVariable]:
        return self.regression.basis_functions

    def get_conditional_expectation(self, value) -> RandomVariable:
        value = as_random_variable(value)
        n = self.regression._number_of_paths(value)
        X = self.regression.design_matrix(n)
        coefficients = self.regression.get_regression_coefficients(value)
        time = max([value.time] + [b.time for b in self.basis_functions])
        return RandomVariable(X @ coefficients, time)
