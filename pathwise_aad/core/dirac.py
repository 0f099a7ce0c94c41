# pathwise_aad/core/dirac.py

"""
Dirac delta approximations for the trigger of the barrier operator.

The barrier  R = Y if X >= 0 else Z  has the distributional derivative
(Y - Z) * delta(X) with respect to its trigger X. Path-wise this is zero
almost everywhere, so it is replaced by one of the approximations selected
through `AADConfig.dirac_delta_approximation_method`:

    DISCRETE_DELTA        (Y - Z) * 1{-eps/2 <= X < eps/2} / eps,  eps = w * std(X)
    ONE                   (Y - Z)
    ZERO                  0
    REGRESSION_ON_*       (Y - Z), with the adjoint localized to the eps band,
                          normalized by the band probability and scaled by a
                          regression estimate of the density of X at 0.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from ..config import AADConfig, DiracDeltaApproximationMethod
from ..stochastic.conditional_expectation import LinearRegression
from ..stochastic.random_variable import RandomVariable

logger = logging.getLogger(__name__)

NUMBER_OF_SAMPLE_POINTS_HALF = 50

REGRESSION_METHODS = (
    DiracDeltaApproximationMethod.REGRESSION_ON_DENSITY,
    DiracDeltaApproximationMethod.REGRESSION_ON_DISTRIBUTION,
)


def localized_band(trigger: RandomVariable, width_per_std_dev: float):
    """Indicator of -eps/2 <= X < eps/2 and its width eps."""
    epsilon = width_per_std_dev * trigger.get_standard_deviation()
    band = trigger.apply(
        lambda x: ((x + epsilon / 2 >= 0.0) & (x - epsilon / 2 < 0.0)).astype(np.float64)
    )
    return band, epsilon


def trigger_partial(trigger: RandomVariable,
                    value_if_non_negative: RandomVariable,
                    value_if_negative: RandomVariable,
                    config: AADConfig):
    """Local derivative of the barrier with respect to its trigger."""
    method = config.dirac_delta_approximation_method
    jump = value_if_non_negative.sub(value_if_negative)

    if method == DiracDeltaApproximationMethod.ONE or method in REGRESSION_METHODS:
        return jump
    if method == DiracDeltaApproximationMethod.ZERO:
        return 0.0
    if method == DiracDeltaApproximationMethod.DISCRETE_DELTA:
        band, epsilon = localized_band(trigger, config.dirac_delta_approximation_width_per_std_dev)
        if math.isinf(epsilon):
            return jump
        if epsilon > 0:
            return jump.mult(band).div(epsilon)
        return 0.0
    raise ValueError(f"Dirac delta approximation method {method.name} not supported.")


def density_regression(trigger: RandomVariable, config: AADConfig) -> float:
    """
    Estimate the density of the trigger at 0.

    Samples P(0 <= X < s) and P(-s <= X < 0) at s_k = (k + 1) h, k = 1..50,
    h = densityWidth / 2 * std(X) / 50, and regresses
      REGRESSION_ON_DENSITY:       P(band)/s       on 1, s, s^2  -> intercept
      REGRESSION_ON_DISTRIBUTION:  +-P(band)       on s, s^2, s^3 -> linear coefficient
    """
    method = config.dirac_delta_approximation_method
    h = (config.dirac_delta_approximation_density_regression_width_per_std_dev / 2
         * trigger.get_standard_deviation() / NUMBER_OF_SAMPLE_POINTS_HALF)
    if not h > 0.0:
        logger.warning("Density regression sample width is zero; Dirac delta contributes 0")
        return 0.0

    x = np.broadcast_to(trigger.realizations, (trigger.size(),))
    positive = x >= 0.0
    negative = ~positive

    sample_points = np.empty(2 * NUMBER_OF_SAMPLE_POINTS_HALF)
    sample_values = np.empty(2 * NUMBER_OF_SAMPLE_POINTS_HALF)
    for k in range(NUMBER_OF_SAMPLE_POINTS_HALF):
        s = (k + 2) * h
        on_negative = np.mean((x + s >= 0.0) & negative)
        on_positive = np.mean((x - s < 0.0) & positive)
        sample_points[2 * k] = -s
        sample_points[2 * k + 1] = s
        if method == DiracDeltaApproximationMethod.REGRESSION_ON_DENSITY:
            sample_values[2 * k] = on_negative / s
            sample_values[2 * k + 1] = on_positive / s
        else:
            sample_values[2 * k] = -on_negative
            sample_values[2 * k + 1] = on_positive

    s = RandomVariable(sample_points)
    if method == DiracDeltaApproximationMethod.REGRESSION_ON_DENSITY:
        basis = [RandomVariable(1.0), s, s.squared()]
    elif method == DiracDeltaApproximationMethod.REGRESSION_ON_DISTRIBUTION:
        basis = [s, s.squared(), s.pow(3.0)]
    else:
        raise ValueError(f"Density regression method {method.name} not supported.")

    coefficients = LinearRegression(basis).get_regression_coefficients(RandomVariable(sample_values))
    return float(coefficients[0])


def dirac_delta_regression(adjoint: RandomVariable, trigger: RandomVariable, config: AADConfig) -> RandomVariable:
    """Localize an adjoint to the eps band of the trigger and scale it by the density at 0."""
    band, _ = localized_band(trigger, config.dirac_delta_approximation_width_per_std_dev)
    band_probability = band.get_average()
    if band_probability == 0.0:
        logger.warning("Dirac delta band of the barrier trigger is empty; trigger adjoint set to 0")
        return RandomVariable(0.0, adjoint.time)
    localized = adjoint.mult(band).div(band_probability)
    return localized.mult(density_regression(trigger, config))
