# pathwise_aad/ops/statistics.py
"""
Path aggregates and conditional expectation.

Aggregates reduce a path-wise value to one deterministic number. Passing
`probabilities` selects the weighted variant under the measure P / E[P].
"""
from ..core.operators import OperatorType
from .arithmetic import _apply


def average(x, probabilities=None):
    if probabilities is None:
        return _apply(OperatorType.AVERAGE, x)
    return _apply(OperatorType.AVERAGE2, x, probabilities)


def variance(x, probabilities=None):
    if probabilities is None:
        return _apply(OperatorType.VARIANCE, x)
    return _apply(OperatorType.VARIANCE2, x, probabilities)


def sample_variance(x):
    """Variance with the N / (N - 1) correction."""
    return _apply(OperatorType.SVARIANCE, x)


def stdev(x, probabilities=None):
    if probabilities is None:
        return _apply(OperatorType.STDEV, x)
    return _apply(OperatorType.STDEV2, x, probabilities)


def stderror(x, probabilities=None):
    """Standard deviation / sqrt(number of paths)."""
    if probabilities is None:
        return _apply(OperatorType.STDERROR, x)
    return _apply(OperatorType.STDERROR2, x, probabilities)


def min(x):
    return _apply(OperatorType.MIN, x)


def max(x):
    return _apply(OperatorType.MAX, x)


def conditional_expectation(x, estimator):
    """
    E[x | F] via `estimator` (a ConditionalExpectationEstimator).
    The backward pass projects the adjoint with the same estimator.
    """
    return _apply(OperatorType.CONDITIONAL_EXPECTATION, x, payload=estimator)
