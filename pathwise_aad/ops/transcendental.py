# pathwise_aad/ops/transcendental.py
from ..core.operators import OperatorType
from .arithmetic import _apply


def exp(x):
    """exp(x); the partial is the node value itself, so nothing is retained."""
    return _apply(OperatorType.EXP, x)


def log(x):
    return _apply(OperatorType.LOG, x)


def sqrt(x):
    """sqrt(x); partial 0.5 / sqrt(x) from the node value."""
    return _apply(OperatorType.SQRT, x)


def sin(x):
    return _apply(OperatorType.SIN, x)


def cos(x):
    return _apply(OperatorType.COS, x)
