# pathwise_aad/ops/arithmetic.py
from ..core.var import ADVar
from ..core.factory import get_factory
from ..core.operators import OperatorType


def _factory_of(operands):
    """Factory of the first ADVar operand, else the active default factory."""
    for x in operands:
        if isinstance(x, ADVar):
            return x.factory
    return get_factory()


def _as_ad(x, factory):
    """Ensure x is an ADVar; otherwise wrap it as a constant leaf."""
    return x if isinstance(x, ADVar) else factory.create_constant(x)


def _apply(operator_type, *operands, payload=None, factory=None):
    """
    Generic primitive:
      - wraps non-ADVar operands as constant leaves (smaller ids than the result)
      - computes the forward value eagerly
      - records a node that retains what its backward formulas need
    """
    factory = factory or _factory_of(operands)
    nodes = tuple(_as_ad(x, factory).node for x in operands)
    return factory.record(operator_type, nodes, payload=payload)


def add(x, y): return _apply(OperatorType.ADD, x, y)
def sub(x, y): return _apply(OperatorType.SUB, x, y)
def mult(x, y): return _apply(OperatorType.MULT, x, y)
def div(x, y): return _apply(OperatorType.DIV, x, y)


def bus(x, y):
    """Reversed subtraction: y - x."""
    return _apply(OperatorType.SUB, y, x, factory=_factory_of((x, y)))


def vid(x, y):
    """Reversed division: y / x."""
    return _apply(OperatorType.DIV, y, x, factory=_factory_of((x, y)))


def neg(x):
    """Unary negation, recorded as x * (-1)."""
    return mult(x, -1.0)


def pow(x, y):
    """
    Power x ** y.

    Local partials:
      d/dx = y * x^(y-1)
      d/dy = x^y * log(x)        (only evaluated when y is differentiable)
    """
    return _apply(OperatorType.POW, x, y)


def squared(x): return _apply(OperatorType.SQUARED, x)
def invert(x): return _apply(OperatorType.INVERT, x)
def abs(x): return _apply(OperatorType.ABS, x)


def cap(x, y):
    """Elementwise min(x, y)."""
    return _apply(OperatorType.CAP, x, y)


def floor(x, y):
    """Elementwise max(x, y)."""
    return _apply(OperatorType.FLOOR, x, y)


def add_product(x, y, z):
    """x + y * z"""
    return _apply(OperatorType.ADDPRODUCT, x, y, z)


def add_ratio(x, y, z):
    """x + y / z"""
    return _apply(OperatorType.ADDRATIO, x, y, z)


def sub_ratio(x, y, z):
    """x - y / z"""
    return _apply(OperatorType.SUBRATIO, x, y, z)


def accrue(x, rate, period_length):
    """x * (1 + rate * period_length)"""
    return _apply(OperatorType.ACCRUE, x, rate, period_length)


def discount(x, rate, period_length):
    """x / (1 + rate * period_length)"""
    return _apply(OperatorType.DISCOUNT, x, rate, period_length)
