# pathwise_aad/core/operators.py

"""
Operator table.

Every differentiable operation has exactly one `OperatorRule`, which keeps
together:

    forward          : computes the node value from the argument values
    partials[k]      : closed-form local derivative d(node)/d(argument k)
    needs[k]         : argument positions whose values partials[k] reads;
                       drives which values a node retains (see OperatorNode)
    is_aggregate     : path-aggregate; the incoming adjoint is averaged over
                       paths and the partials are N * dR/dX_j
    adjoint_transform: optional map applied to the adjoint before it is
                       multiplied with the partial (conditional expectation
                       projection, Dirac delta regression)

Partials are called as partial(values, result, node) where values[k] is the
value of argument k if k is in needs, else None, and result is the node's
own forward value.
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, Optional, Tuple

import numpy as np

from ..errors import UnsupportedOperatorError
from ..stochastic.random_variable import RandomVariable
from . import dirac


class OperatorType(Enum):
    ADD = "add"
    SUB = "sub"
    MULT = "mult"
    DIV = "div"
    POW = "pow"
    SQUARED = "squared"
    SQRT = "sqrt"
    EXP = "exp"
    LOG = "log"
    SIN = "sin"
    COS = "cos"
    INVERT = "invert"
    CAP = "cap"
    FLOOR = "floor"
    ABS = "abs"
    ADDPRODUCT = "add_product"
    ADDRATIO = "add_ratio"
    SUBRATIO = "sub_ratio"
    ACCRUE = "accrue"
    DISCOUNT = "discount"
    BARRIER = "barrier"
    AVERAGE = "average"
    VARIANCE = "variance"
    SVARIANCE = "sample_variance"
    STDEV = "stdev"
    STDERROR = "stderror"
    MIN = "min"
    MAX = "max"
    AVERAGE2 = "weighted_average"
    VARIANCE2 = "weighted_variance"
    STDEV2 = "weighted_stdev"
    STDERROR2 = "weighted_stderror"
    CONDITIONAL_EXPECTATION = "conditional_expectation"


@dataclass(frozen=True)
class OperatorRule:
    operator_type: OperatorType
    forward: Callable[..., RandomVariable]
    partials: Tuple[Callable, ...]
    needs: Tuple[FrozenSet[int], ...]
    is_aggregate: bool = False
    adjoint_transform: Optional[Callable] = None

    @property
    def arity(self) -> int:
        return len(self.partials)

    def local_partial(self, node, position: int):
        values = tuple(
            node.argument_value(i) if i in self.needs[position] else None
            for i in range(self.arity)
        )
        return self.partials[position](values, node.value, node)

    def propagate(self, node, adjoint: RandomVariable, position: int) -> RandomVariable:
        """Contribution of the node adjoint to the adjoint of argument `position`."""
        if self.adjoint_transform is not None:
            adjoint = self.adjoint_transform(adjoint, node, position)
        partial = self.local_partial(node, position)
        if isinstance(partial, float) and partial == 1.0:
            return adjoint
        return adjoint.mult(partial)


_RULES: Dict[OperatorType, OperatorRule] = {}


def _rule(operator_type, forward, partials, needs, **kwargs):
    _RULES[operator_type] = OperatorRule(
        operator_type=operator_type,
        forward=forward,
        partials=tuple(partials),
        needs=tuple(frozenset(n) for n in needs),
        **kwargs,
    )


def get_rule(operator_type: OperatorType) -> OperatorRule:
    try:
        return _RULES[operator_type]
    except KeyError:
        raise UnsupportedOperatorError(operator_type) from None


def registered_operators() -> Tuple[OperatorType, ...]:
    return tuple(_RULES)


# ----------------------------- helpers ----------------------------- #
def _indicator(condition: Callable, *values) -> RandomVariable:
    """1.0 where condition(*raw values) holds, 0.0 elsewhere."""
    first, rest = values[0], values[1:]
    return first.apply(lambda *raw: np.asarray(condition(*raw), dtype=np.float64), *rest)


def _deterministic(value: float, *operands) -> RandomVariable:
    return RandomVariable(value, max(v.time for v in operands))


def _path_count(*operands) -> int:
    return max(v.size() for v in operands)


# ----------------------------- pathwise operators ----------------------------- #
_rule(OperatorType.ADD, RandomVariable.add,
      [lambda v, r, n: 1.0, lambda v, r, n: 1.0],
      [(), ()])

_rule(OperatorType.SUB, RandomVariable.sub,
      [lambda v, r, n: 1.0, lambda v, r, n: -1.0],
      [(), ()])

_rule(OperatorType.MULT, RandomVariable.mult,
      [lambda v, r, n: v[1], lambda v, r, n: v[0]],
      [(1,), (0,)])

_rule(OperatorType.DIV, RandomVariable.div,
      [lambda v, r, n: v[1].invert(),
       lambda v, r, n: v[0].div(v[1].squared()).mult(-1.0)],
      [(1,), (0, 1)])

def _pow_exponent_partial(v, r, n):
    # X^Y * log X, taken as 0 where X == 0 (0^Y is flat in Y)
    return r.apply(
        lambda result, base: np.where(base == 0.0, 0.0, result * np.log(np.where(base == 0.0, 1.0, base))),
        v[0])


_rule(OperatorType.POW, RandomVariable.pow,
      [lambda v, r, n: v[1].mult(v[0].pow(v[1].sub(1.0))),
       _pow_exponent_partial],
      [(0, 1), (0,)])

_rule(OperatorType.SQUARED, RandomVariable.squared,
      [lambda v, r, n: v[0].mult(2.0)],
      [(0,)])

_rule(OperatorType.SQRT, RandomVariable.sqrt,
      [lambda v, r, n: r.invert().mult(0.5)],
      [()])

_rule(OperatorType.EXP, RandomVariable.exp,
      [lambda v, r, n: r],
      [()])

_rule(OperatorType.LOG, RandomVariable.log,
      [lambda v, r, n: v[0].invert()],
      [(0,)])

_rule(OperatorType.SIN, RandomVariable.sin,
      [lambda v, r, n: v[0].cos()],
      [(0,)])

_rule(OperatorType.COS, RandomVariable.cos,
      [lambda v, r, n: v[0].sin().mult(-1.0)],
      [(0,)])

_rule(OperatorType.INVERT, RandomVariable.invert,
      [lambda v, r, n: r.squared().mult(-1.0)],
      [()])

# non-smooth: hard 0/1 sub-gradients
_rule(OperatorType.CAP, RandomVariable.cap,
      [lambda v, r, n: _indicator(np.less, v[0], v[1]),
       lambda v, r, n: _indicator(np.greater_equal, v[0], v[1])],
      [(0, 1), (0, 1)])

_rule(OperatorType.FLOOR, RandomVariable.floor,
      [lambda v, r, n: _indicator(np.greater_equal, v[0], v[1]),
       lambda v, r, n: _indicator(np.less, v[0], v[1])],
      [(0, 1), (0, 1)])

_rule(OperatorType.ABS, RandomVariable.abs,
      [lambda v, r, n: v[0].choose(1.0, -1.0)],
      [(0,)])

# ----------------------------- ternary operators ----------------------------- #
_rule(OperatorType.ADDPRODUCT, RandomVariable.add_product,
      [lambda v, r, n: 1.0, lambda v, r, n: v[2], lambda v, r, n: v[1]],
      [(), (2,), (1,)])

_rule(OperatorType.ADDRATIO, RandomVariable.add_ratio,
      [lambda v, r, n: 1.0,
       lambda v, r, n: v[2].invert(),
       lambda v, r, n: v[1].div(v[2].squared()).mult(-1.0)],
      [(), (2,), (1, 2)])

_rule(OperatorType.SUBRATIO, RandomVariable.sub_ratio,
      [lambda v, r, n: 1.0,
       lambda v, r, n: v[2].invert().mult(-1.0),
       lambda v, r, n: v[1].div(v[2].squared())],
      [(), (2,), (1, 2)])

_rule(OperatorType.ACCRUE, RandomVariable.accrue,
      [lambda v, r, n: v[1].mult(v[2]).add(1.0),
       lambda v, r, n: v[0].mult(v[2]),
       lambda v, r, n: v[0].mult(v[1])],
      [(1, 2), (0, 2), (0, 1)])


def _discount_factor_squared(v):
    return v[1].mult(v[2]).add(1.0).squared()


_rule(OperatorType.DISCOUNT, RandomVariable.discount,
      [lambda v, r, n: v[1].mult(v[2]).add(1.0).invert(),
       lambda v, r, n: v[0].mult(v[2]).div(_discount_factor_squared(v)).mult(-1.0),
       lambda v, r, n: v[0].mult(v[1]).div(_discount_factor_squared(v)).mult(-1.0)],
      [(1, 2), (0, 1, 2), (0, 1, 2)])


def _barrier_adjoint(adjoint, node, position):
    if position == 0 and node.config.dirac_delta_approximation_method in dirac.REGRESSION_METHODS:
        return dirac.dirac_delta_regression(adjoint, node.argument_value(0), node.config)
    return adjoint


# trigger X; value Y where X >= 0, Z elsewhere
_rule(OperatorType.BARRIER, RandomVariable.choose,
      [lambda v, r, n: dirac.trigger_partial(v[0], v[1], v[2], n.config),
       lambda v, r, n: v[0].choose(1.0, 0.0),
       lambda v, r, n: v[0].choose(0.0, 1.0)],
      [(0, 1, 2), (0,), (0,)],
      adjoint_transform=_barrier_adjoint)

# ----------------------------- path aggregates ----------------------------- #
# Partials are N * dR/dX_j; the adjoint is averaged over paths before use.
def _centered(x: RandomVariable) -> RandomVariable:
    return x.sub(x.get_average())


def _sample_variance_partial(v, r, n):
    x = v[0]
    size = x.size()
    if size == 1:
        return 0.0
    return _centered(x).mult(2.0 * size / (size - 1))


def _stdev_partial(v, r, n):
    sigma = r.double_value()
    if sigma == 0.0:
        return 0.0
    return _centered(v[0]).div(sigma)


def _stderror_partial(v, r, n):
    size = v[0].size()
    sigma = r.double_value() * math.sqrt(size)
    if sigma == 0.0:
        return 0.0
    return _centered(v[0]).div(sigma * math.sqrt(size))


def _extremum_partial(v, r, n):
    hit = _indicator(np.equal, v[0], r)
    return hit.div(hit.get_average())


_rule(OperatorType.AVERAGE, RandomVariable.average,
      [lambda v, r, n: 1.0],
      [()], is_aggregate=True)

_rule(OperatorType.VARIANCE, lambda x: _deterministic(x.get_variance(), x),
      [lambda v, r, n: _centered(v[0]).mult(2.0)],
      [(0,)], is_aggregate=True)

_rule(OperatorType.SVARIANCE, lambda x: _deterministic(x.get_sample_variance(), x),
      [_sample_variance_partial],
      [(0,)], is_aggregate=True)

_rule(OperatorType.STDEV, lambda x: _deterministic(x.get_standard_deviation(), x),
      [_stdev_partial],
      [(0,)], is_aggregate=True)

_rule(OperatorType.STDERROR, lambda x: _deterministic(x.get_standard_error(), x),
      [_stderror_partial],
      [(0,)], is_aggregate=True)

_rule(OperatorType.MIN, lambda x: _deterministic(x.get_min(), x),
      [_extremum_partial],
      [(0,)], is_aggregate=True)

_rule(OperatorType.MAX, lambda x: _deterministic(x.get_max(), x),
      [_extremum_partial],
      [(0,)], is_aggregate=True)


# Weighted aggregates under the measure P / E[P]
def _weighted_mean(x, p) -> float:
    return x.get_average(p)


def _weighted_variance_partials(v, r_variance: float):
    x, p = v
    p_mean = p.get_average()
    centered = x.sub(_weighted_mean(x, p))
    d_x = p.mult(centered).mult(2.0 / p_mean)
    d_p = centered.squared().sub(r_variance).div(p_mean)
    return d_x, d_p


_rule(OperatorType.AVERAGE2, lambda x, p: _deterministic(x.get_average(p), x, p),
      [lambda v, r, n: v[1].div(v[1].get_average()),
       lambda v, r, n: v[0].sub(r).div(v[1].get_average())],
      [(1,), (0, 1)], is_aggregate=True)

_rule(OperatorType.VARIANCE2, lambda x, p: _deterministic(x.get_variance(p), x, p),
      [lambda v, r, n: _weighted_variance_partials(v, r.double_value())[0],
       lambda v, r, n: _weighted_variance_partials(v, r.double_value())[1]],
      [(0, 1), (0, 1)], is_aggregate=True)


def _weighted_stdev_partial(position: int, standard_error: bool):
    def partial(v, r, n):
        size = _path_count(*v)
        sigma = r.double_value() * (math.sqrt(size) if standard_error else 1.0)
        if sigma == 0.0:
            return 0.0
        scale = 2.0 * sigma * (math.sqrt(size) if standard_error else 1.0)
        return _weighted_variance_partials(v, sigma * sigma)[position].div(scale)
    return partial


_rule(OperatorType.STDEV2, lambda x, p: _deterministic(x.get_standard_deviation(p), x, p),
      [_weighted_stdev_partial(0, False), _weighted_stdev_partial(1, False)],
      [(0, 1), (0, 1)], is_aggregate=True)

_rule(OperatorType.STDERROR2, lambda x, p: _deterministic(x.get_standard_error(p), x, p),
      [_weighted_stdev_partial(0, True), _weighted_stdev_partial(1, True)],
      [(0, 1), (0, 1)], is_aggregate=True)

# ----------------------------- conditional expectation ----------------------------- #
# E[.|F] is a symmetric projection: the adjoint is projected with the same estimator
_rule(OperatorType.CONDITIONAL_EXPECTATION, RandomVariable.get_conditional_expectation,
      [lambda v, r, n: 1.0],
      [()],
      adjoint_transform=lambda adjoint, node, position: node.payload.get_conditional_expectation(adjoint))
