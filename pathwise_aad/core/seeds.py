# pathwise_aad/core/seeds.py

#-----------------------------------------------------------------------------
# We "plant" a seed (dy/dy = 1) at the output and let adjoints grow backwards
# through the graph.
#-----------------------------------------------------------------------------
from __future__ import annotations
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..config import AADConfig
from ..stochastic.random_variable import RandomVariable
from .factory import ADFactory, use_factory
from .var import ADVar

ZERO = RandomVariable(0.0)


def value(x: Any) -> Any:
    """Return the forward value of an ADVar; pass through anything else unchanged."""
    return x.value() if isinstance(x, ADVar) else x


def _ensure_ad(v: Any, factory: ADFactory, *, name: str) -> ADVar:
    """Wrap a plain value as a differentiable leaf if needed; otherwise return the ADVar itself."""
    return v if isinstance(v, ADVar) else factory.create_variable(v, name=name)


def _differentiate(y: Any, factory: ADFactory, leaves: List[ADVar]) -> List[RandomVariable]:
    if not isinstance(y, ADVar):
        y = factory.create_constant(y)
    adjoints = y.get_gradient(independent_ids=[x.id for x in leaves])
    return [adjoints.get(x.id, ZERO) for x in leaves]


# ----------------------------- single-input grad ----------------------------- #
def grad(f: Callable[[ADVar], Any], x0: Any, config: Optional[AADConfig] = None) -> RandomVariable:
    """
    Derivative of y = f(x) at x0 (single input), from one reverse pass on a
    fresh factory.

    For a deterministic y (e.g. an average) the sensitivity is
    `grad(f, x0).get_average()`; for a path-wise y it is the path-wise
    derivative.
    """
    with use_factory(ADFactory(config)) as factory:
        x = _ensure_ad(x0, factory, name="x")
        return _differentiate(f(x), factory, [x])[0]


# ----------------------------- multi-input grads ----------------------------- #
def grads(f: Callable[[Dict[str, ADVar]], Any],
          inputs: Dict[str, Any],
          config: Optional[AADConfig] = None) -> Dict[str, RandomVariable]:
    """
    Derivatives of y = f(vars) w.r.t. ALL inputs (dict form).
    Performs ONE reverse pass to obtain all dy/dvar simultaneously.

    Parameters
    ----------
    f       : function taking a dict {name: ADVar} and returning an ADVar
    inputs  : dict {name: number, array or RandomVariable}

    Returns
    -------
    dict {name: RandomVariable}  # adjoints in the same key order as `inputs`
    """
    with use_factory(ADFactory(config)) as factory:
        vars_ad: Dict[str, ADVar] = {k: _ensure_ad(v, factory, name=k) for k, v in inputs.items()}
        adjoints = _differentiate(f(vars_ad), factory, list(vars_ad.values()))
        return dict(zip(vars_ad.keys(), adjoints))


def grads_list(f: Callable[[List[ADVar]], Any],
               x0_list: Iterable[Any],
               config: Optional[AADConfig] = None) -> List[RandomVariable]:
    """
    Same as grads(), but the inputs are provided as a list and the result is a list
    of adjoints in the same order.

    Example
    -------
    f = lambda xs: xs[0]*xs[0] + 3*xs[1]
    grads_list(f, [2.0, 4.0]) -> [RandomVariable(4.0), RandomVariable(3.0)]
    """
    with use_factory(ADFactory(config)) as factory:
        xs: List[ADVar] = [_ensure_ad(v, factory, name=f"x{i}") for i, v in enumerate(x0_list)]
        return _differentiate(f(xs), factory, xs)
