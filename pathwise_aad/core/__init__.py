# pathwise_aad/core/__init__.py

"""
Core public API for the AAD engine.

Exports:
    ADVar           : Differentiable path-wise value (handle on one graph node).
    OperatorNode    : Graph node with selectively retained argument values.
    OperatorType    : Closed enumeration of differentiable operations.
    ADFactory       : Creates leaves and records nodes under one configuration.
    get_factory     : Factory used for values created without one.
    use_factory     : Context manager to temporarily switch the default factory.
    NodeIdCounter   : Monotonic node id source; global_counter is process-wide.
    gradient        : Run one reverse pass and return {node id: adjoint}.
    grad, grads     : Convenience: gradients of a function w.r.t. its inputs.
    value           : Convenience: forward value of an ADVar.
"""

from .var import ADVar
from .node import OperatorNode
from .operators import OperatorType, OperatorRule, get_rule
from .counter import NodeIdCounter, global_counter
from .factory import ADFactory, get_factory, use_factory
from .engine import gradient
from .seeds import grad, grads, grads_list, value

__all__ = [
    "ADVar", "OperatorNode",
    "OperatorType", "OperatorRule", "get_rule",
    "NodeIdCounter", "global_counter",
    "ADFactory", "get_factory", "use_factory",
    "gradient",
    "grad", "grads", "grads_list", "value",
]
