# pathwise_aad/core/node.py
from __future__ import annotations
from typing import Any, Optional, Tuple

from ..config import AADConfig, DEFAULT_CONFIG
from ..errors import MissingArgumentValueError
from ..stochastic.random_variable import RandomVariable
from .operators import OperatorType, get_rule


class OperatorNode:
    """
    One node of the computation graph produced by a primitive operation.

    Attributes
    ----------
    id : int
        Construction-order identifier; strictly greater than the id of every
        argument. The backward pass relies on this ordering only.
    operator_type : Optional[OperatorType]
        Operator that produced this node; None for leaves.
    arguments : Tuple[OperatorNode, ...]
        Argument nodes (shared with every other node built from them).
    argument_values : Tuple[Optional[RandomVariable], ...]
        Parallel to `arguments`; holds an argument's value only where a
        partial derivative of a differentiable position needs it.
    value : RandomVariable
        Forward value of this node.
    is_constant : bool
        Constant leaves are never differentiated.
    payload : Any
        Operator specific data (the estimator of a conditional expectation).
    config : AADConfig
        Configuration of the factory that built this node.
    """

    __slots__ = ("id", "operator_type", "arguments", "argument_values",
                 "value", "is_constant", "payload", "config")

    def __init__(self,
                 node_id: int,
                 value: RandomVariable,
                 operator_type: Optional[OperatorType] = None,
                 arguments: Tuple["OperatorNode", ...] = (),
                 *,
                 is_constant: bool = False,
                 payload: Any = None,
                 config: AADConfig = DEFAULT_CONFIG):
        self.id = node_id
        self.operator_type = operator_type
        self.arguments = tuple(arguments)
        self.value = value
        self.is_constant = is_constant
        self.payload = payload
        self.config = config
        self.argument_values = self._retain()

    def _retain(self) -> Tuple[Optional[RandomVariable], ...]:
        if self.operator_type is None:
            return ()
        rule = get_rule(self.operator_type)
        needed = set()
        for position, argument in enumerate(self.arguments):
            if not argument.is_constant:
                needed.update(rule.needs[position])
        # constants are readable through their leaf node
        return tuple(
            argument.value if (k in needed and not argument.is_constant) else None
            for k, argument in enumerate(self.arguments)
        )

    def is_leaf(self) -> bool:
        return not self.arguments

    def argument_value(self, position: int) -> RandomVariable:
        """Value of argument `position` as seen by the backward formulas."""
        retained = self.argument_values[position]
        if retained is not None:
            return retained
        argument = self.arguments[position]
        if argument.is_constant:
            return argument.value
        raise MissingArgumentValueError(self.operator_type, position)

    def retained_positions(self) -> Tuple[int, ...]:
        return tuple(k for k, v in enumerate(self.argument_values) if v is not None)

    def __repr__(self):
        if self.operator_type is None:
            kind = "constant" if self.is_constant else "leaf"
            return f"OperatorNode(id={self.id}, {kind})"
        args = ", ".join(str(a.id) for a in self.arguments)
        return f"OperatorNode(id={self.id}, {self.operator_type.name}, args=[{args}])"
