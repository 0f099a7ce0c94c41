# pathwise_aad/core/factory.py
from __future__ import annotations
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Mapping, Optional, Sequence

from ..config import AADConfig, DEFAULT_CONFIG
from ..errors import NodeOrderError
from ..stochastic.random_variable import RandomVariable, as_random_variable
from .counter import NodeIdCounter, global_counter
from .node import OperatorNode
from .operators import OperatorType, get_rule
from .var import ADVar

logger = logging.getLogger(__name__)


class ADFactory:
    """
    Creates leaves and records operator nodes under one configuration.

    Every node built through a factory shares its (immutable) config and
    draws its id from the factory's counter.
    """

    def __init__(self, config: Optional[AADConfig] = None, counter: Optional[NodeIdCounter] = None):
        self.config = config if config is not None else DEFAULT_CONFIG
        self.counter = counter if counter is not None else global_counter

    @classmethod
    def from_properties(cls, properties: Optional[Mapping[str, Any]] = None,
                        counter: Optional[NodeIdCounter] = None) -> "ADFactory":
        return cls(AADConfig.from_properties(properties), counter)

    def create_variable(self, value: Any, time: float = 0.0, name: Optional[str] = None) -> ADVar:
        """Differentiable leaf (an input of the computation)."""
        node = OperatorNode(self.counter.next_id(), as_random_variable(value, time), config=self.config)
        return ADVar(node, self, name=name)

    def create_constant(self, value: Any, time: float = 0.0) -> ADVar:
        """Constant leaf; never differentiated."""
        node = OperatorNode(self.counter.next_id(), as_random_variable(value, time),
                            is_constant=True, config=self.config)
        return ADVar(node, self)

    def record(self, operator_type: OperatorType, arguments: Sequence[OperatorNode], payload: Any = None) -> ADVar:
        """
        Evaluate `operator_type` on the argument nodes and append the result node.

        The forward value is computed eagerly; argument values the backward
        formulas will need are snapshotted by the node.
        """
        rule = get_rule(operator_type)
        if len(arguments) != rule.arity:
            raise ValueError(
                f"{operator_type.name} takes {rule.arity} arguments, got {len(arguments)}"
            )
        values = [a.value for a in arguments]
        value = rule.forward(*values) if payload is None else rule.forward(*values, payload)
        node_id = self.counter.next_id()
        if arguments and node_id <= max(a.id for a in arguments):
            raise NodeOrderError(node_id, [a.id for a in arguments])
        node = OperatorNode(node_id, value, operator_type, tuple(arguments),
                            payload=payload, config=self.config)
        logger.debug("node %d %s args=%s retained=%s", node.id, operator_type.name,
                     [a.id for a in node.arguments], node.retained_positions())
        return ADVar(node, self)

    def __repr__(self):
        return f"ADFactory(config={self.config!r})"


# Process default for values created without an explicit factory
global_factory = ADFactory()

# Per thread / per task override installed by use_factory()
_active_factory: ContextVar[Optional[ADFactory]] = ContextVar("pathwise_aad_active_factory", default=None)


def get_factory() -> ADFactory:
    """Currently active default factory."""
    active = _active_factory.get()
    return active if active is not None else global_factory


@contextmanager
def use_factory(factory: Optional[ADFactory] = None):
    """
    Context manager to temporarily switch the default factory:
        with use_factory(ADFactory.from_properties({...})) as f:
            x = f.create_variable(...)
            y = x.exp() + 1.0

    The switch is held in a context variable, so it is only visible to the
    thread (or asyncio task) that entered the block.
    """
    token = _active_factory.set(factory or ADFactory())
    try:
        yield _active_factory.get()
    finally:
        _active_factory.reset(token)
