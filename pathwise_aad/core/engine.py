# pathwise_aad/core/engine.py
from __future__ import annotations
import heapq
import logging
from typing import Dict, Iterable, Optional

from ..stochastic.random_variable import RandomVariable
from .operators import get_rule

logger = logging.getLogger(__name__)


def gradient(root, independent_ids: Optional[Iterable[int]] = None) -> Dict[int, RandomVariable]:
    """
    Run one reverse pass from `root` (an ADVar or an OperatorNode).

    Nodes are processed in strictly decreasing id order. Since every argument
    has a smaller id than its consumer, a node's adjoint is complete when it
    is popped. For each argument a at position k:

        adjoint[a] += propagate(adjoint[node], node, k)

    Args:
        root: value to differentiate; its adjoint is seeded with 1.
        independent_ids: if given, only adjoints of these node ids are
            returned; branches below the smallest requested id are not
            followed, and requested internal nodes keep their adjoints.

    Returns:
        dict {node id: adjoint RandomVariable}. With the configuration flag
        `is_gradient_retains_leaf_nodes_only` (default) only leaves are kept.
        Constant leaves never appear.

    Path aggregates pass on N * dR/dX_j per path, so for an aggregate
    (deterministic) root the sensitivity to an input is the average of its
    adjoint: gradient(root)[x.id].get_average().
    """
    node = getattr(root, "node", root)
    leaf_only = node.config.is_gradient_retains_leaf_nodes_only
    requested = None if independent_ids is None else set(independent_ids)
    if node.is_constant or (requested is not None and not requested):
        return {}
    lowest_requested = min(requested) if requested else None

    adjoints: Dict[int, RandomVariable] = {node.id: RandomVariable(1.0)}
    pending = {node.id: node}
    worklist = [-node.id]  # max-heap on id
    processed = 0

    while worklist:
        node_id = -heapq.heappop(worklist)
        current = pending.pop(node_id)
        processed += 1
        if current.is_leaf():
            continue

        rule = get_rule(current.operator_type)
        adjoint = adjoints[node_id]
        if rule.is_aggregate:
            adjoint = adjoint.average()

        for position, argument in enumerate(current.arguments):
            if argument.is_constant:
                continue
            if lowest_requested is not None and argument.id < lowest_requested:
                continue
            contribution = rule.propagate(current, adjoint, position)
            existing = adjoints.get(argument.id)
            adjoints[argument.id] = contribution if existing is None else existing.add(contribution)
            if argument.id not in pending:
                pending[argument.id] = argument
                heapq.heappush(worklist, -argument.id)

        if leaf_only and not (requested is not None and node_id in requested):
            del adjoints[node_id]

    if requested is not None:
        adjoints = {i: a for i, a in adjoints.items() if i in requested}

    logger.debug("gradient pass root=%d nodes=%d result=%d", node.id, processed, len(adjoints))
    return adjoints
