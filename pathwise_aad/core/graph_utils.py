# pathwise_aad/core/graph_utils.py

"""
Graph inspection utilities.
Print and analyze the computation graph reachable from a root value.
"""

import numpy as np
from typing import Dict, List, Tuple
from collections import Counter


def _collect(root) -> Dict[int, object]:
    """All nodes reachable from root, keyed by id."""
    start = getattr(root, "node", root)
    nodes = {start.id: start}
    stack = [start]
    while stack:
        node = stack.pop()
        for argument in node.arguments:
            if argument.id not in nodes:
                nodes[argument.id] = argument
                stack.append(argument)
    return nodes


def _label(node) -> str:
    if node.operator_type is not None:
        return node.operator_type.name
    return "CONSTANT" if node.is_constant else "LEAF"


def get_graph_stats(root) -> Dict:
    """
    Collect graph statistics (no printing).

    Returns:
        dict with node/edge counts, leaves, constants, fan-in/fan-out,
        operator breakdown, id range and number of retained argument values
    """
    nodes = _collect(root)
    n_nodes = len(nodes)
    n_edges = sum(len(node.arguments) for node in nodes.values())

    fan_ins = [len(node.arguments) for node in nodes.values()]
    fan_outs = Counter()
    for node in nodes.values():
        for argument in node.arguments:
            fan_outs[argument.id] += 1
    fan_out_list = [fan_outs.get(i, 0) for i in nodes]

    return {
        'nodes': n_nodes,
        'edges': n_edges,
        'leaves': sum(1 for node in nodes.values() if node.is_leaf() and not node.is_constant),
        'constants': sum(1 for node in nodes.values() if node.is_constant),
        'max_fan_in': max(fan_ins),
        'avg_fan_in': float(np.mean(fan_ins)),
        'max_fan_out': max(fan_out_list),
        'avg_fan_out': float(np.mean(fan_out_list)),
        'operations': dict(Counter(_label(node) for node in nodes.values())),
        'min_id': min(nodes),
        'max_id': max(nodes),
        'retained_values': sum(len(node.retained_positions()) for node in nodes.values()),
    }


def print_graph_summary(root, detailed: bool = False) -> Dict:
    """
    Print a summary of the graph below root.

    Args:
        root: ADVar or OperatorNode
        detailed: also list the nodes (graphs of at most 100 nodes)

    Returns:
        the statistics dict of get_graph_stats
    """
    stats = get_graph_stats(root)
    n_nodes = stats['nodes']

    print("\n" + "="*70)
    print("COMPUTATION GRAPH SUMMARY")
    print("="*70)
    print(f"Total nodes:        {n_nodes:,}")
    print(f"Total edges:        {stats['edges']:,}")
    print(f"Leaves:             {stats['leaves']:,}")
    print(f"Constants:          {stats['constants']:,}")
    print(f"Max fan-in:         {stats['max_fan_in']}")
    print(f"Avg fan-in:         {stats['avg_fan_in']:.2f}")
    print(f"Max fan-out:        {stats['max_fan_out']}")
    print(f"Avg fan-out:        {stats['avg_fan_out']:.2f}")
    print(f"Retained values:    {stats['retained_values']:,}")
    print()
    print("Operation breakdown:")
    for op_type, count in Counter(stats['operations']).most_common(10):
        pct = 100.0 * count / n_nodes
        print(f"  {op_type:24s}: {count:6,} ({pct:5.1f}%)")

    if detailed and n_nodes <= 100:
        print()
        print("="*70)
        print("DETAILED NODE LIST")
        print("="*70)
        nodes = _collect(root)
        for node_id in sorted(nodes):
            node = nodes[node_id]
            argument_info = ", ".join(f"Node{a.id}" for a in node.arguments)
            print(f"Node {node_id:6d}: {_label(node):24s} <- [{argument_info}]")

    print("="*70 + "\n")
    return stats


def analyze_graph_complexity(root) -> str:
    """
    Analyze the graph below root and return a text report.
    """
    stats = get_graph_stats(root)

    report = []
    report.append("Graph Complexity Analysis:")
    report.append(f"  Total operations: {stats['nodes'] - stats['leaves'] - stats['constants']:,}")
    report.append(f"  Total connections: {stats['edges']:,}")
    report.append(f"  Average branching: {stats['avg_fan_out']:.2f}")
    report.append(f"  Retained argument values: {stats['retained_values']:,}")

    if stats['max_fan_out'] > 10:
        report.append(f"  High fan-out detected (max {stats['max_fan_out']}): shared sub-expressions")
    aggregates = sum(count for op, count in stats['operations'].items()
                     if op in ('AVERAGE', 'VARIANCE', 'SVARIANCE', 'STDEV', 'STDERROR', 'MIN', 'MAX',
                               'AVERAGE2', 'VARIANCE2', 'STDEV2', 'STDERROR2'))
    if aggregates:
        report.append(f"  Path aggregates: {aggregates}")

    if stats['nodes'] < 1000:
        complexity = "Low"
    elif stats['nodes'] < 10000:
        complexity = "Medium"
    else:
        complexity = "High"
    report.append(f"  Complexity level: {complexity}")

    top_ops = sorted(stats['operations'].items(), key=lambda x: x[1], reverse=True)[:3]
    report.append("  Top operations:")
    for op, count in top_ops:
        pct = 100.0 * count / stats['nodes']
        report.append(f"    - {op}: {pct:.1f}%")

    return "\n".join(report)


def check_id_ordering(root) -> List[Tuple[int, int]]:
    """
    Edges (argument id, node id) with id(argument) >= id(node).
    Empty for every graph built through a single counter.
    """
    violations = []
    for node in _collect(root).values():
        for argument in node.arguments:
            if argument.id >= node.id:
                violations.append((argument.id, node.id))
    return violations
