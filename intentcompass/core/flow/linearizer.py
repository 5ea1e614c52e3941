"""Depth-first linearization of a flow graph into an operation order."""

from typing import Dict, List, Sequence

from .models import FlowEdge, FlowNode, find_entry_node


def linearize(nodes: Sequence[FlowNode], edges: Sequence[FlowEdge]) -> List[FlowNode]:
    """Order the nodes reachable from the entry node.

    The walk is a pre-order depth-first traversal: outgoing edges are followed
    in the order they were stored and one branch is exhausted before the next
    one starts, so a branching graph runs its branches one after another.
    Each node is emitted once, edges to unknown node ids are ignored and
    unreachable nodes are left out.

    Without an entry node the nodes are returned unchanged in insertion
    order; callers must treat that as an ill-formed graph rather than a plan.
    """
    entry = find_entry_node(nodes)
    if entry is None:
        return list(nodes)

    by_id: Dict[str, FlowNode] = {}
    for node in nodes:
        by_id.setdefault(node.id, node)

    outgoing: Dict[str, List[str]] = {}
    for edge in edges:
        outgoing.setdefault(edge.source, []).append(edge.target)

    order: List[FlowNode] = []
    visited = set()
    stack = [entry.id]
    while stack:
        node_id = stack.pop()
        if node_id in visited or node_id not in by_id:
            continue
        visited.add(node_id)
        order.append(by_id[node_id])
        # Reversed so the first stored edge is explored first
        stack.extend(reversed(outgoing.get(node_id, [])))

    return order


def has_edge(edges: Sequence[FlowEdge], source: str, target: str) -> bool:
    return any(edge.source == source and edge.target == target for edge in edges)
