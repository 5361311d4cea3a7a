from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from .ir import Edge, Graph, Node

logger = logging.getLogger(__name__)

WHITE, GRAY, BLACK = 0, 1, 2


def _arena(nodes: Sequence[Node], edges: Sequence[Edge]) -> Tuple[List[str], List[List[int]]]:
    """Index nodes by insertion order and list each node's direct successors.

    Edges referencing unknown node ids are left out of the adjacency.
    """
    index: Dict[str, int] = {}
    for n in nodes:
        index.setdefault(n.id, len(index))
    successors: List[List[int]] = [[] for _ in index]
    for e in edges:
        if e.source in index and e.target in index:
            successors[index[e.source]].append(index[e.target])
    return list(index), successors


def find_cycle(nodes: Sequence[Node], edges: Sequence[Edge]) -> Optional[List[str]]:
    """Return the first directed cycle as ``[a, b, ..., a]``, or None.

    Three-colour depth-first search driven by an explicit stack, so deep
    graphs never hit the recursion limit. Nodes are tried as roots in
    insertion order; a BLACK node is never explored twice.
    """
    ids, successors = _arena(nodes, edges)
    color = [WHITE] * len(ids)

    for root in range(len(ids)):
        if color[root] != WHITE:
            continue
        color[root] = GRAY
        stack: List[Tuple[int, int]] = [(root, 0)]
        while stack:
            v, i = stack[-1]
            if i == len(successors[v]):
                color[v] = BLACK
                stack.pop()
                continue
            stack[-1] = (v, i + 1)
            w = successors[v][i]
            if color[w] == GRAY:
                start = next(k for k, (u, _) in enumerate(stack) if u == w)
                return [ids[u] for u, _ in stack[start:]] + [ids[w]]
            if color[w] == WHITE:
                color[w] = GRAY
                stack.append((w, 0))
    return None


def check_dag(nodes: Sequence[Node], edges: Sequence[Edge]) -> Tuple[bool, List[str]]:
    """Validate a snapshot and explain the verdict.

    Rules run in order and the first failing one ends the check.
    """
    messages: List[str] = []

    # 1) Minimum size
    if len(nodes) < 2:
        messages.append(f"ERR: A DAG needs at least 2 nodes, got {len(nodes)}.")
        return False, messages
    messages.append(f"OK: Graph has {len(nodes)} nodes.")

    # 2) Unique node ids
    node_ids = [n.id for n in nodes]
    if len(set(node_ids)) != len(node_ids):
        messages.append("ERR: Duplicate node IDs detected.")
        return False, messages
    messages.append("OK: Node IDs are unique.")

    graph = Graph(nodes=list(nodes), edges=list(edges))
    for e in graph.dangling_edges():
        messages.append(f"WARN: Edge {e.source}->{e.target} references missing node(s); ignored.")

    # 3) No isolated nodes
    touched = graph.incident_node_ids()
    isolated = [nid for nid in node_ids if nid not in touched]
    if isolated:
        messages.append(f"ERR: Isolated node(s) with no edges: {', '.join(isolated)}.")
        return False, messages
    messages.append("OK: Every node is connected to an edge.")

    # 4) Acyclic
    cycle = find_cycle(nodes, edges)
    if cycle is not None:
        logger.debug("Cycle found: %s", cycle)
        messages.append(f"ERR: Cycle detected in the graph: {' -> '.join(cycle)}.")
        return False, messages
    messages.append("OK: Graph is acyclic.")

    return True, messages


def validate_dag(nodes: Sequence[Node], edges: Sequence[Edge]) -> bool:
    ok, _ = check_dag(nodes, edges)
    return ok


def validate_graph_from_file(path: Path) -> Tuple[bool, List[str]]:
    g = Graph.from_file(path)
    return check_dag(g.nodes, g.edges)
