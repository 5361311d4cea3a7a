"""Layered left-to-right layout.

Phases:
  1. Cycle breaking (reverse DFS back edges)
  2. Ranking (longest path from sources)
  3. Crossing reduction (barycenter sweeps against real neighbours)
  4. Coordinate assignment

Placement depends only on topology and insertion order, never on the
incoming positions, so laying out a laid-out graph changes nothing.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple
import logging

import networkx as nx

from .config import LayoutConfig
from .ir import Edge, Graph, Node, Position, XYPosition

logger = logging.getLogger(__name__)

Ordering = List[List[str]]


def _build_digraph(nodes: Sequence[Node], edges: Sequence[Edge]) -> nx.DiGraph:
    """DiGraph over node ids in insertion order; self loops and dangling edges dropped."""
    g = nx.DiGraph()
    g.add_nodes_from(n.id for n in nodes)
    for e in edges:
        if e.source != e.target and e.source in g and e.target in g:
            g.add_edge(e.source, e.target)
    return g


def _back_edges(g: nx.DiGraph) -> Set[Tuple[str, str]]:
    """Edges pointing at a node still on the DFS path, roots tried in insertion order."""
    back: Set[Tuple[str, str]] = set()
    on_path: Set[str] = set()
    done: Set[str] = set()
    for root in g.nodes:
        if root in done:
            continue
        on_path.add(root)
        stack = [(root, iter(g.successors(root)))]
        while stack:
            v, succ = stack[-1]
            w = next(succ, None)
            if w is None:
                stack.pop()
                on_path.discard(v)
                done.add(v)
            elif w in on_path:
                back.add((v, w))
            elif w not in done:
                on_path.add(w)
                stack.append((w, iter(g.successors(w))))
    return back


def _acyclic(g: nx.DiGraph) -> nx.DiGraph:
    back = _back_edges(g)
    if back:
        logger.debug("Reversing %d back edge(s) for layout: %s", len(back), sorted(back))
    dag = nx.DiGraph()
    dag.add_nodes_from(g.nodes)
    for u, v in g.edges:
        if (u, v) in back:
            dag.add_edge(v, u)
        else:
            dag.add_edge(u, v)
    return dag


def _rank(dag: nx.DiGraph) -> Dict[str, int]:
    index = {nid: i for i, nid in enumerate(dag.nodes)}
    rank = {nid: 0 for nid in dag.nodes}
    for v in nx.lexicographical_topological_sort(dag, key=index.__getitem__):
        for w in dag.successors(v):
            rank[w] = max(rank[w], rank[v] + 1)
    return rank


def rank_nodes(nodes: Sequence[Node], edges: Sequence[Edge]) -> Dict[str, int]:
    """Rank of every node id; each acyclic edge goes from a lower to a higher rank."""
    return _rank(_acyclic(_build_digraph(nodes, edges)))


def _fenwick_inversions(targets: List[int], size: int) -> int:
    """Pairs ``i < j`` with ``targets[i] > targets[j]``, via a Fenwick tree over slots."""
    tree = [0] * (size + 1)
    total = 0
    for seen, t in enumerate(targets):
        i = t + 1
        at_most = 0
        while i > 0:
            at_most += tree[i]
            i -= i & -i
        total += seen - at_most
        i = t + 1
        while i <= size:
            tree[i] += 1
            i += i & -i
    return total


def count_crossings(ordering: Ordering, graph: nx.DiGraph) -> int:
    """Count edge crossings between consecutive layers.

    Edges are sorted by source slot and the crossings counted as inversions
    of their target slots.
    """
    total = 0
    for upper, lower in zip(ordering, ordering[1:]):
        lower_pos = {v: i for i, v in enumerate(lower)}
        pairs = sorted(
            (i, lower_pos[w])
            for i, v in enumerate(upper)
            for w in graph.successors(v)
            if w in lower_pos
        )
        total += _fenwick_inversions([t for _, t in pairs], len(lower))
    return total


def _barycenter_sort(
    layer: List[str],
    slot_of: Dict[str, int],
    neighbors: Callable[[str], Iterable[str]],
) -> List[str]:
    """Reorder ``layer`` by the mean slot of its already placed neighbours.

    Neighbours may sit in any earlier-swept rank, so long edges pull on
    their endpoints directly. Nodes without such a neighbour keep their slot.
    """
    sortable: List[Tuple[float, int, str]] = []
    anchored: Dict[int, str] = {}
    for slot, v in enumerate(layer):
        slots = [slot_of[u] for u in neighbors(v)]
        if slots:
            sortable.append((sum(slots) / len(slots), slot, v))
        else:
            anchored[slot] = v
    sortable.sort(key=lambda item: (item[0], item[1]))
    rest = iter(item[2] for item in sortable)
    return [anchored[slot] if slot in anchored else next(rest) for slot in range(len(layer))]


def _order(dag: nx.DiGraph, rank: Dict[str, int], max_sweeps: int) -> Ordering:
    layer_count = max(rank.values(), default=-1) + 1
    layers: Ordering = [[] for _ in range(layer_count)]
    for v in dag.nodes:
        layers[rank[v]].append(v)
    slot_of = {v: i for layer in layers for i, v in enumerate(layer)}

    def place(r: int, neighbors: Callable[[str], Iterable[str]]) -> None:
        layers[r] = _barycenter_sort(layers[r], slot_of, neighbors)
        slot_of.update((v, i) for i, v in enumerate(layers[r]))

    best = [list(layer) for layer in layers]
    best_crossings = count_crossings(best, dag)
    stale = 0
    for sweep in range(max_sweeps):
        if best_crossings == 0 or stale >= 4:
            break
        if sweep % 2 == 0:
            for r in range(1, layer_count):
                place(r, dag.predecessors)
        else:
            for r in range(layer_count - 2, -1, -1):
                place(r, dag.successors)
        crossings = count_crossings(layers, dag)
        if crossings < best_crossings:
            best = [list(layer) for layer in layers]
            best_crossings = crossings
            stale = 0
        else:
            stale += 1

    logger.debug("Ordering settled with %d crossing(s)", best_crossings)
    return best


def _coordinates(ordering: Ordering, config: LayoutConfig) -> Dict[str, XYPosition]:
    """Top-left corner of every node; each rank is centred on the tallest one."""
    step = config.node_height + config.node_sep

    def span(layer: List[str]) -> float:
        return len(layer) * step - config.node_sep if layer else 0.0

    tallest = max((span(layer) for layer in ordering), default=0.0)
    positions: Dict[str, XYPosition] = {}
    for r, layer in enumerate(ordering):
        x = r * (config.node_width + config.rank_sep)
        top = (tallest - span(layer)) / 2
        for slot, v in enumerate(layer):
            positions[v] = XYPosition(x=x, y=top + slot * step)
    return positions


def get_layouted_elements(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    config: Optional[LayoutConfig] = None,
) -> Graph:
    """Compute a left-to-right position for every node.

    Returns a new snapshot: the same nodes in the same order with fresh
    positions, and the edges unchanged. Cyclic, disconnected and dangling
    input still gets a placement.
    """
    config = config or LayoutConfig()
    dag = _acyclic(_build_digraph(nodes, edges))
    rank = _rank(dag)
    ordering = _order(dag, rank, config.max_sweeps)
    positions = _coordinates(ordering, config)
    logger.debug("Laid out %d node(s) over %d rank(s)", len(rank), len(ordering))

    placed = [
        n.model_copy(
            update={
                "position": positions[n.id].model_copy(),
                "source_position": Position.RIGHT,
                "target_position": Position.LEFT,
            },
            deep=True,
        )
        for n in nodes
    ]
    return Graph(nodes=placed, edges=[e.model_copy(deep=True) for e in edges])
