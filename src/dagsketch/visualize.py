from .ir import Graph
from .layout import rank_nodes

def ascii_plan(g: Graph) -> str:
    ranks = rank_nodes(g.nodes, g.edges)
    node_map = g.node_map()
    by_rank = {}
    for n in g.nodes:
        by_rank.setdefault(ranks[n.id], [])
        if n.id not in by_rank[ranks[n.id]]:
            by_rank[ranks[n.id]].append(n.id)

    lines = ["# ASCII Plan (left-to-right ranks)"]
    for r in sorted(by_rank):
        lines.append(f"Rank {r}:")
        for nid in by_rank[r]:
            lines.append(f"  {nid} [{node_map[nid].label}]")
            for e in g.edges:
                if e.source == nid and e.target in node_map:
                    lines.append(f"    └─▶ {e.target}")
    return "\n".join(lines)
