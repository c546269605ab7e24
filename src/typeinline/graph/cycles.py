"""Tarjan SCC / cycle detection for the extends graph."""

from __future__ import annotations

import logging

import networkx as nx

log = logging.getLogger(__name__)


def find_cycles(G: nx.DiGraph, min_size: int = 2) -> list[list]:
    """Return strongly connected components with at least *min_size* members.

    A single node counts as a cycle when it has a self-loop.  Components are
    sorted by size descending, and each component's node list is sorted for
    deterministic output.
    """
    if len(G) == 0:
        return []

    sccs = [
        sorted(c)
        for c in nx.strongly_connected_components(G)
        if len(c) >= min_size and (len(c) > 1 or _self_loop(G, c))
    ]
    sccs.sort(key=lambda c: (-len(c), c))
    return sccs


def _self_loop(G: nx.DiGraph, component) -> bool:
    node = next(iter(component))
    return G.has_edge(node, node)


def break_cycles(G: nx.DiGraph, label=str) -> list[list]:
    """Remove every edge inside a cycle of *G*, in place.

    Each member keeps its own members and loses the inheritance that formed
    the cycle.  Returns the cycles that were broken.
    """
    cycles = find_cycles(G, min_size=1)
    for cycle in cycles:
        members = set(cycle)
        internal = [(u, v) for u, v in G.edges(cycle) if v in members]
        G.remove_edges_from(internal)
        log.warning(
            "inheritance cycle between %s; ignoring the extends clauses inside it",
            ", ".join(label(node) for node in cycle),
        )
    return cycles
