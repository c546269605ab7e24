"""Emission and merge orders over the session's NetworkX graphs.

Nodes are :class:`~typeinline.engine.model.DeclKey` tuples.  The dependency
graph has an edge ``D -> d`` when declaration ``D`` references ``d``; the
extends graph has an edge ``D -> B`` when interface ``D`` extends ``B``
(edge attribute ``order`` is the position of ``B`` in the extends list).
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

import networkx as nx

from typeinline.graph.cycles import break_cycles


@dataclass
class GraphOrders:
    dependency_order: list = field(default_factory=list)
    merge_order: list = field(default_factory=list)
    cycles: list = field(default_factory=list)


def bfs_order(G: nx.DiGraph, seeds) -> list:
    """Order the nodes reachable from *seeds* so that successors come first.

    Breadth-first over the condensation of the reachable subgraph, relaxing
    a component's depth whenever a longer path reaches it, then
    reverse-and-dedupe keeping the last occurrence.  Every node ends up
    after all of its successors; members of one strongly connected
    component stay together.  Terminates on diamonds and cycles alike.
    """
    seeds = [s for s in dict.fromkeys(seeds) if s in G]
    if not seeds:
        return []
    reach = set(seeds)
    for seed in seeds:
        reach.update(nx.descendants(G, seed))
    H = G.subgraph(reach)
    C = nx.condensation(H)
    mapping = C.graph["mapping"]

    depth: dict[int, int] = {}
    sequence: list[int] = []
    queue: deque = deque()
    for seed in seeds:
        comp = mapping[seed]
        if comp not in depth:
            depth[comp] = 0
            queue.append((comp, 0))
            sequence.append(comp)
    while queue:
        comp, d = queue.popleft()
        if depth[comp] != d:
            continue
        for succ in sorted(C.successors(comp)):
            if depth.get(succ, -1) < d + 1:
                depth[succ] = d + 1
                queue.append((succ, d + 1))
                sequence.append(succ)

    seen: set[int] = set()
    components: list[int] = []
    for comp in reversed(sequence):
        if comp not in seen:
            seen.add(comp)
            components.append(comp)

    position = {node: i for i, node in enumerate(H)}
    ordered = []
    for comp in components:
        ordered.extend(sorted(C.nodes[comp]["members"], key=position.__getitem__))
    return ordered


def effective_dependencies(deps: nx.DiGraph, extends: nx.DiGraph) -> nx.DiGraph:
    """Dependency graph where each interface also depends on what its bases use."""
    G = deps.copy()
    for derived in extends:
        if derived not in G:
            continue
        for base in nx.descendants(extends, derived):
            if base in deps:
                G.add_edges_from((derived, dep) for dep in deps.successors(base) if dep != derived)
    return G


def build_orders(session) -> GraphOrders:
    """Break inheritance cycles, then compute merge and dependency orders.

    Cycle breaking edits ``session.extends`` in place so later stages see
    the same graph the orders were computed from.
    """
    cycles = break_cycles(session.extends, label=lambda key: session.canonical.get(key, key.name))
    seeds = [node for node in session.extends if session.extends.out_degree(node) > 0]
    merge_order = bfs_order(session.extends, seeds)
    effective = effective_dependencies(session.dependencies, session.extends)
    dependency_order = bfs_order(effective, session.root_keys())
    return GraphOrders(dependency_order=dependency_order, merge_order=merge_order, cycles=cycles)
