from typeinline.graph.builder import GraphOrders, bfs_order, build_orders, effective_dependencies
from typeinline.graph.cycles import break_cycles, find_cycles

__all__ = [
    "GraphOrders",
    "bfs_order",
    "break_cycles",
    "build_orders",
    "effective_dependencies",
    "find_cycles",
]
