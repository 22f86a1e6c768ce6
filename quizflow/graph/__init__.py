"""Graph reachability engine: adjacency, route badges, modifier flags."""

from .adjacency import (
    Adjacency,
    build_adjacency,
    find_dangling_edges,
    reachable_from,
)
from .routes import propagate_routes, route_seeds
from .modifiers import propagate_modifiers, modifier_candidate_types
from .structure import check_graph_structure, find_cycle

__all__ = [
    "Adjacency",
    "build_adjacency",
    "find_dangling_edges",
    "reachable_from",
    "propagate_routes",
    "route_seeds",
    "propagate_modifiers",
    "modifier_candidate_types",
    "check_graph_structure",
    "find_cycle",
]
