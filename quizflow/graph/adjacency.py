"""Adjacency building and breadth-first reachability over the config graph."""

import logging
from collections import deque
from collections.abc import Iterable

from ..core.models import ConfigEdge

logger = logging.getLogger(__name__)

Adjacency = dict[str, set[str]]


def build_adjacency(
    edges: Iterable[ConfigEdge],
    node_ids: Iterable[str] | None = None,
    flow_prefix: str = "flow-edge-",
) -> Adjacency:
    """Build a source -> {targets} map from an edge list.

    Synthetic flow edges are skipped. When `node_ids` is given, edges with
    an endpoint outside it are dropped as dangling; otherwise no existence
    check is made and unknown sources simply never get visited.
    """
    known = set(node_ids) if node_ids is not None else None
    adjacency: Adjacency = {}
    dropped = 0

    for edge in edges:
        if edge.is_flow_edge(flow_prefix):
            continue
        if known is not None and (edge.source not in known or edge.target not in known):
            dropped += 1
            continue
        adjacency.setdefault(edge.source, set()).add(edge.target)

    if dropped:
        logger.debug("Dropped %d dangling edge(s) while building adjacency", dropped)
    return adjacency


def find_dangling_edges(
    edges: Iterable[ConfigEdge],
    node_ids: Iterable[str],
    flow_prefix: str = "flow-edge-",
) -> list[ConfigEdge]:
    """Edges (excluding flow edges) that reference a missing node."""
    known = set(node_ids)
    return [
        e
        for e in edges
        if not e.is_flow_edge(flow_prefix)
        and (e.source not in known or e.target not in known)
    ]


def reachable_from(
    adjacency: Adjacency,
    seeds: Iterable[str],
    exclude: Iterable[str] = (),
    visited: Iterable[str] = (),
) -> list[str]:
    """Breadth-first walk from `seeds`, in visit order.

    Each id is visited once, so cycles only bound the result. Ids in
    `exclude` are still traversed through but left out of the result. Ids in
    `visited` count as already seen: they are neither walked nor returned.
    """
    skip = set(exclude)
    seen: set[str] = set(visited)
    order: list[str] = []
    queue = deque(seeds)

    while queue:
        current = queue.popleft()
        if current in seen:
            continue
        seen.add(current)
        if current not in skip:
            order.append(current)
        # Sorted for a stable visit order across runs.
        for neighbor in sorted(adjacency.get(current, ())):
            if neighbor not in seen:
                queue.append(neighbor)

    return order


def edge_label(edge: ConfigEdge) -> str:
    return edge.id or f"{edge.source}->{edge.target}"
