"""Route badge propagation.

For every enabled route of every router, every node reachable from the
route's outgoing edges is labeled with a RouteBadge. Routers themselves are
never labeled but are traversed through, so badges of an upstream router
propagate past nested routers.
"""

import logging

from pydantic import ValidationError

from ..core.models import (
    ConfigEdge,
    ConfigNode,
    NodeCategory,
    RouteBadge,
    RouterSettings,
)
from .adjacency import Adjacency, reachable_from

logger = logging.getLogger(__name__)


def parse_router_settings(node: ConfigNode) -> RouterSettings | None:
    """Router settings of a node, or None when they do not parse."""
    try:
        return RouterSettings.model_validate(node.settings or {})
    except ValidationError as e:
        logger.warning("Router %s has malformed settings: %s", node.id, e)
        return None


def route_seeds(
    router_id: str,
    route_id: str,
    edges: list[ConfigEdge],
    flow_prefix: str = "flow-edge-",
) -> list[str]:
    """Direct targets of the edges leaving `router_id` through `route_id`."""
    seeds: list[str] = []
    for edge in edges:
        if edge.is_flow_edge(flow_prefix):
            continue
        if edge.source == router_id and edge.source_handle == route_id:
            if edge.target not in seeds:
                seeds.append(edge.target)
    return seeds


def propagate_routes(
    nodes: list[ConfigNode],
    edges: list[ConfigEdge],
    adjacency: Adjacency,
    flow_prefix: str = "flow-edge-",
) -> dict[str, list[RouteBadge]]:
    """Compute the route badges of every node.

    Returns:
        Mapping of node id -> badges sorted by label. Every node of `nodes`
        is present, with an empty list when no route reaches it.
    """
    by_id = {n.id: n for n in nodes}
    collected: dict[str, dict[tuple[str, str], RouteBadge]] = {n.id: {} for n in nodes}

    for router in nodes:
        if router.category != NodeCategory.ROUTER:
            continue
        settings = parse_router_settings(router)
        if settings is None:
            continue

        for position, route in enumerate(settings.routes, start=1):
            if not route.enabled:
                continue
            badge = RouteBadge(
                router_id=router.id,
                route_id=route.id,
                label=f"R{position}",
                name=route.name or route.id,
            )
            seeds = [
                s
                for s in route_seeds(router.id, route.id, edges, flow_prefix)
                if s in by_id
            ]
            # Fresh visited set per route. The router starts as seen so a path
            # looping back to it cannot leak into its sibling routes.
            for node_id in reachable_from(adjacency, seeds, visited=[router.id]):
                node = by_id.get(node_id)
                if node is None or node.category == NodeCategory.ROUTER:
                    continue
                collected[node_id].setdefault((router.id, route.id), badge)

    labeled = sum(1 for badges in collected.values() if badges)
    logger.debug("Route propagation labeled %d of %d node(s)", labeled, len(nodes))

    return {
        node_id: sorted(badges.values(), key=_badge_sort_key)
        for node_id, badges in collected.items()
    }


def _badge_sort_key(badge: RouteBadge) -> tuple[int, str, str, str]:
    number = badge.label[1:]
    position = int(number) if number.isdigit() else 0
    return (position, badge.label, badge.router_id, badge.route_id)
