"""Structural checks over the whole configuration graph.

All findings are ValidationIssues attached to a node, an edge or the graph.
None of them aborts resolution: route and modifier propagation and filter
analysis still run on a graph that fails these checks.
"""

import logging
from collections import defaultdict

import networkx as nx
from pydantic import ValidationError

from ..core.models import (
    ConfigGraph,
    NodeCategory,
    SelectionModifierSettings,
    ValidationResult,
)
from .adjacency import Adjacency, edge_label, find_dangling_edges, reachable_from
from .routes import parse_router_settings, route_seeds

logger = logging.getLogger(__name__)

# Categories allowed to feed a basic-settings node.
_BASIC_SETTINGS_SOURCES = {
    NodeCategory.ROUTER,
    NodeCategory.SELECTION_MODIFIER,
    NodeCategory.BASIC_SETTINGS,
    NodeCategory.LIST_SOURCE,
}

_PERCENTAGE_TOLERANCE = 0.01


def check_graph_structure(
    graph: ConfigGraph,
    adjacency: Adjacency,
    flow_prefix: str = "flow-edge-",
) -> ValidationResult:
    """Run every structural check.

    Args:
        graph: Graph snapshot
        adjacency: Adjacency built from the same snapshot (dangling edges dropped)
        flow_prefix: Id prefix marking synthetic flow edges

    Returns:
        ValidationResult with errors and warnings, in check order
    """
    result = ValidationResult()
    _check_dangling_edges(graph, flow_prefix, result)
    _check_routers(graph, flow_prefix, result)
    _check_count_mode_with_shared_song_counts(graph, adjacency, flow_prefix, result)
    _check_selection_modifiers(graph, adjacency, result)
    _check_basic_settings_connections(graph, flow_prefix, result)
    _check_router_reachability(graph, adjacency, result)
    _check_cycles(adjacency, result)
    return result


def _check_dangling_edges(
    graph: ConfigGraph, flow_prefix: str, result: ValidationResult
) -> None:
    for edge in find_dangling_edges(graph.edges, graph.node_ids, flow_prefix):
        missing = [e for e in (edge.source, edge.target) if graph.get_node(e) is None]
        result.add_warning(
            category="DANGLING_EDGE",
            location=edge_label(edge),
            message=f"Edge references missing node(s): {', '.join(missing)}",
            suggestion="Edge is ignored; remove it or restore the node",
        )


def _check_routers(graph: ConfigGraph, flow_prefix: str, result: ValidationResult) -> None:
    for router in graph.nodes_of(NodeCategory.ROUTER):
        settings = parse_router_settings(router)
        if settings is None:
            result.add_error(
                category="INVALID_SETTINGS",
                location=router.id,
                message="Router settings could not be read",
            )
            continue

        enabled = settings.enabled_routes
        if not enabled:
            result.add_error(
                category="ROUTER_NO_ROUTES",
                location=router.id,
                message="Router has no enabled routes",
                suggestion="At least one route must be enabled for the router to function",
            )
            continue

        total = sum(r.percentage for r in enabled)
        if abs(total - 100) > _PERCENTAGE_TOLERANCE:
            result.add_error(
                category="ROUTER_PERCENTAGES",
                location=router.id,
                message=f"Router routes total {total:g}% (must be 100%)",
                suggestion="Adjust route percentages or disable routes",
                value=total - 100,
            )

        for route in enabled:
            connected = any(
                e.source == router.id
                and not e.is_flow_edge(flow_prefix)
                and (e.source_handle is None or e.source_handle == route.id)
                for e in graph.edges
            )
            if not connected:
                result.add_warning(
                    category="ROUTE_UNCONNECTED",
                    location=router.id,
                    message=f'Route "{route.name or route.id}" is not connected',
                    suggestion="This route leads nowhere when selected",
                )


def _check_count_mode_with_shared_song_counts(
    graph: ConfigGraph, adjacency: Adjacency, flow_prefix: str, result: ValidationResult
) -> None:
    """Count mode is disallowed graph-wide once one route reaches two song counts."""
    song_count_ids = {n.id for n in graph.nodes_of(NodeCategory.NUMBER_OF_SONGS)}
    if len(song_count_ids) < 2:
        return

    shared_route = None
    for router in graph.nodes_of(NodeCategory.ROUTER):
        settings = parse_router_settings(router)
        if settings is None:
            continue
        for route in settings.enabled_routes:
            seeds = route_seeds(router.id, route.id, graph.edges, flow_prefix)
            reached = song_count_ids.intersection(reachable_from(adjacency, seeds))
            if len(reached) > 1:
                shared_route = (router.id, route.id)
                break
        if shared_route:
            break

    if shared_route is None:
        return

    logger.debug("Route %s/%s reaches several song counts", *shared_route)
    for node in graph.nodes_of(NodeCategory.FILTER):
        if (node.settings or {}).get("mode") != "count":
            continue
        result.add_error(
            category="COUNT_MODE_SHARED_SONG_COUNT",
            location=node.id,
            message="Count mode not allowed with multiple song count nodes",
            suggestion=(
                "Use percentage mode, or keep one Number of Songs node per route"
            ),
        )


def _check_selection_modifiers(
    graph: ConfigGraph, adjacency: Adjacency, result: ValidationResult
) -> None:
    by_id = {n.id: n for n in graph.nodes}

    for modifier in graph.nodes_of(NodeCategory.SELECTION_MODIFIER):
        try:
            settings = SelectionModifierSettings.model_validate(modifier.settings or {})
        except ValidationError:
            result.add_error(
                category="INVALID_SETTINGS",
                location=modifier.id,
                message="Selection modifier settings could not be read",
            )
            continue

        if settings.min_selection < 1 or settings.min_selection > settings.max_selection:
            result.add_error(
                category="MODIFIER_BOUNDS",
                location=modifier.id,
                message=(
                    f"Selection bounds {settings.min_selection}-{settings.max_selection} "
                    "are invalid"
                ),
                suggestion="minSelection must be at least 1 and not above maxSelection",
            )
            continue

        targets_by_type: dict[str, list[str]] = defaultdict(list)
        for node_id in reachable_from(adjacency, [modifier.id], exclude=[modifier.id]):
            node = by_id.get(node_id)
            if node is None or node.category == NodeCategory.SELECTION_MODIFIER:
                continue
            targets_by_type[node.type_key].append(node_id)

        for type_key, members in targets_by_type.items():
            if settings.max_selection > len(members):
                result.add_error(
                    category="MODIFIER_BOUNDS",
                    location=modifier.id,
                    message=(
                        f"Modifier maxSelection {settings.max_selection} > "
                        f"reachable {len(members)}"
                    ),
                    suggestion=f'Reduce maxSelection or connect more "{type_key}" nodes',
                )
            if settings.min_selection > len(members):
                result.add_error(
                    category="MODIFIER_BOUNDS",
                    location=modifier.id,
                    message=(
                        f"Modifier minSelection {settings.min_selection} > "
                        f"reachable {len(members)}"
                    ),
                    suggestion=f'Reduce minSelection or connect more "{type_key}" nodes',
                )


def _check_basic_settings_connections(
    graph: ConfigGraph, flow_prefix: str, result: ValidationResult
) -> None:
    for edge in graph.edges:
        if edge.is_flow_edge(flow_prefix):
            continue
        source = graph.get_node(edge.source)
        target = graph.get_node(edge.target)
        if source is None or target is None:
            continue
        if target.category != NodeCategory.BASIC_SETTINGS:
            continue
        if source.category not in _BASIC_SETTINGS_SOURCES:
            result.add_error(
                category="INVALID_CONNECTION",
                location=target.id,
                message=f"Basic Settings cannot be fed by {source.display_name}",
                suggestion=(
                    "Basic Settings only accepts Router, Selection Modifier, "
                    "Basic Settings and list-source inputs"
                ),
            )


def _check_router_reachability(
    graph: ConfigGraph, adjacency: Adjacency, result: ValidationResult
) -> None:
    routers = graph.nodes_of(NodeCategory.ROUTER)
    if not routers:
        return

    seen = set(reachable_from(adjacency, [r.id for r in routers]))
    for node in graph.nodes:
        if node.id in seen:
            continue
        if node.category in (NodeCategory.ROUTER, NodeCategory.SELECTION_MODIFIER):
            continue
        result.add_warning(
            category="UNREACHABLE",
            location=node.id,
            message=f"{node.display_name} is not reachable from any Router route",
        )


def _check_cycles(adjacency: Adjacency, result: ValidationResult) -> None:
    cycle = find_cycle(adjacency)
    if cycle:
        path = " → ".join([*cycle, cycle[0]])
        logger.debug("Cycle detected: %s", path)
        result.add_warning(
            category="CYCLE",
            location=cycle[0],
            message=f"Graph contains a cycle: {path}",
            suggestion="Cycles are tolerated but usually indicate a wiring mistake",
        )


def find_cycle(adjacency: Adjacency) -> list[str]:
    """Node ids along one cycle of the graph, or [] when it is acyclic."""
    graph = nx.DiGraph()
    for source in sorted(adjacency):
        for target in sorted(adjacency[source]):
            graph.add_edge(source, target)
    try:
        return [u for u, _ in nx.find_cycle(graph)]
    except nx.NetworkXNoCycle:
        return []
