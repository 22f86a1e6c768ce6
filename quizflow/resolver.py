"""Resolution entry point.

resolve() is a pure function of a graph snapshot and settings. It builds the
adjacency once, runs route and modifier propagation and the structural
checks over the whole graph, then analyzes each filter node on its own.
A failure in one node never stops the rest of the pass.

Examples:
    result = resolve(graph)
    result = resolve(graph, ResolveSettings(target_total={"min": 10, "max": 30}))
    result.filters["genres-1"].validation_message
    result.badges_for("genres-1")
"""

import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from .allocation import (
    AllocationCache,
    analyze_allocation,
    build_entries,
    content_hash,
    parse_filter_settings,
    resolve_target,
    validate_filter_node,
)
from .allocation.analyzer import DEFAULT_EPSILON
from .allocation.entries import coerce_song_count
from .config import get_config
from .core.models import (
    ConfigGraph,
    ConfigNode,
    FilterNodeReport,
    NodeAnnotations,
    NodeCategory,
    ResolutionResult,
    SongCount,
    ValidationResult,
)
from .graph import (
    build_adjacency,
    check_graph_structure,
    find_dangling_edges,
    propagate_modifiers,
    propagate_routes,
)
from .graph.adjacency import edge_label

logger = logging.getLogger(__name__)


class ResolveSettings(BaseModel):
    """Caller-supplied settings of one resolution pass.

    Unset fields fall back to the graph (target total) or the global config.
    """

    target_total: SongCount | None = Field(
        default=None,
        description="Song count: a number, a {min, max} mapping, or a SongCount",
    )
    epsilon: float | None = None
    flow_edge_prefix: str | None = None

    @field_validator("target_total", mode="before")
    @classmethod
    def _coerce_target(cls, value: Any) -> Any:
        if value is None:
            return None
        return SongCount.coerce(value)


def resolve(
    graph: ConfigGraph,
    settings: ResolveSettings | None = None,
    cache: AllocationCache | None = None,
) -> ResolutionResult:
    """Resolve a graph snapshot into annotations and filter-node reports.

    Args:
        graph: Graph snapshot (never modified)
        settings: Target total and overrides; defaults from the global config
        cache: Optional per-node report cache shared across calls

    Returns:
        ResolutionResult for the whole graph
    """
    settings = settings or ResolveSettings()
    config = get_config()
    epsilon = settings.epsilon if settings.epsilon is not None else config.allocation.epsilon
    prefix = (
        settings.flow_edge_prefix
        if settings.flow_edge_prefix is not None
        else config.graph.flow_edge_prefix
    )
    song_count = coerce_song_count(
        settings.target_total, graph, config.allocation.default_song_count
    )

    adjacency = build_adjacency(graph.edges, graph.node_ids, prefix)
    dropped = [edge_label(e) for e in find_dangling_edges(graph.edges, graph.node_ids, prefix)]

    badges = propagate_routes(graph.nodes, graph.edges, adjacency, prefix)
    modified = propagate_modifiers(graph.nodes, graph.edges, adjacency, prefix)
    structure = check_graph_structure(graph, adjacency, prefix)

    annotations = {
        node.id: NodeAnnotations(
            route_badges=badges.get(node.id, []),
            modified=modified.get(node.id, False),
        )
        for node in graph.nodes
    }

    filters = {
        node.id: analyze_filter_node(node, song_count, epsilon=epsilon, cache=cache)
        for node in graph.nodes_of(NodeCategory.FILTER)
    }

    invalid = sum(1 for r in filters.values() if not r.is_valid)
    logger.debug(
        "Resolved %d node(s), %d filter(s) (%d invalid), %d graph issue(s)",
        len(graph.nodes),
        len(filters),
        invalid,
        len(structure.issues),
    )

    return ResolutionResult(
        annotations=annotations,
        filters=filters,
        graph_issues=structure.issues,
        dropped_edges=dropped,
        target_total=song_count,
    )


def analyze_filter_node(
    node: ConfigNode,
    song_count: SongCount,
    epsilon: float = DEFAULT_EPSILON,
    cache: AllocationCache | None = None,
) -> FilterNodeReport:
    """Analyze and validate one filter node against the song count.

    Settings that do not parse yield an invalid report for this node only.
    """
    try:
        settings = parse_filter_settings(node)
    except ValidationError as e:
        logger.warning("Filter %s has malformed settings: %s", node.id, e)
        result = ValidationResult()
        result.add_error(
            category="INVALID_SETTINGS",
            location=node.id,
            message=f"Settings could not be read: {_first_error(e)}",
        )
        return FilterNodeReport(
            node_id=node.id,
            is_valid=False,
            validation_message=result.message,
            issues=result.issues,
        )

    mode, target, locked = resolve_target(song_count, settings.mode)

    key = content_hash(node.settings, target, mode.value, epsilon)
    if cache is not None:
        cached = cache.get(node.id, key)
        if cached is not None:
            return cached

    entries = build_entries(settings, target)
    prediction = analyze_allocation(entries, target, epsilon)
    validation = validate_filter_node(settings, target, mode, epsilon, location=node.id)

    report = FilterNodeReport(
        node_id=node.id,
        is_valid=validation.valid,
        validation_message=validation.message,
        predicted_allocation=prediction,
        mode=mode,
        target=target,
        percentage_mode_locked=locked,
        issues=validation.issues,
    )
    if cache is not None:
        cache.put(node.id, key, report)
    return report


def _first_error(error: ValidationError) -> str:
    details = error.errors()
    if not details:
        return str(error)
    first = details[0]
    where = ".".join(str(part) for part in first.get("loc", ()))
    return f"{where}: {first.get('msg', '')}" if where else first.get("msg", "")
