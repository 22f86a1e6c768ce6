"""Selection-modifier propagation.

Claim policy:
1. Modifiers are processed in node array order.
2. A modifier's candidate types are the types of its direct targets
   (selection modifiers excluded), in edge order.
3. An unclaimed candidate type is claimed by the modifier, and every node of
   that type reachable from the modifier is flagged as modified.
4. A type claimed by an earlier modifier is never re-flagged or re-claimed,
   even when a later modifier has edges into nodes of that type.

The first modifier wins per node type, not per node.
"""

import logging

from ..core.models import ConfigEdge, ConfigNode, NodeCategory
from .adjacency import Adjacency, reachable_from

logger = logging.getLogger(__name__)


def modifier_candidate_types(
    modifier: ConfigNode,
    nodes_by_id: dict[str, ConfigNode],
    edges: list[ConfigEdge],
    flow_prefix: str = "flow-edge-",
) -> list[str]:
    """Type keys of a modifier's direct targets, in edge order, deduplicated."""
    types: list[str] = []
    for edge in edges:
        if edge.source != modifier.id or edge.is_flow_edge(flow_prefix):
            continue
        target = nodes_by_id.get(edge.target)
        if target is None or target.category == NodeCategory.SELECTION_MODIFIER:
            continue
        if target.type_key not in types:
            types.append(target.type_key)
    return types


def propagate_modifiers(
    nodes: list[ConfigNode],
    edges: list[ConfigEdge],
    adjacency: Adjacency,
    flow_prefix: str = "flow-edge-",
) -> dict[str, bool]:
    """Compute the `modified` flag of every node.

    Returns:
        Mapping of node id -> modified flag for every node of `nodes`.
    """
    by_id = {n.id: n for n in nodes}
    modified = {n.id: False for n in nodes}
    claimed_types: set[str] = set()

    for modifier in nodes:
        if modifier.category != NodeCategory.SELECTION_MODIFIER:
            continue

        reachable = reachable_from(adjacency, [modifier.id], exclude=[modifier.id])
        candidates = modifier_candidate_types(modifier, by_id, edges, flow_prefix)

        for type_key in candidates:
            if type_key in claimed_types:
                logger.debug(
                    "Modifier %s skips type %r, already claimed", modifier.id, type_key
                )
                continue
            for node_id in reachable:
                node = by_id.get(node_id)
                if node is not None and node.type_key == type_key:
                    modified[node_id] = True
            claimed_types.add(type_key)

    return modified
