"""Configuration graph models and YAML/JSON I/O for quizflow.

A ConfigGraph is an immutable snapshot of the editor's node/edge graph.
Every mutation helper returns a new graph; the resolver never writes back
into the snapshot it was given.

This module contains:
- Node categories and the node/edge records
- Settings models for the non-filter node categories (router,
  selection modifier, number of songs)
- SongCount, the target total handed to the allocation engine
- ConfigGraph with its mutation helpers and file I/O
"""

import json
from enum import Enum
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# =============================================================================
# Node categories
# =============================================================================

# The editor ships three list-source node types; the resolver treats them alike.
_LIST_SOURCE_ALIASES = {"songList", "batchUserList", "liveNode", "song-list"}


class NodeCategory(str, Enum):
    ROUTER = "router"
    FILTER = "filter"
    NUMBER_OF_SONGS = "numberOfSongs"
    SELECTION_MODIFIER = "selectionModifier"
    SOURCE_SELECTOR = "sourceSelector"
    BASIC_SETTINGS = "basicSettings"
    LIST_SOURCE = "listSource"

    @classmethod
    def _missing_(cls, value: object) -> "NodeCategory | None":
        if value in _LIST_SOURCE_ALIASES:
            return cls.LIST_SOURCE
        return None


# =============================================================================
# Nodes and edges
# =============================================================================


class ConfigNode(BaseModel):
    """One node of the configuration graph.

    `settings` is opaque to the graph engine. For filter nodes it is parsed
    into FilterSettings by the allocation engine; for routers, selection
    modifiers and number-of-songs nodes into the models below.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    category: NodeCategory
    kind: str | None = Field(
        default=None,
        description="Node definition id, e.g. 'genres', 'vintage', 'song-difficulty'",
    )
    title: str | None = None
    settings: dict[str, Any] = Field(default_factory=dict)

    @field_validator("category", mode="before")
    @classmethod
    def _resolve_category_alias(cls, value: Any) -> Any:
        if isinstance(value, str) and not isinstance(value, NodeCategory):
            return NodeCategory(value)
        return value

    @property
    def type_key(self) -> str:
        """Type identity used for selection-modifier claims."""
        return self.kind or self.category.value

    @property
    def display_name(self) -> str:
        return self.title or self.kind or self.id


class ConfigEdge(BaseModel):
    """A directed control-flow edge.

    `source_handle` names the router route an edge leaves from; edges
    without a handle are ordinary control-flow edges.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str | None = None
    source: str
    target: str
    source_handle: str | None = Field(default=None, alias="sourceHandle")
    target_handle: str | None = Field(default=None, alias="targetHandle")
    type: str | None = None

    def is_flow_edge(self, flow_prefix: str = "flow-edge-") -> bool:
        """Whether this edge was synthesized by the editor rather than drawn."""
        if self.type == "flow":
            return True
        return bool(flow_prefix) and bool(self.id) and self.id.startswith(flow_prefix)


# =============================================================================
# Non-filter node settings
# =============================================================================


class Route(BaseModel):
    """One named outgoing route of a router node."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = ""
    enabled: bool = True
    percentage: float = 100


class RouterSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    routes: list[Route] = Field(
        default_factory=lambda: [Route(id="route-1", name="Route 1")]
    )
    selection_mode: Literal["random", "weighted"] = Field(
        default="random", alias="selectionMode"
    )

    @property
    def enabled_routes(self) -> list[Route]:
        return [r for r in self.routes if r.enabled]


class SelectionModifierSettings(BaseModel):
    """How many instances of each claimed node type are kept at export."""

    model_config = ConfigDict(populate_by_name=True)

    min_selection: int = Field(default=1, alias="minSelection")
    max_selection: int = Field(default=1, alias="maxSelection")


class SongCount(BaseModel):
    """Target total supplied by the caller: a static count or a {min, max} range."""

    value: float | None = None
    min: float | None = None
    max: float | None = None

    @model_validator(mode="after")
    def _check_shape(self) -> "SongCount":
        if self.value is None:
            if self.min is None or self.max is None:
                raise ValueError("SongCount needs either 'value' or both 'min' and 'max'")
            if self.min > self.max:
                raise ValueError(f"SongCount min ({self.min}) exceeds max ({self.max})")
            if self.min < 0:
                raise ValueError("SongCount bounds must be non-negative")
        elif self.value < 0:
            raise ValueError("SongCount value must be non-negative")
        return self

    @property
    def is_range(self) -> bool:
        return self.value is None

    @property
    def ceiling(self) -> float:
        """Value used for count-mode math (the maximum when a range)."""
        if self.value is not None:
            return self.value
        return self.max  # type: ignore[return-value]

    def describe(self) -> str:
        if self.is_range:
            return f"{_fmt(self.min)}-{_fmt(self.max)}"
        return _fmt(self.value)

    @classmethod
    def coerce(cls, raw: "SongCount | float | int | dict[str, Any]") -> "SongCount":
        """Accept a number, a {min, max} / {kind, ...} mapping, or a SongCount."""
        if isinstance(raw, SongCount):
            return raw
        if isinstance(raw, bool):
            raise TypeError("SongCount cannot be a boolean")
        if isinstance(raw, (int, float)):
            return cls(value=raw)
        if isinstance(raw, dict):
            if raw.get("kind") == "range":
                return cls(min=raw.get("min"), max=raw.get("max"))
            return cls.model_validate(raw)
        raise TypeError(f"Unsupported target total: {raw!r}")


class NumberOfSongsSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    use_range: bool = Field(default=False, alias="useRange")
    static_value: float = Field(default=20, alias="staticValue")
    min: float = 15
    max: float = 25

    def to_song_count(self) -> SongCount:
        if self.use_range:
            return SongCount(min=self.min, max=self.max)
        return SongCount(value=self.static_value)


def _fmt(number: float | None) -> str:
    if number is None:
        return "?"
    if float(number).is_integer():
        return str(int(number))
    return f"{number:g}"


# =============================================================================
# Graph snapshot
# =============================================================================


class ConfigGraph(BaseModel):
    """Immutable snapshot of the editor graph.

    Examples:
        graph = ConfigGraph.from_yaml("quiz.yaml")
        graph = graph.without_node("genres-2")   # also drops its edges
        graph = graph.with_settings("vintage", {...})
    """

    model_config = ConfigDict(frozen=True)

    nodes: list[ConfigNode] = Field(default_factory=list)
    edges: list[ConfigEdge] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_node_ids(self) -> "ConfigGraph":
        seen: set[str] = set()
        duplicates = []
        for node in self.nodes:
            if node.id in seen:
                duplicates.append(node.id)
            seen.add(node.id)
        if duplicates:
            raise ValueError(f"Duplicate node ids: {', '.join(sorted(set(duplicates)))}")
        return self

    @property
    def node_ids(self) -> list[str]:
        return [n.id for n in self.nodes]

    def get_node(self, node_id: str) -> ConfigNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def nodes_of(self, category: NodeCategory) -> list[ConfigNode]:
        return [n for n in self.nodes if n.category == category]

    # ── Mutation helpers (all return new snapshots) ──

    def with_node(self, node: ConfigNode) -> "ConfigGraph":
        """Add a node, or replace the node with the same id in place."""
        nodes = list(self.nodes)
        for i, existing in enumerate(nodes):
            if existing.id == node.id:
                nodes[i] = node
                break
        else:
            nodes.append(node)
        return ConfigGraph(nodes=nodes, edges=list(self.edges))

    def without_node(self, node_id: str) -> "ConfigGraph":
        """Remove a node together with every edge incident to it."""
        return ConfigGraph(
            nodes=[n for n in self.nodes if n.id != node_id],
            edges=[e for e in self.edges if e.source != node_id and e.target != node_id],
        )

    def with_edge(self, edge: ConfigEdge) -> "ConfigGraph":
        return ConfigGraph(nodes=list(self.nodes), edges=[*self.edges, edge])

    def with_settings(self, node_id: str, settings: dict[str, Any]) -> "ConfigGraph":
        node = self.get_node(node_id)
        if node is None:
            raise KeyError(f"Unknown node: {node_id}")
        return self.with_node(node.model_copy(update={"settings": settings}))

    # ── File I/O ──

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_yaml(self, path: Path | str) -> None:
        """Save graph to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            yaml.dump(
                self.to_dict(),
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )

    @classmethod
    def from_yaml(cls, path: Path | str) -> "ConfigGraph":
        """Load graph from YAML file."""
        path = Path(path)

        with open(path) as f:
            data = yaml.safe_load(f)

        return cls.model_validate(data or {})

    @classmethod
    def from_json(cls, path: Path | str) -> "ConfigGraph":
        """Load graph from a JSON export of the editor."""
        path = Path(path)

        with open(path) as f:
            data = json.load(f)

        return cls.model_validate(data)

    def to_json(self, path: Path | str) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Path | str) -> "ConfigGraph":
        """Load a graph file, choosing the parser by extension."""
        path = Path(path)
        if path.suffix.lower() == ".json":
            return cls.from_json(path)
        return cls.from_yaml(path)

    def save(self, path: Path | str) -> None:
        """Save a graph file, choosing the format by extension."""
        path = Path(path)
        if path.suffix.lower() == ".json":
            self.to_json(path)
        else:
            self.to_yaml(path)
