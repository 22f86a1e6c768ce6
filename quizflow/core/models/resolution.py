"""Output models of a resolution pass.

A resolution pass never writes into the graph snapshot. It returns these
annotations and reports, and the caller merges them back into its own view.
"""

from pydantic import BaseModel, ConfigDict, Field

from .allocation import AllocationMode, AllocationResult
from .graph import SongCount
from .validation import Severity, ValidationIssue


class RouteBadge(BaseModel):
    """Marks a node as reachable from one route of one router."""

    model_config = ConfigDict(frozen=True)

    router_id: str
    route_id: str
    label: str = Field(description="Short label, 'R<n>' with n the route's position")
    name: str


class NodeAnnotations(BaseModel):
    model_config = ConfigDict(frozen=True)

    route_badges: list[RouteBadge] = Field(default_factory=list)
    modified: bool = False


class FilterNodeReport(BaseModel):
    """Validated allocation prediction for one filter node."""

    model_config = ConfigDict(frozen=True)

    node_id: str
    is_valid: bool
    validation_message: str = ""
    predicted_allocation: AllocationResult = Field(default_factory=AllocationResult)
    mode: AllocationMode = AllocationMode.PERCENTAGE
    target: float = 100
    percentage_mode_locked: bool = False
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def unit(self) -> str:
        return "%" if self.mode == AllocationMode.PERCENTAGE else " songs"


class ResolutionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    annotations: dict[str, NodeAnnotations] = Field(default_factory=dict)
    filters: dict[str, FilterNodeReport] = Field(default_factory=dict)
    graph_issues: list[ValidationIssue] = Field(default_factory=list)
    dropped_edges: list[str] = Field(
        default_factory=list, description="Ids (or source->target) of dangling edges"
    )
    target_total: SongCount

    @property
    def invalid_filters(self) -> list[FilterNodeReport]:
        return [r for r in self.filters.values() if not r.is_valid]

    @property
    def graph_errors(self) -> list[ValidationIssue]:
        return [i for i in self.graph_issues if i.severity == Severity.ERROR]

    @property
    def is_exportable(self) -> bool:
        """True when nothing blocks handing the graph to the sampling stage."""
        return not self.invalid_filters and not self.graph_errors

    def badges_for(self, node_id: str) -> list[RouteBadge]:
        annotations = self.annotations.get(node_id)
        return list(annotations.route_badges) if annotations else []

    def is_modified(self, node_id: str) -> bool:
        annotations = self.annotations.get(node_id)
        return bool(annotations and annotations.modified)
