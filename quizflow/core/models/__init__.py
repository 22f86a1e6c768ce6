"""All Pydantic models for quizflow, organized by domain.

- graph.py: node/edge records, non-filter node settings, ConfigGraph
- allocation.py: filter settings, allocation entries and results
- validation.py: validation issues and results
- resolution.py: outputs of a resolution pass
"""

from .graph import (
    NodeCategory,
    ConfigNode,
    ConfigEdge,
    ConfigGraph,
    Route,
    RouterSettings,
    SelectionModifierSettings,
    NumberOfSongsSettings,
    SongCount,
)
from .allocation import (
    SEASONS,
    AllocationMode,
    EntryKind,
    CategorySetting,
    VintageWindow,
    VintageRange,
    FilterSettings,
    AllocationEntry,
    ResolvedAllocation,
    AllocationResult,
)
from .validation import (
    Severity,
    ValidationIssue,
    ValidationResult,
)
from .resolution import (
    RouteBadge,
    NodeAnnotations,
    FilterNodeReport,
    ResolutionResult,
)

__all__ = [
    # Graph
    "NodeCategory",
    "ConfigNode",
    "ConfigEdge",
    "ConfigGraph",
    "Route",
    "RouterSettings",
    "SelectionModifierSettings",
    "NumberOfSongsSettings",
    "SongCount",
    # Allocation
    "SEASONS",
    "AllocationMode",
    "EntryKind",
    "CategorySetting",
    "VintageWindow",
    "VintageRange",
    "FilterSettings",
    "AllocationEntry",
    "ResolvedAllocation",
    "AllocationResult",
    # Validation
    "Severity",
    "ValidationIssue",
    "ValidationResult",
    # Resolution
    "RouteBadge",
    "NodeAnnotations",
    "FilterNodeReport",
    "ResolutionResult",
]
