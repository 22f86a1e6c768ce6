"""quizflow: resolve quiz configuration graphs into consistent allocations.

Examples:
    from quizflow import ConfigGraph, resolve

    graph = ConfigGraph.load("quiz.yaml")
    result = resolve(graph)
    for report in result.invalid_filters:
        print(report.node_id, report.validation_message)
"""

__version__ = "0.3.0"

from .allocation import (
    AllocationCache,
    AllocationInvariantError,
    FixResult,
    quick_fix,
    quick_fix_node,
)
from .core.models import ConfigGraph, ResolutionResult, SongCount
from .resolver import ResolveSettings, resolve

__all__ = [
    "__version__",
    "AllocationCache",
    "AllocationInvariantError",
    "ConfigGraph",
    "FixResult",
    "ResolutionResult",
    "ResolveSettings",
    "SongCount",
    "quick_fix",
    "quick_fix_node",
    "resolve",
]
