"""Allocation engine: analyzer, validator, quick-fix and per-node cache."""

from .analyzer import (
    AllocationInvariantError,
    analyze_allocation,
    bracket,
)
from .cache import AllocationCache, content_hash
from .entries import (
    build_entries,
    entry_sources,
    parse_filter_settings,
    resolve_target,
    song_count_from_graph,
)
from .quick_fix import EntryFix, FixResult, quick_fix, quick_fix_node
from .validator import (
    validate_allocation,
    validate_filter_node,
    validate_vintage_ranges,
)

__all__ = [
    "AllocationInvariantError",
    "analyze_allocation",
    "bracket",
    "AllocationCache",
    "content_hash",
    "build_entries",
    "entry_sources",
    "parse_filter_settings",
    "resolve_target",
    "song_count_from_graph",
    "EntryFix",
    "FixResult",
    "quick_fix",
    "quick_fix_node",
    "validate_allocation",
    "validate_filter_node",
    "validate_vintage_ranges",
]
