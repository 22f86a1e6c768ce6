"""Reduce filter-node settings to allocation entries and a target total.

Every filter type goes through the same two steps:
1. resolve_target() picks the effective mode and the total the entries must
   account for, given the caller's song count.
2. entry_sources() turns the enabled categories and vintage windows into
   AllocationEntry objects, paired with the settings object each one came
   from so the quick-fix can write corrections back.
"""

import logging
from typing import Any

from pydantic import ValidationError

from ..core.models import (
    AllocationEntry,
    AllocationMode,
    CategorySetting,
    ConfigGraph,
    ConfigNode,
    FilterSettings,
    NodeCategory,
    NumberOfSongsSettings,
    SongCount,
    VintageRange,
)

logger = logging.getLogger(__name__)

PERCENTAGE_TARGET = 100.0

EntrySource = CategorySetting | VintageRange


def resolve_target(
    song_count: SongCount, mode: AllocationMode
) -> tuple[AllocationMode, float, bool]:
    """Effective mode, target total and whether percentage mode was forced.

    Count mode is disallowed while the song count is a range; such nodes are
    analyzed in percentage mode against 100 and reported as locked.
    """
    if mode == AllocationMode.COUNT:
        if song_count.is_range:
            return AllocationMode.PERCENTAGE, PERCENTAGE_TARGET, True
        return AllocationMode.COUNT, float(song_count.ceiling), False
    return AllocationMode.PERCENTAGE, PERCENTAGE_TARGET, False


def parse_filter_settings(node: ConfigNode) -> FilterSettings:
    """Parse a filter node's settings; raises pydantic.ValidationError."""
    return FilterSettings.model_validate(node.settings or {})


def vintage_labels(ranges: list[VintageRange]) -> list[str]:
    """Unique labels for vintage windows, suffixing repeats with ' (n)'."""
    labels: list[str] = []
    counts: dict[str, int] = {}
    for vintage in ranges:
        base = vintage.label
        counts[base] = counts.get(base, 0) + 1
        labels.append(base if counts[base] == 1 else f"{base} ({counts[base]})")
    return labels


def entry_sources(
    settings: FilterSettings, target: float
) -> list[tuple[AllocationEntry, EntrySource]]:
    """Entries of the enabled categories and vintage windows, in settings order.

    A category with `random` set becomes a range entry over its own
    [min, max]. A vintage window becomes a static entry when it carries an
    advanced value, otherwise a range over [0, target].
    """
    pairs: list[tuple[AllocationEntry, EntrySource]] = []

    for label, category in settings.categories.items():
        if not category.enabled:
            continue
        if category.random:
            entry = AllocationEntry.ranged(label, category.min, category.max)
        else:
            entry = AllocationEntry.fixed(label, category.value)
        pairs.append((entry, category))

    for label, vintage in zip(vintage_labels(settings.ranges), settings.ranges):
        if vintage.use_advanced:
            entry = AllocationEntry.fixed(label, vintage.value)
        else:
            entry = AllocationEntry.ranged(label, 0, target)
        pairs.append((entry, vintage))

    return pairs


def build_entries(settings: FilterSettings, target: float) -> list[AllocationEntry]:
    return [entry for entry, _ in entry_sources(settings, target)]


def song_count_from_graph(graph: ConfigGraph, default: float) -> SongCount:
    """Song count of the first number-of-songs node, or `default`."""
    for node in graph.nodes_of(NodeCategory.NUMBER_OF_SONGS):
        try:
            return NumberOfSongsSettings.model_validate(node.settings or {}).to_song_count()
        except ValidationError as e:
            logger.warning("Ignoring malformed song count on %s: %s", node.id, e)
    return SongCount(value=default)


def coerce_song_count(raw: Any, graph: ConfigGraph, default: float) -> SongCount:
    if raw is None:
        return song_count_from_graph(graph, default)
    return SongCount.coerce(raw)
