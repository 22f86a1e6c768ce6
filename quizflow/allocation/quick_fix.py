"""Quick-fix reconciler for filter nodes that fail validation.

Invoked on explicit request only. The fix is applied to a copy of the
settings, in this order:
1. Nothing enabled: enable the default category (or the first one) as a
   static entry holding the whole target.
2. Entry sanity: negative values become 0; a range with min > max gets
   min = max.
3. Vintage windows ending before they start get their end moved to the
   present season.
4. Excess: static values are reduced largest-first (ties by first-seen),
   floored at 0; range minimums absorb whatever the static values cannot.
5. Deficit, on nodes that require an exact match: the first enabled entry
   is topped up by the shortfall (its value, or its range maximum).

The result is re-validated. A node that is still invalid keeps its error
message and is reported with fixed=False.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from ..core.models import (
    SEASONS,
    AllocationMode,
    CategorySetting,
    ConfigGraph,
    FilterSettings,
    NodeCategory,
    SongCount,
    ValidationResult,
    VintageRange,
    VintageWindow,
)
from .analyzer import DEFAULT_EPSILON
from .entries import (
    coerce_song_count,
    entry_sources,
    parse_filter_settings,
    resolve_target,
    vintage_labels,
)
from .validator import validate_filter_node

logger = logging.getLogger(__name__)


@dataclass
class EntryFix:
    """A single change applied to one entry of a filter node."""

    label: str
    field: str  # value, min, max, enabled, to, mode
    original: Any
    fixed: Any
    reason: str


@dataclass
class FixResult:
    """Result of quick-fixing one filter node."""

    settings: FilterSettings
    fixes: list[EntryFix] = field(default_factory=list)
    validation: ValidationResult = field(default_factory=ValidationResult)
    fixed: bool = False
    message: str = ""

    @property
    def fix_count(self) -> int:
        return len(self.fixes)

    def summary(self) -> str:
        """Get a human-readable summary of fixes."""
        if not self.fixes:
            lines = ["No fixes applied"]
        else:
            lines = [f"Applied {len(self.fixes)} fix(es):"]
            for fix in self.fixes:
                lines.append(
                    f"  - {fix.label}.{fix.field}: {_show(fix.original)} → "
                    f"{_show(fix.fixed)} ({fix.reason})"
                )

        if not self.fixed and self.message:
            lines.append(f"\nStill invalid: {self.message}")

        return "\n".join(lines)


def current_season(today: date | None = None) -> VintageWindow:
    """Anime season containing `today` (Winter = Jan-Mar, ..., Fall = Oct-Dec)."""
    today = today or date.today()
    return VintageWindow(season=SEASONS[(today.month - 1) // 3], year=today.year)


def quick_fix(
    settings: FilterSettings,
    song_count: SongCount | float | int | dict[str, Any],
    epsilon: float = DEFAULT_EPSILON,
    today: date | None = None,
) -> FixResult:
    """Reconcile a filter node's settings with its target total.

    Args:
        settings: Current settings of the node (not modified)
        song_count: Target total supplied by the caller
        epsilon: Tolerance on total comparisons
        today: Date used for vintage end corrections (defaults to today)

    Returns:
        FixResult with the corrected copy, the applied fixes and the
        post-fix validation
    """
    count = SongCount.coerce(song_count)
    fixed_settings = settings.model_copy(deep=True)
    fixes: list[EntryFix] = []

    mode, target, locked = resolve_target(count, fixed_settings.mode)
    if locked:
        fixes.append(
            EntryFix(
                label="node",
                field="mode",
                original=AllocationMode.COUNT.value,
                fixed=AllocationMode.PERCENTAGE.value,
                reason="count mode is unavailable with a ranged song count",
            )
        )
        fixed_settings.mode = AllocationMode.PERCENTAGE

    if not fixed_settings.has_enabled:
        if not _enable_default(fixed_settings, target, fixes):
            validation = validate_filter_node(fixed_settings, target, mode, epsilon)
            return FixResult(
                settings=fixed_settings,
                fixes=fixes,
                validation=validation,
                fixed=False,
                message="No category available to enable",
            )

    _fix_sanity(fixed_settings, fixes)
    _fix_vintage_order(fixed_settings, today, fixes)
    _fix_totals(fixed_settings, target, epsilon, fixes)

    validation = validate_filter_node(fixed_settings, target, mode, epsilon)
    if validation.valid:
        message = f"Applied {len(fixes)} fix(es)" if fixes else "No fixes needed"
    else:
        message = validation.message

    logger.info(
        "Quick-fix applied %d change(s); node is %s",
        len(fixes),
        "valid" if validation.valid else "still invalid",
    )

    return FixResult(
        settings=fixed_settings,
        fixes=fixes,
        validation=validation,
        fixed=validation.valid,
        message=message,
    )


def quick_fix_node(
    graph: ConfigGraph,
    node_id: str,
    song_count: SongCount | float | int | dict[str, Any] | None = None,
    epsilon: float = DEFAULT_EPSILON,
    default_song_count: float = 20,
    today: date | None = None,
) -> tuple[ConfigGraph, FixResult]:
    """Quick-fix one filter node of a graph.

    When `song_count` is None it is taken from the graph's first
    number-of-songs node, falling back to `default_song_count`.

    Raises:
        KeyError: If the node does not exist
        ValueError: If the node is not a filter node
        pydantic.ValidationError: If the node's settings do not parse
    """
    node = graph.get_node(node_id)
    if node is None:
        raise KeyError(f"Unknown node: {node_id}")
    if node.category != NodeCategory.FILTER:
        raise ValueError(f"Node {node_id} is a {node.category.value} node, not a filter")

    settings = parse_filter_settings(node)
    count = coerce_song_count(song_count, graph, default_song_count)
    result = quick_fix(settings, count, epsilon=epsilon, today=today)

    if not result.fixes:
        return graph, result

    new_settings = result.settings.model_dump(mode="json", by_alias=True, exclude_none=True)
    return graph.with_settings(node_id, new_settings), result


# =============================================================================
# Fix steps
# =============================================================================


def _enable_default(settings: FilterSettings, target: float, fixes: list[EntryFix]) -> bool:
    if not settings.categories:
        return False

    label = settings.default_category
    if label not in settings.categories:
        label = next(iter(settings.categories))

    category = settings.categories[label]
    category.enabled = True
    category.random = False
    fixes.append(
        EntryFix(
            label=label,
            field="enabled",
            original=False,
            fixed=True,
            reason="no category was enabled",
        )
    )
    if category.value != target:
        fixes.append(
            EntryFix(
                label=label,
                field="value",
                original=category.value,
                fixed=target,
                reason="default category takes the whole target",
            )
        )
        category.value = target
    return True


def _fix_sanity(settings: FilterSettings, fixes: list[EntryFix]) -> None:
    for label, category in settings.enabled_categories.items():
        for attr in ("value", "min", "max"):
            current = getattr(category, attr)
            if current < 0:
                setattr(category, attr, 0)
                fixes.append(EntryFix(label, attr, current, 0, "negative value"))
        if category.random and category.min > category.max:
            fixes.append(EntryFix(label, "min", category.min, category.max, "min above max"))
            category.min = category.max

    for label, vintage in zip(vintage_labels(settings.ranges), settings.ranges):
        if vintage.value < 0:
            fixes.append(EntryFix(label, "value", vintage.value, 0, "negative value"))
            vintage.value = 0


def _fix_vintage_order(
    settings: FilterSettings, today: date | None, fixes: list[EntryFix]
) -> None:
    present = current_season(today)
    for label, vintage in zip(vintage_labels(settings.ranges), settings.ranges):
        if not vintage.is_inverted:
            continue
        fixes.append(
            EntryFix(
                label=label,
                field="to",
                original=vintage.to.describe(),
                fixed=present.describe(),
                reason="window ended before it started",
            )
        )
        vintage.to = present.model_copy()


def _fix_totals(
    settings: FilterSettings, target: float, epsilon: float, fixes: list[EntryFix]
) -> None:
    pairs = entry_sources(settings, target)
    if not pairs:
        return

    statics = [(e.label, src) for e, src in pairs if not e.is_range]
    ranged = [(e, src) for e, src in pairs if e.is_range]
    static_sum = sum(src.value for _, src in statics)
    min_sum = sum(e.min for e, _ in ranged)
    max_sum = sum(e.max for e, _ in ranged)

    excess = static_sum + min_sum - target
    if excess > epsilon:
        outstanding = _reduce_largest_first(statics, "value", excess, fixes)
        if outstanding > epsilon:
            range_mins = [
                (e.label, src) for e, src in ranged if isinstance(src, CategorySetting)
            ]
            _reduce_largest_first(range_mins, "min", outstanding, fixes)
        return

    if not settings.requires_exact_match:
        return

    shortfall = target - (static_sum + max_sum)
    if shortfall <= epsilon:
        return

    first, source = pairs[0]
    if not first.is_range:
        fixes.append(
            EntryFix(first.label, "value", source.value, source.value + shortfall, "total below target")
        )
        source.value = source.value + shortfall
    elif isinstance(source, CategorySetting):
        fixes.append(
            EntryFix(first.label, "max", source.max, source.max + shortfall, "total below target")
        )
        source.max = source.max + shortfall


def _reduce_largest_first(
    slots: list[tuple[str, CategorySetting | VintageRange]],
    attr: str,
    excess: float,
    fixes: list[EntryFix],
) -> float:
    """Take `excess` out of `attr` of the slots, largest first; return what is left."""
    order = sorted(
        range(len(slots)), key=lambda i: (-getattr(slots[i][1], attr), i)
    )
    outstanding = excess
    for i in order:
        if outstanding <= 0:
            break
        label, source = slots[i]
        current = getattr(source, attr)
        cut = min(current, outstanding)
        if cut <= 0:
            continue
        setattr(source, attr, current - cut)
        outstanding -= cut
        fixes.append(EntryFix(label, attr, current, current - cut, "total above target"))
    return outstanding


def _show(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
