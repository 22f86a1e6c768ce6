"""Allocation validator: total rules for the entries of one filter node.

Rules run in order and the first failing rule wins:
1. at least one entry enabled
2. every entry sane (no negative values, min <= max)
3. the rule for the entry mix (all static, all range, or mixed)

Warnings never make a node invalid. Entries are never modified here.
"""

from collections.abc import Sequence

from ..core.models import (
    SEASONS,
    AllocationEntry,
    AllocationMode,
    FilterSettings,
    ValidationResult,
    VintageRange,
)
from .analyzer import DEFAULT_EPSILON, check_target, split_entries
from .entries import build_entries, vintage_labels

MIN_YEAR = 1900
MAX_YEAR = 2100


def validate_allocation(
    entries: Sequence[AllocationEntry],
    target: float,
    mode: AllocationMode = AllocationMode.PERCENTAGE,
    requires_exact_match: bool = True,
    epsilon: float = DEFAULT_EPSILON,
    location: str = "allocation",
) -> ValidationResult:
    """Validate entries against a target total.

    Args:
        entries: Enabled entries of one filter node
        target: Total the entries must account for
        mode: Percentage or count; only affects message wording
        requires_exact_match: When False, only an excess over target is an error
        epsilon: Tolerance on total comparisons
        location: Location stamped on the issues (usually the node id)

    Returns:
        ValidationResult; `.valid` is False when any rule failed
    """
    check_target(target)
    result = ValidationResult()
    unit = _Unit(mode)

    if not entries:
        result.add_error(
            category="NOTHING_ENABLED",
            location=location,
            message="Enable at least one category",
            suggestion=f"Enable a category and give it {unit.amount(target)}",
        )
        return result

    if _check_entry_sanity(entries, location, result):
        return result

    static, ranged = split_entries(entries)
    static_sum = sum(e.value for e in static)
    min_sum = sum(e.min for e in ranged)
    max_sum = sum(e.max for e in ranged)

    if not ranged:
        delta = static_sum - target
        if delta > epsilon or (requires_exact_match and delta < -epsilon):
            direction = "over" if delta > 0 else "short"
            result.add_error(
                category="TOTAL_MISMATCH",
                location=location,
                message=(
                    f"Total is {unit.amount(static_sum)}, must equal {unit.amount(target)} "
                    f"({unit.amount(abs(delta))} {direction})"
                ),
                suggestion="Adjust the values so they add up to the target",
                value=delta,
            )
        return result

    if not static:
        if min_sum > target + epsilon:
            result.add_error(
                category="MIN_EXCEEDS_TARGET",
                location=location,
                message=(
                    f"Combined minimums exceed target ({unit.amount(min_sum)} > "
                    f"{unit.amount(target)})"
                ),
                suggestion="Lower some minimums",
                value=min_sum - target,
            )
        elif requires_exact_match and max_sum < target - epsilon:
            result.add_error(
                category="MAX_BELOW_TARGET",
                location=location,
                message=(
                    f"Combined maximums are less than target ({unit.amount(max_sum)} < "
                    f"{unit.amount(target)})"
                ),
                suggestion="Raise some maximums",
                value=max_sum - target,
            )
        elif min_sum < target - epsilon and max_sum > target + epsilon:
            result.add_warning(
                category="LOOSE_RANGES",
                location=location,
                message=(
                    f"Ranges are loose: combined {unit.amount(min_sum)} to "
                    f"{unit.amount(max_sum)} around {unit.amount(target)}"
                ),
            )
        return result

    if static_sum + min_sum > target + epsilon:
        result.add_error(
            category="MIN_EXCEEDS_TARGET",
            location=location,
            message=(
                f"Fixed values plus minimums exceed target "
                f"({unit.amount(static_sum + min_sum)} > {unit.amount(target)})"
            ),
            suggestion="Lower fixed values or range minimums",
            value=static_sum + min_sum - target,
        )
    elif requires_exact_match and static_sum + max_sum < target - epsilon:
        result.add_error(
            category="MAX_BELOW_TARGET",
            location=location,
            message=(
                f"Fixed values plus maximums cannot reach target "
                f"({unit.amount(static_sum + max_sum)} < {unit.amount(target)})"
            ),
            suggestion="Raise fixed values or range maximums",
            value=static_sum + max_sum - target,
        )
    else:
        result.add_warning(
            category="CONSTRAINED_RANDOM",
            location=location,
            message="Randomization is constrained by fixed values",
        )
    return result


def validate_vintage_ranges(
    ranges: Sequence[VintageRange], location: str = "vintage"
) -> ValidationResult:
    """Season names, year bounds and window ordering of vintage ranges."""
    result = ValidationResult()

    for label, vintage in zip(vintage_labels(list(ranges)), ranges):
        for end in (vintage.from_, vintage.to):
            if end.season not in SEASONS:
                result.add_error(
                    category="VINTAGE_SEASON",
                    location=location,
                    message=f"{label}: unknown season '{end.season}'",
                    suggestion=f"Use one of {', '.join(SEASONS)}",
                )
            if not MIN_YEAR <= end.year <= MAX_YEAR:
                result.add_error(
                    category="VINTAGE_YEAR",
                    location=location,
                    message=f"{label}: year {end.year} outside {MIN_YEAR}-{MAX_YEAR}",
                )
        if vintage.is_inverted:
            result.add_error(
                category="VINTAGE_ORDER",
                location=location,
                message=f"{label}: 'from' date must not be after 'to' date",
                suggestion="Swap the dates or move the end to the present",
            )

    return result


def validate_filter_node(
    settings: FilterSettings,
    target: float,
    mode: AllocationMode | None = None,
    epsilon: float = DEFAULT_EPSILON,
    location: str = "filter",
) -> ValidationResult:
    """Validate a whole filter node: allocation totals, then vintage windows.

    `mode` is the effective mode from resolve_target(); it defaults to the
    node's own mode.
    """
    entries = build_entries(settings, target)
    result = validate_allocation(
        entries,
        target,
        mode=mode or settings.mode,
        requires_exact_match=settings.requires_exact_match,
        epsilon=epsilon,
        location=location,
    )
    result.merge(validate_vintage_ranges(settings.ranges, location=location))
    return result


def _check_entry_sanity(
    entries: Sequence[AllocationEntry], location: str, result: ValidationResult
) -> bool:
    """Record an error per malformed entry; True when any was found."""
    found = False
    for entry in entries:
        if entry.is_range:
            if entry.min < 0 or entry.max < 0:
                result.add_error(
                    category="NEGATIVE_VALUE",
                    location=location,
                    message=f"{entry.label}: range bounds cannot be negative",
                )
                found = True
            if entry.min > entry.max:
                result.add_error(
                    category="INVERTED_RANGE",
                    location=location,
                    message=f"{entry.label}: min ({_num(entry.min)}) exceeds max ({_num(entry.max)})",
                )
                found = True
        elif entry.value < 0:
            result.add_error(
                category="NEGATIVE_VALUE",
                location=location,
                message=f"{entry.label}: value cannot be negative",
            )
            found = True
    return found


class _Unit:
    """Formats amounts as '10%' or '5 songs' depending on the mode."""

    def __init__(self, mode: AllocationMode):
        self.mode = mode

    def amount(self, number: float) -> str:
        if self.mode == AllocationMode.PERCENTAGE:
            return f"{_num(number)}%"
        noun = "song" if number == 1 else "songs"
        return f"{_num(number)} {noun}"


def _num(number: float) -> str:
    if float(number).is_integer():
        return str(int(number))
    return f"{number:.2f}".rstrip("0").rstrip(".")
