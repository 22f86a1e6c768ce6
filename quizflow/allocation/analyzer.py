"""Allocation analyzer: predict what each entry of a filter node will receive.

The prediction is display-only. Configured values are reported as they are;
the analyzer never clamps them, and feasibility is reported but not enforced.

Cases:
- only static entries: each resolves to its own value
- only range entries: each resolves to its own [min, max], collapsed to a
  single value when min == max
- mixed: the pool left after static entries goes to the range entries. A
  single range entry resolves to exactly that remainder (floored at 0);
  several range entries keep their [min, max] and are marked as sharing the
  remainder, which the sampling stage splits.
"""

import math
from collections.abc import Sequence

from ..core.models import (
    AllocationEntry,
    AllocationResult,
    EntryKind,
    ResolvedAllocation,
)

DEFAULT_EPSILON = 0.01


class AllocationInvariantError(RuntimeError):
    """An internal invariant of the allocation engine was violated.

    This signals a programming error (for example a negative target total
    computed by a caller), never an infeasible user configuration.
    """


def check_target(target: float) -> None:
    if target is None or math.isnan(target) or math.isinf(target):
        raise AllocationInvariantError(f"Target total must be a finite number, got {target!r}")
    if target < 0:
        raise AllocationInvariantError(f"Negative target total: {target}")


def split_entries(
    entries: Sequence[AllocationEntry],
) -> tuple[list[AllocationEntry], list[AllocationEntry]]:
    """Partition entries into (static, range), keeping input order."""
    static = [e for e in entries if not e.is_range]
    ranged = [e for e in entries if e.is_range]
    return static, ranged


def bracket(entries: Sequence[AllocationEntry]) -> tuple[float, float]:
    """Lowest and highest total the entries can produce."""
    static, ranged = split_entries(entries)
    static_sum = sum(e.value for e in static)
    return (
        static_sum + sum(e.min for e in ranged),
        static_sum + sum(e.max for e in ranged),
    )


def analyze_allocation(
    entries: Sequence[AllocationEntry],
    target: float,
    epsilon: float = DEFAULT_EPSILON,
) -> AllocationResult:
    """Predict per-entry allocations against `target`.

    Args:
        entries: Enabled entries of one filter node, in display order
        target: 100 in percentage mode, the song-count ceiling in count mode
        epsilon: Tolerance for the feasibility signal

    Returns:
        AllocationResult with one ResolvedAllocation per entry, in input order

    Raises:
        AllocationInvariantError: If target is negative or not finite
    """
    check_target(target)

    static, ranged = split_entries(entries)
    static_sum = sum(e.value for e in static)
    remaining = max(target - static_sum, 0)

    allocations: list[ResolvedAllocation] = []
    for entry in entries:
        if not entry.is_range:
            allocations.append(
                ResolvedAllocation(label=entry.label, kind=EntryKind.STATIC, value=entry.value)
            )
        elif not static:
            allocations.append(_own_range(entry))
        elif len(ranged) == 1:
            # A lone random entry has no freedom left once static values are fixed.
            allocations.append(
                ResolvedAllocation(label=entry.label, kind=EntryKind.STATIC, value=remaining)
            )
        else:
            allocations.append(
                ResolvedAllocation(
                    label=entry.label,
                    kind=EntryKind.RANGE,
                    min=entry.min,
                    max=entry.max,
                    shares_remaining=True,
                )
            )

    low, high = bracket(entries)
    feasible = bool(entries) and low <= target + epsilon and high >= target - epsilon

    return AllocationResult(
        allocations=allocations,
        has_random=bool(ranged),
        feasible=feasible,
    )


def _own_range(entry: AllocationEntry) -> ResolvedAllocation:
    if entry.min == entry.max:
        return ResolvedAllocation(label=entry.label, kind=EntryKind.STATIC, value=entry.min)
    return ResolvedAllocation(
        label=entry.label, kind=EntryKind.RANGE, min=entry.min, max=entry.max
    )
