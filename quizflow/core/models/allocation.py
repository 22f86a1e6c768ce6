"""Allocation models: filter-node settings, entries and predicted results.

Every filter type (song types, difficulty, anime type, genres, vintage, ...)
is reduced to the same shape before analysis: an ordered list of
AllocationEntry objects, each either a fixed value or a [min, max] range,
that must jointly account for a target total (100 in percentage mode, the
song count in count mode).
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


SEASONS = ["Winter", "Spring", "Summer", "Fall"]


class AllocationMode(str, Enum):
    PERCENTAGE = "percentage"
    COUNT = "count"


class EntryKind(str, Enum):
    STATIC = "static"
    RANGE = "range"


# =============================================================================
# Filter settings (what the editor stores on a filter node)
# =============================================================================


class CategorySetting(BaseModel):
    """One category of a filter node, e.g. 'openings' or 'hard'."""

    model_config = ConfigDict(populate_by_name=True)

    enabled: bool = True
    random: bool = Field(default=False, description="Use the [min, max] range instead of value")
    value: float = 0
    min: float = 0
    max: float = 0


class VintageWindow(BaseModel):
    season: str = "Winter"
    year: int

    @property
    def ordinal(self) -> int | None:
        """Sortable position (year * 4 + season index); None for unknown seasons."""
        if self.season not in SEASONS:
            return None
        return self.year * 4 + SEASONS.index(self.season)

    def describe(self) -> str:
        return f"{self.season} {self.year}"


class VintageRange(BaseModel):
    """An air-date window. Advanced windows carry a fixed allocation."""

    model_config = ConfigDict(populate_by_name=True)

    from_: VintageWindow = Field(alias="from")
    to: VintageWindow
    use_advanced: bool = Field(default=False, alias="useAdvanced")
    value: float = 0

    @property
    def label(self) -> str:
        return f"{self.from_.describe()} - {self.to.describe()}"

    @property
    def is_inverted(self) -> bool:
        start, end = self.from_.ordinal, self.to.ordinal
        return start is not None and end is not None and start > end


class FilterSettings(BaseModel):
    """Normalized settings of a filter node.

    `categories` keeps insertion order; that order is the tie-break order
    for quick-fix reductions and top-ups.
    """

    model_config = ConfigDict(populate_by_name=True)

    mode: AllocationMode = AllocationMode.PERCENTAGE
    categories: dict[str, CategorySetting] = Field(default_factory=dict)
    ranges: list[VintageRange] = Field(default_factory=list)
    requires_exact_match: bool = Field(default=True, alias="requiresExactMatch")
    default_category: str | None = Field(default=None, alias="defaultCategory")

    @property
    def enabled_categories(self) -> dict[str, CategorySetting]:
        return {label: c for label, c in self.categories.items() if c.enabled}

    @property
    def has_enabled(self) -> bool:
        return bool(self.enabled_categories) or bool(self.ranges)


# =============================================================================
# Entries and results
# =============================================================================


class AllocationEntry(BaseModel):
    """One enabled category inside one filter node."""

    model_config = ConfigDict(frozen=True)

    label: str
    kind: EntryKind
    value: float = 0
    min: float = 0
    max: float = 0

    @classmethod
    def fixed(cls, label: str, value: float) -> "AllocationEntry":
        return cls(label=label, kind=EntryKind.STATIC, value=value)

    @classmethod
    def ranged(cls, label: str, low: float, high: float) -> "AllocationEntry":
        return cls(label=label, kind=EntryKind.RANGE, min=low, max=high)

    @property
    def is_range(self) -> bool:
        return self.kind == EntryKind.RANGE


class ResolvedAllocation(BaseModel):
    """Display prediction for one entry: a single value or a [min, max] range."""

    model_config = ConfigDict(frozen=True)

    label: str
    kind: EntryKind
    value: float | None = None
    min: float | None = None
    max: float | None = None
    shares_remaining: bool = Field(
        default=False,
        description="Range draws from the pool left after fixed values; split at sampling time",
    )

    def describe(self, unit: str = "") -> str:
        if self.kind == EntryKind.STATIC:
            return f"{_fmt(self.value)}{unit}"
        text = f"{_fmt(self.min)}-{_fmt(self.max)}{unit}"
        if self.shares_remaining:
            text += " (shared)"
        return text


class AllocationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    allocations: list[ResolvedAllocation] = Field(default_factory=list)
    has_random: bool = False
    feasible: bool = True

    def get(self, label: str) -> ResolvedAllocation | None:
        for allocation in self.allocations:
            if allocation.label == label:
                return allocation
        return None

    @property
    def labels(self) -> list[str]:
        return [a.label for a in self.allocations]


def _fmt(number: float | None) -> str:
    if number is None:
        return "?"
    if float(number).is_integer():
        return str(int(number))
    return f"{number:.2f}".rstrip("0").rstrip(".")
