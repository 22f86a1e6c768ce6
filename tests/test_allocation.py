"""Tests for the allocation analyzer, validator and entry extraction.

Functions under test in quizflow/allocation/.
"""

import pytest

from quizflow.allocation import (
    AllocationInvariantError,
    analyze_allocation,
    build_entries,
    resolve_target,
    validate_allocation,
    validate_filter_node,
    validate_vintage_ranges,
)
from quizflow.core.models import (
    AllocationEntry,
    AllocationMode,
    EntryKind,
    FilterSettings,
    SongCount,
    VintageRange,
)

fixed = AllocationEntry.fixed
ranged = AllocationEntry.ranged


# =============================================================================
# Analyzer
# =============================================================================


class TestAnalyzeAllocation:
    def test_all_static_reports_own_values(self):
        result = analyze_allocation([fixed("a", 30), fixed("b", 70)], 100)
        assert [(a.label, a.value) for a in result.allocations] == [("a", 30), ("b", 70)]
        assert not result.has_random
        assert result.feasible

    def test_all_static_values_not_clamped(self):
        result = analyze_allocation([fixed("a", 70), fixed("b", 50)], 100)
        assert result.get("a").value == 70
        assert result.get("b").value == 50
        assert not result.feasible

    def test_all_range_keeps_ranges(self):
        result = analyze_allocation([ranged("a", 10, 40), ranged("b", 10, 40)], 50)
        a = result.get("a")
        assert a.kind == EntryKind.RANGE
        assert (a.min, a.max) == (10, 40)
        assert not a.shares_remaining
        assert result.has_random
        assert result.feasible

    def test_degenerate_range_collapses(self):
        result = analyze_allocation([ranged("a", 25, 25), ranged("b", 0, 100)], 100)
        assert result.get("a").kind == EntryKind.STATIC
        assert result.get("a").value == 25
        assert result.get("b").kind == EntryKind.RANGE

    def test_mixed_single_random_collapses_to_remaining(self):
        result = analyze_allocation([fixed("a", 60), ranged("b", 0, 100)], 100)
        b = result.get("b")
        assert b.kind == EntryKind.STATIC
        assert b.value == 40
        assert result.has_random

    def test_mixed_single_random_floored_at_zero(self):
        result = analyze_allocation([fixed("a", 120), ranged("b", 0, 10)], 100)
        assert result.get("b").value == 0
        assert not result.feasible

    def test_mixed_multiple_random_share_remaining(self):
        entries = [fixed("a", 50), ranged("b", 10, 30), ranged("c", 5, 40)]
        result = analyze_allocation(entries, 100)
        assert result.labels == ["a", "b", "c"]
        for label in ("b", "c"):
            allocation = result.get(label)
            assert allocation.kind == EntryKind.RANGE
            assert allocation.shares_remaining
        assert result.get("c").describe("%") == "5-40% (shared)"

    def test_empty_entries_infeasible(self):
        result = analyze_allocation([], 100)
        assert result.allocations == []
        assert not result.feasible

    def test_negative_target_is_invariant_error(self):
        with pytest.raises(AllocationInvariantError):
            analyze_allocation([fixed("a", 1)], -5)

    def test_invariant_error_is_runtime_error(self):
        assert issubclass(AllocationInvariantError, RuntimeError)


# =============================================================================
# Validator
# =============================================================================


class TestValidateAllocation:
    def test_nothing_enabled(self):
        result = validate_allocation([], 100)
        assert not result.valid
        assert result.message == "Enable at least one category"

    def test_all_static_exact(self):
        assert validate_allocation([fixed("a", 30), fixed("b", 70)], 100).valid

    def test_all_static_reports_delta(self):
        result = validate_allocation([fixed("a", 30), fixed("b", 70)], 90)
        assert not result.valid
        assert "10% over" in result.message
        assert result.errors[0].value == pytest.approx(10)

    def test_all_static_shortfall_in_count_mode(self):
        result = validate_allocation(
            [fixed("a", 10), fixed("b", 5)], 20, mode=AllocationMode.COUNT
        )
        assert "5 songs short" in result.message

    def test_within_epsilon(self):
        assert validate_allocation([fixed("a", 33.33), fixed("b", 66.67)], 100).valid
        assert validate_allocation([fixed("a", 33.3), fixed("b", 66.6)], 100, epsilon=0.2).valid

    def test_shortfall_allowed_without_exact_match(self):
        entries = [fixed("a", 30)]
        assert validate_allocation(entries, 100, requires_exact_match=False).valid
        assert not validate_allocation([fixed("a", 130)], 100, requires_exact_match=False).valid

    def test_all_range_max_below_target(self):
        result = validate_allocation([ranged("a", 10, 40), ranged("b", 10, 40)], 100)
        assert not result.valid
        assert "Combined maximums are less than target" in result.message

    def test_all_range_brackets_target(self):
        result = validate_allocation([ranged("a", 10, 40), ranged("b", 10, 40)], 50)
        assert result.valid
        assert [w.category for w in result.warnings] == ["LOOSE_RANGES"]

    def test_all_range_min_exceeds_target(self):
        result = validate_allocation([ranged("a", 60, 80), ranged("b", 50, 80)], 100)
        assert "Combined minimums exceed target" in result.message

    def test_all_range_tight_has_no_warning(self):
        result = validate_allocation([ranged("a", 60, 70), ranged("b", 40, 50)], 100)
        assert result.valid
        assert result.issues == []

    def test_mixed_min_exceeds(self):
        result = validate_allocation([fixed("a", 80), ranged("b", 30, 50)], 100)
        assert not result.valid
        assert result.errors[0].category == "MIN_EXCEEDS_TARGET"

    def test_mixed_max_below(self):
        result = validate_allocation([fixed("a", 40), ranged("b", 0, 20)], 100)
        assert result.errors[0].category == "MAX_BELOW_TARGET"

    def test_mixed_valid_is_constrained(self):
        result = validate_allocation([fixed("a", 60), ranged("b", 0, 100)], 100)
        assert result.valid
        assert result.message == "Randomization is constrained by fixed values"

    def test_negative_value_is_error(self):
        result = validate_allocation([fixed("a", -10), fixed("b", 110)], 100)
        assert [e.category for e in result.errors] == ["NEGATIVE_VALUE"]
        assert result.errors[0].message.startswith("a:")

    def test_inverted_range_is_error(self):
        result = validate_allocation([ranged("a", 70, 30), fixed("b", 50)], 100)
        assert result.errors[0].category == "INVERTED_RANGE"

    def test_entries_not_modified(self):
        entries = [fixed("a", 70), fixed("b", 50)]
        validate_allocation(entries, 100)
        assert entries == [fixed("a", 70), fixed("b", 50)]


# =============================================================================
# Target resolution and entry extraction
# =============================================================================


class TestResolveTarget:
    def test_percentage_mode(self):
        assert resolve_target(SongCount(value=40), AllocationMode.PERCENTAGE) == (
            AllocationMode.PERCENTAGE,
            100,
            False,
        )

    def test_count_mode_uses_song_count(self):
        assert resolve_target(SongCount(value=40), AllocationMode.COUNT) == (
            AllocationMode.COUNT,
            40,
            False,
        )

    def test_count_mode_locked_by_range(self):
        mode, target, locked = resolve_target(SongCount(min=10, max=30), AllocationMode.COUNT)
        assert mode == AllocationMode.PERCENTAGE
        assert target == 100
        assert locked


class TestBuildEntries:
    def test_disabled_categories_skipped(self):
        settings = FilterSettings.model_validate(
            {
                "categories": {
                    "openings": {"value": 60},
                    "endings": {"enabled": False, "value": 40},
                    "inserts": {"random": True, "min": 10, "max": 40},
                }
            }
        )
        entries = build_entries(settings, 100)
        assert [e.label for e in entries] == ["openings", "inserts"]
        assert entries[1] == ranged("inserts", 10, 40)

    def test_vintage_windows(self):
        settings = FilterSettings.model_validate(
            {
                "ranges": [
                    {
                        "from": {"season": "Winter", "year": 2000},
                        "to": {"season": "Fall", "year": 2009},
                        "useAdvanced": True,
                        "value": 30,
                    },
                    {
                        "from": {"season": "Winter", "year": 2010},
                        "to": {"season": "Fall", "year": 2019},
                    },
                    {
                        "from": {"season": "Winter", "year": 2010},
                        "to": {"season": "Fall", "year": 2019},
                    },
                ]
            }
        )
        entries = build_entries(settings, 100)
        assert entries[0] == fixed("Winter 2000 - Fall 2009", 30)
        assert entries[1] == ranged("Winter 2010 - Fall 2019", 0, 100)
        assert entries[2].label == "Winter 2010 - Fall 2019 (2)"


class TestValidateVintage:
    def _range(self, start, end):
        return VintageRange.model_validate(
            {
                "from": {"season": start[0], "year": start[1]},
                "to": {"season": end[0], "year": end[1]},
            }
        )

    def test_valid_window(self):
        assert validate_vintage_ranges([self._range(("Spring", 2001), ("Fall", 2001))]).valid

    def test_inverted_window(self):
        result = validate_vintage_ranges([self._range(("Fall", 2010), ("Winter", 2005))])
        assert [e.category for e in result.errors] == ["VINTAGE_ORDER"]

    def test_unknown_season_and_year(self):
        result = validate_vintage_ranges([self._range(("Monsoon", 1850), ("Fall", 2005))])
        assert {e.category for e in result.errors} == {"VINTAGE_SEASON", "VINTAGE_YEAR"}

    def test_filter_node_combines_checks(self):
        settings = FilterSettings.model_validate(
            {
                "ranges": [
                    {
                        "from": {"season": "Fall", "year": 2010},
                        "to": {"season": "Winter", "year": 2005},
                    }
                ]
            }
        )
        result = validate_filter_node(settings, 100, location="vintage-1")
        assert not result.valid
        assert result.errors[0].location == "vintage-1"
