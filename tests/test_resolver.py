"""Tests for the resolution entry point."""

import pytest
from pydantic import ValidationError

from quizflow import AllocationCache, ResolveSettings, SongCount, resolve
from quizflow.config import AllocationConfig, QuizflowConfig, configure
from quizflow.core.models import AllocationMode, ConfigEdge, ConfigGraph, ConfigNode, NodeCategory


def _filter(node_id: str, settings: dict, kind: str = "song-types") -> ConfigNode:
    return ConfigNode(id=node_id, category=NodeCategory.FILTER, kind=kind, settings=settings)


def _count_node(**settings) -> ConfigNode:
    return ConfigNode(id="count", category=NodeCategory.NUMBER_OF_SONGS, settings=settings)


VALID_TYPES = {"categories": {"openings": {"value": 60}, "endings": {"value": 40}}}


@pytest.fixture
def quiz_graph(routed_graph) -> ConfigGraph:
    """routed_graph with valid settings on every filter."""
    graph = routed_graph
    for node_id in ("genres-1", "genres-2", "types-1"):
        graph = graph.with_settings(node_id, VALID_TYPES)
    return graph.with_settings(
        "vintage-1",
        {
            "ranges": [
                {
                    "from": {"season": "Winter", "year": 2000},
                    "to": {"season": "Fall", "year": 2020},
                }
            ]
        },
    )


class TestResolve:
    def test_valid_graph_is_exportable(self, quiz_graph):
        result = resolve(quiz_graph)
        assert result.is_exportable
        assert set(result.filters) == {"genres-1", "vintage-1", "genres-2", "types-1"}
        assert result.graph_issues == []

    def test_idempotent(self, quiz_graph):
        assert resolve(quiz_graph) == resolve(quiz_graph)

    def test_graph_not_modified(self, quiz_graph):
        before = quiz_graph.model_dump()
        resolve(quiz_graph)
        assert quiz_graph.model_dump() == before

    def test_annotations(self, quiz_graph):
        result = resolve(quiz_graph)
        assert [b.label for b in result.badges_for("vintage-1")] == ["R1"]
        assert [b.label for b in result.badges_for("types-1")] == ["R2"]
        assert result.badges_for("unknown") == []
        assert not result.is_modified("types-1")

    def test_modifier_flags(self, quiz_graph):
        graph = quiz_graph.with_node(
            ConfigNode(
                id="mod",
                category=NodeCategory.SELECTION_MODIFIER,
                settings={"minSelection": 1, "maxSelection": 1},
            )
        ).with_edge(ConfigEdge(source="mod", target="types-1"))
        result = resolve(graph)
        assert result.is_modified("types-1")
        assert not result.is_modified("genres-1")

    def test_invalid_filter_blocks_export(self, quiz_graph):
        graph = quiz_graph.with_settings(
            "types-1", {"categories": {"openings": {"value": 70}, "endings": {"value": 50}}}
        )
        result = resolve(graph)
        assert not result.is_exportable
        assert [r.node_id for r in result.invalid_filters] == ["types-1"]
        report = result.filters["types-1"]
        assert "over" in report.validation_message
        # predictions of static entries are never clamped
        assert report.predicted_allocation.get("openings").value == 70

    def test_malformed_settings_stay_local(self, quiz_graph):
        graph = quiz_graph.with_settings("types-1", {"categories": "nope"})
        result = resolve(graph)
        report = result.filters["types-1"]
        assert not report.is_valid
        assert report.validation_message.startswith("Settings could not be read")
        assert result.filters["genres-1"].is_valid

    def test_dangling_edges_dropped(self, quiz_graph):
        graph = quiz_graph.with_edge(ConfigEdge(id="ghost-edge", source="types-1", target="ghost"))
        result = resolve(graph)
        assert result.dropped_edges == ["ghost-edge"]
        assert result.is_exportable

    def test_cycle_terminates(self, quiz_graph):
        graph = quiz_graph.with_edge(ConfigEdge(source="vintage-1", target="genres-1"))
        result = resolve(graph)
        assert [i.category for i in result.graph_issues] == ["CYCLE"]
        assert [b.label for b in result.badges_for("genres-1")] == ["R1"]


class TestTargetTotal:
    def _graph(self, *nodes) -> ConfigGraph:
        settings = {"mode": "count", "categories": {"a": {"value": 15}, "b": {"value": 10}}}
        return ConfigGraph(nodes=[_filter("f", settings), *nodes])

    def test_default_song_count(self):
        result = resolve(self._graph())
        assert result.target_total == SongCount(value=20)
        assert "5 songs over" in result.filters["f"].validation_message

    def test_default_from_config(self):
        configure(QuizflowConfig(allocation=AllocationConfig(default_song_count=25)))
        assert resolve(self._graph()).filters["f"].is_valid

    def test_song_count_from_graph(self):
        result = resolve(self._graph(_count_node(staticValue=25)))
        assert result.filters["f"].is_valid
        assert result.filters["f"].target == 25

    def test_explicit_total_overrides_graph(self):
        graph = self._graph(_count_node(staticValue=25))
        result = resolve(graph, ResolveSettings(target_total=40))
        assert result.filters["f"].target == 40

    def test_ranged_total_locks_percentage_mode(self):
        result = resolve(self._graph(), ResolveSettings(target_total={"min": 10, "max": 30}))
        report = result.filters["f"]
        assert report.percentage_mode_locked
        assert report.mode == AllocationMode.PERCENTAGE
        assert report.target == 100
        assert report.unit == "%"

    def test_ranged_song_count_node(self):
        graph = self._graph(_count_node(useRange=True, min=10, max=30))
        result = resolve(graph)
        assert result.target_total.is_range
        assert result.filters["f"].percentage_mode_locked

    def test_invalid_total_rejected(self):
        with pytest.raises(ValidationError):
            ResolveSettings(target_total={"min": 30, "max": 10})


class TestCache:
    def test_reused_across_calls(self, quiz_graph):
        cache = AllocationCache()
        first = resolve(quiz_graph, cache=cache)
        assert cache.stats()["misses"] == 4

        second = resolve(quiz_graph, cache=cache)
        assert cache.stats()["hits"] == 4
        assert first == second

    def test_edit_only_misses_changed_node(self, quiz_graph):
        cache = AllocationCache()
        resolve(quiz_graph, cache=cache)
        graph = quiz_graph.with_settings(
            "types-1", {"categories": {"openings": {"value": 50}, "endings": {"value": 50}}}
        )
        resolve(graph, cache=cache)
        assert cache.stats()["hits"] == 3
        assert cache.stats()["misses"] == 5

    def test_epsilon_change_is_miss(self, quiz_graph):
        cache = AllocationCache()
        resolve(quiz_graph, ResolveSettings(epsilon=0.01), cache=cache)
        resolve(quiz_graph, ResolveSettings(epsilon=0.5), cache=cache)
        assert cache.stats()["hits"] == 0
