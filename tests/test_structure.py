"""Tests for structural graph checks (routers, modifiers, connections, cycles)."""

from quizflow.core.models import ConfigEdge, ConfigGraph, ConfigNode, NodeCategory
from quizflow.graph import build_adjacency, check_graph_structure, find_cycle


def _check(graph: ConfigGraph):
    adjacency = build_adjacency(graph.edges, graph.node_ids)
    return check_graph_structure(graph, adjacency)


def _categories(result) -> list[str]:
    return [i.category for i in result.issues]


def _router(routes) -> ConfigNode:
    return ConfigNode(id="router", category=NodeCategory.ROUTER, settings={"routes": routes})


def test_routed_graph_is_clean(routed_graph):
    result = _check(routed_graph)
    assert result.valid
    assert result.issues == []


class TestRouterChecks:
    def test_no_enabled_routes(self):
        graph = ConfigGraph(nodes=[_router([{"id": "a", "enabled": False}])])
        result = _check(graph)
        assert not result.valid
        assert _categories(result) == ["ROUTER_NO_ROUTES"]

    def test_percentages_must_total_100(self):
        graph = ConfigGraph(
            nodes=[
                _router([{"id": "a", "percentage": 60}, {"id": "b", "percentage": 30}]),
                ConfigNode(id="f", category=NodeCategory.FILTER),
            ],
            edges=[
                ConfigEdge(source="router", target="f", source_handle="a"),
                ConfigEdge(source="router", target="f", source_handle="b"),
            ],
        )
        result = _check(graph)
        assert _categories(result) == ["ROUTER_PERCENTAGES"]
        assert "90%" in result.errors[0].message

    def test_disabled_routes_excluded_from_total(self):
        graph = ConfigGraph(
            nodes=[
                _router(
                    [
                        {"id": "a", "percentage": 100},
                        {"id": "b", "percentage": 40, "enabled": False},
                    ]
                ),
                ConfigNode(id="f", category=NodeCategory.FILTER),
            ],
            edges=[ConfigEdge(source="router", target="f", source_handle="a")],
        )
        assert _check(graph).valid

    def test_unconnected_route_is_warning(self):
        graph = ConfigGraph(
            nodes=[
                _router([{"id": "a", "name": "Main", "percentage": 100}]),
            ]
        )
        result = _check(graph)
        assert result.valid
        assert _categories(result) == ["ROUTE_UNCONNECTED"]
        assert '"Main"' in result.warnings[0].message


class TestSelectionModifierChecks:
    def _graph(self, settings, targets=2) -> ConfigGraph:
        nodes = [ConfigNode(id="m", category=NodeCategory.SELECTION_MODIFIER, settings=settings)]
        edges = []
        for i in range(targets):
            nodes.append(ConfigNode(id=f"g{i}", category=NodeCategory.FILTER, kind="genres"))
            edges.append(ConfigEdge(source="m", target=f"g{i}"))
        return ConfigGraph(nodes=nodes, edges=edges)

    def test_bounds_within_reachable(self):
        assert _check(self._graph({"minSelection": 1, "maxSelection": 2})).valid

    def test_max_above_reachable(self):
        result = _check(self._graph({"minSelection": 1, "maxSelection": 3}))
        assert _categories(result) == ["MODIFIER_BOUNDS"]
        assert "maxSelection 3 > reachable 2" in result.errors[0].message

    def test_min_above_max(self):
        result = _check(self._graph({"minSelection": 2, "maxSelection": 1}))
        assert _categories(result) == ["MODIFIER_BOUNDS"]

    def test_min_below_one(self):
        result = _check(self._graph({"minSelection": 0, "maxSelection": 1}))
        assert not result.valid


class TestConnectionChecks:
    def test_basic_settings_fed_by_filter(self):
        graph = ConfigGraph(
            nodes=[
                ConfigNode(id="f", category=NodeCategory.FILTER, kind="genres"),
                ConfigNode(id="b", category=NodeCategory.BASIC_SETTINGS),
            ],
            edges=[ConfigEdge(source="f", target="b")],
        )
        result = _check(graph)
        assert _categories(result) == ["INVALID_CONNECTION"]
        assert result.errors[0].location == "b"

    def test_basic_settings_fed_by_list_source(self):
        graph = ConfigGraph(
            nodes=[
                ConfigNode(id="s", category="songList"),
                ConfigNode(id="b", category=NodeCategory.BASIC_SETTINGS),
            ],
            edges=[ConfigEdge(source="s", target="b")],
        )
        assert _check(graph).valid

    def test_dangling_edge_is_warning(self):
        graph = ConfigGraph(
            nodes=[ConfigNode(id="f", category=NodeCategory.FILTER)],
            edges=[ConfigEdge(id="e1", source="f", target="ghost")],
        )
        result = _check(graph)
        assert result.valid
        assert _categories(result) == ["DANGLING_EDGE"]
        assert result.warnings[0].location == "e1"

    def test_unreachable_from_router(self, routed_graph):
        graph = routed_graph.with_node(
            ConfigNode(id="orphan", category=NodeCategory.FILTER, kind="genres")
        )
        result = _check(graph)
        assert _categories(result) == ["UNREACHABLE"]
        assert result.warnings[0].location == "orphan"


class TestCycles:
    def test_find_cycle(self):
        assert find_cycle({"a": {"b"}, "b": {"a"}}) == ["a", "b"]
        assert find_cycle({"a": {"b"}, "b": {"c"}}) == []

    def test_cycle_reported_as_warning(self, routed_graph):
        graph = routed_graph.with_edge(ConfigEdge(source="vintage-1", target="genres-1"))
        result = _check(graph)
        assert result.valid
        assert _categories(result) == ["CYCLE"]
        assert "genres-1" in result.warnings[0].message


class TestSharedSongCounts:
    def _graph(self, same_route: bool, mode: str = "count") -> ConfigGraph:
        routes = [{"id": "a", "percentage": 50}, {"id": "b", "percentage": 50}]
        edges = [
            ConfigEdge(source="router", target="count-1", source_handle="a"),
            ConfigEdge(source="count-1", target="types"),
        ]
        if same_route:
            edges.append(ConfigEdge(source="types", target="count-2"))
            edges.append(ConfigEdge(source="router", target="count-2", source_handle="b"))
        else:
            edges.append(ConfigEdge(source="router", target="count-2", source_handle="b"))
        return ConfigGraph(
            nodes=[
                _router(routes),
                ConfigNode(id="count-1", category=NodeCategory.NUMBER_OF_SONGS),
                ConfigNode(id="count-2", category=NodeCategory.NUMBER_OF_SONGS),
                ConfigNode(
                    id="types",
                    category=NodeCategory.FILTER,
                    kind="song-types",
                    settings={"mode": mode},
                ),
            ],
            edges=edges,
        )

    def test_count_mode_rejected_when_route_reaches_two_counts(self):
        result = _check(self._graph(same_route=True))
        assert _categories(result) == ["COUNT_MODE_SHARED_SONG_COUNT"]
        assert result.errors[0].location == "types"

    def test_percentage_mode_unaffected(self):
        assert _check(self._graph(same_route=True, mode="percentage")).valid

    def test_one_count_per_route_allowed(self):
        assert _check(self._graph(same_route=False)).valid
