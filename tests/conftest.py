"""Shared fixtures for quizflow tests."""

import pytest

import quizflow.config as config_module
from quizflow.config import QuizflowConfig, configure, reset_config
from quizflow.core.models import ConfigEdge, ConfigGraph, ConfigNode, NodeCategory

_ENV_VARS = (
    "QUIZFLOW_EPSILON",
    "QUIZFLOW_DEFAULT_SONG_COUNT",
    "QUIZFLOW_CACHE_SIZE",
    "QUIZFLOW_FLOW_EDGE_PREFIX",
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config file at a temp dir and start from defaults."""
    config_dir = tmp_path / "config"
    monkeypatch.setattr(config_module, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config_module, "CONFIG_FILE", config_dir / "config.json")
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    configure(QuizflowConfig())
    yield config_dir / "config.json"
    reset_config()


@pytest.fixture
def routed_graph() -> ConfigGraph:
    """Router with two routes feeding disjoint filter chains.

    router --route-1--> genres-1 --> vintage-1
           --route-2--> genres-2 --> types-1
    """
    return ConfigGraph(
        nodes=[
            ConfigNode(
                id="router",
                category=NodeCategory.ROUTER,
                settings={
                    "routes": [
                        {"id": "route-1", "name": "Openings", "percentage": 50},
                        {"id": "route-2", "name": "Endings", "percentage": 50},
                    ]
                },
            ),
            ConfigNode(id="genres-1", category=NodeCategory.FILTER, kind="genres"),
            ConfigNode(id="vintage-1", category=NodeCategory.FILTER, kind="vintage"),
            ConfigNode(id="genres-2", category=NodeCategory.FILTER, kind="genres"),
            ConfigNode(id="types-1", category=NodeCategory.FILTER, kind="song-types"),
        ],
        edges=[
            ConfigEdge(id="e1", source="router", target="genres-1", source_handle="route-1"),
            ConfigEdge(id="e2", source="genres-1", target="vintage-1"),
            ConfigEdge(id="e3", source="router", target="genres-2", source_handle="route-2"),
            ConfigEdge(id="e4", source="genres-2", target="types-1"),
        ],
    )
