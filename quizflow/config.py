"""Configuration management for quizflow.

Two sections:
- allocation: total-comparison tolerance, fallback song count, cache size
- graph: marker for editor-synthesized flow edges

Config resolution order (highest priority first):
1. Programmatic (QuizflowConfig constructed in code)
2. Environment variables (QUIZFLOW_EPSILON, QUIZFLOW_CACHE_SIZE, etc.)
3. Config file (~/.config/quizflow/config.json, managed by `quizflow config`)
4. Hardcoded defaults
"""

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any


logger = logging.getLogger(__name__)


# =============================================================================
# Config file location
# =============================================================================

CONFIG_DIR = Path.home() / ".config" / "quizflow"
CONFIG_FILE = CONFIG_DIR / "config.json"


# =============================================================================
# Config sections
# =============================================================================


@dataclass
class AllocationConfig:
    """Allocation engine settings.

    - epsilon: tolerance when comparing totals against the target
    - default_song_count: target when the graph has no number-of-songs node
    - cache_size: max filter-node reports kept by the per-node cache
    """

    epsilon: float = 0.01
    default_song_count: int = 20
    cache_size: int = 512


@dataclass
class GraphConfig:
    """Graph engine settings."""

    flow_edge_prefix: str = "flow-edge-"


# =============================================================================
# Main config class
# =============================================================================


@dataclass
class QuizflowConfig:
    """Top-level quizflow configuration.

    Examples:
        # Package use, no files needed
        config = QuizflowConfig(allocation=AllocationConfig(epsilon=0.5))

        # CLI use, loads from ~/.config/quizflow/config.json
        config = QuizflowConfig.load()
    """

    allocation: AllocationConfig = field(default_factory=AllocationConfig)
    graph: GraphConfig = field(default_factory=GraphConfig)

    @classmethod
    def load(cls) -> "QuizflowConfig":
        """Load config from file + env vars.

        Priority: env var values > config.json values > defaults.
        """
        config = cls()

        # Layer 1: Load from config file if it exists
        if CONFIG_FILE.exists():
            try:
                with open(CONFIG_FILE) as f:
                    data = json.load(f)
                _apply_dict(config, data)
            except (json.JSONDecodeError, OSError, ValueError, TypeError) as exc:
                logger.warning("Failed to load config from %s: %s", CONFIG_FILE, exc)

        # Layer 2: Env var overrides
        if val := os.environ.get("QUIZFLOW_EPSILON"):
            try:
                config.allocation.epsilon = float(val)
            except ValueError:
                logger.warning("Invalid QUIZFLOW_EPSILON=%r, ignoring", val)
        if val := os.environ.get("QUIZFLOW_DEFAULT_SONG_COUNT"):
            try:
                config.allocation.default_song_count = int(val)
            except ValueError:
                logger.warning("Invalid QUIZFLOW_DEFAULT_SONG_COUNT=%r, ignoring", val)
        if val := os.environ.get("QUIZFLOW_CACHE_SIZE"):
            try:
                config.allocation.cache_size = int(val)
            except ValueError:
                logger.warning("Invalid QUIZFLOW_CACHE_SIZE=%r, ignoring", val)
        if val := os.environ.get("QUIZFLOW_FLOW_EDGE_PREFIX"):
            config.graph.flow_edge_prefix = val

        return config

    def save(self) -> None:
        """Save config to ~/.config/quizflow/config.json."""
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        with open(CONFIG_FILE, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for display."""
        return {
            "allocation": asdict(self.allocation),
            "graph": asdict(self.graph),
        }


def _apply_dict(config: QuizflowConfig, data: dict) -> None:
    """Apply a dict of values onto a QuizflowConfig."""
    if "allocation" in data and isinstance(data["allocation"], dict):
        for k, v in data["allocation"].items():
            if k == "epsilon":
                config.allocation.epsilon = float(v)
            elif k in ("default_song_count", "cache_size"):
                setattr(config.allocation, k, int(v))
    if "graph" in data and isinstance(data["graph"], dict):
        for k, v in data["graph"].items():
            if hasattr(config.graph, k):
                setattr(config.graph, k, str(v))


# =============================================================================
# Global config singleton
# =============================================================================

_config: QuizflowConfig | None = None


def get_config() -> QuizflowConfig:
    """Get the global QuizflowConfig instance.

    First call loads from file + env vars. Subsequent calls return cached instance.
    Use configure() to replace the global config programmatically.
    """
    global _config
    if _config is None:
        _config = QuizflowConfig.load()
    return _config


def configure(config: QuizflowConfig) -> None:
    """Set the global QuizflowConfig programmatically.

    Use this when quizflow is used as a package:
        from quizflow.config import configure, QuizflowConfig, AllocationConfig
        configure(QuizflowConfig(allocation=AllocationConfig(epsilon=0.5)))
    """
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global config (forces reload on next get_config())."""
    global _config
    _config = None
