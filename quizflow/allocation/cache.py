"""Per-node memoization of filter-node reports.

Entries are keyed by node id and stored with a content hash of everything
the report depends on (node settings, target, mode, epsilon). A lookup with
a different hash is a miss, and storing replaces only that node's entry, so
editing one node never invalidates the rest of the graph.
"""

import hashlib
import json
import logging
from collections import OrderedDict
from typing import Any

from ..config import get_config
from ..core.models import FilterNodeReport

logger = logging.getLogger(__name__)


def content_hash(settings: dict[str, Any], target: float, mode: str, epsilon: float) -> str:
    """Stable short hash of the inputs of one filter-node analysis."""
    sig = {
        "settings": settings,
        "target": target,
        "mode": mode,
        "epsilon": epsilon,
    }
    data = json.dumps(sig, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(data.encode()).hexdigest()[:24]


class AllocationCache:
    """LRU-bounded map of node id -> (content hash, report).

    `max_size` defaults to the configured `allocation.cache_size`.
    """

    def __init__(self, max_size: int | None = None):
        self.max_size = max_size if max_size is not None else get_config().allocation.cache_size
        self._entries: OrderedDict[str, tuple[str, FilterNodeReport]] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._entries

    def get(self, node_id: str, key: str) -> FilterNodeReport | None:
        cached = self._entries.get(node_id)
        if cached is None or cached[0] != key:
            self.misses += 1
            logger.debug("Allocation cache miss for %s", node_id)
            return None
        self._entries.move_to_end(node_id)
        self.hits += 1
        logger.debug("Allocation cache hit for %s", node_id)
        return cached[1]

    def put(self, node_id: str, key: str, report: FilterNodeReport) -> None:
        self._entries[node_id] = (key, report)
        self._entries.move_to_end(node_id)
        while len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Allocation cache evicted %s", evicted)

    def invalidate(self, node_id: str) -> None:
        self._entries.pop(node_id, None)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def stats(self) -> dict[str, int]:
        return {"size": len(self._entries), "hits": self.hits, "misses": self.misses}
