"""Layer snapshot cache.

Holds, per sync spec identity and layer index, the documents as last
observed from the store. Snapshots are stored in JSON-safe form (string
keys, string ids) and replaced wholesale on every update.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from remongo.ids import stringify

_logger = logging.getLogger(__name__)


class LayerCache:
    """In-memory snapshot store keyed by ``(spec_id, layer_index)``.

    Access is expected to be single-threaded; callers serialize concurrent
    syncs of the same spec (see :class:`remongo.client.RemongoClient`).
    """

    def __init__(self) -> None:
        self._specs: dict[str, dict[int, list[dict[str, Any]]]] = {}

    def __contains__(self, spec_id: object) -> bool:
        return spec_id in self._specs

    def update(self, spec_id: str, layer_index: int, docs: Iterable[Mapping[str, Any]]) -> None:
        """Replace the snapshot of one layer."""
        snapshot: list[dict[str, Any]] = stringify(list(docs))
        self._specs.setdefault(spec_id, {})[layer_index] = snapshot
        _logger.debug("Cached %d document(s) for spec %s layer %d", len(snapshot), spec_id, layer_index)

    def get(self, spec_id: str, layer_index: int) -> list[dict[str, Any]] | None:
        """Return a copy of the snapshot, or ``None`` if the layer was never synced."""
        layers = self._specs.get(spec_id)
        if layers is None or layer_index not in layers:
            return None
        return copy.deepcopy(layers[layer_index])

    def layers(self, spec_id: str) -> list[int]:
        return sorted(self._specs.get(spec_id, {}))

    def clear(self, spec_id: str) -> None:
        """Drop all layer snapshots of one sync spec."""
        self._specs.pop(spec_id, None)

    def clear_all(self) -> None:
        self._specs.clear()
