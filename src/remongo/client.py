"""High-level async client for syncing a state tree with a document store."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Mapping
from typing import Any

from remongo._store import DocumentStore, StoreGateway
from remongo.config import RemongoConfig
from remongo.ids import stringify
from remongo.models.results import LayerDiff, SaveResult
from remongo.models.spec import LayerKind, SyncSpec
from remongo.paths import get_in
from remongo.state.cache import LayerCache
from remongo.sync.diff import extract_layer_diff
from remongo.sync.load import sync_load
from remongo.sync.save import layer_items, sync_save

_logger = logging.getLogger(__name__)


class RemongoClient:
    """Async client tying a document store, a layer cache and sync specs together.

    Usage::

        client = RemongoClient(store, RemongoConfig(db="app"))
        tree = await client.load(spec)
        ...
        tree, id_map = await client.save(tree, spec)
    """

    def __init__(
        self,
        store: DocumentStore,
        config: RemongoConfig | None = None,
        *,
        cache: LayerCache | None = None,
    ) -> None:
        self._config = config or RemongoConfig()
        self._gateway = StoreGateway(store)
        self._cache = cache if cache is not None else LayerCache()
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def config(self) -> RemongoConfig:
        return self._config

    @property
    def cache(self) -> LayerCache:
        return self._cache

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _coerce_spec(spec: SyncSpec | Mapping[str, Any]) -> SyncSpec:
        if isinstance(spec, SyncSpec):
            return spec
        return SyncSpec.model_validate(spec)

    def _with_config_defaults(self, spec: SyncSpec) -> SyncSpec:
        """Apply the configured save override when the sync spec names none."""
        if spec.db_save is None and self._config.db_save is not None:
            return spec.model_copy(update={"db_save": self._config.db_save})
        return spec

    @contextlib.asynccontextmanager
    async def _serialized(self, spec: SyncSpec) -> AsyncIterator[None]:
        if not self._config.serialize_per_spec:
            yield
            return
        lock = self._locks.setdefault(spec.identity, asyncio.Lock())
        async with lock:
            yield

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    async def save(
        self,
        tree: Any,
        spec: SyncSpec | Mapping[str, Any],
        *,
        dry_run: bool | None = None,
    ) -> SaveResult:
        """Save *tree* according to *spec*; see :func:`remongo.sync.save.sync_save`."""
        sync_spec = self._coerce_spec(spec)
        effective_dry_run = self._config.dry_run if dry_run is None else dry_run
        async with self._serialized(sync_spec):
            return await sync_save(
                self._gateway,
                self._cache,
                tree,
                self._with_config_defaults(sync_spec),
                dry_run=effective_dry_run,
                default_db=self._config.db,
            )

    async def load(self, spec: SyncSpec | Mapping[str, Any]) -> Any:
        """Load a state tree according to *spec*; see :func:`remongo.sync.load.sync_load`."""
        sync_spec = self._coerce_spec(spec)
        async with self._serialized(sync_spec):
            return await sync_load(self._gateway, self._cache, sync_spec, default_db=self._config.db)

    async def diff(self, tree: Any, spec: SyncSpec | Mapping[str, Any], layer_index: int) -> LayerDiff:
        """Preview what saving one many-layer would do, without touching the store."""
        sync_spec = self._coerce_spec(spec)
        layer = sync_spec.layers[layer_index]
        if layer.kind is not LayerKind.MANY:
            raise ValueError(f"layer {layer_index} is not a many-layer")
        items = layer_items(layer, get_in(stringify(tree), layer.path))
        async with self._serialized(sync_spec):
            return extract_layer_diff(self._cache, sync_spec.identity, layer_index, items)

    def clear_cache(self, spec: SyncSpec | Mapping[str, Any]) -> None:
        """Forget all layer snapshots of *spec*; the next save treats everything as new."""
        self._cache.clear(self._coerce_spec(spec).identity)
