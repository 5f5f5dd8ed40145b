"""Load pipeline: document store to state tree.

Layers are processed in declared order, each inserting its documents at its
path and recording them as the layer's snapshot.
"""

from __future__ import annotations

import logging
from typing import Any

from remongo._store import DocumentStore, StoreGateway, as_gateway
from remongo.exceptions import RemongoConfigError
from remongo.models.spec import LayerKind, LayerSpec, SyncSpec
from remongo.paths import assoc_in
from remongo.state.cache import LayerCache

_logger = logging.getLogger(__name__)


def _resolve_load_db(layer: LayerSpec, spec: SyncSpec, default_db: str | None) -> str:
    db = layer.load_db(spec, default_db)
    if not db:
        raise RemongoConfigError(f"No store name for loading collection {layer.collection!r}")
    return db


async def _load_single(
    gateway: StoreGateway,
    cache: LayerCache,
    spec: SyncSpec,
    layer_index: int,
    tree: Any,
    db: str,
) -> Any:
    layer = spec.layers[layer_index]
    obj = await gateway.find_one(db, layer.collection, layer.keys, layer.fields)
    if obj is None:
        _logger.warning("Could not find any document in %s.%s matching %s", db, layer.collection, layer.keys)
        cache.update(spec.identity, layer_index, [])
        return tree
    cache.update(spec.identity, layer_index, [obj])
    # An empty path replaces the whole tree.
    if not layer.path:
        return obj
    return assoc_in(tree, layer.path, obj)


async def _load_many(
    gateway: StoreGateway,
    cache: LayerCache,
    spec: SyncSpec,
    layer_index: int,
    tree: Any,
    db: str,
) -> Any:
    layer = spec.layers[layer_index]
    items = await gateway.find(db, layer.collection, layer.keys, layer.fields)
    _logger.info(
        "Got %d items from %s.%s using path key %s and path %s",
        len(items),
        db,
        layer.collection,
        layer.path_key,
        layer.path,
    )
    path_value: Any = items
    if layer.path_key:
        path_value = {item.get(layer.path_key): item for item in items}
    cache.update(spec.identity, layer_index, items)
    return assoc_in(tree, layer.path, path_value)


async def load_layer(
    store: DocumentStore | StoreGateway,
    cache: LayerCache,
    spec: SyncSpec,
    tree: Any,
    layer_index: int,
    *,
    default_db: str | None = None,
) -> Any:
    """Load one layer on top of *tree*."""
    layer = spec.layers[layer_index]
    if layer.skip_load:
        return tree

    _logger.info("Loading layer %d (%s) into path %s", layer_index, layer.kind, layer.path)
    gateway = as_gateway(store)
    if layer.kind is LayerKind.SINGLE:
        return await _load_single(gateway, cache, spec, layer_index, tree, _resolve_load_db(layer, spec, default_db))
    if layer.kind is LayerKind.MANY:
        return await _load_many(gateway, cache, spec, layer_index, tree, _resolve_load_db(layer, spec, default_db))

    _logger.error("Trying to load with invalid sync layer %d: %s", layer_index, layer)
    return tree


async def sync_load(
    store: DocumentStore | StoreGateway,
    cache: LayerCache,
    spec: SyncSpec,
    *,
    default_db: str | None = None,
) -> Any:
    """Load a state tree from the store layer by layer."""
    gateway = as_gateway(store)
    tree: Any = {}
    for layer_index in range(len(spec.layers)):
        tree = await load_layer(gateway, cache, spec, tree, layer_index, default_db=default_db)
    _logger.info("Load of spec %s done", spec.identity)
    return tree
