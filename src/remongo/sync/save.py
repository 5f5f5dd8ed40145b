"""Save pipeline: state tree to document store.

Layers are processed in reverse declared order, one at a time. Each layer
consumes the tree left over by the previous one, writes its slice to the
store and removes that slice from the tree, so the final tree holds only
what no layer claimed.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from remongo._redact import redact_for_log
from remongo._store import DocumentStore, StoreGateway, as_gateway, join_all
from remongo.exceptions import RemongoConfigError, RemongoStoreError
from remongo.ids import get_id, id_to_string, stringify
from remongo.models.results import IdMap, SaveResult
from remongo.models.spec import LayerKind, LayerSpec, SyncSpec
from remongo.paths import NodeKind, dissoc_in, get_in, node_kind
from remongo.state.cache import LayerCache
from remongo.sync.diff import extract_layer_diff

_logger = logging.getLogger(__name__)


def _resolve_save_db(layer: LayerSpec, spec: SyncSpec, default_db: str | None) -> str:
    db = layer.save_db(spec, default_db)
    if not db:
        raise RemongoConfigError(f"No store name for saving collection {layer.collection!r}")
    return db


def layer_items(layer: LayerSpec, path_value: Any) -> list[Any]:
    """Documents of a many-layer: mapping values when keyed, else the sequence.

    A missing subtree holds no documents. A present subtree of the wrong
    shape raises :class:`RemongoConfigError` before any store call.
    """
    if path_value is None:
        return []
    kind = node_kind(path_value)
    expected = NodeKind.MAPPING if layer.path_key else NodeKind.SEQUENCE
    if kind is not expected:
        raise RemongoConfigError(
            f"Expected a {expected} at {list(layer.path)} for collection {layer.collection!r}, got a {kind}"
        )
    return list(path_value.values()) if kind is NodeKind.MAPPING else list(path_value)


async def _save_single(
    gateway: StoreGateway,
    cache: LayerCache,
    spec: SyncSpec,
    layer_index: int,
    acc: SaveResult,
    *,
    dry_run: bool,
    default_db: str | None,
) -> SaveResult:
    layer = spec.layers[layer_index]
    tree, id_map = acc
    if dry_run:
        _logger.info("Dry run: would upsert whole tree into %s", layer.collection)
        return acc

    db = _resolve_save_db(layer, spec, default_db)
    if isinstance(tree, Mapping):
        body = tree
    else:
        _logger.warning(
            "Tree for single layer %s is not a mapping, upserting empty document: %s",
            layer.collection,
            redact_for_log(tree),
        )
        body = {}
    res = await gateway.update_one(db, layer.collection, layer.keys, body, upsert=True)
    id_map_out: IdMap = dict(id_map)
    if res.upserted_id is not None:
        id_map_out[()] = id_to_string(res.upserted_id)
    _logger.debug("Single update of %s with upserted id %s", layer.collection, res.upserted_id)
    cache.update(spec.identity, layer_index, [body])
    return SaveResult(dissoc_in(tree, layer.path), id_map_out)


async def _save_many(
    gateway: StoreGateway,
    cache: LayerCache,
    spec: SyncSpec,
    layer_index: int,
    acc: SaveResult,
    *,
    dry_run: bool,
    default_db: str | None,
) -> SaveResult:
    layer = spec.layers[layer_index]
    tree, id_map = acc
    items: list[Any] = stringify(layer_items(layer, get_in(tree, layer.path)))
    _logger.info("Got %d items for collection %s", len(items), layer.collection)

    diff = extract_layer_diff(cache, spec.identity, layer_index, items)
    insert_with_id = [doc for doc in diff.insert if get_id(doc) is not None]
    insert_no_id = [doc for doc in diff.insert if get_id(doc) is None]
    # Deletes are suppressed for layers that never load: the snapshot does
    # not cover what the store holds for them.
    delete_docs = [] if layer.skip_load else diff.delete

    if dry_run:
        _logger.info(
            "Dry run for %s: would insert %d with id, %d without id, delete %d, update %d",
            layer.collection,
            len(insert_with_id),
            len(insert_no_id),
            len(delete_docs),
            len(diff.update),
        )
        return acc

    db = _resolve_save_db(layer, spec, default_db)

    async def _insert_new() -> list[Any]:
        if not insert_no_id:
            return []
        result = await gateway.insert_many(db, layer.collection, insert_no_id)
        return result.inserted_ids

    # All groups finish before the first failure is raised.
    _, inserted_ids, del_results, upd_results = await join_all(
        gateway.update_seq(db, layer.collection, insert_with_id, upsert=True),
        _insert_new(),
        gateway.delete_seq(db, layer.collection, delete_docs),
        gateway.update_seq(db, layer.collection, diff.update, upsert=False),
    )
    if len(inserted_ids) != len(insert_no_id):
        raise RemongoStoreError(
            f"insert_many returned {len(inserted_ids)} id(s) for {len(insert_no_id)} document(s)",
            operation="insert_many",
            db=db,
            collection=layer.collection,
        )
    _logger.info(
        "Saved %s.%s: %d upserted with id, %d inserted, %d deleted, %d updated",
        db,
        layer.collection,
        len(insert_with_id),
        len(inserted_ids),
        len(del_results),
        len(upd_results),
    )

    # Documents without id keep their position in the item sequence, which
    # is their key when the layer has no path key.
    no_id_positions = [i for i, item in enumerate(items) if get_id(item) is None]
    new_items = list(items)
    id_map_out: IdMap = dict(id_map)
    for position, doc, new_id in zip(no_id_positions, insert_no_id, inserted_ids):
        assigned = {**doc, "_id": id_to_string(new_id)}
        new_items[position] = assigned
        key = assigned.get(layer.path_key) if layer.path_key else position
        id_map_out[(*layer.path, key)] = get_id(assigned)

    cache.update(spec.identity, layer_index, new_items)
    _logger.debug("Removing %s from tree", layer.path)
    return SaveResult(dissoc_in(tree, layer.path), id_map_out)


async def save_layer(
    store: DocumentStore | StoreGateway,
    cache: LayerCache,
    spec: SyncSpec,
    acc: SaveResult,
    layer_index: int,
    *,
    dry_run: bool = False,
    default_db: str | None = None,
) -> SaveResult:
    """Save one layer, returning the reduced tree and the extended id map."""
    layer = spec.layers[layer_index]
    if layer.skip_save:
        return acc

    _logger.info(
        "Saving layer %d (%s) with path %s and path key %s", layer_index, layer.kind, layer.path, layer.path_key
    )
    gateway = as_gateway(store)
    if layer.kind is LayerKind.SINGLE:
        return await _save_single(gateway, cache, spec, layer_index, acc, dry_run=dry_run, default_db=default_db)
    if layer.kind is LayerKind.MANY:
        return await _save_many(gateway, cache, spec, layer_index, acc, dry_run=dry_run, default_db=default_db)

    _logger.error("Trying to save with invalid sync layer %d: %s", layer_index, layer)
    return acc


async def sync_save(
    store: DocumentStore | StoreGateway,
    cache: LayerCache,
    tree: Any,
    spec: SyncSpec,
    *,
    dry_run: bool = False,
    default_db: str | None = None,
) -> SaveResult:
    """Save a state tree to the store layer by layer.

    Returns the tree with every saved layer's subtree removed, along with a
    mapping from tree locations to the ids assigned to new documents. A dry
    run returns the input tree as it is.
    """
    gateway = as_gateway(store)
    acc = SaveResult(stringify(tree) if tree is not None else {}, {})
    for layer_index in reversed(range(len(spec.layers))):
        acc = await save_layer(gateway, cache, spec, acc, layer_index, dry_run=dry_run, default_db=default_db)
    _logger.info("Save of spec %s done with %d new id(s)", spec.identity, len(acc.id_map))
    if dry_run:
        return SaveResult(tree, acc.id_map)
    return acc
