"""Layer diffing against the cached snapshot.

The snapshot is the document set last observed from the store for the
layer, not the previous in-memory tree. Identities are compared in string
form; documents without an id are always new.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from remongo._redact import redact_for_log
from remongo.ids import ID_FIELDS, get_id, remove_id, stringify
from remongo.models.results import LayerDiff
from remongo.state.cache import LayerCache

_logger = logging.getLogger(__name__)


def _with_native_id(doc: dict[str, Any], native_id: Any) -> dict[str, Any]:
    updated = dict(doc)
    for key in ID_FIELDS:
        if updated.get(key) is not None:
            updated[key] = native_id
            return updated
    updated["_id"] = native_id
    return updated


def extract_layer_diff(
    cache: LayerCache,
    spec_id: str,
    layer_index: int,
    current_docs: Iterable[Mapping[str, Any]],
) -> LayerDiff:
    """Get the difference from the cached snapshot of one layer.

    Returns a :class:`LayerDiff` where

    - ``insert`` holds documents whose id was not seen before, followed by
      all documents without an id,
    - ``delete`` holds cached documents whose id is gone,
    - ``update`` holds surviving documents that changed (ids ignored), with
      their id rewritten to the native id as previously observed.
    """
    data: list[dict[str, Any]] = stringify(list(current_docs))
    id_docs = [doc for doc in data if get_id(doc) is not None]
    no_id_docs = [doc for doc in data if get_id(doc) is None]
    if no_id_docs:
        _logger.debug("Layer %d has %d document(s) without id", layer_index, len(no_id_docs))

    old_data = cache.get(spec_id, layer_index) or []
    old_by_id: dict[str, dict[str, Any]] = {}
    old_ids_to_native: dict[str, Any] = {}
    for old_doc in old_data:
        old_id = get_id(old_doc)
        if old_id is None:
            continue
        old_by_id[old_id] = old_doc
        old_ids_to_native[old_id] = get_id(old_doc, ensure_native=True)

    old_ids = set(old_ids_to_native)
    current_ids = {get_id(doc) for doc in id_docs}
    inserted_ids = current_ids - old_ids
    deleted_ids = old_ids - current_ids
    surviving_ids = current_ids & old_ids

    insert_docs = [doc for doc in id_docs if get_id(doc) in inserted_ids] + no_id_docs
    delete_docs = [doc for doc in old_data if get_id(doc) in deleted_ids]

    update_docs: list[dict[str, Any]] = []
    for doc in id_docs:
        doc_id = get_id(doc)
        if doc_id not in surviving_ids:
            continue
        old_doc = old_by_id[doc_id]
        same = remove_id(doc) == remove_id(old_doc)
        _logger.debug(
            "Matching document %s against cached %s: %s",
            redact_for_log(doc),
            redact_for_log(old_doc),
            "same" if same else "changed",
        )
        if not same:
            update_docs.append(_with_native_id(doc, old_ids_to_native[doc_id]))

    _logger.info(
        "Layer %d diff: %d inserted (%d without id), %d updated, %d deleted",
        layer_index,
        len(insert_docs),
        len(no_id_docs),
        len(update_docs),
        len(delete_docs),
    )
    _logger.debug(
        "Layer %d ids: old=%s current=%s inserted=%s deleted=%s updated=%s",
        layer_index,
        sorted(old_ids),
        sorted(current_ids),
        sorted(inserted_ids),
        sorted(deleted_ids),
        [get_id(doc) for doc in update_docs],
    )
    return LayerDiff(insert=insert_docs, update=update_docs, delete=delete_docs)
