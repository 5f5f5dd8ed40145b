from __future__ import annotations

import pytest

from remongo.ids import ObjectId
from remongo.models import LayerDiff
from remongo.state.cache import LayerCache
from remongo.sync.diff import extract_layer_diff

SPEC = "spec"
HEX = "64b7f0c2a1e4d3b2c1a09f8e"


def test_changed_and_new_documents() -> None:
    cache = LayerCache()
    cache.update(SPEC, 0, [{"_id": "1", "name": "x"}])

    diff = extract_layer_diff(cache, SPEC, 0, [{"_id": "1", "name": "y"}, {"_id": "2", "name": "z"}])

    assert diff == LayerDiff(
        insert=[{"_id": "2", "name": "z"}],
        update=[{"_id": "1", "name": "y"}],
        delete=[],
    )


def test_vanished_document_is_deleted() -> None:
    cache = LayerCache()
    cache.update(SPEC, 0, [{"_id": "1"}, {"_id": "2"}])

    diff = extract_layer_diff(cache, SPEC, 0, [{"_id": "1"}])

    assert diff == LayerDiff(insert=[], update=[], delete=[{"_id": "2"}])


@pytest.mark.parametrize(
    "cached",
    [None, [], [{"_id": "1", "name": "a"}], [{"name": "a"}]],
)
def test_documents_without_id_are_always_inserted(cached: list[dict] | None) -> None:
    cache = LayerCache()
    if cached is not None:
        cache.update(SPEC, 0, cached)
    current = [{"name": "a"}, {"name": "b"}, {"id": None, "name": "c"}]

    diff = extract_layer_diff(cache, SPEC, 0, current)

    assert diff.insert == current
    assert diff.update == []
    assert not any(doc in diff.delete for doc in current)


def test_new_ids_precede_id_less_inserts() -> None:
    diff = extract_layer_diff(LayerCache(), SPEC, 0, [{"name": "a"}, {"_id": "9", "name": "b"}])
    assert diff.insert == [{"_id": "9", "name": "b"}, {"name": "a"}]


def test_second_run_after_cache_update_is_empty() -> None:
    cache = LayerCache()
    cache.update(SPEC, 0, [{"_id": "1", "name": "x"}, {"_id": "3"}])
    current = [{"_id": "1", "name": "y"}, {"_id": "2", "name": "z"}]

    first = extract_layer_diff(cache, SPEC, 0, current)
    assert not first.is_empty

    cache.update(SPEC, 0, current)
    second = extract_layer_diff(cache, SPEC, 0, current)
    assert second == LayerDiff()


def test_unchanged_documents_are_dropped() -> None:
    cache = LayerCache()
    cache.update(SPEC, 0, [{"_id": "1", "name": "x", "tags": ["a"]}])

    diff = extract_layer_diff(cache, SPEC, 0, [{"_id": "1", "name": "x", "tags": ("a",)}])

    assert diff.is_empty


def test_identity_compares_string_form() -> None:
    cache = LayerCache()
    cache.update(SPEC, 0, [{"_id": ObjectId(HEX), "name": "x"}])

    diff = extract_layer_diff(cache, SPEC, 0, [{"_id": HEX, "name": "x"}])

    assert diff.is_empty


def test_update_carries_native_id() -> None:
    cache = LayerCache()
    cache.update(SPEC, 0, [{"_id": HEX, "name": "x"}])

    diff = extract_layer_diff(cache, SPEC, 0, [{"_id": HEX, "name": "y"}])

    assert diff.update == [{"_id": ObjectId(HEX), "name": "y"}]
    assert isinstance(diff.update[0]["_id"], ObjectId)


def test_update_keeps_alternate_id_field() -> None:
    cache = LayerCache()
    cache.update(SPEC, 0, [{"id": "7", "name": "x"}])

    diff = extract_layer_diff(cache, SPEC, 0, [{"id": 7, "name": "y"}])

    assert diff.update == [{"id": "7", "name": "y"}]


def test_layers_and_specs_are_isolated() -> None:
    cache = LayerCache()
    cache.update(SPEC, 0, [{"_id": "1"}])

    assert extract_layer_diff(cache, SPEC, 1, [{"_id": "1"}]).insert == [{"_id": "1"}]
    assert extract_layer_diff(cache, "other", 0, [{"_id": "1"}]).insert == [{"_id": "1"}]
