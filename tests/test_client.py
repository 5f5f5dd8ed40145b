from __future__ import annotations

import asyncio

import pytest

from remongo import RemongoClient, RemongoConfig
from remongo.models import LayerKind, LayerSpec, SyncSpec

from fakes import FakeDocumentStore

H1 = "a" * 24

SPEC = {
    "id": "todos-of-u1",
    "db": "app",
    "layers": [
        {"kind": "single", "collection": "users", "keys": {"name": "u1"}},
        {"kind": "many", "path": ["todos"], "collection": "todos", "keys": {"owner": "u1"}},
    ],
}


@pytest.mark.asyncio
async def test_load_then_save_round_trip(store: FakeDocumentStore) -> None:
    client = RemongoClient(store)

    tree, id_map = await client.save({"name": "u1", "todos": [{"owner": "u1", "title": "a"}]}, SPEC)
    assert tree == {}
    assert set(id_map) == {("todos", 0), ()}

    fresh = RemongoClient(store)
    loaded = await fresh.load(SPEC)
    assert loaded["name"] == "u1"
    assert loaded["todos"] == [{"owner": "u1", "title": "a", "_id": id_map[("todos", 0)]}]

    store.calls.clear()
    loaded["todos"][0]["title"] = "b"
    await fresh.save(loaded, SPEC)
    assert store.ops("insert_many") == []
    assert [call[3]["doc"] for call in store.ops("update_one")] == [
        {"owner": "u1", "title": "b"},
        {"name": "u1"},
    ]


@pytest.mark.asyncio
async def test_dry_run_comes_from_config(store: FakeDocumentStore) -> None:
    client = RemongoClient(store, RemongoConfig(dry_run=True))
    tree = {"name": "u1", "todos": [{"title": "a"}]}

    result = await client.save(tree, SPEC)
    assert result.tree is tree
    assert store.mutating_calls == []

    await client.save(tree, SPEC, dry_run=False)
    assert [call[0] for call in store.mutating_calls] == ["insert_many", "update_one"]


@pytest.mark.asyncio
async def test_config_store_names_apply(store: FakeDocumentStore) -> None:
    client = RemongoClient(store, RemongoConfig(db="main", db_save="archive"))
    spec = SyncSpec(layers=(LayerSpec(kind=LayerKind.MANY, path=("items",), collection="items"),))

    await client.save({"items": [{"n": 1}]}, spec)
    await client.load(spec)

    assert store.ops("insert_many")[0][1] == "archive"
    assert store.ops("find")[0][1] == "main"


@pytest.mark.asyncio
async def test_diff_previews_without_store_calls(store: FakeDocumentStore) -> None:
    store.seed("app", "todos", [{"_id": H1, "owner": "u1", "title": "a"}])
    client = RemongoClient(store)
    await client.load(SPEC)
    store.calls.clear()

    diff = await client.diff({"todos": [{"title": "new"}]}, SPEC, 1)

    assert diff.insert == [{"title": "new"}]
    assert diff.update == []
    assert [doc["_id"] for doc in diff.delete] == [H1]
    assert store.calls == []

    unchanged = await client.diff({"todos": [{"_id": H1, "owner": "u1", "title": "a"}]}, SPEC, 1)
    assert unchanged.is_empty

    with pytest.raises(ValueError, match="not a many-layer"):
        await client.diff({}, SPEC, 0)


@pytest.mark.asyncio
async def test_clear_cache_forgets_snapshots(store: FakeDocumentStore) -> None:
    store.seed("app", "todos", [{"_id": H1, "owner": "u1"}])
    client = RemongoClient(store)
    await client.load(SPEC)
    assert client.cache.get("todos-of-u1", 1) == [{"_id": H1, "owner": "u1"}]

    client.clear_cache(SPEC)

    assert client.cache.get("todos-of-u1", 1) is None
    # Without a snapshot the existing document is upserted by id again.
    store.calls.clear()
    await client.save({"todos": [{"_id": H1, "owner": "u1"}]}, SPEC)
    assert [call[3]["upsert"] for call in store.ops("update_one")] == [True, True]
    assert store.ops("delete_one") == []


@pytest.mark.asyncio
async def test_concurrent_saves_of_one_spec_are_serialized(store: FakeDocumentStore) -> None:
    client = RemongoClient(store)
    spec = SyncSpec(db="app", layers=(LayerSpec(kind=LayerKind.MANY, path=("items",), collection="items"),))
    tree = {"items": [{"_id": H1, "n": 1}]}

    await asyncio.gather(client.save(tree, spec), client.save(tree, spec))

    # The second save sees the snapshot written by the first.
    assert len(store.ops("update_one")) == 1
