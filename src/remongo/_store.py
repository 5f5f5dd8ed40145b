"""Document store boundary.

:class:`DocumentStore` is the structural interface the sync engine consumes;
any driver adapter (or test double) providing these coroutines can be used.
:class:`StoreGateway` wraps a store with the conventions the pipelines rely
on: native ids in conditions, string ids in results, validated result
models and a single error type for store failures.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel

from remongo._redact import redact_for_log
from remongo.exceptions import RemongoError, RemongoStoreError
from remongo.ids import get_id, normalize_id, remove_own_id
from remongo.models.results import DeleteResult, InsertManyResult, UpdateResult

_logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R", bound=BaseModel)


class DocumentStore(Protocol):
    """Structural store interface.

    Results of the mutating calls may be plain mappings in the driver's own
    key style (``insertedIds``/``inserted_ids`` etc.) or the result models
    from :mod:`remongo.models.results`.
    """

    async def find_one(
        self,
        db: str,
        collection: str,
        condition: Mapping[str, Any],
        fields: Mapping[str, Any],
    ) -> Mapping[str, Any] | None:
        ...

    async def find(
        self,
        db: str,
        collection: str,
        condition: Mapping[str, Any],
        fields: Mapping[str, Any],
    ) -> Sequence[Mapping[str, Any]] | None:
        ...

    async def insert_many(self, db: str, collection: str, docs: Sequence[Mapping[str, Any]]) -> Any:
        ...

    async def update_one(
        self,
        db: str,
        collection: str,
        condition: Mapping[str, Any],
        doc: Mapping[str, Any],
        *,
        upsert: bool,
    ) -> Any:
        ...

    async def delete_one(self, db: str, collection: str, condition: Mapping[str, Any]) -> Any:
        ...

    async def delete_many(self, db: str, collection: str, condition: Mapping[str, Any]) -> Any:
        ...


def objectify_condition(condition: Mapping[str, Any] | None) -> dict[str, Any]:
    """Promote an id mentioned in a query condition to a native id."""
    return dict(normalize_id(condition or {}, ensure_native=True))


def objectify_fields(fields: Mapping[str, Any] | None) -> dict[str, Any]:
    """Promote an id mentioned in a ``projection`` option to a native id."""
    options = dict(fields or {})
    projection = options.get("projection")
    if isinstance(projection, Mapping):
        options["projection"] = normalize_id(projection, ensure_native=True)
    return options


async def join_all(*aws: Awaitable[Any]) -> list[Any]:
    """Run *aws* concurrently and wait for every one of them to finish.

    The first failure, in argument order, is raised only after the others
    have completed.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    failures = [res for res in results if isinstance(res, BaseException)]
    if failures:
        if len(failures) > 1:
            _logger.warning("%d of %d concurrent store calls failed", len(failures), len(results))
        raise failures[0]
    return results


def _as_result(model: type[R], raw: Any) -> R:
    if isinstance(raw, model):
        return raw
    if raw is None or raw is True:
        return model()
    if isinstance(raw, Mapping):
        return model.model_validate(dict(raw))
    return model.model_validate(raw, from_attributes=True)


class StoreGateway:
    """Store wrapper used by the save and load pipelines."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    @property
    def store(self) -> DocumentStore:
        return self._store

    async def _call(self, operation: str, db: str, collection: str, fn: Callable[[], Awaitable[T]]) -> T:
        try:
            return await fn()
        except RemongoError:
            raise
        except Exception as exc:
            raise RemongoStoreError(
                f"{operation} on {db}.{collection} failed: {exc}",
                operation=operation,
                db=db,
                collection=collection,
            ) from exc

    async def find_one(
        self,
        db: str,
        collection: str,
        condition: Mapping[str, Any] | None,
        fields: Mapping[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """Find one document; ``None`` when nothing matches."""
        res = await self._call(
            "find_one",
            db,
            collection,
            lambda: self._store.find_one(db, collection, objectify_condition(condition), objectify_fields(fields)),
        )
        _logger.debug("find_one on %s.%s with %s: %s", db, collection, condition, redact_for_log(res))
        if not res:
            return None
        return normalize_id(dict(res))

    async def find(
        self,
        db: str,
        collection: str,
        condition: Mapping[str, Any] | None,
        fields: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Find many documents; an empty list when nothing matches."""
        res = await self._call(
            "find",
            db,
            collection,
            lambda: self._store.find(db, collection, objectify_condition(condition), objectify_fields(fields)),
        )
        return [normalize_id(dict(doc)) for doc in res or ()]

    async def insert_many(self, db: str, collection: str, docs: Sequence[Mapping[str, Any]]) -> InsertManyResult:
        if not docs:
            _logger.warning("Trying to insert empty sequence into collection %s", collection)
            return InsertManyResult()
        raw = await self._call(
            "insert_many",
            db,
            collection,
            lambda: self._store.insert_many(db, collection, [dict(doc) for doc in docs]),
        )
        return _as_result(InsertManyResult, raw)

    async def update_one(
        self,
        db: str,
        collection: str,
        condition: Mapping[str, Any] | None,
        doc: Mapping[str, Any],
        *,
        upsert: bool = True,
    ) -> UpdateResult:
        """Set all fields of *doc* except its own id field on the matching document."""
        body = remove_own_id(doc)
        raw = await self._call(
            "update_one",
            db,
            collection,
            lambda: self._store.update_one(db, collection, objectify_condition(condition), body, upsert=upsert),
        )
        return _as_result(UpdateResult, raw)

    async def delete_one(self, db: str, collection: str, doc: Mapping[str, Any]) -> DeleteResult:
        """Delete one specific document, addressed by its id."""
        native_id = get_id(doc, ensure_native=True)
        if native_id is None:
            _logger.warning("Not deleting document without id from %s: %s", collection, redact_for_log(doc))
            return DeleteResult()
        raw = await self._call(
            "delete_one",
            db,
            collection,
            lambda: self._store.delete_one(db, collection, {"_id": native_id}),
        )
        return _as_result(DeleteResult, raw)

    async def delete_many(self, db: str, collection: str, condition: Mapping[str, Any] | None) -> DeleteResult:
        raw = await self._call(
            "delete_many",
            db,
            collection,
            lambda: self._store.delete_many(db, collection, objectify_condition(condition)),
        )
        return _as_result(DeleteResult, raw)

    async def update_seq(
        self,
        db: str,
        collection: str,
        docs: Sequence[Mapping[str, Any]],
        *,
        upsert: bool = True,
    ) -> list[UpdateResult]:
        """Update each document by its own id, concurrently."""
        return await join_all(
            *(self.update_one(db, collection, _id_condition(doc), doc, upsert=upsert) for doc in docs)
        )

    async def delete_seq(self, db: str, collection: str, docs: Sequence[Mapping[str, Any]]) -> list[DeleteResult]:
        """Delete each document by its own id, concurrently."""
        return await join_all(*(self.delete_one(db, collection, doc) for doc in docs))


def _id_condition(doc: Mapping[str, Any]) -> dict[str, Any]:
    native_id = get_id(doc, ensure_native=True)
    return {"_id": native_id} if native_id is not None else {}


def as_gateway(store: DocumentStore | StoreGateway) -> StoreGateway:
    return store if isinstance(store, StoreGateway) else StoreGateway(store)
