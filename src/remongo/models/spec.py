"""Declarative sync spec: an ordered list of layers.

Wire names are hyphenated (``path-key``, ``db-save``, ``skip-load``,
``skip-save``); snake_case names are accepted as well.
"""

from __future__ import annotations

import hashlib
import json
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _to_kebab(name: str) -> str:
    return name.replace("_", "-")


class LayerKind(StrEnum):
    """How a layer maps onto its collection.

    ``SINGLE`` stores one document, ``MANY`` a sequence (or keyed mapping)
    of documents. Unrecognized kinds parse to ``UNKNOWN``; such layers are
    reported and skipped by the pipelines.
    """

    SINGLE = "single"
    MANY = "many"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> LayerKind:
        if isinstance(value, str):
            normalized = value.strip().lstrip(":").lower()
            for member in cls:
                if member.value == normalized:
                    return member
        return cls.UNKNOWN


class _SpecModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=_to_kebab,
        str_strip_whitespace=True,
    )


class LayerSpec(_SpecModel):
    """One mapping between a subtree path and a store collection."""

    kind: LayerKind
    collection: str
    path: tuple[str | int, ...] = ()
    path_key: str | None = None
    db: str | None = None
    db_save: str | None = None
    keys: dict[str, Any] | None = None
    fields: dict[str, Any] | None = None
    skip_load: bool = False
    skip_save: bool = False

    @field_validator("kind", mode="before")
    @classmethod
    def _kind_lenient(cls, value: Any) -> Any:
        return LayerKind(value) if isinstance(value, str) else value

    @field_validator("path", mode="before")
    @classmethod
    def _path_from_scalar(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, (str, int)):
            return (value,)
        return value

    @field_validator("collection")
    @classmethod
    def _collection_non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("collection must be non-empty")
        return value

    def save_db(self, spec: SyncSpec, default: str | None = None) -> str | None:
        """Store name for saving: layer save/default, then spec save/default."""
        return self.db_save or self.db or spec.db_save or spec.db or default

    def load_db(self, spec: SyncSpec, default: str | None = None) -> str | None:
        """Store name for loading: layer default, then spec default."""
        return self.db or spec.db or default


class SyncSpec(_SpecModel):
    """Ordered layers plus default store naming.

    ``spec_id`` keys the layer cache. When omitted it is derived from the
    spec contents, so structurally equal specs share cached snapshots.
    """

    layers: tuple[LayerSpec, ...] = ()
    db: str | None = None
    db_save: str | None = None
    spec_id: str | None = Field(default=None, alias="id")

    @model_validator(mode="after")
    def _derive_spec_id(self) -> SyncSpec:
        if self.spec_id is None:
            canonical = json.dumps(self.model_dump(exclude={"spec_id"}), sort_keys=True, default=str)
            digest = hashlib.sha1(canonical.encode("utf-8"), usedforsecurity=False).hexdigest()
            object.__setattr__(self, "spec_id", digest)
        return self

    @property
    def identity(self) -> str:
        assert self.spec_id is not None  # noqa: S101
        return self.spec_id
