"""Results produced by store calls and by the sync pipelines."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from remongo.models._base import StoreResultModel

IdMap = dict[tuple[str | int, ...], str]
"""Tree location (layer path + document key) to document id."""


class InsertManyResult(StoreResultModel):
    inserted_ids: list[Any] = Field(default_factory=list)

    @field_validator("inserted_ids", mode="before")
    @classmethod
    def _ids_from_index_mapping(cls, value: Any) -> Any:
        # Some drivers report {index: id} instead of a list.
        if isinstance(value, Mapping):
            return [value[k] for k in sorted(value, key=int)]
        return value


class UpdateResult(StoreResultModel):
    matched_count: int = 0
    modified_count: int = 0
    upserted_id: Any = None


class DeleteResult(StoreResultModel):
    deleted_count: int = 0


class LayerDiff(BaseModel):
    """Insert/update/delete partition of a layer against its snapshot."""

    model_config = ConfigDict(frozen=True)

    insert: list[dict[str, Any]] = Field(default_factory=list)
    update: list[dict[str, Any]] = Field(default_factory=list)
    delete: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.insert or self.update or self.delete)


class SaveResult(NamedTuple):
    """Reduced tree and id map returned by a save pass."""

    tree: Any
    id_map: IdMap
