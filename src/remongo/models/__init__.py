"""Pydantic models for sync specs, diffs and store results."""

from remongo.models.results import (
    DeleteResult,
    IdMap,
    InsertManyResult,
    LayerDiff,
    SaveResult,
    UpdateResult,
)
from remongo.models.spec import LayerKind, LayerSpec, SyncSpec

__all__ = [
    "DeleteResult",
    "IdMap",
    "InsertManyResult",
    "LayerDiff",
    "LayerKind",
    "LayerSpec",
    "SaveResult",
    "SyncSpec",
    "UpdateResult",
]
