"""remongo - Layered async sync between an in-memory state tree and a document store."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("remongo")
except PackageNotFoundError:
    __version__ = "0+local"
from remongo._store import DocumentStore, StoreGateway
from remongo.client import RemongoClient
from remongo.config import RemongoConfig
from remongo.exceptions import RemongoConfigError, RemongoError, RemongoStoreError
from remongo.ids import (
    ID_FIELDS,
    ObjectId,
    get_id,
    id_to_native,
    id_to_string,
    normalize_id,
    remove_id,
    remove_own_id,
)
from remongo.models import (
    DeleteResult,
    IdMap,
    InsertManyResult,
    LayerDiff,
    LayerKind,
    LayerSpec,
    SaveResult,
    SyncSpec,
    UpdateResult,
)
from remongo.state import LayerCache
from remongo.sync import extract_layer_diff, sync_load, sync_save

__all__ = [
    "__version__",
    "DeleteResult",
    "DocumentStore",
    "ID_FIELDS",
    "IdMap",
    "InsertManyResult",
    "LayerCache",
    "LayerDiff",
    "LayerKind",
    "LayerSpec",
    "ObjectId",
    "RemongoClient",
    "RemongoConfig",
    "RemongoConfigError",
    "RemongoError",
    "RemongoStoreError",
    "SaveResult",
    "StoreGateway",
    "SyncSpec",
    "UpdateResult",
    "extract_layer_diff",
    "get_id",
    "id_to_native",
    "id_to_string",
    "normalize_id",
    "remove_id",
    "remove_own_id",
    "sync_load",
    "sync_save",
]
