"""Document identity helpers.

Documents carry their identity under one of :data:`ID_FIELDS`, checked in
that order. Identity comparisons always go through :func:`id_to_string`, so
the result does not depend on whether a backend hands back native ids,
extended-JSON ``{"$oid": ...}`` mappings or plain strings.
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Mapping, Sequence
from typing import Any

#: Recognized id fields, in lookup priority order.
ID_FIELDS: tuple[str, ...] = ("_id", "id")

#: Strings matching this pattern are promoted to :class:`ObjectId`.
OBJECT_ID_PATTERN = re.compile(r"^[A-Fa-f0-9]{24}$")

_EXTENDED_JSON_OID = "$oid"


@dataclasses.dataclass(frozen=True, slots=True)
class ObjectId:
    """Store-native document id (a 24 hex character object id)."""

    hex: str

    def __post_init__(self) -> None:
        if not OBJECT_ID_PATTERN.match(self.hex):
            raise ValueError(f"not a 24 hex character object id: {self.hex!r}")

    def __str__(self) -> str:
        return self.hex

    def to_extended_json(self) -> dict[str, str]:
        return {_EXTENDED_JSON_OID: self.hex}


def _is_extended_oid(value: Any) -> bool:
    return isinstance(value, Mapping) and len(value) == 1 and _EXTENDED_JSON_OID in value


def id_to_string(id_value: Any) -> str:
    """Create a string from an id object (or string)."""
    if _is_extended_oid(id_value):
        return str(id_value[_EXTENDED_JSON_OID])
    return str(id_value)


def id_to_native(id_value: Any) -> Any:
    """Create a native :class:`ObjectId` from an id string, if it looks like one.

    Anything else, including values that already are native ids, is
    returned unchanged.
    """
    if isinstance(id_value, str) and OBJECT_ID_PATTERN.match(id_value):
        return ObjectId(id_value)
    if _is_extended_oid(id_value):
        return id_to_native(str(id_value[_EXTENDED_JSON_OID]))
    return id_value


def _convert(id_value: Any, ensure_native: bool) -> Any:
    return id_to_native(id_value) if ensure_native else id_to_string(id_value)


def _id_field(doc: Mapping[str, Any] | None) -> str | None:
    if not doc:
        return None
    for key in ID_FIELDS:
        if doc.get(key) is not None:
            return key
    return None


def get_id(doc: Mapping[str, Any] | None, *, ensure_native: bool = False) -> Any:
    """Return the document id as a string (or native id), or ``None``."""
    key = _id_field(doc)
    if key is None:
        return None
    assert doc is not None  # noqa: S101
    return _convert(doc[key], ensure_native)


def remove_id(doc: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of *doc* without any of the recognized id fields."""
    return {k: v for k, v in doc.items() if k not in ID_FIELDS}


def remove_own_id(doc: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of *doc* without the id field that identifies it.

    Other recognized id fields are kept as ordinary data unless they are
    unset (``None``).
    """
    own = _id_field(doc)
    return {k: v for k, v in doc.items() if k != own and not (k in ID_FIELDS and v is None)}


def normalize_id(doc: Mapping[str, Any] | None, *, ensure_native: bool = False) -> Any:
    """Rewrite the id field of *doc* to a string (or native id).

    Documents without an id, and ``None``, are returned as they are.
    """
    key = _id_field(doc)
    if key is None:
        return doc
    assert doc is not None  # noqa: S101
    normalized = dict(doc)
    normalized[key] = _convert(doc[key], ensure_native)
    return normalized


def stringify(value: Any) -> Any:
    """Return a JSON-safe deep copy of *value*.

    Mapping keys become strings, native ids become their string form and
    tuples become lists. Scalars are returned as they are.
    """
    if isinstance(value, ObjectId) or _is_extended_oid(value):
        return id_to_string(value)
    if isinstance(value, Mapping):
        return {k if isinstance(k, str) else str(k): stringify(v) for k, v in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [stringify(v) for v in value]
    return value
