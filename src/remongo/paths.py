"""Get, set and remove values at a key path inside a nested state tree.

A tree node is either a mapping, a sequence or a scalar (see
:class:`NodeKind`). Mapping nodes are addressed by key, sequence nodes by
integer index. All operations return new containers along the touched path
and leave the input tree unmodified.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import StrEnum
from typing import Any

PathKey = str | int
Path = Sequence[PathKey]


class NodeKind(StrEnum):
    MAPPING = "mapping"
    SEQUENCE = "sequence"
    SCALAR = "scalar"


def node_kind(value: Any) -> NodeKind:
    if isinstance(value, Mapping):
        return NodeKind.MAPPING
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return NodeKind.SEQUENCE
    return NodeKind.SCALAR


def _child(node: Any, key: PathKey) -> tuple[bool, Any]:
    kind = node_kind(node)
    if kind is NodeKind.MAPPING:
        if key in node:
            return True, node[key]
        return False, None
    if kind is NodeKind.SEQUENCE and isinstance(key, int) and -len(node) <= key < len(node):
        return True, node[key]
    return False, None


def get_in(tree: Any, path: Path, default: Any = None) -> Any:
    """Return the value at *path*, or *default* when any step is missing."""
    node = tree
    for key in path:
        found, node = _child(node, key)
        if not found:
            return default
    return node


def _with_child(node: Any, key: PathKey, value: Any) -> Any:
    kind = node_kind(node)
    if node is None:
        return {key: value}
    if kind is NodeKind.MAPPING:
        copied = dict(node)
        copied[key] = value
        return copied
    if kind is NodeKind.SEQUENCE:
        if not isinstance(key, int):
            raise TypeError(f"sequence node indexed with non-integer key {key!r}")
        copied_seq = list(node)
        if key == len(copied_seq):
            copied_seq.append(value)
        elif -len(copied_seq) <= key < len(copied_seq):
            copied_seq[key] = value
        else:
            raise IndexError(f"index {key} out of range for sequence of length {len(copied_seq)}")
        return copied_seq
    raise TypeError(f"cannot set key {key!r} inside scalar node {node!r}")


def assoc_in(tree: Any, path: Path, value: Any) -> Any:
    """Return a copy of *tree* with *value* stored at *path*.

    Missing (or ``None``) intermediate nodes are created as mappings. An
    empty path replaces the whole tree.
    """
    if not path:
        return value
    key, rest = path[0], path[1:]
    _, child = _child(tree, key)
    return _with_child(tree, key, assoc_in(child, rest, value))


def dissoc_in(tree: Any, path: Path) -> Any:
    """Return a copy of *tree* without the value at *path*.

    An empty path yields an empty mapping. A missing parent or key leaves
    the tree unchanged.
    """
    if not path:
        return {}
    parent_path, key = path[:-1], path[-1]
    parent = get_in(tree, parent_path)
    found, _ = _child(parent, key)
    if not found:
        return tree
    if node_kind(parent) is NodeKind.MAPPING:
        reduced: Any = {k: v for k, v in parent.items() if k != key}
    else:
        reduced = [v for i, v in enumerate(parent) if i != key % len(parent)]
    return assoc_in(tree, parent_path, reduced)
