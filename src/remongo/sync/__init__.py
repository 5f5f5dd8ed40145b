"""Layered diff-and-sync engine."""

from remongo.sync.diff import extract_layer_diff
from remongo.sync.load import load_layer, sync_load
from remongo.sync.save import save_layer, sync_save

__all__ = [
    "extract_layer_diff",
    "load_layer",
    "save_layer",
    "sync_load",
    "sync_save",
]
