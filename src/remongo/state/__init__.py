"""State/cache layer.

This package holds the last document sets observed from the store, per
sync spec and layer. Diffs are always computed against these snapshots.
"""

from remongo.state.cache import LayerCache

__all__ = ["LayerCache"]
