"""Output and persistence modules.

Modules:
    state: Cached driver listing, current selection and drift detection
"""

from .state import (
    IndexedEntry,
    SelectionState,
    SelectionStore,
    compare_entries,
    index_entries,
    reconcile,
    select,
    select_index,
)

__all__ = [
    "IndexedEntry",
    "SelectionState",
    "SelectionStore",
    "compare_entries",
    "index_entries",
    "reconcile",
    "select",
    "select_index",
]
