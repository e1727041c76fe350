"""Selection store: cached driver listing and the current selection.

The store is a small JSON file (~/.config/ICDHlpr/config.json):

    {
        "ICDs": [
            [0, ["intel_icd.(i686,x86_64)", ["/usr/share/vulkan/icd.d/intel_icd.i686.json",
                                              "/usr/share/vulkan/icd.d/intel_icd.x86_64.json"]]],
            [1, ["radeon_icd.(i686,x86_64)", ["...", "..."]]]
        ],
        "current": "radeon_icd.(i686,x86_64)"
    }

Indices are positions in the sorted listing of the last scan. They are
re-derived on every scan and shift when drivers are added or removed, so
the selection is stored by display name and re-resolved against the
latest listing on launch. A scan whose listing differs from the cached one
is reported as drift.
"""

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional, Sequence

from ..discovery.merge import LogicalDriverEntry, entry_from_cache
from ..exceptions import IndexOutOfRange, StoreIO, UnknownDriver
from ..utils.constants import STORE_KEY_CURRENT, STORE_KEY_ICDS
from ..utils.file_ops import atomic_write_text, ensure_directory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexedEntry:
    """A driver entry with its position in the listing."""
    index: int
    entry: LogicalDriverEntry

    @property
    def display_name(self) -> str:
        return self.entry.display_name


@dataclass
class SelectionState:
    """Everything persisted between invocations.

    Attributes:
        entries: Indexed listing from the last scan
        current: Display name of the selected driver, if any
    """
    entries: list[IndexedEntry] = field(default_factory=list)
    current: Optional[str] = None

    def find(self, display_name: str) -> Optional[IndexedEntry]:
        """Look up an entry by display name."""
        for indexed in self.entries:
            if indexed.display_name == display_name:
                return indexed
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the on-disk JSON shape."""
        data: dict[str, Any] = {
            STORE_KEY_ICDS: [
                [indexed.index, [indexed.display_name, list(indexed.entry.manifest_paths)]]
                for indexed in self.entries
            ],
        }
        if self.current is not None:
            data[STORE_KEY_CURRENT] = self.current
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "SelectionState":
        """Parse the on-disk JSON shape.

        Args:
            data: Decoded JSON document

        Returns:
            Parsed SelectionState

        Raises:
            ValueError: If the document does not have the expected shape
        """
        if not isinstance(data, dict):
            raise ValueError("store root must be a JSON object")

        entries = []
        for item in data.get(STORE_KEY_ICDS) or []:
            try:
                index, (display_name, manifest_paths) = item
            except (TypeError, ValueError):
                raise ValueError(f"malformed ICD entry: {item!r}")
            if not isinstance(index, int) or isinstance(index, bool):
                raise ValueError(f"ICD index must be an integer: {item!r}")
            if not isinstance(display_name, str):
                raise ValueError(f"ICD name must be a string: {item!r}")
            if not isinstance(manifest_paths, list) or not all(isinstance(p, str) for p in manifest_paths):
                raise ValueError(f"ICD manifests must be a list of paths: {item!r}")
            entries.append(IndexedEntry(index, entry_from_cache(display_name, manifest_paths)))

        current = data.get(STORE_KEY_CURRENT)
        if current is not None and not isinstance(current, str):
            # Older releases stored the index here; it cannot be trusted after a rescan
            logger.debug("Ignoring non-string selection %r", current)
            current = None

        return cls(entries=entries, current=current)


# =============================================================================
# Reconciliation and selection
# =============================================================================

def index_entries(entries: Sequence[LogicalDriverEntry]) -> list[IndexedEntry]:
    """Assign 0-based positional indices in listing order."""
    return [IndexedEntry(i, entry) for i, entry in enumerate(entries)]


def reconcile(
    fresh: Sequence[LogicalDriverEntry],
    previous: SelectionState
) -> tuple[SelectionState, bool]:
    """Replace the cached listing with a fresh scan.

    Args:
        fresh: Merged entries from the latest scan, in listing order
        previous: State loaded from the store

    Returns:
        Tuple of (new_state, changed):
        - new_state: Fresh listing, previous selection carried over
        - changed: True if the listing differs from the cached one
    """
    entries = index_entries(fresh)
    changed = entries != previous.entries
    return SelectionState(entries=entries, current=previous.current), changed


def select(state: SelectionState, display_name: str) -> SelectionState:
    """Select a driver by display name.

    Raises:
        UnknownDriver: If no listed entry has that name
    """
    if state.find(display_name) is None:
        raise UnknownDriver(display_name)
    return replace(state, current=display_name)


def select_index(state: SelectionState, index: int) -> SelectionState:
    """Select a driver by its position in the listing.

    The display name is stored, not the index.

    Raises:
        IndexOutOfRange: If index < 0 or index >= number of entries
    """
    if index < 0 or index >= len(state.entries):
        raise IndexOutOfRange(index, len(state.entries))
    return select(state, state.entries[index].display_name)


def compare_entries(
    old: Sequence[IndexedEntry],
    new: Sequence[IndexedEntry]
) -> dict[str, Any]:
    """Compare two listings to find differences.

    Args:
        old: Cached listing
        new: Fresh listing

    Returns:
        Dictionary with 'added', 'removed' and 'moved' display names
    """
    old_by_name = {e.display_name: e for e in old}
    new_by_name = {e.display_name: e for e in new}

    moved = [
        {"name": name, "before": old_by_name[name].index, "after": entry.index}
        for name, entry in new_by_name.items()
        if name in old_by_name and old_by_name[name].index != entry.index
    ]

    return {
        "added": sorted(set(new_by_name) - set(old_by_name)),
        "removed": sorted(set(old_by_name) - set(new_by_name)),
        "moved": moved,
    }


# =============================================================================
# Persistence
# =============================================================================

class SelectionStore:
    """Loads and saves SelectionState as JSON."""

    def __init__(self, path: Path):
        self.path = path

    def ensure_exists(self) -> None:
        """Create the config directory and an empty store if missing.

        Raises:
            StoreIO: If the directory or file cannot be created
        """
        if self.path.exists():
            return
        try:
            ensure_directory(self.path.parent)
            atomic_write_text(self.path, "{}")
        except OSError as e:
            raise StoreIO(f"Cannot create {self.path}: {e}") from e
        logger.debug("Created empty store at %s", self.path)

    def load(self) -> SelectionState:
        """Read the store, creating an empty one on first run.

        Returns:
            Stored state (empty on first run)

        Raises:
            StoreIO: If the file cannot be read or is not a valid store
        """
        self.ensure_exists()

        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreIO(f"Cannot read {self.path}: {e}") from e
        except UnicodeDecodeError as e:
            raise StoreIO(f"Invalid store {self.path}: {e}") from e

        # Earlier versions created the store as an empty file
        if not text.strip():
            return SelectionState()

        try:
            return SelectionState.from_dict(json.loads(text))
        except json.JSONDecodeError as e:
            raise StoreIO(f"Invalid JSON in {self.path}: {e}") from e
        except ValueError as e:
            raise StoreIO(f"Invalid store {self.path}: {e}") from e

    def save(self, state: SelectionState) -> None:
        """Overwrite the store atomically.

        Raises:
            StoreIO: If the file cannot be written
        """
        try:
            atomic_write_text(self.path, json.dumps(state.to_dict(), indent=4) + "\n")
        except OSError as e:
            raise StoreIO(f"Cannot write {self.path}: {e}") from e
        logger.debug("Saved %d ICD entries to %s", len(state.entries), self.path)
