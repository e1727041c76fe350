"""Discovery modules for turning manifest files into selectable drivers.

Modules:
    merge: Group per-architecture manifests into logical driver entries

Usage:
    from icdhelper.discovery import merge_manifests

    entries = merge_manifests(scan_result.paths, scan_result.roots)
    for entry in entries:
        print(entry.display_name, entry.manifest_paths)
"""

from .merge import (
    LogicalDriverEntry,
    build_entry,
    entry_from_cache,
    format_display_name,
    merge_manifests,
    split_manifest_name,
)

__all__ = [
    'LogicalDriverEntry',
    'build_entry',
    'entry_from_cache',
    'format_display_name',
    'merge_manifests',
    'split_manifest_name',
]
