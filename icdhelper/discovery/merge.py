"""Architecture merging for ICD manifests.

Drivers usually ship one manifest per architecture, e.g.:

    radeon_icd.i686.json
    radeon_icd.x86_64.json

The user wants to pick "radeon" once and have the loader see both files,
so manifests sharing a base name are merged into one LogicalDriverEntry
whose display name lists the architectures:

    radeon_icd.(i686,x86_64)

Splitting rules for a manifest file name (after dropping ".json"):
    1. The architecture tag starts at the first ASCII digit.
    2. If that digit sits in a dot-separated segment other than the first
       one, and the segment only has ASCII letters before the digit, the
       tag is widened to the whole segment ("x86_64", "i686", "aarch64").
    3. A name with no digit has an empty tag and keeps its whole stem as
       the base name ("nvidia_icd" -> "nvidia_icd()").

Output is sorted by base name. That order is what gets indexed, so it must
not depend on the order the filesystem returned the files in.
"""

import string
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Sequence, Union

from ..utils.constants import MANIFEST_SUFFIX

PathLike = Union[str, Path]


@dataclass(frozen=True)
class LogicalDriverEntry:
    """One user-selectable driver spanning one or more architectures.

    Attributes:
        display_name: base_name + "(" + comma-joined arch tags + ")"
        base_name: File name part before the architecture tag
        arch_tags: Deduplicated architecture tags, sorted ascending
        manifest_paths: Absolute manifest paths in discovery order
    """
    display_name: str
    base_name: str
    arch_tags: tuple[str, ...]
    manifest_paths: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.manifest_paths:
            raise ValueError(f"{self.display_name}: an ICD entry needs at least one manifest")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "display_name": self.display_name,
            "base_name": self.base_name,
            "arch_tags": list(self.arch_tags),
            "manifest_paths": list(self.manifest_paths),
        }


def split_manifest_name(filename: str) -> tuple[str, str]:
    """Split a manifest file name into base name and architecture tag.

    Args:
        filename: Manifest file name (not a full path)

    Returns:
        Tuple of (base_name, arch_tag); arch_tag is "" when the name has no digit

    Examples:
        >>> split_manifest_name("amd_icd64.json")
        ('amd_icd', '64')
        >>> split_manifest_name("radeon_icd.x86_64.json")
        ('radeon_icd.', 'x86_64')
        >>> split_manifest_name("nvidia_icd.json")
        ('nvidia_icd', '')
    """
    stem = filename[:-len(MANIFEST_SUFFIX)] if filename.endswith(MANIFEST_SUFFIX) else filename

    digit_at = next((i for i, ch in enumerate(stem) if ch in string.digits), None)
    if digit_at is None:
        return stem, ""

    segment_start = stem.rfind(".", 0, digit_at) + 1
    if segment_start > 0:
        prefix = stem[segment_start:digit_at]
        if prefix and prefix.isascii() and prefix.isalpha():
            digit_at = segment_start

    return stem[:digit_at], stem[digit_at:]


def format_display_name(base_name: str, arch_tags: Iterable[str]) -> str:
    """Build the display name shown in listings."""
    return f"{base_name}({','.join(arch_tags)})"


def _root_rank(path: str, roots: Sequence[Path]) -> int:
    parent = Path(path).parent
    for rank, root in enumerate(roots):
        if parent == Path(root):
            return rank
    return len(roots)


def build_entry(
    base_name: str,
    paths: Iterable[PathLike],
    roots: Sequence[Path] = ()
) -> LogicalDriverEntry:
    """Build a LogicalDriverEntry from manifests that share a base name.

    Args:
        base_name: Shared base name
        paths: Manifest paths belonging to this driver
        roots: Search roots in priority order, used to order the paths

    Returns:
        The merged entry
    """
    manifest_paths = sorted({str(p) for p in paths}, key=lambda p: (_root_rank(p, roots), p))
    arch_tags = tuple(sorted({split_manifest_name(Path(p).name)[1] for p in manifest_paths}))

    return LogicalDriverEntry(
        display_name=format_display_name(base_name, arch_tags),
        base_name=base_name,
        arch_tags=arch_tags,
        manifest_paths=tuple(manifest_paths),
    )


def merge_manifests(
    paths: Iterable[PathLike],
    roots: Sequence[Path] = ()
) -> list[LogicalDriverEntry]:
    """Group manifests into logical drivers.

    Pure function: the result only depends on the set of paths and the
    roots, not on the order the paths are given in.

    Args:
        paths: Manifest paths from one scan
        roots: Search roots in discovery order (system first); paths under
            an earlier root come first within an entry

    Returns:
        Entries sorted by base name
    """
    groups: dict[str, list[str]] = {}
    for path in paths:
        base_name, _ = split_manifest_name(Path(path).name)
        groups.setdefault(base_name, []).append(str(path))

    return [build_entry(base_name, groups[base_name], roots) for base_name in sorted(groups)]


def entry_from_cache(display_name: str, manifest_paths: Sequence[str]) -> LogicalDriverEntry:
    """Rebuild an entry from the cached (display name, paths) pair.

    Architecture tags are not stored; they are derived again from the
    manifest file names. Path order is kept as stored.
    """
    if not manifest_paths:
        raise ValueError(f"{display_name}: cached ICD entry has no manifests")

    base_name, _ = split_manifest_name(Path(manifest_paths[0]).name)
    arch_tags = tuple(sorted({split_manifest_name(Path(p).name)[1] for p in manifest_paths}))

    return LogicalDriverEntry(
        display_name=display_name,
        base_name=base_name,
        arch_tags=arch_tags,
        manifest_paths=tuple(manifest_paths),
    )


if __name__ == "__main__":
    # Demo merging with a typical Mesa + AMDVLK install
    sample = [
        "/usr/share/vulkan/icd.d/radeon_icd.x86_64.json",
        "/usr/share/vulkan/icd.d/radeon_icd.i686.json",
        "/usr/share/vulkan/icd.d/intel_icd.x86_64.json",
        "/usr/share/vulkan/icd.d/amd_icd64.json",
        "/usr/share/vulkan/icd.d/amd_icd32.json",
        "/usr/share/vulkan/icd.d/nvidia_icd.json",
    ]

    print("Architecture Merge Demo")
    print("=" * 50)
    for index, entry in enumerate(merge_manifests(sample)):
        print(f"{index}: {entry.display_name}")
        for path in entry.manifest_paths:
            print(f"     {path}")
