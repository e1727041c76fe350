"""Scanner for Vulkan ICD manifest files.

Scans the system manifest directory (/usr/share/vulkan/icd.d) and the
per-user one (~/.local/share/vulkan/icd.d) for *.json files. Each file
describes one driver for one architecture; grouping them into logical
drivers happens later in discovery.merge.

The system directory is mandatory: if it is missing there is no Vulkan
install to choose from. The user directory is optional and its absence
only produces a warning.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..exceptions import DirectoryNotFound, DirectoryUnreadable
from ..utils.constants import MANIFEST_SUFFIX

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Manifests found under the search roots.

    Attributes:
        system_paths: Manifests under the system root, sorted
        user_paths: Manifests under the user root, sorted
        roots: Search roots in discovery order
        warnings: Non-fatal problems with the user root
    """
    system_paths: list[Path] = field(default_factory=list)
    user_paths: list[Path] = field(default_factory=list)
    roots: tuple[Path, ...] = ()
    warnings: list[str] = field(default_factory=list)

    @property
    def paths(self) -> list[Path]:
        """All manifests in discovery order (system before user)."""
        return self.system_paths + self.user_paths

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "system_paths": [str(p) for p in self.system_paths],
            "user_paths": [str(p) for p in self.user_paths],
            "roots": [str(r) for r in self.roots],
            "warnings": self.warnings,
        }


def scan_root(root: Path) -> list[Path]:
    """List manifest files directly inside a directory.

    Non-recursive. Only regular files whose suffix is exactly ".json" are
    returned.

    Args:
        root: Directory to list

    Returns:
        Absolute manifest paths, sorted lexicographically

    Raises:
        DirectoryNotFound: If root does not exist or is not a directory
        DirectoryUnreadable: If root exists but cannot be listed
    """
    if not root.is_dir():
        raise DirectoryNotFound(root)

    manifests = []
    try:
        for path in root.iterdir():
            if path.suffix != MANIFEST_SUFFIX:
                continue
            if not path.is_file():
                continue
            manifests.append(path.absolute())
    except OSError as e:
        raise DirectoryUnreadable(root, e.strerror or e) from e

    manifests.sort(key=str)
    logger.debug("Found %d manifest(s) in %s", len(manifests), root)
    return manifests


def scan(system_root: Path, user_root: Path) -> ScanResult:
    """Scan the system and user manifest directories.

    Args:
        system_root: Mandatory system directory
        user_root: Optional per-user directory

    Returns:
        ScanResult with paths from both roots and any warnings

    Raises:
        DirectoryNotFound: If the system directory is missing
        DirectoryUnreadable: If the system directory cannot be listed
    """
    result = ScanResult(roots=(system_root, user_root))

    # Fatal when missing or unreadable; let it propagate to the command boundary
    result.system_paths = scan_root(system_root)

    try:
        result.user_paths = scan_root(user_root)
    except DirectoryNotFound:
        result.warnings.append(
            f"Directory {user_root} does not exist. User ICDs will not be listed"
        )
    except DirectoryUnreadable as e:
        result.warnings.append(f"{e}. User ICDs will not be listed")

    return result
