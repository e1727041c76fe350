"""Scanner modules for discovering installed Vulkan drivers.

Modules:
    manifests: Scan /usr/share/vulkan/icd.d and ~/.local/share/vulkan/icd.d
"""

from . import manifests
from .manifests import ScanResult, scan, scan_root

__all__ = [
    "manifests",
    "ScanResult",
    "scan",
    "scan_root",
]
