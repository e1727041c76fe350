"""ICD Helper: choose which Vulkan driver an application loads.

Packages:
    scanners: Find ICD manifest files
    discovery: Merge per-architecture manifests into logical drivers
    output: Cached listing, current selection and drift detection
    launcher: Resolve the selection and exec the target program
    config: Settings from XDG locations and settings.yaml
    utils: Constants, display probing, file operations
"""

__version__ = "1.0.0"
