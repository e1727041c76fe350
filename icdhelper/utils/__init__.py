"""Utility modules for common operations.

Modules:
    constants: Fixed paths, environment variable names, defaults
    display: X display probing through libX11
    file_ops: Directory creation and atomic file writes
"""

from .display import (
    check_display,
    find_working_display,
)

from .file_ops import (
    atomic_write_text,
    ensure_directory,
)

__all__ = [
    # display
    'check_display',
    'find_working_display',
    # file_ops
    'atomic_write_text',
    'ensure_directory',
]
