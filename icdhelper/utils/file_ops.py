"""File operations for the configuration store.

The store is rewritten on every listing, so a crash or a full disk in the
middle of a write must not leave a truncated config.json behind. Writes go
to a temporary file in the same directory and are moved into place with
os.replace(), which is atomic on POSIX filesystems.
"""

import os
import tempfile
from pathlib import Path

from .constants import DIR_MODE, FILE_MODE


def ensure_directory(path: Path) -> Path:
    """Create a directory (and parents) if it does not exist.

    Args:
        path: Directory to create

    Returns:
        The directory path

    Raises:
        OSError: If the directory cannot be created
    """
    path.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
    return path


def atomic_write_text(path: Path, text: str) -> None:
    """Replace a file's contents atomically.

    Args:
        path: Destination file
        text: New contents

    Raises:
        OSError: If the temporary file cannot be written or moved into place
    """
    ensure_directory(path.parent)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, FILE_MODE)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
