"""Custom exception classes for ICD Helper.

Library modules raise these and never exit the process themselves. The
command dispatcher in main.py catches ICDHelperError, prints the message
and turns it into a non-zero exit code.
"""


class ICDHelperError(Exception):
    """Base exception for ICD Helper errors."""
    pass


class SettingsError(ICDHelperError):
    """Raised when settings.yaml is malformed or has invalid values."""
    pass


class DirectoryNotFound(ICDHelperError):
    """Raised when a manifest search root does not exist."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Directory {path} does not exist")


class DirectoryUnreadable(ICDHelperError):
    """Raised when a manifest search root exists but cannot be listed."""

    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read directory {path}: {reason}")


class StoreIO(ICDHelperError):
    """Raised when the selection store cannot be read or written."""
    pass


class SelectionError(ICDHelperError):
    """Base exception for selection inconsistencies."""
    pass


class IndexOutOfRange(SelectionError):
    """Raised when a driver index is outside the current listing."""

    def __init__(self, index: int, count: int):
        self.index = index
        self.count = count
        super().__init__(f"Index {index} out of range (0-{count - 1})" if count else
                         f"Index {index} out of range (no drivers listed)")


class UnknownDriver(SelectionError):
    """Raised when selecting a display name that is not listed."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown ICD driver: {name}")


class NoSelection(SelectionError):
    """Raised when launching before any driver has been selected."""

    def __init__(self):
        super().__init__("No ICD driver selected")


class StaleSelection(SelectionError):
    """Raised when the selected driver is no longer among the listed ones."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Selected ICD driver {name} is no longer available")


class LaunchError(ICDHelperError):
    """Base exception for launch failures."""
    pass


class ExecutableNotFound(LaunchError):
    """Raised when the target executable cannot be located."""

    def __init__(self, executable: str):
        self.executable = executable
        super().__init__(f"Executable {executable} does not exist")


class NoWorkingDisplay(LaunchError):
    """Raised when no X display can be opened."""

    def __init__(self):
        super().__init__("No working display found")


class UsageError(ICDHelperError):
    """Raised for invalid command-line usage."""
    pass
