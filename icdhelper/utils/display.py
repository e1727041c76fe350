"""X display probing.

Vulkan applications launched from a terminal multiplexer, an ssh session
or a stale shell often inherit a DISPLAY that no longer points at a live X
server. Before replacing the process we open the display once through
libX11 (XOpenDisplay/XCloseDisplay via ctypes) and, if that fails, try the
usual local displays :0 to :9.

Probing is a one-shot check; nothing is retried.
"""

import ctypes
import ctypes.util
import logging
from typing import Callable, Iterable, Optional

from ..exceptions import NoWorkingDisplay

logger = logging.getLogger(__name__)

# Loaded lazily; None until the first probe, False if libX11 is unavailable
_XLIB = None


def _load_xlib():
    """Load libX11 and declare the two functions we call."""
    global _XLIB

    if _XLIB is not None:
        return _XLIB if _XLIB is not False else None

    try:
        lib = ctypes.CDLL(ctypes.util.find_library("X11") or "libX11.so.6")
    except OSError as e:
        logger.debug("libX11 not available: %s", e)
        _XLIB = False
        return None

    lib.XOpenDisplay.restype = ctypes.c_void_p
    lib.XOpenDisplay.argtypes = [ctypes.c_char_p]
    lib.XCloseDisplay.restype = ctypes.c_int
    lib.XCloseDisplay.argtypes = [ctypes.c_void_p]

    _XLIB = lib
    return lib


def check_display(display: str) -> bool:
    """Check whether an X display can be opened.

    Args:
        display: Display name such as ":0" or "localhost:10.0"

    Returns:
        True if XOpenDisplay succeeded, False otherwise (including when
        libX11 is not installed)
    """
    lib = _load_xlib()
    if lib is None:
        return False

    handle = lib.XOpenDisplay(display.encode())
    if not handle:
        return False

    lib.XCloseDisplay(handle)
    return True


def find_working_display(
    current: Optional[str],
    candidates: Iterable[str],
    probe: Callable[[str], bool] = check_display,
    report: Optional[Callable[[str], None]] = None
) -> str:
    """Pick the display to hand to the launched application.

    The inherited display wins when it works; otherwise the candidates are
    tried in order.

    Args:
        current: Value of $DISPLAY (may be None or empty)
        candidates: Fallback displays, in probing order
        probe: Function returning True for a reachable display
        report: Called with each display name before it is probed

    Returns:
        The first working display name

    Raises:
        NoWorkingDisplay: If neither $DISPLAY nor any candidate works
    """
    tried = []
    if current:
        tried.append(current)
    tried.extend(c for c in candidates if c != current)

    for display in tried:
        if report is not None:
            report(display)
        if probe(display):
            logger.debug("Using display %s", display)
            return display

    raise NoWorkingDisplay()
