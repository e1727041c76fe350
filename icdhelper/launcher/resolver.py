"""Launch resolution: from the stored selection to a replaced process.

Steps performed by the launch command:
    1. resolve()            - selected display name -> manifest paths
    2. find_executable()    - direct path or $PATH lookup
    3. build_environment()  - parent env + VK_ICD_FILENAMES + vendor toggles + DISPLAY
    4. exec_plan()          - os.execve(); never returns on success

The selection is re-resolved against the listing of the scan that just
ran, so a driver removed since it was selected fails loudly instead of
launching with an empty or partial VK_ICD_FILENAMES.
"""

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Sequence

from ..exceptions import ExecutableNotFound, LaunchError, NoSelection, StaleSelection
from ..output.state import SelectionState
from ..utils.constants import DISPLAY_VAR, ICD_FILENAMES_VAR

logger = logging.getLogger(__name__)


@dataclass
class LaunchPlan:
    """Everything needed to replace the current process.

    Attributes:
        executable: Absolute or relative path that exists
        argv: Full argument vector, argv[0] is the executable
        env: Complete child environment
        added_env: Variables set or overridden on top of the parent env
    """
    executable: str
    argv: list[str]
    env: dict[str, str]
    added_env: dict[str, str] = field(default_factory=dict)

    def command_line(self) -> str:
        return " ".join(self.argv)


def resolve(state: SelectionState) -> list[str]:
    """Get the manifest paths of the selected driver.

    Args:
        state: State after the latest reconcile

    Returns:
        Manifest paths of the selected entry (never empty)

    Raises:
        NoSelection: If no driver has been selected
        StaleSelection: If the selected driver is no longer listed
    """
    if not state.current:
        raise NoSelection()

    indexed = state.find(state.current)
    if indexed is None:
        raise StaleSelection(state.current)

    return list(indexed.entry.manifest_paths)


def find_executable(executable: str, path_env: Optional[str] = None) -> str:
    """Locate the program to launch.

    An existing path (or any name containing a "/") is used as given;
    bare names are looked up in $PATH.

    Args:
        executable: Path or command name
        path_env: Search path (default: $PATH)

    Returns:
        Path to an existing executable file

    Raises:
        ExecutableNotFound: If nothing matches
    """
    if os.sep in executable or Path(executable).exists():
        if Path(executable).is_file():
            return executable
        raise ExecutableNotFound(executable)

    found = shutil.which(executable, path=path_env)
    if found is None:
        raise ExecutableNotFound(executable)

    logger.debug("Found %s at %s", executable, found)
    return found


def build_environment(
    base_env: Mapping[str, str],
    manifest_paths: Sequence[str],
    display: str,
    vendor_env: Mapping[str, str]
) -> tuple[dict[str, str], dict[str, str]]:
    """Build the child environment.

    Args:
        base_env: Parent environment (inherited unchanged otherwise)
        manifest_paths: Manifests of the selected driver
        display: Working X display
        vendor_env: Fixed vendor workaround variables

    Returns:
        Tuple of (env, added):
        - env: Complete environment for the child
        - added: Only the variables this tool set
    """
    added = dict(vendor_env)
    added[DISPLAY_VAR] = display
    added[ICD_FILENAMES_VAR] = ":".join(manifest_paths)

    env = dict(base_env)
    env.update(added)
    return env, added


def plan_launch(
    state: SelectionState,
    executable: str,
    args: Sequence[str],
    display: str,
    vendor_env: Mapping[str, str],
    base_env: Optional[Mapping[str, str]] = None
) -> LaunchPlan:
    """Resolve everything for a launch without executing it.

    Raises:
        NoSelection, StaleSelection: If the selection does not resolve
        ExecutableNotFound: If the executable cannot be located
    """
    if base_env is None:
        base_env = os.environ

    manifest_paths = resolve(state)
    path = find_executable(executable, base_env.get("PATH"))
    env, added = build_environment(base_env, manifest_paths, display, vendor_env)

    return LaunchPlan(executable=path, argv=[path, *args], env=env, added_env=added)


def exec_plan(plan: LaunchPlan) -> None:
    """Replace the current process with the planned one.

    Only returns by raising.

    Raises:
        LaunchError: If execve fails (permissions, bad binary format)
    """
    logger.debug("execve %s", plan.command_line())
    try:
        os.execve(plan.executable, plan.argv, plan.env)
    except OSError as e:
        raise LaunchError(f"Failed to execute {plan.executable}: {e}") from e
