#!/usr/bin/env python3
"""ICD Helper main entry point.

Pick the Vulkan driver an application should use on a multi-GPU desktop.

Usage:
    icdhelper -l                  # list drivers (exit 1 if the set changed)
    icdhelper -u INDEX            # select the driver shown at INDEX
    icdhelper -o                  # rescan and accept the current listing
    icdhelper EXECUTABLE [ARGS]   # launch with the selected driver

Every command:
    1. Ensures ~/.config/ICDHlpr/config.json exists
    2. Scans the manifest directories and merges per-architecture manifests
    3. Reconciles the fresh listing with the cached one and saves it

Launching additionally resolves the selected driver, finds a working X
display and replaces this process with the target program, exporting
VK_ICD_FILENAMES and the vendor workaround variables.
"""

import argparse
import json
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from . import __version__
from .config.settings import Settings, load_settings
from .discovery.merge import merge_manifests
from .exceptions import (
    DirectoryNotFound,
    ICDHelperError,
    NoWorkingDisplay,
    SelectionError,
    UsageError,
)
from .launcher.resolver import LaunchPlan, exec_plan, plan_launch
from .output.state import SelectionState, SelectionStore, compare_entries, reconcile, select_index
from .scanners.manifests import scan
from .utils.constants import DISPLAY_VAR
from .utils.display import check_display, find_working_display


# =============================================================================
# Commands
# =============================================================================

@dataclass(frozen=True)
class HelpCommand:
    pass


@dataclass(frozen=True)
class ListCommand:
    as_json: bool = False


@dataclass(frozen=True)
class OverrideCommand:
    as_json: bool = False


@dataclass(frozen=True)
class SelectCommand:
    index: int


@dataclass(frozen=True)
class LaunchCommand:
    executable: str
    args: tuple[str, ...] = ()


Command = Union[HelpCommand, ListCommand, OverrideCommand, SelectCommand, LaunchCommand]


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting with status 2."""

    def error(self, message):
        raise UsageError(message)


def build_parser(prog: str) -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog=prog,
        description="ICD Helper for Vulkan applications",
    )
    parser.add_argument("-u", "--update", type=int, metavar="INDEX",
                        help="Update using ICD driver at INDEX")
    parser.add_argument("-o", "--override", action="store_true",
                        help="Override existing ICD driver cache")
    parser.add_argument("-l", "--list", action="store_true",
                        help="List all ICD drivers")
    parser.add_argument("--json", action="store_true",
                        help="Print the listing as JSON (with -l or -o)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show debug output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("executable", nargs="?",
                        help="Executable file")
    parser.add_argument("args", nargs=argparse.REMAINDER,
                        help="Arguments passed to the executable")
    return parser


def split_target_args(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split argv after the executable name.

    Everything after the executable belongs to the launched program and is
    passed on verbatim, including a literal "--".
    """
    argv = list(argv)
    i = 0
    while i < len(argv):
        token = argv[i]
        if token == "--":
            return argv[:i + 2], argv[i + 2:]
        if token in ("-u", "--update"):
            i += 2
            continue
        if token.startswith("-") and token != "-":
            i += 1
            continue
        return argv[:i + 1], argv[i + 1:]
    return argv, []


def parse_command(parser: argparse.ArgumentParser, argv: Sequence[str]) -> tuple[Command, argparse.Namespace]:
    """Turn command-line arguments into exactly one command.

    Raises:
        UsageError: On parse errors or when commands are combined
    """
    own_args, target_args = split_target_args(argv)
    ns = parser.parse_args(own_args)
    ns.args = target_args

    given = []
    if ns.update is not None:
        given.append("--update")
    if ns.override:
        given.append("--override")
    if ns.list:
        given.append("--list")
    if ns.executable is not None:
        given.append("executable")

    if len(given) > 1:
        raise UsageError(f"Options {', '.join(given)} cannot be used together")

    if ns.json and not (ns.list or ns.override):
        raise UsageError("--json is only valid with --list or --override")

    if ns.update is not None:
        return SelectCommand(ns.update), ns
    if ns.override:
        return OverrideCommand(ns.json), ns
    if ns.list:
        return ListCommand(ns.json), ns
    if ns.executable is not None:
        return LaunchCommand(ns.executable, tuple(ns.args)), ns
    return HelpCommand(), ns


# =============================================================================
# Output helpers
# =============================================================================

def warn(message: str) -> None:
    print(f"Warning: {message}", file=sys.stderr)


def error(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)


def print_listing(state: SelectionState) -> None:
    for indexed in state.entries:
        marker = " *" if indexed.display_name == state.current else ""
        print(f"{indexed.index}: {indexed.display_name}{marker}")


def print_drift(diff: dict[str, Any]) -> None:
    warn("ICDs have changed")
    for name in diff["added"]:
        print(f"  + {name}", file=sys.stderr)
    for name in diff["removed"]:
        print(f"  - {name}", file=sys.stderr)
    for move in diff["moved"]:
        print(f"  ~ {move['name']} ({move['before']} -> {move['after']})", file=sys.stderr)


def listing_to_dict(state: SelectionState, changed: bool, diff: dict[str, Any], warnings: list[str]) -> dict[str, Any]:
    return {
        "entries": [
            {"index": indexed.index, **indexed.entry.to_dict()}
            for indexed in state.entries
        ],
        "current": state.current,
        "changed": changed,
        "drift": diff,
        "warnings": warnings,
    }


# =============================================================================
# Command implementations
# =============================================================================

@dataclass
class RefreshResult:
    state: SelectionState
    changed: bool
    diff: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


def refresh(settings: Settings, store: SelectionStore) -> RefreshResult:
    """Scan, merge, reconcile against the cache and save.

    Raises:
        DirectoryNotFound: If the system manifest directory is missing
        StoreIO: If the store cannot be read or written
    """
    scan_result = scan(settings.system_root, settings.user_root)
    entries = merge_manifests(scan_result.paths, scan_result.roots)

    previous = store.load()
    state, changed = reconcile(entries, previous)
    diff = compare_entries(previous.entries, state.entries)
    store.save(state)

    return RefreshResult(state=state, changed=changed, diff=diff, warnings=scan_result.warnings)


def run_listing(settings: Settings, store: SelectionStore, as_json: bool) -> RefreshResult:
    result = refresh(settings, store)

    if as_json:
        print(json.dumps(listing_to_dict(result.state, result.changed, result.diff, result.warnings), indent=2))
        return result

    for message in result.warnings:
        warn(message)
    print_listing(result.state)
    if result.changed:
        print_drift(result.diff)
    return result


def run_select(settings: Settings, store: SelectionStore, index: int) -> int:
    result = run_listing(settings, store, as_json=False)
    state = select_index(result.state, index)
    print(f"Updating to {state.current}")
    store.save(state)
    return 0


def run_launch(
    settings: Settings,
    store: SelectionStore,
    command: LaunchCommand,
    env: Mapping[str, str],
    probe: Callable[[str], bool],
    execute: Callable[[LaunchPlan], None]
) -> int:
    result = refresh(settings, store)
    for message in result.warnings:
        warn(message)
    if result.changed:
        print_drift(result.diff)

    display = find_working_display(
        env.get(DISPLAY_VAR),
        settings.display_candidates,
        probe=probe,
        report=lambda name: print(f"Checking display {name}"),
    )

    plan = plan_launch(
        result.state,
        command.executable,
        command.args,
        display,
        settings.vendor_env,
        base_env=env,
    )

    if not command.args:
        print("Running without positional arguments")

    print("Environment variables:")
    for name, value in plan.added_env.items():
        print(f"{name}={value}")
    print(f"Executing: {plan.command_line()}", flush=True)

    execute(plan)
    return 0


def dispatch(
    command: Command,
    settings: Settings,
    env: Optional[Mapping[str, str]] = None,
    probe: Callable[[str], bool] = check_display,
    execute: Callable[[LaunchPlan], None] = exec_plan
) -> int:
    """Run one command and convert every failure into an exit code.

    Args:
        command: Parsed command
        settings: Resolved settings
        env: Environment for launching (default: os.environ)
        probe: Display probe (injected in tests)
        execute: Process replacement (injected in tests)

    Returns:
        Process exit code
    """
    if env is None:
        env = os.environ

    prog = settings.program_name
    store = SelectionStore(settings.store_path)

    try:
        store.ensure_exists()

        if isinstance(command, ListCommand):
            result = run_listing(settings, store, command.as_json)
            return 1 if result.changed else 0
        if isinstance(command, OverrideCommand):
            run_listing(settings, store, command.as_json)
            return 0
        if isinstance(command, SelectCommand):
            return run_select(settings, store, command.index)
        if isinstance(command, LaunchCommand):
            return run_launch(settings, store, command, env, probe, execute)
        raise TypeError(f"Unhandled command: {command!r}")

    except DirectoryNotFound as e:
        error(str(e))
        print("Please make sure the Vulkan drivers are installed", file=sys.stderr)
        return 1
    except SelectionError as e:
        error(str(e))
        print(f"Use {prog} -l to list all ICD drivers", file=sys.stderr)
        print(f"Use {prog} -u <index> to select an ICD driver", file=sys.stderr)
        return 1
    except NoWorkingDisplay as e:
        error(str(e))
        print("Please set DISPLAY environment variable", file=sys.stderr)
        print("or review your X11 configuration", file=sys.stderr)
        return 1
    except ICDHelperError as e:
        error(str(e))
        return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for ICD Helper."""
    prog = Path(sys.argv[0]).name or "icdhelper"
    if prog in ("__main__.py", "main.py"):
        prog = "icdhelper"
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser(prog)

    try:
        command, ns = parse_command(parser, argv)
    except UsageError as e:
        parser.print_usage(sys.stderr)
        error(str(e))
        return 1

    if isinstance(command, HelpCommand):
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(prog)
    except ICDHelperError as e:
        error(str(e))
        return 1

    return dispatch(command, settings)


if __name__ == "__main__":
    sys.exit(main())
