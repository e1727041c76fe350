import os

import pytest

from icdhelper.discovery.merge import merge_manifests
from icdhelper.exceptions import ExecutableNotFound, LaunchError, NoSelection, StaleSelection
from icdhelper.launcher import resolver
from icdhelper.launcher.resolver import (
    LaunchPlan,
    build_environment,
    exec_plan,
    find_executable,
    plan_launch,
    resolve,
)
from icdhelper.output.state import SelectionState, index_entries

SYS = "/usr/share/vulkan/icd.d"
VENDOR = {"AMD_VULKAN_ICD": "RADV", "DISABLE_LAYER_AMD_SWITCHABLE_GRAPHICS_1": "1"}


@pytest.fixture
def state():
    entries = merge_manifests([
        f"{SYS}/radeon_icd.i686.json",
        f"{SYS}/radeon_icd.x86_64.json",
        f"{SYS}/intel_icd.x86_64.json",
    ])
    return SelectionState(entries=index_entries(entries), current="radeon_icd.(i686,x86_64)")


def test_resolve_returns_selected_manifests(state):
    assert resolve(state) == [f"{SYS}/radeon_icd.i686.json", f"{SYS}/radeon_icd.x86_64.json"]


def test_resolve_without_selection(state):
    state.current = None
    with pytest.raises(NoSelection):
        resolve(state)


def test_resolve_stale_selection(state):
    state.current = "nvidia_icd()"
    with pytest.raises(StaleSelection) as exc:
        resolve(state)
    assert exc.value.name == "nvidia_icd()"


def test_find_executable_direct_path(executable):
    assert find_executable(str(executable)) == str(executable)


def test_find_executable_searches_path(executable):
    found = find_executable("vkcube", path_env=os.pathsep.join(["/nonexistent", str(executable.parent)]))
    assert found == str(executable)


def test_find_executable_missing(tmp_path):
    with pytest.raises(ExecutableNotFound):
        find_executable("no-such-program", path_env=str(tmp_path))
    with pytest.raises(ExecutableNotFound):
        find_executable(str(tmp_path / "missing" / "game"))


def test_build_environment():
    base = {"PATH": "/usr/bin", "HOME": "/home/user", "DISPLAY": ":7", "AMD_VULKAN_ICD": "AMDVLK"}

    env, added = build_environment(base, ["/a/one.json", "/b/two.json"], ":0", VENDOR)

    assert env["VK_ICD_FILENAMES"] == "/a/one.json:/b/two.json"
    assert env["DISPLAY"] == ":0"
    assert env["AMD_VULKAN_ICD"] == "RADV"
    assert env["DISABLE_LAYER_AMD_SWITCHABLE_GRAPHICS_1"] == "1"
    assert env["PATH"] == "/usr/bin"
    assert env["HOME"] == "/home/user"
    assert set(added) == {"VK_ICD_FILENAMES", "DISPLAY", *VENDOR}
    # parent mapping untouched
    assert base["DISPLAY"] == ":7"


def test_plan_launch(state, executable):
    plan = plan_launch(
        state, "vkcube", ["--c", "100"], ":1", VENDOR,
        base_env={"PATH": str(executable.parent)},
    )

    assert plan.executable == str(executable)
    assert plan.argv == [str(executable), "--c", "100"]
    assert plan.env["VK_ICD_FILENAMES"] == f"{SYS}/radeon_icd.i686.json:{SYS}/radeon_icd.x86_64.json"
    assert plan.command_line() == f"{executable} --c 100"


def test_plan_launch_checks_selection_before_executable(state):
    state.current = "gone()"
    with pytest.raises(StaleSelection):
        plan_launch(state, "no-such-program", [], ":0", VENDOR, base_env={"PATH": ""})


def test_exec_plan_calls_execve(monkeypatch):
    calls = []
    monkeypatch.setattr(resolver.os, "execve", lambda *args: calls.append(args))
    plan = LaunchPlan(executable="/bin/true", argv=["/bin/true", "x"], env={"A": "1"})

    exec_plan(plan)

    assert calls == [("/bin/true", ["/bin/true", "x"], {"A": "1"})]


def test_exec_plan_wraps_os_error(monkeypatch):
    def fail(*args):
        raise PermissionError("denied")

    monkeypatch.setattr(resolver.os, "execve", fail)
    with pytest.raises(LaunchError):
        exec_plan(LaunchPlan(executable="/x", argv=["/x"], env={}))
