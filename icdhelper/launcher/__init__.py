"""Launch modules: resolve the selected driver and exec the target program.

Modules:
    resolver: Selection resolution, executable lookup, environment, execve
"""

from .resolver import (
    LaunchPlan,
    build_environment,
    exec_plan,
    find_executable,
    plan_launch,
    resolve,
)

__all__ = [
    "LaunchPlan",
    "build_environment",
    "exec_plan",
    "find_executable",
    "plan_launch",
    "resolve",
]
