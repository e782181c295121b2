"""
Build driver — configure, compile and install with CMake.

Three sequential invocations, each gating the next:
    1. ``cmake -S <source> -B <build> -DCMAKE_BUILD_TYPE=<type> ...``
    2. ``cmake --build <build>``
    3. ``cmake --install <build>``

The first non-zero exit aborts the plan with a BuildError; later steps
never run.  Build failures are not retried.
"""

from __future__ import annotations

import logging
from typing import Any

from shell_formula.core.errors import BuildError, StepTimeoutError
from shell_formula.core.models.artifact import BinaryArtifact
from shell_formula.core.models.profile import BuildProfile, InstallPrefix
from shell_formula.core.models.step import StepResult
from shell_formula.core.services.subprocess_runner import run_command

logger = logging.getLogger(__name__)

# Per-stage timeouts (seconds) when the caller supplies none.
DEFAULT_TIMEOUTS: dict[str, float] = {
    "configure": 300,
    "build": 1200,
    "install": 300,
}

STAGES = ("configure", "build", "install")


def std_cmake_args(prefix: InstallPrefix) -> list[str]:
    """Standard configure arguments for installing under ``prefix``.

    These are the target-specific flags the caller hands to the driver;
    the driver itself never reads the prefix.
    """
    return [
        f"-DCMAKE_INSTALL_PREFIX={prefix.path}",
        "-DCMAKE_INSTALL_LIBDIR=lib",
        "-DCMAKE_FIND_FRAMEWORK=LAST",
        "-DCMAKE_VERBOSE_MAKEFILE=ON",
        "-DBUILD_TESTING=OFF",
        "-Wno-dev",
    ]


def cmake_plan(
    profile: BuildProfile,
    timeouts: dict[str, float] | None = None,
) -> list[dict[str, Any]]:
    """Generate the three plan steps for a CMake build.

    Args:
        profile: The build profile.
        timeouts: Optional per-stage timeout overrides.

    Returns:
        Ordered list of step dicts with ``stage``, ``label``,
        ``command`` and ``timeout``.
    """
    limits = {**DEFAULT_TIMEOUTS, **(timeouts or {})}
    source = str(profile.source_path)
    build_dir = str(profile.build_dir)

    configure_cmd = [
        "cmake", "-S", source, "-B", build_dir,
        f"-DCMAKE_BUILD_TYPE={profile.build_type.value}",
        *profile.extra_flags,
    ]

    build_cmd = ["cmake", "--build", build_dir]
    if profile.jobs:
        build_cmd += ["-j", str(profile.jobs)]

    return [
        {
            "stage": "configure",
            "label": "CMake configure",
            "command": configure_cmd,
            "timeout": limits["configure"],
        },
        {
            "stage": "build",
            "label": f"CMake build ({profile.build_type.value})",
            "command": build_cmd,
            "timeout": limits["build"],
        },
        {
            "stage": "install",
            "label": "CMake install",
            "command": ["cmake", "--install", build_dir],
            "timeout": limits["install"],
        },
    ]


def _check(result: StepResult, timeout: float) -> StepResult:
    """Turn a failed step into the matching exception."""
    if result.timed_out:
        raise StepTimeoutError(result.stage, timeout)
    if not result.ok:
        exit_code = result.exit_code if result.exit_code is not None else 127
        raise BuildError(result.stage, exit_code, result.stderr_tail())
    return result


def build(
    profile: BuildProfile,
    *,
    timeouts: dict[str, float] | None = None,
) -> BinaryArtifact:
    """Drive the external build system to produce and install the binary.

    Args:
        profile: Source/build paths, build type and configure flags.
        timeouts: Optional per-stage timeout overrides.

    Returns:
        BinaryArtifact recording every step result.

    Raises:
        BuildError: A step exited non-zero (no later step is run).
        StepTimeoutError: A step exceeded its timeout and was killed.
    """
    try:
        profile.build_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise BuildError("configure", 1, f"Cannot create build directory {profile.build_dir}: {e}") from e
    steps: list[StepResult] = []

    for step in cmake_plan(profile, timeouts):
        logger.info("%s", step["label"])
        result = run_command(
            step["command"],
            stage=step["stage"],
            timeout=step["timeout"],
            cwd=profile.source_path,
        )
        steps.append(_check(result, step["timeout"]))

    logger.info("Built %s in %s", profile.target, profile.build_dir)
    return BinaryArtifact(target=profile.target, build_dir=profile.build_dir, steps=steps)
