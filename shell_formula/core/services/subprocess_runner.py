"""
Core subprocess runner.

The SINGLE PLACE where external processes are started for the
formula: cmake invocations, source downloads and the verification
harness all go through ``run_command``.  Timeouts, process-group
termination and logging are centralised here.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import time

from shell_formula.core.models.step import StepResult

logger = logging.getLogger(__name__)

# Hard cap on any single invocation, whatever the caller asks for.
MAX_TIMEOUT = 3600.0

# Captured output is truncated to this many trailing characters.
OUTPUT_LIMIT = 20_000


def clamp_timeout(timeout: float | None) -> float:
    """Bound a caller-supplied timeout to ``(0, MAX_TIMEOUT]``."""
    if timeout is None or timeout <= 0 or timeout > MAX_TIMEOUT:
        return MAX_TIMEOUT
    return float(timeout)


def run_command(
    cmd: list[str],
    *,
    stage: str = "command",
    input_text: str | None = None,
    timeout: float | None = 120,
    cwd: str | os.PathLike[str] | None = None,
    env_overrides: dict[str, str] | None = None,
) -> StepResult:
    """Run a command to completion and capture its output.

    The command runs in its own session so that a timeout kills the
    whole process group (cmake spawns make, make spawns compilers).

    Args:
        cmd: Command list, no shell interpretation.
        stage: Label recorded on the result and in logs.
        input_text: Text written to the process's stdin, then closed.
        timeout: Seconds before the process group is killed.
        cwd: Working directory for the command.
        env_overrides: Extra environment variables.

    Returns:
        A StepResult. Never raises for launch failures, non-zero exits
        or timeouts; those are recorded on the result.
    """
    limit = clamp_timeout(timeout)

    env = os.environ.copy()
    if env_overrides:
        for key, value in env_overrides.items():
            env[key] = os.path.expandvars(value)

    logger.info("[%s] %s", stage, " ".join(cmd))
    start = time.monotonic()

    try:
        proc = subprocess.Popen(
            cmd,
            stdin=subprocess.PIPE if input_text is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
            cwd=cwd,
            env=env,
            start_new_session=True,
        )
    except OSError as e:
        logger.warning("[%s] cannot start %s: %s", stage, cmd[0], e)
        return StepResult(stage=stage, command=list(cmd), error=str(e))

    try:
        stdout, stderr = proc.communicate(input=input_text, timeout=limit)
    except subprocess.TimeoutExpired:
        _kill_group(proc)
        stdout, stderr = proc.communicate()
        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.warning("[%s] timed out after %gs, process group killed", stage, limit)
        return StepResult(
            stage=stage,
            command=list(cmd),
            exit_code=proc.returncode,
            stdout=(stdout or "")[-OUTPUT_LIMIT:],
            stderr=(stderr or "")[-OUTPUT_LIMIT:],
            elapsed_ms=elapsed_ms,
            timed_out=True,
        )

    elapsed_ms = int((time.monotonic() - start) * 1000)
    result = StepResult(
        stage=stage,
        command=list(cmd),
        exit_code=proc.returncode,
        stdout=(stdout or "")[-OUTPUT_LIMIT:],
        stderr=(stderr or "")[-OUTPUT_LIMIT:],
        elapsed_ms=elapsed_ms,
    )
    if result.ok:
        logger.debug("[%s] ok in %dms", stage, elapsed_ms)
    else:
        logger.debug("[%s] exit %s in %dms", stage, proc.returncode, elapsed_ms)
    return result


def _kill_group(proc: subprocess.Popen) -> None:
    """SIGKILL the process group led by ``proc``."""
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except OSError:
        proc.kill()
