"""
Error taxonomy for the formula pipeline.

Fatal errors (build, install, source, config) abort the pipeline.
Registration errors surface only when the user registers the shell.
Test failures are recorded per check by the verification harness and
never abort the other checks.
"""

from __future__ import annotations


class FormulaError(Exception):
    """Base class for every error raised by the formula."""


class ConfigError(FormulaError):
    """Raised when formula configuration is invalid or missing."""


class SourceError(FormulaError):
    """Raised when the source tree cannot be fetched, verified or unpacked."""


class BuildError(FormulaError):
    """A build-system invocation exited non-zero.

    Attributes:
        stage:       Pipeline stage that failed (configure, build, install, toolchain).
        exit_code:   Exit status of the failed command.
        stderr_tail: Last part of the command's diagnostic output.
    """

    def __init__(self, stage: str, exit_code: int, stderr_tail: str = "") -> None:
        self.stage = stage
        self.exit_code = exit_code
        self.stderr_tail = stderr_tail
        super().__init__(f"{stage} failed (exit {exit_code})")


class InstallError(FormulaError):
    """Raised when install artifacts cannot be placed under the prefix."""


class RegistrationError(FormulaError):
    """Raised when the shell registry cannot be read or appended to."""


class StepTimeoutError(FormulaError, TimeoutError):
    """An external process exceeded its time budget and was terminated."""

    def __init__(self, stage: str, timeout: float) -> None:
        self.stage = stage
        self.timeout = timeout
        super().__init__(f"{stage} timed out after {timeout:g}s")


class TestFailure(FormulaError):
    """A verification check did not observe the expected behaviour.

    Attributes:
        kind:     Failure kind (``VersionMismatch``, ``ExecutionMismatch``, ...).
        expected: The literal expected pattern.
        actual:   The output actually captured.
    """

    __test__ = False

    def __init__(self, kind: str, expected: str, actual: str, message: str = "") -> None:
        self.kind = kind
        self.expected = expected
        self.actual = actual
        super().__init__(message or f"{kind}: expected {expected!r}, got {actual!r}")
