"""
Verification harness — black-box checks against the installed binary.

Each TestCase runs the binary once (with optional arguments and an
optional script on stdin) and matches stdout against its expected
pattern.  Checks share no state and never short-circuit each other:
a failed, hung or missing binary turns into a failed CheckResult and
the next check still runs.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from shell_formula.core.errors import TestFailure
from shell_formula.core.models.formula import default_test_cases
from shell_formula.core.models.step import StepResult
from shell_formula.core.models.verification import CheckResult, TestCase, TestReport
from shell_formula.core.services.subprocess_runner import run_command

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

# Colour and cursor escapes the shell writes even when stdout is a pipe.
_ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")

# Captured output quoted in mismatch messages is cut to this size.
_ACTUAL_LIMIT = 500


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from ``text``."""
    return _ANSI_RE.sub("", text)


def matches(case: TestCase, output: str) -> bool:
    """Whether ``output`` satisfies the case's expected pattern."""
    if case.regex:
        return re.search(case.expected_pattern, output, re.MULTILINE) is not None
    return case.expected_pattern in output


def _assert_output(case: TestCase, result: StepResult, timeout: float) -> None:
    """Raise TestFailure unless the step produced the expected output."""
    if result.error is not None:
        raise TestFailure("ExecutionError", case.expected_pattern, "", result.error)
    if result.timed_out:
        raise TestFailure(
            "Timeout",
            case.expected_pattern,
            strip_ansi(result.stdout)[-_ACTUAL_LIMIT:],
            f"binary did not finish within {timeout:g}s",
        )

    output = strip_ansi(result.stdout)
    if not matches(case, output):
        raise TestFailure(case.failure_kind, case.expected_pattern, output[-_ACTUAL_LIMIT:])


def run_check(binary: str, case: TestCase, *, timeout: float = DEFAULT_TIMEOUT) -> CheckResult:
    """Run one TestCase and record its outcome."""
    result = run_command(
        [binary, *case.args],
        stage=f"test: {case.description}",
        input_text=case.stdin_text(),
        timeout=timeout,
    )
    try:
        _assert_output(case, result, timeout)
    except TestFailure as failure:
        logger.warning("FAIL %s — %s", case.description, failure)
        return CheckResult(
            description=case.description,
            passed=False,
            failure_kind=failure.kind,
            expected=failure.expected,
            actual=failure.actual,
            message=str(failure),
            elapsed_ms=result.elapsed_ms,
        )

    logger.info("PASS %s", case.description)
    return CheckResult(
        description=case.description,
        passed=True,
        expected=case.expected_pattern,
        elapsed_ms=result.elapsed_ms,
    )


def run_tests(
    binary_path: str | Path,
    cases: list[TestCase] | None = None,
    *,
    timeout: float = DEFAULT_TIMEOUT,
) -> TestReport:
    """Exercise the installed binary and report one entry per check.

    Args:
        binary_path: Path of the installed shell.
        cases: Checks to run (default: version, execution, array feature).
        timeout: Per-check timeout in seconds.

    Returns:
        TestReport with a CheckResult per case, in order.
    """
    binary = str(binary_path)
    report = TestReport(binary=binary)

    for case in cases if cases is not None else default_test_cases():
        report.checks.append(run_check(binary, case, timeout=timeout))

    logger.info("%d/%d checks passed for %s", report.passed, report.total, binary)
    return report
