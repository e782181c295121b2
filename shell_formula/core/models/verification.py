"""
Verification models — static test cases and their per-check results.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


class TestCase(BaseModel):
    """One black-box check run against the installed binary.

    Attributes:
        description:      Human-readable label.
        args:             Extra command-line arguments (e.g. ``["--version"]``).
        input_script:     Lines fed to the binary's stdin (empty = no stdin).
        expected_pattern: Substring, or regex when ``regex`` is set.
        regex:            Treat ``expected_pattern`` as a regular expression.
        failure_kind:     Failure label reported on mismatch.
    """

    __test__ = False

    description: str
    args: list[str] = Field(default_factory=list)
    input_script: list[str] = Field(default_factory=list)
    expected_pattern: str
    regex: bool = False
    failure_kind: str = "ExecutionMismatch"

    @field_validator("expected_pattern")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        # An empty pattern matches anything, including error output.
        if not value:
            raise ValueError("expected_pattern must not be empty")
        return value

    @model_validator(mode="after")
    def _regex_compiles(self) -> TestCase:
        if self.regex:
            try:
                re.compile(self.expected_pattern)
            except re.error as e:
                raise ValueError(f"invalid expected_pattern regex {self.expected_pattern!r}: {e}") from e
        return self

    def stdin_text(self) -> str | None:
        """The input script joined into newline-terminated text."""
        if not self.input_script:
            return None
        return "".join(f"{line}\n" for line in self.input_script)


class CheckResult(BaseModel):
    """Outcome of one TestCase."""

    description: str
    passed: bool
    failure_kind: str | None = None
    expected: str = ""
    actual: str = ""
    message: str = ""
    elapsed_ms: int = 0


class TestReport(BaseModel):
    """Aggregated verification outcome, one entry per check."""

    __test__ = False

    binary: str
    checks: list[CheckResult] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.checks)

    @property
    def passed(self) -> int:
        return sum(1 for c in self.checks if c.passed)

    @property
    def failed(self) -> int:
        return self.total - self.passed

    @property
    def all_passed(self) -> bool:
        return self.failed == 0

    def failures(self) -> list[CheckResult]:
        return [c for c in self.checks if not c.passed]

    def to_dict(self) -> dict[str, Any]:
        return {
            "binary": self.binary,
            "status": "ok" if self.all_passed else "failed",
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "checks": [c.model_dump(mode="json") for c in self.checks],
        }
