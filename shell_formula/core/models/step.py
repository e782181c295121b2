"""
StepResult — the outcome of one external process invocation.

The subprocess runner NEVER raises for a failed or hung process; it
returns a StepResult and the calling service decides what the failure
means (BuildError, StepTimeoutError, a failed check, ...).
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class StepResult(BaseModel):
    """Exit status and captured output of a single command."""

    stage: str
    command: list[str] = Field(default_factory=list)
    exit_code: int | None = None
    stdout: str = ""
    stderr: str = ""
    elapsed_ms: int = 0
    timed_out: bool = False
    error: str | None = None   # launch failure (binary missing, not executable)

    @property
    def ok(self) -> bool:
        """Whether the command ran to completion with exit status 0."""
        return self.exit_code == 0 and not self.timed_out and self.error is None

    def stderr_tail(self, limit: int = 2000) -> str:
        """Last ``limit`` characters of diagnostic output."""
        text = self.stderr or self.error or ""
        return text[-limit:]
