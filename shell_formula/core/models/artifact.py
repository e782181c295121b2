"""
Artifacts produced by the build driver and the installer.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from shell_formula.core.models.step import StepResult


class BinaryArtifact(BaseModel):
    """A successfully built and installed target."""

    target: str
    build_dir: Path
    steps: list[StepResult] = Field(default_factory=list)


class PostInstallScript(BaseModel):
    """The generated shell registration script.

    Written once at install time with mode 0755; never rewritten.
    """

    path: Path
    content: str
    shell_path: str      # entry appended to the registry
    registry_path: str   # usually /etc/shells
