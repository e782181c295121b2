"""
Build profile and install prefix — the inputs of the build pipeline.

A BuildProfile is created once from CLI/config input and consumed once
by the build driver. It is frozen: nothing downstream may rewrite it.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BuildType(str, Enum):
    """CMake build type."""

    DEBUG = "Debug"
    RELEASE = "Release"


class BuildProfile(BaseModel):
    """Parameters controlling how the source tree is compiled.

    Attributes:
        source_path: Directory holding the top-level CMakeLists.txt.
        build_dir:   Out-of-tree build directory.
        build_type:  Debug or Release.
        extra_flags: Additional configure arguments, passed in order.
        target:      Name of the binary the build installs under ``bin/``.
        jobs:        Parallel build jobs (None = build tool default).
    """

    model_config = ConfigDict(frozen=True)

    source_path: Path
    build_dir: Path
    build_type: BuildType = BuildType.RELEASE
    extra_flags: tuple[str, ...] = ()
    target: str = "leizi"
    jobs: int | None = Field(default=None, ge=1)

    @field_validator("source_path", "build_dir")
    @classmethod
    def _resolve(cls, value: Path) -> Path:
        return value.expanduser().resolve()


class InstallPrefix(BaseModel):
    """Root directory under which the binary and helper script land."""

    model_config = ConfigDict(frozen=True)

    path: Path

    @field_validator("path")
    @classmethod
    def _must_be_absolute(cls, value: Path) -> Path:
        if not value.is_absolute():
            raise ValueError(f"install prefix must be an absolute path, got {value}")
        return value

    @property
    def bin_dir(self) -> Path:
        return self.path / "bin"

    def binary_path(self, name: str) -> Path:
        """Final location of an installed executable."""
        return self.bin_dir / name

    @property
    def post_install_path(self) -> Path:
        return self.path / "post_install.sh"

    def __str__(self) -> str:
        return str(self.path)
