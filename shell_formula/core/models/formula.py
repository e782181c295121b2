"""
Formula model — the package description loaded from formula.yml.

This is the canonical truth about what is being packaged: where the
source comes from, what it depends on, how to build it and how to
verify the installed binary. Without a formula.yml, the defaults below
describe Leizi Shell 1.4.0.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from shell_formula.core.models.profile import BuildType
from shell_formula.core.models.verification import TestCase


def default_test_cases() -> list[TestCase]:
    """Version, basic execution and array-builtin checks."""
    return [
        TestCase(
            description="version string names the product",
            args=["--version"],
            expected_pattern="Leizi Shell",
            failure_kind="VersionMismatch",
        ),
        TestCase(
            description="piped script runs echo",
            input_script=["echo hello", "exit"],
            expected_pattern="hello",
            failure_kind="ExecutionMismatch",
        ),
        TestCase(
            description="array builtin creates a three-element array",
            input_script=["array test=(1 2 3)", "exit"],
            expected_pattern=r"Array test created with 3 elements",
            regex=True,
            failure_kind="FeatureMismatch",
        ),
    ]


class Dependencies(BaseModel):
    """Tools needed to build the formula and libraries it links against."""

    build: list[str] = Field(default_factory=lambda: ["cmake"])
    runtime: list[str] = Field(default_factory=lambda: ["readline"])


class BuildSettings(BaseModel):
    """Defaults for the BuildProfile and per-stage timeouts (seconds)."""

    build_type: BuildType = BuildType.RELEASE
    extra_flags: list[str] = Field(default_factory=list)
    jobs: int | None = None
    configure_timeout: float = 300
    build_timeout: float = 1200
    install_timeout: float = 300


class TestSettings(BaseModel):
    """Verification harness configuration."""

    __test__ = False

    timeout: float = 30
    cases: list[TestCase] = Field(default_factory=default_test_cases)


class RegistrySettings(BaseModel):
    """Where and how the shell gets registered."""

    path: str = "/etc/shells"
    elevate: str = "sudo"


class Formula(BaseModel):
    """Root formula identity — loaded from formula.yml."""

    name: str = "leizi"
    product: str = "Leizi Shell"
    version: str = "1.4.0"
    desc: str = "Modern POSIX-compatible shell with ZSH-style arrays and beautiful prompts"
    homepage: str = "https://github.com/Zixiao-System/leizi-shell"
    url: str = "https://github.com/Zixiao-System/leizi-shell/archive/v1.4.0.tar.gz"
    sha256: str = ""
    license: str = "GPL-3.0"
    head: str = "https://github.com/Zixiao-System/leizi-shell.git"
    config_file: str = "~/.config/leizi/config"

    depends_on: Dependencies = Field(default_factory=Dependencies)
    build: BuildSettings = Field(default_factory=BuildSettings)
    test: TestSettings = Field(default_factory=TestSettings)
    registry: RegistrySettings = Field(default_factory=RegistrySettings)

    @property
    def readme_url(self) -> str:
        return f"{self.homepage}/blob/main/README.md"
