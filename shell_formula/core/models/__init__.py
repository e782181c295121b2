"""
Domain models — Pydantic types for the formula pipeline.

All models are re-exported here for convenient access:

    from shell_formula.core.models import Formula, BuildProfile, InstallPrefix
"""

from shell_formula.core.models.artifact import BinaryArtifact, PostInstallScript
from shell_formula.core.models.formula import (
    BuildSettings,
    Dependencies,
    Formula,
    RegistrySettings,
    TestSettings,
    default_test_cases,
)
from shell_formula.core.models.profile import BuildProfile, BuildType, InstallPrefix
from shell_formula.core.models.step import StepResult
from shell_formula.core.models.verification import CheckResult, TestCase, TestReport

__all__ = [
    # artifact.py
    "BinaryArtifact",
    # profile.py
    "BuildProfile",
    # formula.py
    "BuildSettings",
    "BuildType",
    # verification.py
    "CheckResult",
    "Dependencies",
    "Formula",
    "InstallPrefix",
    "PostInstallScript",
    "RegistrySettings",
    # step.py
    "StepResult",
    "TestCase",
    "TestReport",
    "TestSettings",
    "default_test_cases",
]
