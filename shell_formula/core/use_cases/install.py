"""
Install use case — source → toolchain → build → installer → caveats.

This is the top-level orchestrator behind ``shell-formula install``.
Each stage gates the next; the first failure stops the pipeline and is
captured on the result.  Registration is NOT performed: the generated
script is left for the user.  Verification runs separately.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from shell_formula.core.errors import BuildError, FormulaError, SourceError
from shell_formula.core.models.artifact import BinaryArtifact, PostInstallScript
from shell_formula.core.models.formula import Formula
from shell_formula.core.models.profile import BuildProfile, BuildType, InstallPrefix
from shell_formula.core.services import build_driver, installer
from shell_formula.core.services.caveats import render_caveats
from shell_formula.core.services.source import prepare_source
from shell_formula.core.services.toolchain import check_toolchain

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """Result of running the install pipeline."""

    prefix: InstallPrefix | None = None
    profile: BuildProfile | None = None
    plan: list[dict[str, Any]] = field(default_factory=list)
    artifact: BinaryArtifact | None = None
    script: PostInstallScript | None = None
    caveats: str = ""
    dry_run: bool = False
    error: str | None = None
    error_kind: str | None = None
    stage: str | None = None
    stderr_tail: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        result: dict = {"ok": self.ok, "dry_run": self.dry_run}
        if self.prefix:
            result["prefix"] = str(self.prefix)
        if self.plan:
            result["plan"] = [
                {"stage": s["stage"], "command": s["command"]} for s in self.plan
            ]
        if self.error:
            result["error"] = self.error
            result["error_kind"] = self.error_kind
            if self.stage:
                result["stage"] = self.stage
            if self.stderr_tail:
                result["stderr_tail"] = self.stderr_tail
            return result
        if self.script:
            result["post_install"] = str(self.script.path)
        if self.artifact:
            result["steps"] = [
                {"stage": s.stage, "exit_code": s.exit_code, "elapsed_ms": s.elapsed_ms}
                for s in self.artifact.steps
            ]
        result["caveats"] = self.caveats
        return result


def make_profile(
    formula: Formula,
    prefix: InstallPrefix,
    source: Path,
    build_dir: Path | None = None,
    build_type: BuildType | None = None,
    extra_flags: list[str] | None = None,
    jobs: int | None = None,
) -> BuildProfile:
    """Assemble the immutable BuildProfile from formula defaults and overrides."""
    settings = formula.build
    flags = build_driver.std_cmake_args(prefix) + list(settings.extra_flags)
    flags += list(extra_flags or [])
    return BuildProfile(
        source_path=source,
        build_dir=build_dir or (source / "build"),
        build_type=build_type or settings.build_type,
        extra_flags=tuple(flags),
        target=formula.name,
        jobs=jobs if jobs is not None else settings.jobs,
    )


def run_install(
    formula: Formula,
    prefix: InstallPrefix,
    *,
    source: Path | None = None,
    build_dir: Path | None = None,
    build_type: BuildType | None = None,
    extra_flags: list[str] | None = None,
    jobs: int | None = None,
    workdir: Path | None = None,
    dry_run: bool = False,
) -> InstallResult:
    """Build the formula and install it under ``prefix``.

    Args:
        formula: What to build.
        prefix: Where to install.
        source: Local source tree (default: download ``formula.url``).
        build_dir: Build directory (default: ``<source>/build``).
        build_type: Override the formula's build type.
        extra_flags: Extra configure flags appended after the standard ones.
        jobs: Parallel build jobs.
        workdir: Scratch directory for downloads (default: a temp dir,
            removed once the install succeeds).
        dry_run: Plan the cmake steps but run nothing.

    Returns:
        InstallResult; ``error`` is set when a stage failed.
    """
    result = InstallResult(prefix=prefix, dry_run=dry_run)
    scratch: Path | None = None

    try:
        if source is not None:
            source = prepare_source(formula, workdir or source, source)
        elif dry_run:
            # Nothing to download in a dry run; plan against the cwd.
            source = Path.cwd()
        elif workdir is not None:
            source = prepare_source(formula, workdir)
        else:
            scratch = _make_scratch(formula.name)
            source = prepare_source(formula, scratch)

        profile = make_profile(
            formula, prefix, source, build_dir, build_type, extra_flags, jobs,
        )
        result.profile = profile
        timeouts = {
            "configure": formula.build.configure_timeout,
            "build": formula.build.build_timeout,
            "install": formula.build.install_timeout,
        }
        result.plan = build_driver.cmake_plan(profile, timeouts)
        if dry_run:
            return result

        check_toolchain(formula.depends_on.build)
        result.artifact = build_driver.build(profile, timeouts=timeouts)
        result.script = installer.install(
            result.artifact,
            prefix,
            registry_path=formula.registry.path,
            elevate=formula.registry.elevate,
        )
        result.caveats = render_caveats(formula, prefix)

    except BuildError as e:
        result.error = str(e)
        result.error_kind = type(e).__name__
        result.stage = e.stage
        result.stderr_tail = e.stderr_tail
    except FormulaError as e:
        result.error = str(e)
        result.error_kind = type(e).__name__
        result.stage = getattr(e, "stage", None)

    if result.error:
        logger.error("Install failed: %s", result.error)
        if scratch is not None:
            logger.info("Keeping %s for inspection", scratch)
    elif scratch is not None:
        shutil.rmtree(scratch, ignore_errors=True)
        logger.debug("Removed scratch directory %s", scratch)
    return result


def _make_scratch(name: str) -> Path:
    """Temporary directory for the downloaded tarball and its unpacked tree."""
    try:
        return Path(tempfile.mkdtemp(prefix=f"{name}-src-"))
    except OSError as e:
        raise SourceError(f"Cannot create a scratch directory: {e}") from e
