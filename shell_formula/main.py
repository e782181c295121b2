"""
Shell formula — CLI entrypoint.

Usage:
    python -m shell_formula.main --help
    python -m shell_formula.main install --prefix /usr/local/Cellar/leizi/1.4.0
    python -m shell_formula.main test /usr/local/bin/leizi
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from shell_formula import __version__
from shell_formula.core.observability.logging_config import (
    ENV_LOG_FILE,
    ENV_LOG_FILE_LEVEL,
    ENV_LOG_LEVEL,
    resolve_level,
    setup_logging,
)


def _load_formula(ctx: click.Context):
    """Load the formula for this invocation, exiting on config errors."""
    from shell_formula.core.config.loader import load_formula
    from shell_formula.core.errors import ConfigError

    try:
        return load_formula(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


def _prefix(value: str):
    """Build an InstallPrefix from a CLI path, resolved to an absolute path."""
    from shell_formula.core.models.profile import InstallPrefix

    return InstallPrefix(path=Path(value).expanduser().resolve())


@click.group()
@click.version_option(version=__version__, prog_name="shell-formula")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to formula.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Shell formula — build, install, register and verify a shell."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(
            debug=debug,
            verbose=verbose,
            quiet=quiet,
            env_level=os.environ.get(ENV_LOG_LEVEL),
        ),
        log_file=os.environ.get(ENV_LOG_FILE),
        log_file_level=os.environ.get(ENV_LOG_FILE_LEVEL),
    )


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def info(ctx: click.Context, as_json: bool) -> None:
    """Show formula metadata."""
    formula = _load_formula(ctx)

    if as_json:
        click.echo(json.dumps(formula.model_dump(mode="json"), indent=2))
        return

    click.secho(f"\n🐚 {formula.name} {formula.version}", fg="cyan", bold=True)
    click.echo(f"   {formula.desc}")
    click.echo(f"   🏠 {formula.homepage}")
    click.echo(f"   📦 {formula.url}")
    click.echo(f"   ⚖️  {formula.license}")
    if formula.depends_on.build:
        click.echo(f"   Build deps:   {', '.join(formula.depends_on.build)}")
    if formula.depends_on.runtime:
        click.echo(f"   Runtime deps: {', '.join(formula.depends_on.runtime)}")
    click.echo()


@cli.command()
@click.option("--prefix", "-p", required=True, help="Install prefix (absolute or resolved).")
@click.option(
    "--source",
    "-s",
    type=click.Path(file_okay=False),
    default=None,
    help="Local source tree (default: download the release tarball).",
)
@click.option("--build-dir", type=click.Path(file_okay=False), default=None, help="Build directory.")
@click.option(
    "--build-type",
    type=click.Choice(["Debug", "Release"]),
    default=None,
    help="CMake build type (default: from formula).",
)
@click.option("--flag", "-D", "flags", multiple=True, help="Extra configure flag (repeatable).")
@click.option("--jobs", "-j", type=click.IntRange(min=1), default=None, help="Parallel build jobs.")
@click.option("--dry-run", is_flag=True, help="Show the build plan without running it.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    prefix: str,
    source: str | None,
    build_dir: str | None,
    build_type: str | None,
    flags: tuple[str, ...],
    jobs: int | None,
    dry_run: bool,
    as_json: bool,
) -> None:
    """Build the shell and install it under PREFIX."""
    from shell_formula.core.models.profile import BuildType
    from shell_formula.core.use_cases.install import run_install

    formula = _load_formula(ctx)
    result = run_install(
        formula,
        _prefix(prefix),
        source=Path(source) if source else None,
        build_dir=Path(build_dir).resolve() if build_dir else None,
        build_type=BuildType(build_type) if build_type else None,
        extra_flags=list(flags),
        jobs=jobs,
        dry_run=dry_run,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if not result.ok:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        if result.stderr_tail:
            click.echo(result.stderr_tail, err=True)
        sys.exit(1)

    if dry_run:
        click.secho("📋 Build plan:", fg="cyan", bold=True)
        for step in result.plan:
            click.echo(f"   {step['label']}: {' '.join(step['command'])}")
        return

    quiet = ctx.obj.get("quiet", False)
    click.secho(f"✅ Installed {formula.name} {formula.version} to {result.prefix}", fg="green")
    if not quiet:
        if result.script is not None:
            click.echo(f"   📝 {result.script.path}")
        click.echo()
        click.secho("==> Caveats", bold=True)
        click.echo(result.caveats)


@cli.command()
@click.option("--prefix", "-p", required=True, help="Install prefix.")
@click.pass_context
def caveats(ctx: click.Context, prefix: str) -> None:
    """Print post-install guidance."""
    from shell_formula.core.services.caveats import render_caveats

    formula = _load_formula(ctx)
    click.echo(render_caveats(formula, _prefix(prefix)), nl=False)


@cli.command(name="test")
@click.argument("binary", required=False)
@click.option("--prefix", "-p", default=None, help="Test <prefix>/bin/<name> instead of BINARY.")
@click.option("--timeout", "-t", type=click.FloatRange(min=0, min_open=True), default=None,
              help="Per-check timeout in seconds (default: from formula).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def test_cmd(
    ctx: click.Context,
    binary: str | None,
    prefix: str | None,
    timeout: float | None,
    as_json: bool,
) -> None:
    """Run the black-box checks against an installed binary."""
    from shell_formula.core.services.verification import run_tests

    formula = _load_formula(ctx)
    if binary is None:
        if prefix is None:
            raise click.UsageError("Give a BINARY path or --prefix.")
        binary = str(_prefix(prefix).binary_path(formula.name))

    report = run_tests(
        binary,
        formula.test.cases,
        timeout=timeout or formula.test.timeout,
    )

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        click.secho(f"\n🧪 {report.binary}", fg="cyan", bold=True)
        for check in report.checks:
            if check.passed:
                click.secho(f"   ✅ {check.description}", fg="green")
            else:
                click.secho(f"   ❌ {check.description} [{check.failure_kind}]", fg="red")
                click.echo(f"      expected: {check.expected!r}")
                click.echo(f"      actual:   {check.actual!r}")
        click.echo(f"\n   {report.passed}/{report.total} passed")

    if not report.all_passed:
        sys.exit(1)


# ── Register sub-command groups from shell_formula/ui/cli/ ────────

from shell_formula.ui.cli.shells import shells  # noqa: E402

cli.add_command(shells)


if __name__ == "__main__":
    cli()
