"""
CLI commands for login-shell registration.

Thin wrappers over ``shell_formula.core.services.registrar``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click


def _resolve_shell_path(ctx: click.Context, shell_path: str | None, prefix: str | None):
    """Return (formula, absolute shell path) from an argument or --prefix."""
    from shell_formula.core.config.loader import load_formula
    from shell_formula.core.errors import ConfigError

    try:
        formula = load_formula(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if shell_path is None:
        if prefix is None:
            raise click.UsageError("Give a SHELL_PATH or --prefix.")
        shell_path = str(Path(prefix).expanduser().resolve() / "bin" / formula.name)
    elif not shell_path.startswith("/"):
        raise click.BadParameter("must be an absolute path", param_hint="SHELL_PATH")

    return formula, shell_path


@click.group()
def shells() -> None:
    """Manage registration in the login-shell registry."""


@shells.command()
@click.argument("shell_path", required=False)
@click.option("--prefix", "-p", default=None, help="Use <prefix>/bin/<name>.")
@click.option("--registry", "registry_path", default=None, help="Registry file (default: /etc/shells).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(
    ctx: click.Context,
    shell_path: str | None,
    prefix: str | None,
    registry_path: str | None,
    as_json: bool,
) -> None:
    """Show whether the shell is listed in the registry."""
    from shell_formula.core.errors import RegistrationError
    from shell_formula.core.services.registrar import (
        FileShellRegistry,
        RegistrationState,
        registration_state,
    )

    formula, shell_path = _resolve_shell_path(ctx, shell_path, prefix)
    registry = FileShellRegistry(registry_path or formula.registry.path)

    try:
        state = registration_state(registry, shell_path)
    except RegistrationError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps({
            "shell": shell_path,
            "registry": str(registry.path),
            "state": state.value,
        }, indent=2))
        return

    if state is RegistrationState.REGISTERED:
        click.secho(f"✅ {shell_path} is listed in {registry.path}", fg="green")
    else:
        click.secho(f"⚠️  {shell_path} is not listed in {registry.path}", fg="yellow")


@shells.command()
@click.argument("shell_path", required=False)
@click.option("--prefix", "-p", default=None, help="Use <prefix>/bin/<name>.")
@click.option("--registry", "registry_path", default=None, help="Registry file (default: /etc/shells).")
@click.pass_context
def register(
    ctx: click.Context,
    shell_path: str | None,
    prefix: str | None,
    registry_path: str | None,
) -> None:
    """Append the shell to the registry if absent (needs write access)."""
    from shell_formula.core.errors import RegistrationError
    from shell_formula.core.services.registrar import FileShellRegistry, register_shell

    formula, shell_path = _resolve_shell_path(ctx, shell_path, prefix)
    registry = FileShellRegistry(registry_path or formula.registry.path)

    try:
        register_shell(registry, shell_path)
    except RegistrationError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        click.echo("   Run the generated post_install.sh instead, or retry with sudo.", err=True)
        sys.exit(1)

    if not ctx.obj.get("quiet", False):
        click.secho(f"✅ {shell_path} is registered in {registry.path}", fg="green")


@shells.command()
@click.argument("shell_path", required=False)
@click.option("--prefix", "-p", default=None, help="Use <prefix>/bin/<name>.")
@click.option("--registry", "registry_path", default=None, help="Registry file (default: /etc/shells).")
@click.pass_context
def script(
    ctx: click.Context,
    shell_path: str | None,
    prefix: str | None,
    registry_path: str | None,
) -> None:
    """Print the registration script without writing it."""
    from shell_formula.core.services.registrar import render_registration_script

    formula, shell_path = _resolve_shell_path(ctx, shell_path, prefix)
    click.echo(
        render_registration_script(
            shell_path,
            registry_path=registry_path or formula.registry.path,
            elevate=formula.registry.elevate,
        ),
        nl=False,
    )
