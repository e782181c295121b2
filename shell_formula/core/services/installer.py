"""
Installer — place the registration helper next to the installed binary.

The cmake install step has already copied the binary to
``<prefix>/bin/<name>``.  The installer writes
``<prefix>/post_install.sh`` (mode 0755) that registers that binary in
the shell registry when the user runs it.  Nothing here escalates
privileges.
"""

from __future__ import annotations

import logging

from shell_formula.core.errors import InstallError
from shell_formula.core.models.artifact import BinaryArtifact, PostInstallScript
from shell_formula.core.models.profile import InstallPrefix
from shell_formula.core.persistence.atomic import write_atomic
from shell_formula.core.services.registrar import (
    DEFAULT_REGISTRY_PATH,
    render_registration_script,
)

logger = logging.getLogger(__name__)

SCRIPT_MODE = 0o755


def install(
    artifact: BinaryArtifact,
    prefix: InstallPrefix,
    *,
    registry_path: str = DEFAULT_REGISTRY_PATH,
    elevate: str = "sudo",
) -> PostInstallScript:
    """Write the post-install registration script under ``prefix``.

    Args:
        artifact: The built target.
        prefix: Install prefix the build installed into.
        registry_path: Registry the script appends to.
        elevate: Elevation command embedded in the script.

    Returns:
        The written PostInstallScript.

    Raises:
        InstallError: Missing prefix, missing binary or write failure.
    """
    if not prefix.path.is_dir():
        raise InstallError(f"Install prefix does not exist: {prefix}")

    binary = prefix.binary_path(artifact.target)
    if not binary.is_file():
        raise InstallError(f"Installed binary not found: {binary}")

    content = render_registration_script(
        str(binary), registry_path=registry_path, elevate=elevate,
    )
    script_path = prefix.post_install_path

    try:
        write_atomic(script_path, content, mode=SCRIPT_MODE)
    except OSError as e:
        raise InstallError(f"Cannot write {script_path}: {e}") from e

    logger.info("Wrote %s", script_path)
    return PostInstallScript(
        path=script_path,
        content=content,
        shell_path=str(binary),
        registry_path=registry_path,
    )
