"""
Build toolchain validation.

Checks that every build-time dependency of the formula (``cmake``) is
on PATH before the configure step runs.
"""

from __future__ import annotations

import logging
import shutil

from shell_formula.core.errors import BuildError

logger = logging.getLogger(__name__)

# Exit status shells use for "command not found".
EXIT_NOT_FOUND = 127


def check_toolchain(tools: list[str], *, path: str | None = None) -> list[str]:
    """Validate that required build tools are installed.

    Args:
        tools: Required tool names, e.g. ``["cmake"]``.
        path: Optional PATH override for the lookup.

    Returns:
        Resolved absolute paths of the tools, in order.

    Raises:
        BuildError: ``stage="toolchain"`` listing every missing tool.
    """
    found: list[str] = []
    missing: list[str] = []

    for tool in tools:
        resolved = shutil.which(tool, path=path)
        if resolved:
            found.append(resolved)
        else:
            missing.append(tool)

    if missing:
        raise BuildError(
            "toolchain",
            EXIT_NOT_FOUND,
            f"Missing build tools: {', '.join(missing)}",
        )

    logger.debug("Toolchain ok: %s", ", ".join(found))
    return found
