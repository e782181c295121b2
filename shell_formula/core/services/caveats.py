"""
Caveats — guidance printed after a successful install.
"""

from __future__ import annotations

from shell_formula.core.models.formula import Formula
from shell_formula.core.models.profile import InstallPrefix


def render_caveats(formula: Formula, prefix: InstallPrefix) -> str:
    """Post-install instructions for registering and using the shell."""
    binary = prefix.binary_path(formula.name)
    return (
        f"To add {formula.product} to your system's list of shells:\n"
        f"  {prefix.post_install_path}\n"
        f"\n"
        f"To set {formula.product} as your default shell:\n"
        f"  chsh -s {binary}\n"
        f"\n"
        f"Configuration file location:\n"
        f"  {formula.config_file}\n"
        f"\n"
        f"For more information, see:\n"
        f"  {formula.readme_url}\n"
    )
