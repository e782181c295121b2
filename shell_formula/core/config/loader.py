"""
Configuration loader — reads formula.yml into the Formula model.

This is the primary entry point for loading formula configuration.
It reads YAML, validates against Pydantic schemas, and returns a
typed Formula. With no formula.yml anywhere up the tree, the built-in
defaults are used.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from shell_formula.core.errors import ConfigError
from shell_formula.core.models.formula import Formula

logger = logging.getLogger(__name__)

# Default config filename
FORMULA_CONFIG_FILE = "formula.yml"

__all__ = ["FORMULA_CONFIG_FILE", "ConfigError", "find_formula_file", "load_formula"]


def find_formula_file(start_dir: Path | None = None) -> Path | None:
    """Search for formula.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to formula.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / FORMULA_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_formula(path: Path | None = None, *, search: bool = True) -> Formula:
    """Load and validate formula configuration.

    Args:
        path: Explicit path to formula.yml. If None, searches upward.
        search: Whether to search upward when ``path`` is None.

    Returns:
        Validated Formula model (defaults when no file is found).

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if path is None and search:
        path = find_formula_file()

    if path is None:
        logger.debug("No %s found — using built-in formula", FORMULA_CONFIG_FILE)
        return Formula()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading formula config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "formula" key or be flat
    formula_data = data.get("formula", data) if "formula" in data else data

    try:
        formula = Formula.model_validate(formula_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid formula configuration: {e}") from e

    logger.info("Loaded formula '%s' %s from %s", formula.name, formula.version, path)
    return formula
