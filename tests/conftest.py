"""
Shared test fixtures and configuration.
"""

import textwrap
from pathlib import Path
from typing import Callable

import pytest

from shell_formula.core.models.profile import InstallPrefix

# A stand-in for the real shell: answers --version, runs `echo`, and
# prints the array builtin's coloured confirmation.
FAKE_LEIZI = textwrap.dedent("""\
    #!/bin/sh
    if [ "$1" = "--version" ]; then
        echo "Leizi Shell 1.4.0"
        exit 0
    fi
    while IFS= read -r line; do
        case "$line" in
            exit) exit 0 ;;
            "echo "*) printf '%s\\n' "${line#echo }" ;;
            "array "*)
                rest=${line#array }
                name=${rest%%=*}
                values=$(printf "%s" "${rest#*=}" | tr -d "()")
                set -- $values
                printf 'Array \\033[36m%s\\033[0m created with \\033[33m%d\\033[0m elements\\n' "$name" "$#"
                ;;
        esac
    done
""")


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def make_binary(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing an executable sh script into ``tmp_path/bin``."""

    def _make(content: str = FAKE_LEIZI, name: str = "leizi") -> Path:
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir(exist_ok=True)
        path = bin_dir / name
        path.write_text(content)
        path.chmod(0o755)
        return path

    return _make


@pytest.fixture
def prefix(tmp_path: Path) -> InstallPrefix:
    """An install prefix with ``bin/leizi`` already installed."""
    root = tmp_path / "prefix"
    (root / "bin").mkdir(parents=True)
    binary = root / "bin" / "leizi"
    binary.write_text(FAKE_LEIZI)
    binary.chmod(0o755)
    return InstallPrefix(path=root)
