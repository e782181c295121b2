"""
Shell registrar — keep the installed binary listed in /etc/shells.

Two states per entry: NOT_REGISTERED and REGISTERED.  Registration is
idempotent: an entry that is already present (as a whole line) is
never appended again.

The same logic exists in two forms:
  - ``render_registration_script`` produces the POSIX sh script the
    installer writes to ``<prefix>/post_install.sh``.  The user runs it
    later with elevated rights.
  - ``register_shell`` performs it in-process against a ShellRegistry,
    for hosts where the formula itself runs privileged.
"""

from __future__ import annotations

import fcntl
import logging
import os
import shlex
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path

from shell_formula.core.errors import RegistrationError

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_PATH = "/etc/shells"

TEMPLATE_PATH = Path(__file__).resolve().parent.parent.parent / "templates" / "post_install.sh"


class RegistrationState(str, Enum):
    NOT_REGISTERED = "not_registered"
    REGISTERED = "registered"


# ── Script template ─────────────────────────────────────────────


def render_registration_script(
    shell_path: str,
    registry_path: str = DEFAULT_REGISTRY_PATH,
    elevate: str = "sudo",
) -> str:
    """Fill the post-install template.

    Placeholders (``__SHELL_PATH__``, ``__REGISTRY_PATH__``,
    ``__ELEVATE__``) are replaced with shell-quoted values.

    Args:
        shell_path: Absolute path of the installed binary.
        registry_path: Registry file the script appends to.
        elevate: Privilege elevation command ("" to run unprivileged).
    """
    if not shell_path.startswith("/"):
        raise ValueError(f"shell path must be absolute: {shell_path}")

    content = TEMPLATE_PATH.read_text(encoding="utf-8")
    placeholders = {
        "__SHELL_PATH__": shlex.quote(shell_path),
        "__REGISTRY_PATH__": shlex.quote(registry_path),
        "__ELEVATE__": shlex.quote(elevate) if elevate else "",
    }
    for key, value in placeholders.items():
        content = content.replace(key, value)
    return content


# ── Registry abstraction ────────────────────────────────────────


class ShellRegistry(ABC):
    """The host's list of permitted login shells."""

    @abstractmethod
    def contains(self, path: str) -> bool:
        """Whether ``path`` is present as a whole line."""

    @abstractmethod
    def append(self, path: str) -> bool:
        """Append ``path`` unless present.

        Must re-check under the same exclusive access as the write.

        Returns:
            True if the entry was written, False if it was already there.
        """

    def entries(self) -> list[str]:
        return []


class MemoryShellRegistry(ShellRegistry):
    """In-memory registry, for tests and dry runs."""

    def __init__(self, entries: list[str] | None = None) -> None:
        self._entries: list[str] = list(entries or [])
        self.append_calls = 0

    def contains(self, path: str) -> bool:
        return path in self._entries

    def append(self, path: str) -> bool:
        self.append_calls += 1
        if path in self._entries:
            return False
        self._entries.append(path)
        return True

    def entries(self) -> list[str]:
        return list(self._entries)


class FileShellRegistry(ShellRegistry):
    """Newline-separated registry file (``/etc/shells``).

    Appends hold an exclusive ``flock`` on the file for the whole
    read-check-write sequence.  Existing entries are never removed or
    reordered.  Bytes that are not UTF-8 round-trip as surrogates, the
    way ``grep -F`` in the generated script sees them.
    """

    def __init__(self, path: str | Path = DEFAULT_REGISTRY_PATH) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"<FileShellRegistry path={str(self.path)!r}>"

    def entries(self) -> list[str]:
        try:
            text = self.path.read_text(encoding="utf-8", errors="surrogateescape")
        except FileNotFoundError:
            return []
        except OSError as e:
            raise RegistrationError(f"Cannot read {self.path}: {e}") from e
        return text.splitlines()

    def contains(self, path: str) -> bool:
        return path in self.entries()

    def append(self, path: str) -> bool:
        try:
            with open(self.path, "a+", encoding="utf-8", errors="surrogateescape") as fh:
                fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
                try:
                    fh.seek(0)
                    existing = fh.read()
                    if path in existing.splitlines():
                        return False
                    fh.seek(0, os.SEEK_END)
                    if existing and not existing.endswith("\n"):
                        fh.write("\n")
                    fh.write(f"{path}\n")
                    fh.flush()
                finally:
                    fcntl.flock(fh.fileno(), fcntl.LOCK_UN)
        except OSError as e:
            raise RegistrationError(f"Cannot append to {self.path}: {e}") from e
        return True


# ── Operations ──────────────────────────────────────────────────


def registration_state(registry: ShellRegistry, shell_path: str) -> RegistrationState:
    """Current state of ``shell_path`` in ``registry``."""
    if registry.contains(shell_path):
        return RegistrationState.REGISTERED
    return RegistrationState.NOT_REGISTERED


def register_shell(registry: ShellRegistry, shell_path: str) -> RegistrationState:
    """Move ``shell_path`` to REGISTERED, appending only if absent.

    Raises:
        RegistrationError: The registry could not be read or written.
    """
    if registry.contains(shell_path):
        logger.debug("%s already registered in %r", shell_path, registry)
        return RegistrationState.REGISTERED

    if registry.append(shell_path):
        logger.info("Registered %s in %r", shell_path, registry)
    return RegistrationState.REGISTERED
