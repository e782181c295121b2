"""
Atomic file writes.

Writes go to a temp file in the target's directory, get their final
permission bits, then are renamed over the target.  A crash mid-write
leaves either the old file or nothing, never a truncated script.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def write_atomic(path: Path, content: str, *, mode: int = 0o644) -> None:
    """Write ``content`` to ``path`` atomically with permission ``mode``.

    Args:
        path: Target file. Its parent directory must exist.
        content: Full text content.
        mode: Permission bits applied before the rename.

    Raises:
        OSError: The temp file could not be written or renamed.
    """
    fd, tmp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}_",
        suffix=".tmp",
    )
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
        # chmod explicitly: mkstemp creates 0600 and umask must not apply
        os.chmod(tmp, mode)
        tmp.replace(path)
        logger.debug("Wrote %s (mode %o)", path, mode)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise
