"""
Source preparation — a local tree, or the release tarball.

The tarball is downloaded with ``curl``, hashed, checked against the
formula's sha256 and unpacked.  An empty sha256 is allowed (release
CI fills it in later) but logged as unverified.
"""

from __future__ import annotations

import hashlib
import logging
import tarfile
from pathlib import Path

from shell_formula.core.errors import SourceError
from shell_formula.core.models.formula import Formula
from shell_formula.core.services.subprocess_runner import run_command

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT = 120


def sha256_file(path: Path) -> str:
    """Hex SHA256 digest of a file."""
    digest = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


def verify_checksum(path: Path, expected_sha256: str) -> str:
    """Check ``path`` against ``expected_sha256``.

    Returns:
        The actual digest.

    Raises:
        SourceError: On mismatch.
    """
    actual = sha256_file(path)
    if not expected_sha256:
        logger.warning("No sha256 for %s — archive is unverified (sha256=%s)", path.name, actual)
        return actual

    expected = expected_sha256.removeprefix("sha256:").lower()
    if actual != expected:
        raise SourceError(
            f"SHA256 mismatch for {path.name}\n"
            f"Expected: {expected}\n"
            f"Got:      {actual}"
        )
    return actual


def download(url: str, dest: Path, *, timeout: float = DOWNLOAD_TIMEOUT) -> Path:
    """Download ``url`` to ``dest`` with curl."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    result = run_command(
        ["curl", "-fsSL", "--max-time", str(int(timeout)), "-o", str(dest), url],
        stage="download",
        timeout=timeout + 5,
    )
    if not result.ok:
        reason = "timed out" if result.timed_out else f"exit {result.exit_code}"
        raise SourceError(f"Download failed ({reason}): {result.stderr_tail(200)}")
    return dest


def unpack(archive: Path, dest: Path) -> Path:
    """Extract a tarball and return its source root.

    Release tarballs hold a single top-level directory; that directory
    is the source root.  Otherwise ``dest`` itself is.
    """
    dest.mkdir(parents=True, exist_ok=True)
    try:
        with tarfile.open(archive, "r:*") as tf:
            tf.extractall(dest, filter="data")
    except (tarfile.TarError, OSError) as e:
        raise SourceError(f"Cannot unpack {archive.name}: {e}") from e

    children = [p for p in dest.iterdir() if not p.name.startswith(".")]
    if len(children) == 1 and children[0].is_dir():
        return children[0]
    return dest


def prepare_source(
    formula: Formula,
    workdir: Path,
    source: Path | None = None,
) -> Path:
    """Resolve the source tree to build.

    Args:
        formula: Provides ``url`` and ``sha256``.
        workdir: Scratch directory for the download and extraction.
        source: Local source tree; used as-is when given.

    Returns:
        Absolute path of the directory holding CMakeLists.txt.
    """
    if source is not None:
        source = source.expanduser().resolve()
        if not source.is_dir():
            raise SourceError(f"Source directory not found: {source}")
        logger.info("Using local source %s", source)
        return source

    if not formula.url:
        raise SourceError("Formula has no source url and no local source was given")

    archive = workdir / formula.url.rsplit("/", 1)[-1]
    logger.info("Downloading %s", formula.url)
    download(formula.url, archive)
    verify_checksum(archive, formula.sha256)
    return unpack(archive, workdir / "src")
