"""
Tests for source preparation — local trees, checksums, tarballs.
"""

import hashlib
import io
import tarfile
from pathlib import Path

import pytest

from shell_formula.core.errors import SourceError
from shell_formula.core.models import Formula, StepResult
from shell_formula.core.services import source as source_mod
from shell_formula.core.services.source import (
    prepare_source,
    sha256_file,
    unpack,
    verify_checksum,
)


def _make_tarball(path: Path, top: str = "leizi-shell-1.4.0") -> Path:
    """Write a gzip tarball holding ``<top>/CMakeLists.txt``."""
    data = b"cmake_minimum_required(VERSION 3.16)\n"
    with tarfile.open(path, "w:gz") as tf:
        info = tarfile.TarInfo(f"{top}/CMakeLists.txt")
        info.size = len(data)
        tf.addfile(info, io.BytesIO(data))
    return path


class TestChecksum:
    def test_sha256_file(self, tmp_path: Path):
        path = tmp_path / "blob"
        path.write_bytes(b"leizi")
        assert sha256_file(path) == hashlib.sha256(b"leizi").hexdigest()

    def test_match(self, tmp_path: Path):
        path = tmp_path / "blob"
        path.write_bytes(b"leizi")
        digest = hashlib.sha256(b"leizi").hexdigest()
        assert verify_checksum(path, digest.upper()) == digest
        assert verify_checksum(path, f"sha256:{digest}") == digest

    def test_mismatch(self, tmp_path: Path):
        path = tmp_path / "blob"
        path.write_bytes(b"leizi")
        with pytest.raises(SourceError, match="SHA256 mismatch"):
            verify_checksum(path, "0" * 64)

    def test_empty_expected_is_unverified(self, tmp_path: Path, caplog):
        path = tmp_path / "blob"
        path.write_bytes(b"leizi")
        with caplog.at_level("WARNING"):
            verify_checksum(path, "")
        assert "unverified" in caplog.text


class TestUnpack:
    def test_single_top_level_dir(self, tmp_path: Path):
        archive = _make_tarball(tmp_path / "leizi.tar.gz")
        root = unpack(archive, tmp_path / "out")
        assert root == tmp_path / "out" / "leizi-shell-1.4.0"
        assert (root / "CMakeLists.txt").is_file()

    def test_corrupt_archive(self, tmp_path: Path):
        archive = tmp_path / "bad.tar.gz"
        archive.write_bytes(b"not a tarball")
        with pytest.raises(SourceError, match="Cannot unpack"):
            unpack(archive, tmp_path / "out")


class TestPrepareSource:
    def test_local_source_wins(self, tmp_path: Path):
        assert prepare_source(Formula(), tmp_path / "work", tmp_path) == tmp_path.resolve()

    def test_missing_local_source(self, tmp_path: Path):
        with pytest.raises(SourceError, match="not found"):
            prepare_source(Formula(), tmp_path, tmp_path / "missing")

    def test_no_url(self, tmp_path: Path):
        with pytest.raises(SourceError, match="no source url"):
            prepare_source(Formula(url=""), tmp_path)

    def test_downloads_verifies_and_unpacks(self, tmp_path: Path, monkeypatch):
        tarball = _make_tarball(tmp_path / "release.tar.gz")
        digest = sha256_file(tarball)

        def _fake_download(url, dest, **kwargs):
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(tarball.read_bytes())
            return dest

        monkeypatch.setattr(source_mod, "download", _fake_download)
        formula = Formula(url="https://example.com/v1.4.0.tar.gz", sha256=digest)
        root = prepare_source(formula, tmp_path / "work")
        assert (root / "CMakeLists.txt").is_file()
        assert (tmp_path / "work" / "v1.4.0.tar.gz").is_file()

    def test_checksum_mismatch_stops(self, tmp_path: Path, monkeypatch):
        tarball = _make_tarball(tmp_path / "release.tar.gz")

        def _fake_download(url, dest, **kwargs):
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(tarball.read_bytes())
            return dest

        monkeypatch.setattr(source_mod, "download", _fake_download)
        formula = Formula(url="https://example.com/v1.4.0.tar.gz", sha256="f" * 64)
        with pytest.raises(SourceError, match="mismatch"):
            prepare_source(formula, tmp_path / "work")
        assert not (tmp_path / "work" / "src").exists()


class TestDownload:
    def test_curl_failure(self, tmp_path: Path, monkeypatch):
        calls = []

        def _fake_run(cmd, **kwargs):
            calls.append(cmd)
            return StepResult(stage="download", command=cmd, exit_code=22, stderr="404 Not Found")

        monkeypatch.setattr(source_mod, "run_command", _fake_run)
        with pytest.raises(SourceError, match="exit 22"):
            source_mod.download("https://example.com/x.tar.gz", tmp_path / "x.tar.gz")
        assert calls[0][0] == "curl"
        assert calls[0][-1] == "https://example.com/x.tar.gz"
