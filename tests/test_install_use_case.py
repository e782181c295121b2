"""
Tests for the install use case — the full pipeline with cmake faked out.
"""

import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from shell_formula.core.models import BuildType, Formula, InstallPrefix, StepResult
from shell_formula.core.use_cases.install import make_profile, run_install

RUN = "shell_formula.core.services.build_driver.run_command"
TOOLCHAIN = "shell_formula.core.use_cases.install.check_toolchain"



@pytest.fixture
def source(tmp_path: Path) -> Path:
    src = tmp_path / "leizi-shell"
    src.mkdir()
    (src / "CMakeLists.txt").write_text("project(leizi)\n")
    return src


@pytest.fixture
def empty_prefix(tmp_path: Path) -> InstallPrefix:
    root = tmp_path / "cellar"
    root.mkdir()
    return InstallPrefix(path=root)


def _fake_cmake(prefix: InstallPrefix):
    """Succeed every step; the install step drops the binary into the prefix."""

    def _run(cmd, *, stage, **kwargs):
        if stage == "install":
            prefix.bin_dir.mkdir(exist_ok=True)
            prefix.binary_path("leizi").write_text("#!/bin/sh\n")
            prefix.binary_path("leizi").chmod(0o755)
        return StepResult(stage=stage, command=cmd, exit_code=0)

    return _run


class TestRunInstall:
    def test_full_pipeline(self, source: Path, empty_prefix: InstallPrefix):
        with patch(TOOLCHAIN, return_value=["/usr/bin/cmake"]), \
             patch(RUN, side_effect=_fake_cmake(empty_prefix)) as mock_run:
            result = run_install(Formula(), empty_prefix, source=source)

        assert result.ok, result.error
        assert mock_run.call_count == 3
        assert result.script is not None
        assert result.script.path.is_file()
        assert "chsh -s" in result.caveats
        d = result.to_dict()
        assert d["post_install"].endswith("post_install.sh")
        assert [s["stage"] for s in d["steps"]] == ["configure", "build", "install"]

    def test_configure_gets_prefix(self, source: Path, empty_prefix: InstallPrefix):
        with patch(TOOLCHAIN), patch(RUN, side_effect=_fake_cmake(empty_prefix)) as mock_run:
            run_install(Formula(), empty_prefix, source=source, extra_flags=["-DLEIZI_GIT=OFF"])
        configure = mock_run.call_args_list[0].args[0]
        assert f"-DCMAKE_INSTALL_PREFIX={empty_prefix.path}" in configure
        assert configure[-1] == "-DLEIZI_GIT=OFF"

    def test_configure_failure(self, source: Path, empty_prefix: InstallPrefix):
        def _fail(cmd, *, stage, **kwargs):
            return StepResult(stage=stage, command=cmd, exit_code=1, stderr="CMake Error at CMakeLists.txt:3")

        with patch(TOOLCHAIN), patch(RUN, side_effect=_fail) as mock_run:
            result = run_install(Formula(), empty_prefix, source=source)

        assert not result.ok
        assert mock_run.call_count == 1
        assert result.error_kind == "BuildError"
        assert result.stage == "configure"
        assert "CMakeLists.txt:3" in result.stderr_tail
        assert not empty_prefix.post_install_path.exists()
        assert result.to_dict()["error_kind"] == "BuildError"

    def test_missing_toolchain(self, source: Path, empty_prefix: InstallPrefix):
        formula = Formula()
        formula.depends_on.build = ["definitely-not-cmake"]
        with patch(RUN) as mock_run:
            result = run_install(formula, empty_prefix, source=source)
        assert result.stage == "toolchain"
        mock_run.assert_not_called()

    def test_binary_not_installed(self, source: Path, empty_prefix: InstallPrefix):
        ok = lambda cmd, *, stage, **kw: StepResult(stage=stage, command=cmd, exit_code=0)  # noqa: E731
        with patch(TOOLCHAIN), patch(RUN, side_effect=ok):
            result = run_install(Formula(), empty_prefix, source=source)
        assert result.error_kind == "InstallError"

    def test_dry_run_runs_nothing(self, source: Path, empty_prefix: InstallPrefix):
        with patch(TOOLCHAIN) as mock_tc, patch(RUN) as mock_run:
            result = run_install(Formula(), empty_prefix, source=source, dry_run=True)
        assert result.ok
        assert [s["stage"] for s in result.plan] == ["configure", "build", "install"]
        mock_run.assert_not_called()
        mock_tc.assert_not_called()

    def test_missing_source(self, tmp_path: Path, empty_prefix: InstallPrefix):
        result = run_install(Formula(), empty_prefix, source=tmp_path / "missing")
        assert result.error_kind == "SourceError"

    def test_uncreatable_build_dir(self, source: Path, empty_prefix: InstallPrefix, tmp_path: Path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        with patch(TOOLCHAIN), patch(RUN) as mock_run:
            result = run_install(Formula(), empty_prefix, source=source, build_dir=blocker / "build")
        assert result.error_kind == "BuildError"
        assert result.stage == "configure"
        mock_run.assert_not_called()

    def test_scratch_dir_failure(self, empty_prefix: InstallPrefix, monkeypatch):
        def _no_space(*args, **kwargs):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(tempfile, "mkdtemp", _no_space)
        result = run_install(Formula(), empty_prefix)
        assert result.error_kind == "SourceError"
        assert "scratch directory" in result.error


class TestDownloadScratch:
    @pytest.fixture
    def scratches(self, tmp_path: Path, monkeypatch) -> list[Path]:
        """Route temp dirs into tmp_path and fake the download into them."""
        temp_root = tmp_path / "tmp"
        temp_root.mkdir()
        monkeypatch.setattr(tempfile, "tempdir", str(temp_root))
        seen: list[Path] = []

        def _prepare(formula, workdir, source=None):
            seen.append(workdir)
            (workdir / "leizi-1.4.0.tar.gz").write_bytes(b"tarball")
            tree = workdir / "src"
            tree.mkdir()
            return tree

        monkeypatch.setattr("shell_formula.core.use_cases.install.prepare_source", _prepare)
        return seen

    def test_removed_after_success(self, scratches: list[Path], empty_prefix: InstallPrefix):
        with patch(TOOLCHAIN), patch(RUN, side_effect=_fake_cmake(empty_prefix)):
            result = run_install(Formula(), empty_prefix)
        assert result.ok, result.error
        assert len(scratches) == 1
        assert not scratches[0].exists()

    def test_kept_after_failure(self, scratches: list[Path], empty_prefix: InstallPrefix):
        fail = lambda cmd, *, stage, **kw: StepResult(stage=stage, command=cmd, exit_code=2)  # noqa: E731
        with patch(TOOLCHAIN), patch(RUN, side_effect=fail):
            result = run_install(Formula(), empty_prefix)
        assert not result.ok
        assert (scratches[0] / "leizi-1.4.0.tar.gz").is_file()

    def test_explicit_workdir_kept(self, scratches: list[Path], empty_prefix: InstallPrefix, tmp_path: Path):
        workdir = tmp_path / "work"
        workdir.mkdir()
        with patch(TOOLCHAIN), patch(RUN, side_effect=_fake_cmake(empty_prefix)):
            result = run_install(Formula(), empty_prefix, workdir=workdir)
        assert result.ok, result.error
        assert scratches == [workdir]
        assert (workdir / "leizi-1.4.0.tar.gz").is_file()


class TestMakeProfile:
    def test_overrides(self, source: Path, empty_prefix: InstallPrefix):
        profile = make_profile(Formula(), empty_prefix, source, build_type=BuildType.DEBUG, jobs=2)
        assert profile.build_type is BuildType.DEBUG
        assert profile.jobs == 2
        assert profile.build_dir == source.resolve() / "build"
        assert profile.target == "leizi"

    def test_formula_flags_between_std_and_cli(self, source: Path, empty_prefix: InstallPrefix):
        formula = Formula()
        formula.build.extra_flags = ["-DFROM_FORMULA=1"]
        profile = make_profile(formula, empty_prefix, source, extra_flags=["-DFROM_CLI=1"])
        assert profile.extra_flags[0].startswith("-DCMAKE_INSTALL_PREFIX=")
        assert profile.extra_flags[-2:] == ("-DFROM_FORMULA=1", "-DFROM_CLI=1")
