"""Tests for tauripack.toolchain probes and installers."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from tauripack import toolchain
from tauripack.errors import ExitCode, ToolchainInstallError
from tauripack.targets import TargetPlatform


def _completed(rc: int, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=rc, stdout=stdout, stderr=stderr)


# ---------------------------------------------------------------------------
# Platform short-circuits (no external process)
# ---------------------------------------------------------------------------

@patch("subprocess.run")
@patch("shutil.which")
def test_wix_off_windows_is_unavailable_without_probing(mock_which, mock_run) -> None:
    assert toolchain.check_wix_installed(TargetPlatform.MAC) is False
    assert toolchain.check_wix_installed(TargetPlatform.LINUX) is False
    mock_which.assert_not_called()
    mock_run.assert_not_called()


@patch("shutil.which")
def test_msvc_off_windows_is_not_required(mock_which) -> None:
    assert toolchain.check_msvc_installed(TargetPlatform.LINUX) is True
    mock_which.assert_not_called()


@patch("shutil.which")
def test_mingw_on_windows_is_unavailable(mock_which) -> None:
    assert toolchain.check_mingw_installed(TargetPlatform.WINDOWS) is False
    mock_which.assert_not_called()


# ---------------------------------------------------------------------------
# Full checks
# ---------------------------------------------------------------------------

def test_wix_on_windows_found_on_path() -> None:
    with patch("shutil.which", side_effect=lambda n: "C:/wix/light.exe" if n == "light.exe" else None):
        assert toolchain.check_wix_installed(TargetPlatform.WINDOWS) is True


def test_wix_on_windows_found_in_install_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ProgramFiles(x86)", str(tmp_path))
    (tmp_path / "WiX Toolset v3.11" / "bin").mkdir(parents=True)
    with patch("shutil.which", return_value=None):
        assert toolchain.check_wix_installed(TargetPlatform.WINDOWS) is True


def test_wix_on_windows_missing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ProgramFiles(x86)", str(tmp_path))
    with patch("shutil.which", return_value=None):
        assert toolchain.check_wix_installed(TargetPlatform.WINDOWS) is False


def test_msvc_on_windows_found_in_vs_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ProgramFiles(x86)", str(tmp_path))
    (tmp_path / "Microsoft Visual Studio" / "2019" / "Community" / "VC" / "Tools" / "MSVC").mkdir(parents=True)
    with patch("shutil.which", return_value=None):
        assert toolchain.check_msvc_installed(TargetPlatform.WINDOWS) is True


def test_mingw_found_on_path() -> None:
    with patch("shutil.which", side_effect=lambda n: "/usr/bin/i686-w64-mingw32-gcc" if n.startswith("i686") else None):
        assert toolchain.check_mingw_installed(TargetPlatform.LINUX) is True


def test_mingw_missing() -> None:
    with patch("shutil.which", return_value=None), patch.object(toolchain, "_MINGW_DIRS", ()):
        assert toolchain.check_mingw_installed(TargetPlatform.MAC) is False


def test_rust_installed_via_rustc_version() -> None:
    with patch("subprocess.run", return_value=_completed(0, "rustc 1.79.0")) as mock_run:
        assert toolchain.check_rust_installed() is True
    assert mock_run.call_args[0][0] == ["rustc", "--version"]


def test_rust_missing(tmp_path: Path) -> None:
    with patch("subprocess.run", side_effect=FileNotFoundError("rustc")), patch(
        "pathlib.Path.home", return_value=tmp_path
    ):
        assert toolchain.check_rust_installed() is False


def test_windows_gnu_target() -> None:
    with patch("subprocess.run", return_value=_completed(0, "aarch64-apple-darwin\nx86_64-pc-windows-gnu\n")):
        assert toolchain.check_windows_gnu_target() is True
    with patch("subprocess.run", return_value=_completed(0, "aarch64-apple-darwin\n")):
        assert toolchain.check_windows_gnu_target() is False
    with patch("subprocess.run", return_value=_completed(1)):
        assert toolchain.check_windows_gnu_target() is False


def test_probe_toolchain_is_recomputed_each_call() -> None:
    with patch.object(toolchain, "check_rust_installed", side_effect=[False, True]), patch.object(
        toolchain, "check_windows_gnu_target", return_value=False
    ), patch.object(toolchain, "check_mingw_installed", return_value=False):
        first = toolchain.probe_toolchain(TargetPlatform.LINUX)
        second = toolchain.probe_toolchain(TargetPlatform.LINUX)
    assert first.rust is False
    assert second.rust is True
    assert first.wix is False
    assert first.msvc is True


# ---------------------------------------------------------------------------
# Installers
# ---------------------------------------------------------------------------

def test_install_rust_unix_command() -> None:
    with patch("subprocess.run", return_value=_completed(0)) as mock_run:
        toolchain.install_rust(TargetPlatform.MAC)
    assert mock_run.call_args[0][0] == toolchain.RUST_INSTALL_SCRIPT_UNIX


def test_install_rust_windows_command() -> None:
    with patch("subprocess.run", return_value=_completed(0)) as mock_run:
        toolchain.install_rust(TargetPlatform.WINDOWS)
    assert mock_run.call_args[0][0] == "winget install --id Rustlang.Rustup"


def test_install_rust_failure_is_fatal() -> None:
    with patch("subprocess.run", return_value=_completed(7, stderr="curl: (6) Could not resolve host")):
        with pytest.raises(ToolchainInstallError) as exc_info:
            toolchain.install_rust(TargetPlatform.LINUX)
    assert exc_info.value.exit_code == ExitCode.INSTALL_FAILED
    assert "Could not resolve host" in str(exc_info.value)


def test_install_windows_gnu_target() -> None:
    with patch("subprocess.run", return_value=_completed(0)) as mock_run:
        toolchain.install_windows_gnu_target()
    assert mock_run.call_args[0][0] == "rustup target add x86_64-pc-windows-gnu"
