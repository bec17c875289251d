from __future__ import annotations

import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
_SRC = (_PROJECT_ROOT / "src").resolve()
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

load_dotenv(_PROJECT_ROOT / ".env", override=False)

from tauripack.context import BuildContext  # noqa: E402
from tauripack.targets import TargetPlatform  # noqa: E402


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("TAURIPACK_WINDOWS_INSTALLER", "TAURIPACK_FORCE_MSI", "TAURIPACK_BUILD_ROOT", "TAURIPACK_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def build_root(tmp_path: Path) -> Path:
    """A Tauri project with the bundled default icons."""
    root = tmp_path / "project"
    tauri = root / "src-tauri"
    (tauri / "png").mkdir(parents=True)
    (tauri / "icons").mkdir()
    (tauri / "png" / "icon_32.ico").write_bytes(b"ico32")
    (tauri / "png" / "icon_256.ico").write_bytes(b"ico256")
    (tauri / "png" / "icon_512.png").write_bytes(b"png512")
    (tauri / "icons" / "icon.icns").write_bytes(b"icns")
    (tauri / "Cargo.toml").write_text('[package]\nname = "app"\n')
    return root


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    d = tmp_path / "out"
    d.mkdir()
    return d


@pytest.fixture
def make_context(build_root: Path, out_dir: Path):
    def _make(host: TargetPlatform, target: TargetPlatform | None = None) -> BuildContext:
        return BuildContext(build_root=build_root, host=host, target=target or host, output_dir=out_dir)

    return _make
