"""Call-scoped build context shared by the resolver and the builders."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors import UnsupportedPlatformError
from .targets import TargetPlatform, detect_host


@dataclass(frozen=True)
class BuildContext:
    """Where and for what a single build runs.

    ``cross_compile`` is derived once from host and target so that config
    resolution and the build command always agree on it.
    """

    build_root: Path
    host: TargetPlatform
    target: TargetPlatform
    output_dir: Path = field(default_factory=Path.cwd)

    @classmethod
    def create(
        cls,
        build_root: Path | str,
        *,
        target: Optional[TargetPlatform] = None,
        host: Optional[TargetPlatform] = None,
        output_dir: Optional[Path | str] = None,
    ) -> "BuildContext":
        detected = host or detect_host()
        if detected is None:
            raise UnsupportedPlatformError("The current system is not supported (expected macOS, Windows or Linux)")
        return cls(
            build_root=Path(build_root).resolve(),
            host=detected,
            target=target or detected,
            output_dir=Path(output_dir).resolve() if output_dir else Path.cwd(),
        )

    @property
    def cross_compile(self) -> bool:
        return self.host != self.target

    @property
    def windows_family(self) -> bool:
        """True for native Windows builds and Windows cross-compilation."""
        return self.target == TargetPlatform.WINDOWS

    @property
    def tauri_dir(self) -> Path:
        return self.build_root / "src-tauri"

    @property
    def target_dir(self) -> Path:
        return self.tauri_dir / "target"

    @property
    def main_config_path(self) -> Path:
        return self.tauri_dir / "tauri.conf.json"
