"""Builder for macOS .dmg bundles."""

from __future__ import annotations

from pathlib import Path

from .. import toolchain
from ..config import BuildOptions
from ..targets import TargetPlatform, get_platform_meta
from .base import ArtifactKind, ArtifactNotFoundError, BuildArtifact, Builder, find_first


class MacBuilder(Builder):
    """Builds a .dmg with ``npm run build`` (``build:mac`` for universal binaries)."""

    @property
    def platform_name(self) -> str:
        return "mac"

    def prepare(self) -> None:
        status = toolchain.probe_toolchain(self.context.host)
        if not self._ensure_rust(status):
            self._require(["rust"], hint="Install Rust from https://rustup.rs and try again.")

    def build(self, url: str, options: BuildOptions) -> BuildArtifact:
        descriptor = self._resolve_and_persist(url, options)

        script = "build:mac" if options.multi_arch else "build"
        self._exec(f"npm install && npm run {script}")

        dmg_dir = self.dmg_dir(options.multi_arch)
        candidates = self.candidates(options.name, descriptor.version, options.multi_arch)
        found = find_first(candidates)
        if found is None:
            raise ArtifactNotFoundError("Build completed but no .dmg was found.", [dmg_dir])

        dest = self._copy_out(found, f"{options.name}.dmg")
        self._log(f"[build] Build success! You can find the app in {dest}")
        return BuildArtifact(kind=ArtifactKind.PRIMARY_INSTALLER, source=found, path=dest, searched=[dmg_dir])

    def dmg_dir(self, multi_arch: bool) -> Path:
        target = self.context.target_dir
        if multi_arch:
            target = target / "universal-apple-darwin"
        return target / "release" / "bundle" / "dmg"

    def candidates(self, name: str, version: str, multi_arch: bool) -> list[Path]:
        arch = "universal" if multi_arch else get_platform_meta(TargetPlatform.MAC).arch()
        dmg_dir = self.dmg_dir(multi_arch)
        exact = dmg_dir / f"{name}_{version}_{arch}.dmg"
        others = sorted(dmg_dir.glob("*.dmg")) if dmg_dir.is_dir() else []
        return [exact] + [p for p in others if p != exact]
