"""Builder for Linux .deb packages (plus AppImage when produced)."""

from __future__ import annotations

from pathlib import Path

from .. import toolchain
from ..config import BuildOptions
from ..targets import TargetPlatform, get_platform_meta
from .base import ArtifactKind, ArtifactNotFoundError, BuildArtifact, Builder, find_first


class LinuxBuilder(Builder):

    @property
    def platform_name(self) -> str:
        return "linux"

    def prepare(self) -> None:
        status = toolchain.probe_toolchain(self.context.host)
        if not self._ensure_rust(status):
            self._require(["rust"], hint="Install Rust from https://rustup.rs and try again.")

    def build(self, url: str, options: BuildOptions) -> BuildArtifact:
        descriptor = self._resolve_and_persist(url, options)
        self._exec("npm install && npm run build")

        arch = get_platform_meta(TargetPlatform.LINUX).arch()
        stem = f"{options.name}_{descriptor.version}_{arch}"
        deb_dir = self.bundle_dir("deb")
        deb = find_first([deb_dir / f"{stem}.deb"])
        if deb is None:
            raise ArtifactNotFoundError("Build completed but no .deb package was found.", [deb_dir])

        artifact = BuildArtifact(
            kind=ArtifactKind.PRIMARY_INSTALLER,
            source=deb,
            path=self._copy_out(deb, f"{options.name}.deb"),
            searched=[deb_dir],
        )
        self._log(f"[build] Build success! You can find the deb package in {artifact.path}")

        appimage_dir = self.bundle_dir("appimage")
        appimage = find_first([appimage_dir / f"{stem}.AppImage"])
        if appimage is not None:
            artifact.extra.append(
                BuildArtifact(
                    kind=ArtifactKind.SECONDARY_BUNDLE,
                    source=appimage,
                    path=self._copy_out(appimage, f"{options.name}.AppImage"),
                    searched=[appimage_dir],
                )
            )
            self._log(f"[build] AppImage copied to {artifact.extra[-1].path}")
        return artifact

    def bundle_dir(self, kind: str) -> Path:
        return self.context.target_dir / "release" / "bundle" / kind
