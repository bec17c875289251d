"""Builders for Windows: native (NSIS/MSI installers) and cross-compiled (bare .exe)."""

from __future__ import annotations

import hashlib
import re
import shutil
from pathlib import Path
from typing import Optional

from .. import toolchain
from ..config import BuildOptions
from ..descriptor import BuildDescriptor
from ..errors import ToolchainInstallError
from ..resolver import read_descriptor_file, windows_icon_names
from ..targets import WINDOWS_GNU_TARGET, InstallerFormat
from .base import (
    ArtifactKind,
    ArtifactNotFoundError,
    BuildArtifact,
    BuildError,
    Builder,
    MissingToolchainError,
    find_first,
)

_NON_ASCII_RE = re.compile(r"[^\x00-\x7F]")


def contains_non_ascii(name: str) -> bool:
    return bool(_NON_ASCII_RE.search(name or ""))


def ascii_product_name(name: str) -> str:
    """Stable ASCII stand-in for a display name, used for installer file names."""
    digest = hashlib.md5(name.encode("utf-8")).hexdigest()[:8]
    return f"App{digest}"


class NativeWindowsBuilder(Builder):
    """Builds an NSIS installer (or MSI on request) on a Windows host.

    An MSI build that fails or produces no .msi is retried once as NSIS.
    """

    BUILD_CMD = "npm install && npm run build"

    @property
    def platform_name(self) -> str:
        return "win"

    def prepare(self) -> None:
        self._log("[prepare] Windows builds need Rust, VS Build Tools and (for .msi) the WiX Toolset.")
        status = toolchain.probe_toolchain(self.context.host)
        missing: list[str] = []
        hints: list[str] = []

        if not self._ensure_rust(status):
            missing.append("rust")

        if status.msvc:
            self._log("[prepare] ✓ MSVC toolchain is available")
        else:
            self._warn("[prepare] Visual Studio Build Tools or MSVC toolchain is not found!")
            missing.append("msvc")
            hints.append(toolchain.MSVC_INSTALL_HINT)

        if status.wix:
            self._log("[prepare] ✓ WiX Toolset is installed")
        else:
            self._warn("[prepare] WiX Toolset is not found; only NSIS installers can be built.")
            self._log(toolchain.WIX_INSTALL_HINT)

        self._require(missing, hint="\n".join(hints) or None)
        self._log("[prepare] All dependencies are ready")

    # ------------------------------------------------------------------
    # Installer selection
    # ------------------------------------------------------------------

    def select_installer(self, options: BuildOptions, *, wix_available: bool) -> tuple[InstallerFormat, str]:
        """Return the installer to build and, if it differs from the request, why."""
        requested = self.env.requested_installer(options)
        if requested != InstallerFormat.MSI:
            return InstallerFormat.NSIS, ""
        if contains_non_ascii(options.name) and not self.env.msi_forced(options):
            return InstallerFormat.NSIS, (
                f"product name {options.name!r} contains non-ASCII characters; "
                "using NSIS instead of MSI (set TAURIPACK_FORCE_MSI=1 to override)"
            )
        if not wix_available:
            return InstallerFormat.NSIS, "WiX Toolset is not installed; using NSIS instead of MSI"
        return InstallerFormat.MSI, ""

    def resolve_descriptor(
        self, url: str, options: BuildOptions, installer: InstallerFormat, *, reason: str = ""
    ) -> BuildDescriptor:
        descriptor = self.resolver.resolve(url, options, self.base_descriptor).with_installer(installer, reason=reason)
        if contains_non_ascii(options.name):
            product = ascii_product_name(options.name)
            descriptor = descriptor.with_product_name(
                product, reason=f"building with productName {product!r} for non-ASCII name {options.name!r}"
            )
        for note in descriptor.substitutions:
            self._log(f"[build] {note}")
        return descriptor

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(self, url: str, options: BuildOptions) -> BuildArtifact:
        wix = toolchain.check_wix_installed(self.context.host)
        installer, reason = self.select_installer(options, wix_available=wix)

        primary = self.resolve_descriptor(url, options, installer, reason=reason)
        searched = [self.bundle_dir(primary.installer)]
        rc, found = self._attempt(primary)
        kind = ArtifactKind.PRIMARY_INSTALLER

        if found is None and primary.installer == InstallerFormat.MSI:
            why = "MSI build failed" if rc != 0 else "no .msi was produced"
            self._warn(f"[build] {why}; retrying once with NSIS")
            fallback = self.resolve_descriptor(
                url, options, InstallerFormat.NSIS, reason=f"{why}; falling back to NSIS"
            )
            searched.append(self.bundle_dir(InstallerFormat.NSIS))
            rc, found = self._attempt(fallback)
            installer = InstallerFormat.NSIS
            kind = ArtifactKind.FALLBACK_INSTALLER
            if found is None:
                raise ArtifactNotFoundError(
                    f"Windows build produced no installer after falling back to NSIS (last exit code {rc}).",
                    searched,
                )

        if found is None:
            if rc != 0:
                raise BuildError(f"Build command failed with exit code {rc} (cwd={self.context.build_root}): {self.BUILD_CMD}")
            raise ArtifactNotFoundError("Build completed but no installer was found.", searched)

        dest = self._copy_out(found, self.output_name(options.name, installer))
        self._log(f"[build] Build success! Windows installer: {dest}")
        return BuildArtifact(kind=kind, source=found, path=dest, searched=searched)

    def _attempt(self, descriptor: BuildDescriptor) -> tuple[int, Optional[Path]]:
        """Persist *descriptor*, run the build once and look for its installer."""
        self.resolver.persist(descriptor)
        written = read_descriptor_file(self.context.main_config_path) or {}
        if written.get("package", {}).get("productName") != descriptor.product_name:
            raise BuildError(f"Config verification failed for {self.context.main_config_path}")

        previous = self.snapshot(descriptor.installer)
        self._log(f"[build] $ {self.BUILD_CMD} (installer={descriptor.installer.value})")
        rc, _, _ = self._run_shell(self.BUILD_CMD, cwd=self.context.build_root)

        if descriptor.product_name != descriptor.display_name:
            self.resolver.persist(descriptor.with_product_name(descriptor.display_name))
            self._log(f"[build] Restored productName to {descriptor.display_name!r}")

        if rc != 0:
            return rc, None
        found = self.find_installer(
            descriptor.installer, descriptor.product_name, descriptor.version, previous=previous
        )
        return rc, found

    def bundle_dir(self, installer: InstallerFormat) -> Path:
        return self.context.target_dir / "release" / "bundle" / installer.value

    def snapshot(self, installer: InstallerFormat) -> dict[Path, int]:
        """Modification times of the files already in the bundle directory."""
        bundle_dir = self.bundle_dir(installer)
        if not bundle_dir.is_dir():
            return {}
        return {p: p.stat().st_mtime_ns for p in bundle_dir.iterdir() if p.is_file()}

    def find_installer(
        self,
        installer: InstallerFormat,
        product_name: str,
        version: str,
        *,
        previous: Optional[dict[Path, int]] = None,
    ) -> Optional[Path]:
        """Installer written by the current build, or None.

        ``<product>_<version>_*`` names are preferred over any other installer
        in the bundle directory. Files in *previous* whose mtime did not change
        are left over from an earlier build and never match. Listings are
        sorted, so repeated calls return the same file.
        """
        bundle_dir = self.bundle_dir(installer)
        if not bundle_dir.is_dir():
            return None
        previous = previous or {}

        def is_installer(p: Path) -> bool:
            name = p.name.lower()
            if installer == InstallerFormat.MSI:
                return name.endswith(".msi")
            return name.endswith(".exe") and "setup" in name

        def is_fresh(p: Path) -> bool:
            return previous.get(p) != p.stat().st_mtime_ns

        candidates = [p for p in sorted(bundle_dir.iterdir()) if p.is_file() and is_installer(p) and is_fresh(p)]
        prefix = f"{product_name}_{version}_"
        exact = [p for p in candidates if p.name.startswith(prefix)]
        return find_first(exact + candidates)

    @staticmethod
    def output_name(name: str, installer: InstallerFormat) -> str:
        if installer == InstallerFormat.MSI:
            return f"{name}.msi"
        return f"{name}-setup.exe"


class CrossWindowsBuilder(Builder):
    """Cross-compiles a bare Windows .exe with the GNU toolchain.

    WiX only runs on Windows, so bundling is skipped and no installer is made.
    """

    @property
    def platform_name(self) -> str:
        return "win-cross"

    def prepare(self) -> None:
        self._log(f"[prepare] Cross-compiling a Windows app on {self.context.host.value}")
        status = toolchain.probe_toolchain(self.context.host)
        missing: list[str] = []

        if not self._ensure_rust(status):
            missing.append("rust")

        if status.windows_gnu_target:
            self._log("[prepare] ✓ Windows GNU target is available")
        else:
            self._warn("[prepare] Windows GNU target is not installed.")
            try:
                toolchain.install_windows_gnu_target()
            except ToolchainInstallError as exc:
                self._warn(f"[prepare] {exc}")
                missing.append(WINDOWS_GNU_TARGET)

        if status.mingw:
            self._log("[prepare] ✓ mingw-w64 toolchain is available")
        else:
            self._warn("[prepare] mingw-w64 toolchain is not found; it is needed to link the executable.")
            self._log(toolchain.MINGW_INSTALL_HINT)

        self._require(missing)
        self._log("[prepare] Cross-compiling produces a .exe file, not an .msi/.exe installer.")

    def build(self, url: str, options: BuildOptions) -> BuildArtifact:
        if not toolchain.check_mingw_installed(self.context.host):
            raise MissingToolchainError(
                "Build failed: the mingw-w64 linker (x86_64-w64-mingw32-gcc) is missing",
                hint=toolchain.MINGW_INSTALL_HINT,
            )

        descriptor = self._resolve_and_persist(url, options, installer=InstallerFormat.NONE)
        self._write_cargo_linker_config()

        manifest = (self.context.tauri_dir / "Cargo.toml").relative_to(self.context.build_root)
        cmd = f'cargo build --release --target {WINDOWS_GNU_TARGET} --manifest-path "{manifest.as_posix()}"'

        self._copy_icons(options.name)
        self._log("[build] Using cargo build directly, the Tauri bundle step is skipped")
        self._exec(cmd)

        self._copy_icons(options.name)

        candidates = self.candidates(options.name, descriptor.version)
        found = find_first(candidates)
        searched = [self.release_dir, self.release_dir / "bundle" / "nsis"]
        if found is None:
            raise ArtifactNotFoundError("Build completed but the Windows executable was not found.", searched)

        dest = self._copy_out(found, f"{options.name}.exe")
        self._log(f"[build] Build success! Windows executable: {dest}")
        return BuildArtifact(kind=ArtifactKind.BARE_EXECUTABLE, source=found, path=dest, searched=searched)

    @property
    def release_dir(self) -> Path:
        return self.context.target_dir / WINDOWS_GNU_TARGET / "release"

    def candidates(self, name: str, version: str) -> list[Path]:
        nsis = self.release_dir / "bundle" / "nsis"
        return [
            self.release_dir / f"{name}.exe",
            self.release_dir / "app.exe",
            nsis / f"{name}_{version}_x64-setup.exe",
            nsis / f"{name}_{version}_x64.exe",
        ]

    def _write_cargo_linker_config(self) -> None:
        path = self.context.tauri_dir / ".cargo" / "config.toml"
        section = f"[target.{WINDOWS_GNU_TARGET}]"
        try:
            existing = path.read_text(encoding="utf-8") if path.exists() else ""
            if section in existing:
                return
            path.parent.mkdir(parents=True, exist_ok=True)
            block = f'{section}\nlinker = "{toolchain.MINGW_COMPILERS[0]}"\n'
            path.write_text((existing.rstrip() + "\n\n" + block) if existing.strip() else block, encoding="utf-8")
            self._log(f"[build] Wrote linker config {path}")
        except OSError as exc:
            self._warn(f"[build] Could not write linker config {path}: {exc}")

    def _copy_icons(self, name: str) -> None:
        """Copy the .ico files next to the executable, as the bundler would."""
        png_dir = self.context.tauri_dir / "png"
        dest_dir = self.release_dir / "png"
        for rel, default in zip(windows_icon_names(name), ("icon_32.ico", "icon_256.ico")):
            src = self.context.tauri_dir / rel
            if not src.is_file():
                src = png_dir / default
            try:
                dest_dir.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(src, dest_dir / Path(rel).name)
            except OSError as exc:
                self._warn(f"[build] Could not copy icon {src}: {exc}; the app will use the system default icon")
                return
        self._log(f"[build] Copied icons to {dest_dir}")
