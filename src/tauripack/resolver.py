"""Resolve build options into the platform-specific Tauri build descriptor."""

from __future__ import annotations

import copy
import json
import logging
import os
import re
import shutil
from pathlib import Path
from typing import Any, Optional

from .config import BuildOptions
from .context import BuildContext
from .descriptor import BuildDescriptor
from .errors import DescriptorWriteError, InvalidOptionsError
from .targets import InstallerFormat, TargetPlatform, get_platform_meta

logger = logging.getLogger("tauripack.resolver")

# Linux package names: lowercase letters and digits around at most two dashes,
# with a letter in the first segment (weread, 123pan, com-123-xxx).
_LINUX_NAME_RE = re.compile(r"[0-9]*[a-z]+[0-9]*-?[0-9]*[a-z]*[0-9]*-?[0-9]*[a-z]*[0-9]*")

DEFAULT_WIX_LANGUAGES = ["zh-CN", "en-US"]


def validate_name(name: str, target: TargetPlatform) -> None:
    if not name or not name.strip():
        raise InvalidOptionsError("package name cannot be empty")
    if target == TargetPlatform.LINUX and not _LINUX_NAME_RE.fullmatch(name):
        raise InvalidOptionsError(
            f"package name {name!r} is illegal: it must be lowercase letters, numbers and dashes, "
            "and it must contain a lowercase letter",
            hint="E.g. com-123-xxx, 123pan, pan123, weread, we-read",
        )


def windows_icon_names(name: str) -> tuple[str, str]:
    """Relative paths of the 32px and 256px .ico copies for *name*."""
    lower = name.lower()
    return f"png/{lower}_32.ico", f"png/{lower}_256.ico"


def _set_windows_icons(bundle: dict[str, Any], rel32: str, rel256: str) -> None:
    bundle["icon"] = [rel256, rel32]
    bundle["resources"] = [rel32]


class ConfigResolver:
    """Merges BuildOptions into a base Tauri config for one build context."""

    def __init__(self, context: BuildContext):
        self.context = context
        self.meta = get_platform_meta(context.target)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(
        self,
        url: str,
        options: BuildOptions,
        base: dict[str, Any],
        *,
        installer: Optional[InstallerFormat] = None,
    ) -> BuildDescriptor:
        """Return a new descriptor; *base* is left untouched.

        *installer* pins ``bundle.targets``; None keeps the base targets.
        Only icon copies are written here, the config files are written by
        :meth:`persist`.
        """
        validate_name(options.name, self.context.target)

        data = copy.deepcopy(base)
        warnings: list[str] = []

        tauri = data.setdefault("tauri", {})
        windows = tauri.setdefault("windows", [{}])
        if not windows:
            windows.append({})
        windows[0].update(
            {
                "url": url,
                "width": options.width,
                "height": options.height,
                "fullscreen": options.fullscreen,
                "transparent": options.transparent,
                "resizable": options.resizable,
            }
        )
        package = data.setdefault("package", {})
        package["productName"] = options.name
        package["version"] = options.version
        bundle = tauri.setdefault("bundle", {})
        bundle["identifier"] = options.identifier
        if installer is None and not bundle.get("targets"):
            # Left empty by an earlier cross build; an empty list skips bundling.
            bundle["targets"] = "all"

        self._resolve_icon(options, bundle, warnings)

        if self.context.windows_family:
            self._relativize_icons(bundle, warnings)
            wix = bundle.setdefault("windows", {}).setdefault("wix", {})
            if not wix.get("language"):
                wix["language"] = list(DEFAULT_WIX_LANGUAGES)

        for w in warnings:
            logger.warning("[resolve] %s", w)

        descriptor = BuildDescriptor(
            data=data,
            display_name=options.name,
            product_name=options.name,
            installer=installer,
            config_path=self.platform_config_path(),
            warnings=tuple(warnings),
        )
        if installer is None:
            return descriptor
        return descriptor.with_installer(installer)

    def platform_config_path(self) -> Path:
        ctx = self.context
        if ctx.host == TargetPlatform.WINDOWS or ctx.cross_compile:
            name = get_platform_meta(TargetPlatform.WINDOWS).config_file
        else:
            name = get_platform_meta(ctx.host).config_file
        return ctx.tauri_dir / name

    def persist(self, descriptor: BuildDescriptor) -> None:
        """Write the bundle-only file and the full ``tauri.conf.json``."""
        self._write_json(descriptor.config_path, descriptor.bundle_document())
        self._write_json(self.context.main_config_path, descriptor.data)
        logger.info(
            "[resolve] Wrote %s and %s (productName=%s, targets=%s)",
            descriptor.config_path,
            self.context.main_config_path,
            descriptor.product_name,
            descriptor.bundle.get("targets"),
        )

    # ------------------------------------------------------------------
    # Icons
    # ------------------------------------------------------------------

    def _resolve_icon(self, options: BuildOptions, bundle: dict[str, Any], warnings: list[str]) -> None:
        icon = Path(options.icon) if options.icon else None
        ext = self.meta.icon_ext

        if icon is not None and icon.is_file():
            if icon.suffix.lower() != ext:
                warnings.append(
                    f"icon file for {self.context.target.value} must be {ext} type, "
                    f"but you gave {icon.suffix or 'no extension'}"
                )
            elif self._adopt_icon(icon, options.name, bundle, warnings):
                return
        elif options.icon:
            warnings.append(f"the custom icon path may not exist: {options.icon}")
        else:
            warnings.append("no custom icon given")

        if self._adopt_default_icon(options.name, bundle, warnings):
            warnings.append(f"using the default {ext} icon instead")
            return

        # Keep only base icons that exist on disk.
        tauri_dir = self.context.tauri_dir
        icons = bundle.get("icon") or []
        kept = [i for i in (icons if isinstance(icons, list) else [icons]) if (tauri_dir / i).is_file()]
        if kept:
            bundle["icon"] = kept
            warnings.append("default icon files not found, keeping the configured icons")
        else:
            bundle.pop("icon", None)
            warnings.append("default icon files not found, the app will use the system default icon")
        if "resources" in bundle:
            bundle["resources"] = [
                r for r in bundle["resources"] if not str(r).endswith(".ico") or (tauri_dir / r).is_file()
            ]

    def _adopt_icon(self, icon: Path, name: str, bundle: dict[str, Any], warnings: list[str]) -> bool:
        if self.context.windows_family:
            return self._install_windows_icons(icon, icon, name, bundle, warnings)
        if self.context.target == TargetPlatform.LINUX:
            bundle.get("deb", {}).pop("files", None)
        bundle["icon"] = [str(icon.resolve())]
        return True

    def _adopt_default_icon(self, name: str, bundle: dict[str, Any], warnings: list[str]) -> bool:
        tauri_dir = self.context.tauri_dir
        defaults = [tauri_dir / rel for rel in self.meta.default_icons]
        if not all(p.is_file() for p in defaults):
            return False
        if not self.context.windows_family:
            bundle["icon"] = list(self.meta.default_icons)
            return True
        icon32, icon256 = defaults
        if not self._install_windows_icons(icon32, icon256, name, bundle, warnings):
            rel32, rel256 = self.meta.default_icons
            _set_windows_icons(bundle, rel32, rel256)
            warnings.append("referencing the bundled default icons directly")
        return True

    def _install_windows_icons(
        self, src32: Path, src256: Path, name: str, bundle: dict[str, Any], warnings: list[str]
    ) -> bool:
        """Copy the icons to ``png/<name>_{32,256}.ico``; bundle is only updated if both exist."""
        rel32, rel256 = windows_icon_names(name)
        tauri_dir = self.context.tauri_dir
        for src, rel in ((src32, rel32), (src256, rel256)):
            dest = tauri_dir / rel
            if dest.exists() and src.resolve() == dest.resolve():
                continue
            try:
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(src, dest)
            except OSError as exc:
                warnings.append(f"could not copy icon {src} to {dest}: {exc}")
                return False
        _set_windows_icons(bundle, rel32, rel256)
        return True

    def _relativize_icons(self, bundle: dict[str, Any], warnings: list[str]) -> None:
        icons = bundle.get("icon")
        if not icons:
            return
        if not isinstance(icons, list):
            icons = [icons]
        out: list[str] = []
        for icon in icons:
            if os.path.isabs(icon):
                try:
                    icon = Path(os.path.relpath(icon, self.context.tauri_dir)).as_posix()
                except ValueError:
                    warnings.append(f"icon {icon} is on another drive and stays absolute")
            out.append(icon)
        bundle["icon"] = out

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @staticmethod
    def _write_json(path: Path, document: dict[str, Any]) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            raise DescriptorWriteError(f"Could not write build config {path}: {exc}") from exc


def read_descriptor_file(path: Path) -> Optional[dict[str, Any]]:
    """Read back a persisted config document, None if it does not exist."""
    if not path.exists():
        return None
    return json.loads(path.read_text(encoding="utf-8"))
