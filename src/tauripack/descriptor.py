"""Build descriptor: the merged Tauri config written for the external toolchain."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

from .errors import BuildError
from .targets import InstallerFormat

DEFAULT_VERSION = "1.0.0"


def default_tauri_conf() -> dict[str, Any]:
    """Return a fresh copy of the base Tauri (v1 schema) configuration."""
    return {
        "package": {"productName": "tauripack", "version": DEFAULT_VERSION},
        "tauri": {
            "windows": [
                {
                    "url": "",
                    "transparent": False,
                    "fullscreen": False,
                    "width": 1200,
                    "height": 780,
                    "resizable": True,
                }
            ],
            "security": {"csp": None},
            "updater": {"active": False},
            "bundle": {
                "active": True,
                "identifier": "com.tauripack.app",
                "category": "DeveloperTool",
                "copyright": "",
                "deb": {
                    "depends": ["libwebkit2gtk-4.0-dev", "curl", "wget"],
                    "files": {"/usr/share/applications/tauripack.desktop": "assets/tauripack.desktop"},
                },
                "externalBin": [],
                "longDescription": "",
                "macOS": {
                    "entitlements": None,
                    "exceptionDomain": "",
                    "frameworks": [],
                    "providerShortName": None,
                    "signingIdentity": None,
                },
                "resources": [],
                "shortDescription": "",
                "targets": "all",
                "windows": {
                    "certificateThumbprint": None,
                    "digestAlgorithm": "sha256",
                    "timestampUrl": "",
                },
            },
        },
        "build": {
            "devPath": "../dist",
            "distDir": "../dist",
            "beforeBuildCommand": "",
            "beforeDevCommand": "",
        },
    }


def load_base_descriptor(path: Path) -> dict[str, Any]:
    """Load a base config document from *path*, or the packaged default if absent."""
    if not path.exists():
        return default_tauri_conf()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise BuildError(f"Could not read Tauri config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise BuildError(f"Tauri config {path} must contain a JSON object")
    return data


@dataclass(frozen=True)
class BuildDescriptor:
    """A resolved, platform-specific Tauri configuration.

    ``data`` is owned by this value; variants are produced with the
    ``with_*`` helpers which deep-copy it.
    """

    data: dict[str, Any]
    display_name: str
    product_name: str
    installer: Optional[InstallerFormat]
    config_path: Path
    warnings: tuple[str, ...] = ()
    substitutions: tuple[str, ...] = ()

    @property
    def bundle(self) -> dict[str, Any]:
        return self.data["tauri"]["bundle"]

    @property
    def version(self) -> str:
        return str(self.data.get("package", {}).get("version") or DEFAULT_VERSION)

    def bundle_document(self) -> dict[str, Any]:
        """Packaging-only sub-descriptor written to the platform config file."""
        return {"tauri": {"bundle": copy.deepcopy(self.bundle)}}

    def with_installer(self, installer: InstallerFormat, *, reason: str = "") -> "BuildDescriptor":
        data = copy.deepcopy(self.data)
        data["tauri"]["bundle"]["targets"] = [] if installer == InstallerFormat.NONE else [installer.value]
        subs = self.substitutions + ((reason,) if reason else ())
        return replace(self, data=data, installer=installer, substitutions=subs)

    def with_product_name(self, product_name: str, *, reason: str = "") -> "BuildDescriptor":
        data = copy.deepcopy(self.data)
        data["package"]["productName"] = product_name
        subs = self.substitutions + ((reason,) if reason else ())
        return replace(self, data=data, product_name=product_name, substitutions=subs)
