"""Configuration models for tauripack builds."""

import os
import re

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .errors import InvalidOptionsError
from .targets import InstallerFormat, TargetPlatform, parse_installer, parse_platform


def to_dns_label(value: str, *, max_len: int = 63, fallback: str = "app") -> str:
    v = (value or "").lower().strip()
    v = re.sub(r"[^a-z0-9]+", "-", v)
    v = re.sub(r"-+", "-", v).strip("-")
    if not v:
        v = fallback
    return v[:max_len]


def _truthy(value: Optional[str]) -> bool:
    return str(value or "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class BuildOptions:
    """User-supplied packaging options for one application."""
    name: str
    url: str
    width: int = 1200
    height: int = 780
    resizable: bool = True
    fullscreen: bool = False
    transparent: bool = False
    identifier: str = ""
    icon: str = ""
    target: Optional[TargetPlatform] = None
    version: str = "1.0.0"
    multi_arch: bool = False
    installer: Optional[InstallerFormat] = None
    force_msi: bool = False

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise InvalidOptionsError("package name cannot be empty")
        if not self.identifier:
            object.__setattr__(self, "identifier", f"com.tauripack.{to_dns_label(self.name)}")

    @classmethod
    def from_dict(cls, data: dict) -> "BuildOptions":
        return cls(
            name=str(data.get("name") or ""),
            url=str(data.get("url") or ""),
            width=int(data.get("width", 1200)),
            height=int(data.get("height", 780)),
            resizable=bool(data.get("resizable", True)),
            fullscreen=bool(data.get("fullscreen", False)),
            transparent=bool(data.get("transparent", False)),
            identifier=str(data.get("identifier") or ""),
            icon=str(data.get("icon") or ""),
            target=parse_platform(data.get("target")),
            version=str(data.get("version") or "1.0.0"),
            multi_arch=bool(data.get("multi_arch", False)),
            installer=parse_installer(data.get("installer")),
            force_msi=bool(data.get("force_msi", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["target"] = self.target.value if self.target else None
        data["installer"] = self.installer.value if self.installer else None
        return data

    def to_yaml(self, path: Path) -> None:
        """Save options to a YAML file."""
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False, allow_unicode=True)


@dataclass
class EnvOverrides:
    """Settings taken from the environment (``TAURIPACK_*``)."""
    windows_installer: Optional[InstallerFormat] = None
    force_msi: bool = False
    build_root: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[dict[str, str]] = None) -> "EnvOverrides":
        src = env if env is not None else os.environ

        def clean(value: Optional[str]) -> Optional[str]:
            if value is None:
                return None
            v = str(value).strip()
            return v or None

        return cls(
            windows_installer=parse_installer(clean(src.get("TAURIPACK_WINDOWS_INSTALLER"))),
            force_msi=_truthy(src.get("TAURIPACK_FORCE_MSI")),
            build_root=clean(src.get("TAURIPACK_BUILD_ROOT")),
            log_level=(clean(src.get("TAURIPACK_LOG_LEVEL")) or "INFO").upper(),
        )

    def requested_installer(self, options: BuildOptions) -> InstallerFormat:
        """Installer requested for a native Windows build; NSIS unless overridden."""
        return options.installer or self.windows_installer or InstallerFormat.NSIS

    def msi_forced(self, options: BuildOptions) -> bool:
        return options.force_msi or self.force_msi


@dataclass
class ProjectConfig:
    """A ``tauripack.yaml`` file: build options plus the build root."""
    options: BuildOptions
    build_root: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_yaml(cls, path: Path) -> "ProjectConfig":
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise InvalidOptionsError(f"Config file must contain a mapping: {path}")
        build_root = data.pop("build_root", None)
        known = set(BuildOptions.__dataclass_fields__)
        extra = {k: v for k, v in data.items() if k not in known}
        options = BuildOptions.from_dict({k: v for k, v in data.items() if k in known})
        if build_root and not os.path.isabs(build_root):
            build_root = str((path.parent / build_root).resolve())
        return cls(options=options, build_root=build_root, extra=extra)


def load_options(path: str | Path) -> ProjectConfig:
    """Load build options from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    return ProjectConfig.from_yaml(path)
