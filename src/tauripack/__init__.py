"""tauripack – package a web page into a native desktop app with Tauri"""

__version__ = "0.1.0"

from .config import BuildOptions, EnvOverrides, ProjectConfig, load_options
from .context import BuildContext
from .descriptor import BuildDescriptor, default_tauri_conf
from .errors import (
    ArtifactNotFoundError,
    BuildError,
    DescriptorWriteError,
    ExitCode,
    FatalBuildError,
    InvalidOptionsError,
    MissingToolchainError,
    ToolchainInstallError,
    UnsupportedPlatformError,
)
from .resolver import ConfigResolver
from .targets import InstallerFormat, TargetPlatform, detect_host
from .toolchain import ToolchainStatus, probe_toolchain
from .builders import (
    ArtifactKind,
    BuildArtifact,
    Builder,
    CrossWindowsBuilder,
    LinuxBuilder,
    MacBuilder,
    NativeWindowsBuilder,
    create_builder,
)

__all__ = [
    "__version__",
    "ArtifactKind",
    "ArtifactNotFoundError",
    "BuildArtifact",
    "BuildContext",
    "BuildDescriptor",
    "BuildError",
    "BuildOptions",
    "Builder",
    "ConfigResolver",
    "CrossWindowsBuilder",
    "DescriptorWriteError",
    "EnvOverrides",
    "ExitCode",
    "FatalBuildError",
    "InstallerFormat",
    "InvalidOptionsError",
    "LinuxBuilder",
    "MacBuilder",
    "MissingToolchainError",
    "NativeWindowsBuilder",
    "ProjectConfig",
    "TargetPlatform",
    "ToolchainInstallError",
    "ToolchainStatus",
    "UnsupportedPlatformError",
    "create_builder",
    "default_tauri_conf",
    "detect_host",
    "load_options",
    "probe_toolchain",
]
