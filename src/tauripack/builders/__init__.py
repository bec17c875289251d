"""Platform builders (macOS, Windows native/cross, Linux)."""

from .base import (
    ArtifactKind,
    ArtifactNotFoundError,
    BuildArtifact,
    BuildError,
    Builder,
    MissingToolchainError,
)
from .linux import LinuxBuilder
from .mac import MacBuilder
from .windows import CrossWindowsBuilder, NativeWindowsBuilder
from .registry import create_builder, get_builder_class

__all__ = [
    "ArtifactKind",
    "ArtifactNotFoundError",
    "BuildArtifact",
    "BuildError",
    "Builder",
    "CrossWindowsBuilder",
    "LinuxBuilder",
    "MacBuilder",
    "MissingToolchainError",
    "NativeWindowsBuilder",
    "create_builder",
    "get_builder_class",
]
