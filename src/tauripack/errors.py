"""Build error model with distinct process exit codes."""

from __future__ import annotations

from enum import IntEnum
from pathlib import Path
from typing import Iterable, Optional


class ExitCode(IntEnum):
    """Exit statuses the CLI reports for each fatal failure class."""

    BUILD_FAILED = 1
    MISSING_TOOLCHAIN = 2
    INSTALL_FAILED = 3
    INVALID_OPTIONS = 4


class BuildError(Exception):
    """Raised when a build operation fails."""

    exit_code: ExitCode = ExitCode.BUILD_FAILED

    def __init__(self, message: str, *, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.hint = hint

    def __str__(self) -> str:
        msg = super().__str__()
        if self.hint:
            return f"{msg}\n{self.hint}"
        return msg


class UnsupportedPlatformError(BuildError):
    """No builder exists for the requested host/target combination."""


class DescriptorWriteError(BuildError):
    """The resolved descriptor could not be persisted."""


class ArtifactNotFoundError(BuildError):
    """The build finished but no expected output file exists."""

    def __init__(self, message: str, searched: Iterable[Path], *, hint: Optional[str] = None) -> None:
        self.searched = list(dict.fromkeys(Path(p) for p in searched))
        lines = [message, "Searched:"] + [f"  - {p}" for p in self.searched]
        super().__init__("\n".join(lines), hint=hint)


class FatalBuildError(BuildError):
    """A failure that must stop the process; no fallback applies."""


class MissingToolchainError(FatalBuildError):
    exit_code = ExitCode.MISSING_TOOLCHAIN


class ToolchainInstallError(FatalBuildError):
    exit_code = ExitCode.INSTALL_FAILED


class InvalidOptionsError(FatalBuildError):
    exit_code = ExitCode.INVALID_OPTIONS
