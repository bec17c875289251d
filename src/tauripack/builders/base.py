"""Builder interface shared by the platform builders (mac, win, win-cross, linux)."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

import click

from .. import toolchain
from ..config import BuildOptions, EnvOverrides
from ..context import BuildContext
from ..descriptor import BuildDescriptor, load_base_descriptor
from ..errors import (
    ArtifactNotFoundError,
    BuildError,
    DescriptorWriteError,
    FatalBuildError,
    InvalidOptionsError,
    MissingToolchainError,
    ToolchainInstallError,
    UnsupportedPlatformError,
)
from ..resolver import ConfigResolver

logger = logging.getLogger("tauripack.builders")

__all__ = [
    "ArtifactKind",
    "ArtifactNotFoundError",
    "BuildArtifact",
    "BuildError",
    "Builder",
    "DescriptorWriteError",
    "FatalBuildError",
    "InvalidOptionsError",
    "MissingToolchainError",
    "ToolchainInstallError",
    "UnsupportedPlatformError",
    "find_first",
]


class ArtifactKind(str, Enum):
    PRIMARY_INSTALLER = "primary-installer"
    FALLBACK_INSTALLER = "fallback-installer"
    BARE_EXECUTABLE = "bare-executable"
    SECONDARY_BUNDLE = "secondary-bundle"


@dataclass
class BuildArtifact:
    """A located build output and the caller-visible copy made of it."""

    kind: ArtifactKind
    source: Path
    path: Path
    searched: list[Path] = field(default_factory=list)
    extra: list["BuildArtifact"] = field(default_factory=list)


def find_first(candidates: Iterable[Path]) -> Optional[Path]:
    """Return the first candidate that is an existing regular file."""
    for c in candidates:
        if c.is_file():
            return c
    return None


def _default_confirm(message: str) -> bool:
    return click.confirm(message, default=True)


class Builder(ABC):
    """Abstract base for platform builders.

    A builder owns its descriptors for the duration of one ``build()`` call;
    use one builder per concurrent build.
    """

    def __init__(
        self,
        context: BuildContext,
        *,
        confirm: Optional[Callable[[str], bool]] = None,
        on_log: Optional[Callable[[str], None]] = None,
        base_descriptor: Optional[dict[str, Any]] = None,
        env: Optional[EnvOverrides] = None,
    ):
        self.context = context
        self.confirm = confirm or _default_confirm
        self.on_log = on_log
        if base_descriptor is None:
            base_descriptor = load_base_descriptor(context.main_config_path)
        self.base_descriptor = base_descriptor
        self.env = env or EnvOverrides.from_env()
        self.resolver = ConfigResolver(context)

    @property
    @abstractmethod
    def platform_name(self) -> str:
        """Return the variant identifier (mac, win, win-cross, linux)."""

    @abstractmethod
    def prepare(self) -> None:
        """Verify the toolchain for this target, offering installs where possible.

        Raises MissingToolchainError when a required tool is absent and no
        remedy was accepted.
        """

    @abstractmethod
    def build(self, url: str, options: BuildOptions) -> BuildArtifact:
        """Resolve config, run the external build and copy out the artifact."""

    # ------------------------------------------------------------------
    # Helpers shared by all builders
    # ------------------------------------------------------------------

    def _log(self, msg: str) -> None:
        logger.info(msg)
        if self.on_log:
            try:
                self.on_log(msg)
            except Exception:
                logger.debug("[builder] on_log callback failed", exc_info=True)

    def _warn(self, msg: str) -> None:
        logger.warning(msg)
        if self.on_log:
            try:
                self.on_log(msg)
            except Exception:
                logger.debug("[builder] on_log callback failed", exc_info=True)

    def _ensure_rust(self, status: toolchain.ToolchainStatus) -> bool:
        """Offer to install Rust if missing; return True when it is available."""
        if status.rust:
            self._log("[prepare] ✓ Rust is installed")
            return True
        self._warn("[prepare] Rust is not installed.")
        if not self.confirm("We detected that you have not installed Rust. Install it now?"):
            logger.error("[prepare] tauripack needs Rust to package your webapp")
            return False
        toolchain.install_rust(self.context.host)
        return True

    def _require(self, missing: list[str], *, hint: Optional[str] = None) -> None:
        if missing:
            raise MissingToolchainError(
                f"Missing required toolchain: {', '.join(missing)}. Please fix the errors and try again.",
                hint=hint,
            )

    def _resolve_and_persist(self, url: str, options: BuildOptions, **kw: Any) -> BuildDescriptor:
        descriptor = self.resolver.resolve(url, options, self.base_descriptor, **kw)
        self.resolver.persist(descriptor)
        return descriptor

    def _copy_out(self, source: Path, filename: str) -> Path:
        dest = self.context.output_dir / filename
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, dest)
        return dest

    def _run_shell(
        self,
        cmd: str,
        *,
        cwd: Optional[Path] = None,
        env: Optional[dict[str, str]] = None,
    ) -> tuple[int, str, str]:
        """Run a shell command to completion, stream stdout, return (rc, stdout, stderr)."""
        cwd = cwd or self.context.build_root
        run_env = os.environ.copy()
        if env:
            run_env.update(env)

        logger.debug("[builder] Running shell: %s (cwd=%s)", cmd, cwd)
        t0 = time.monotonic()

        try:
            proc = subprocess.Popen(
                cmd,
                shell=True,
                cwd=str(cwd),
                env=run_env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                bufsize=1,
            )
        except OSError as exc:
            logger.error("[builder] Could not start %s in %s: %s", cmd, cwd, exc)
            return -1, "", str(exc)
        logger.debug("[builder] Process started pid=%d", proc.pid)

        stdout_lines: list[str] = []
        if proc.stdout:
            for line in proc.stdout:
                s = line.rstrip("\n")
                stdout_lines.append(s)
                logger.debug("%s", s)
                if self.on_log:
                    try:
                        self.on_log(s)
                    except Exception:
                        pass
        rc = proc.wait()

        elapsed = time.monotonic() - t0
        if rc != 0:
            tail = "\n".join(stdout_lines[-15:]) if stdout_lines else "(no output)"
            logger.warning("[builder] Command failed (exit=%d) in %.1fs: %s\nOutput tail:\n%s", rc, elapsed, cmd, tail)
        else:
            logger.info("[builder] Command succeeded (exit=0) in %.1fs: %s", elapsed, cmd)

        return rc, "\n".join(stdout_lines), ""

    def _exec(self, cmd: str, *, cwd: Optional[Path] = None) -> None:
        """Run *cmd*; any non-zero exit is a build failure."""
        cwd = cwd or self.context.build_root
        self._log(f"[build] $ {cmd}")
        rc, _, stderr = self._run_shell(cmd, cwd=cwd)
        if rc != 0:
            detail = f": {stderr}" if stderr else ""
            raise BuildError(f"Build command failed with exit code {rc} (cwd={cwd}): {cmd}{detail}")

