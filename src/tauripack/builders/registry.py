"""Builder registry – resolve the right Builder for a target platform."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from ..context import BuildContext
from ..errors import UnsupportedPlatformError
from ..targets import TargetPlatform, parse_platform
from .base import Builder
from .linux import LinuxBuilder
from .mac import MacBuilder
from .windows import CrossWindowsBuilder, NativeWindowsBuilder

logger = logging.getLogger("tauripack.builders")

_NATIVE_BUILDERS: dict[TargetPlatform, type[Builder]] = {
    TargetPlatform.MAC: MacBuilder,
    TargetPlatform.WINDOWS: NativeWindowsBuilder,
    TargetPlatform.LINUX: LinuxBuilder,
}

# Only Windows can be cross-compiled, from any supported host.
_CROSS_BUILDERS: dict[TargetPlatform, type[Builder]] = {
    TargetPlatform.WINDOWS: CrossWindowsBuilder,
}


def get_builder_class(target: TargetPlatform, host: TargetPlatform) -> type[Builder]:
    """Return the builder class for building *target* on *host*."""
    if target == host:
        return _NATIVE_BUILDERS[target]
    cls = _CROSS_BUILDERS.get(target)
    if cls is None:
        raise UnsupportedPlatformError(
            f"Cannot build for {target.value} on a {host.value} host; build on {target.value} instead"
        )
    return cls


def create_builder(
    target: Optional[TargetPlatform | str] = None,
    *,
    build_root: Optional[Path | str] = None,
    context: Optional[BuildContext] = None,
    **kwargs: Any,
) -> Builder:
    """Create the builder for an explicit *target*, or for the host if omitted.

    Extra keyword arguments are passed to the builder constructor.
    """
    if isinstance(target, str):
        try:
            target = parse_platform(target)
        except ValueError as exc:
            raise UnsupportedPlatformError(str(exc)) from None

    if context is None:
        context = BuildContext.create(build_root or Path.cwd(), target=target)
    elif target is not None and context.target != target:
        raise UnsupportedPlatformError(
            f"Target {target.value} does not match the build context target {context.target.value}"
        )

    cls = get_builder_class(context.target, context.host)
    if context.cross_compile:
        logger.info("Cross-compiling a Windows app: a .exe is produced instead of an installer")
    return cls(context, **kwargs)
