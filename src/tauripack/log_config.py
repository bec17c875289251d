"""
Centralized logging configuration for tauripack.

Usage at the entry point (cli.py):

    from tauripack.log_config import setup_logging
    setup_logging()

Library modules only create loggers under the ``tauripack`` namespace
(``tauripack.builders``, ``tauripack.resolver``, ``tauripack.toolchain``);
handlers are installed here, once per process.
"""

from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from .config import EnvOverrides

_initialized = False


def setup_logging(
    *,
    level: Optional[str] = None,
    console: Optional[Console] = None,
    show_path: bool = False,
) -> None:
    """
    Attach a rich handler to the ``tauripack`` logger.

    Args:
        level: Minimum log level. Defaults to TAURIPACK_LOG_LEVEL or INFO.
        console: Console to render to (stderr by default).
        show_path: Show the emitting module path next to each record.
    """
    global _initialized

    if _initialized:
        return

    level = (level or EnvOverrides.from_env().log_level).upper()
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=show_path,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger("tauripack")
    root.setLevel(level)
    root.addHandler(handler)
    root.propagate = False

    _initialized = True
