"""
Package-level logging configuration.

* Rich console output (colourised, nicely formatted).
* Rotating **JSON** log file inside ``code/logs/`` when a dataset root is
  known (or ``$SCANOMATIC_LOG_DIR`` when set).
* Optional plain-text mirror controlled via ``--save-logfile`` on the CLI.

The public helper :func:`setup_logging` wires everything and should be the
sole entry-point used by sub-commands. :func:`flush_logging` is the matching
teardown used when a resolution fails and the process is about to exit.
"""

from __future__ import annotations

import atexit
import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional

import structlog
from rich.console import Console
from rich.logging import RichHandler
from structlog.dev import ConsoleRenderer as StructlogConsoleRenderer
from structlog.stdlib import LoggerFactory

__all__ = ["setup_logging", "flush_logging"]

LOG_DIR_ENV = "SCANOMATIC_LOG_DIR"

# Handlers attached by the last setup_logging() call.
_INSTALLED: list[logging.Handler] = []


# --------------------------------------------------------------------------- #
# Internal helpers – file-based handlers                                      #
# --------------------------------------------------------------------------- #
def _json_log_dir(dataset_root: Path | None) -> Path | None:
    """Return the directory that receives the rotating JSON log, if any."""
    env_dir = os.environ.get(LOG_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser()
    if dataset_root is not None:
        return dataset_root / "code" / "logs"
    return None


def _json_file_handler(dataset_root: Path | None, level: int) -> logging.Handler | None:
    """Return a rotating *JSON* file handler or *None*.

    Args:
        dataset_root: BIDS dataset root; determines the log directory when
            ``SCANOMATIC_LOG_DIR`` is not set.
        level: Log-level for the handler.

    Returns:
        Handler writing ``scanomatic.log`` under the resolved directory, or
        *None* when neither the environment variable nor a dataset root is
        available.
    """
    logdir = _json_log_dir(dataset_root)
    if logdir is None:
        return None
    logdir.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        filename=logdir / "scanomatic.log",
        maxBytes=5_000_000,  # ~5 MB before rollover
        backupCount=3,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def _plain_text_file_handler(
    path: Optional[Path], level: int
) -> logging.Handler | None:
    """Return a plain-text file handler or *None* when *path* is *None*."""
    if path is None:
        return None

    path = path.expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(path, encoding="utf-8", mode="a")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    # Ensure the buffer is flushed on interpreter exit.
    atexit.register(handler.close)
    return handler


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #
def setup_logging(
    *,
    dataset_root: Path | None = None,
    verbose: bool = False,
    debug: bool = False,
    extra_text_log: Optional[Path] = None,
) -> None:
    """Configure rich console logging and optional file mirrors.

    Args:
        dataset_root: BIDS dataset root used to determine JSON log location.
        verbose: Emit INFO-level messages to the console.
        debug: Emit DEBUG-level messages plus rich tracebacks with locals.
        extra_text_log: Optional path for a plain-text mirror of console output.
    """
    console_lvl = (
        logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    )
    file_lvl = logging.DEBUG if debug else logging.INFO

    handlers: list[logging.Handler] = [
        RichHandler(
            level=console_lvl,
            console=Console(stderr=True),
            rich_tracebacks=True,
            tracebacks_show_locals=debug,
            markup=False,
            show_path=debug,
        )
    ]

    json_handler = _json_file_handler(dataset_root, file_lvl)
    if json_handler:
        handlers.append(json_handler)

    txt_handler = _plain_text_file_handler(extra_text_log, console_lvl)
    if txt_handler:
        handlers.append(txt_handler)

    logging.basicConfig(
        level=logging.DEBUG,  # root logger stays at DEBUG
        handlers=handlers,
        format="%(message)s",  # Rich/structlog handle formatting
        force=True,
    )
    _INSTALLED[:] = handlers

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            (
                StructlogConsoleRenderer(colors=sys.stderr.isatty())
                if verbose or debug
                else structlog.processors.JSONRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(console_lvl),
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def flush_logging() -> None:
    """Flush, close and detach the handlers installed by :func:`setup_logging`.

    Called by the CLI before it exits on a fatal resolution error so that the
    JSON and plain-text mirrors contain the final message.
    """
    root = logging.getLogger()
    while _INSTALLED:
        handler = _INSTALLED.pop()
        try:
            handler.flush()
        finally:
            handler.close()
            root.removeHandler(handler)
