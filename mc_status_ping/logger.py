"""Root logger configuration for the ``mc-status-ping`` command.

Query results go to stdout; diagnostics always go to stderr so they never
mix with ``--json`` output.  A size-rotated log file is added when
``logging.file`` is set in the config.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import LoggingConfig

LOG_FORMAT = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _add_handler(root: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)


def setup_logging(cfg: LoggingConfig) -> None:
    """Install stderr (and optionally file) handlers on the root logger.

    Any handlers present beforehand, such as the bootstrap ``basicConfig``
    handler from :func:`mc_status_ping.__main__.main`, are removed first.
    Unknown level names fall back to INFO.
    """
    level = logging.getLevelName(cfg.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    _add_handler(root, logging.StreamHandler(sys.stderr), level)

    if cfg.file:
        Path(cfg.file).parent.mkdir(parents=True, exist_ok=True)
        _add_handler(
            root,
            RotatingFileHandler(
                cfg.file,
                maxBytes=cfg.max_bytes,
                backupCount=cfg.backup_count,
                encoding="utf-8",
            ),
            level,
        )
