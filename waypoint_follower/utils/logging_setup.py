from __future__ import annotations

import logging
import logging.handlers
import os
from typing import Optional

from ..core.types import FollowerSettings

CONSOLE_FORMAT = "%(levelname)s [%(name)s] %(message)s"
FILE_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s [%(name)s] %(message)s"


def setup_logging(settings: FollowerSettings, to_file: bool = True) -> Optional[str]:
    """Configure the root logger for a follower run.

    The console gets a short format. When ``to_file`` is set and
    ``settings.log_file`` is not empty, every record is also written with
    millisecond timestamps to a rotating file, so per-tick DEBUG output can be
    lined up against the control rate afterwards.

    Returns:
        Absolute path of the log file, or None when logging to console only.
    """
    lvl = getattr(logging, settings.log_level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(lvl)

    for h in list(root.handlers):
        root.removeHandler(h)

    ch = logging.StreamHandler()
    ch.setLevel(lvl)
    ch.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root.addHandler(ch)

    if not to_file or not settings.log_file:
        return None

    path = os.path.abspath(settings.log_file)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    fh = logging.handlers.RotatingFileHandler(
        path, maxBytes=settings.log_max_bytes, backupCount=settings.log_backup_count, encoding="utf-8"
    )
    fh.setLevel(lvl)
    fh.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(fh)
    return path
