# log_setup.py
from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from app_meta import APP_ID

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def log_dir() -> Path:
    data = os.environ.get("XDG_DATA_HOME") or os.path.expanduser("~/.local/share")
    return Path(data) / APP_ID / "logs"


def setup_logging(verbose: bool = False, to_file: bool = True) -> Optional[Path]:
    """
    Configure the root of this app's loggers once. Returns the log file path.

    Module loggers are plain `logging.getLogger(__name__)`; they reach these
    handlers through the root logger.
    """
    root = logging.getLogger()
    if getattr(root, "_sinkswap_configured", False):
        return getattr(root, "_sinkswap_log_file", None)

    root.setLevel(logging.DEBUG)
    formatter = logging.Formatter(LOG_FORMAT)

    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG if verbose else logging.WARNING)
    ch.setFormatter(formatter)
    root.addHandler(ch)

    log_file: Optional[Path] = None
    if to_file:
        try:
            d = log_dir()
            d.mkdir(parents=True, exist_ok=True)
            log_file = d / f"{APP_ID}_{datetime.now().strftime('%Y-%m-%d')}.log"
            fh = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(formatter)
            root.addHandler(fh)
        except OSError as e:
            log_file = None
            logging.getLogger(__name__).warning("File logging disabled: %s", e)

    root._sinkswap_configured = True  # type: ignore[attr-defined]
    root._sinkswap_log_file = log_file  # type: ignore[attr-defined]
    return log_file
