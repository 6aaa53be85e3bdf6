# app_meta.py
from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

APP_NAME = "SinkSwap"
APP_ID = "sinkswap"
VERSION = "0.3.0"


def detect_version() -> str:
    try:
        return version(APP_ID)
    except PackageNotFoundError:
        return VERSION
