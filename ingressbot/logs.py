from __future__ import annotations

import logging
import sys

# zap-style level names accepted in LOG_LEVEL
LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "dpanic": logging.CRITICAL,
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
}

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def resolve_level(name: str | None) -> int:
    if not name:
        return logging.INFO
    return LOG_LEVELS.get(name.strip().lower(), logging.INFO)


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger with a single stdout handler."""
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(resolve_level(level))
