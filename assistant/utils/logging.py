"""
Logging for the assistant.

Every module logs through ``get_logger("assistant.<area>")``; one stderr
handler is attached to the ``assistant`` namespace on first use.  The
provider SDKs and their HTTP stack log every request at INFO, so they
are held at WARNING unless the assistant itself runs at DEBUG.
"""

from __future__ import annotations

import logging
import sys

NAMESPACE = "assistant"
LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"

# SDK loggers that are chatty at INFO
_NOISY_LOGGERS = ("openai", "httpx", "httpcore", "google_genai")

_configured = False


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: int | str = logging.INFO) -> None:
    """Attach the stderr handler once; later calls only adjust the level."""
    global _configured
    numeric = _resolve_level(level)
    root = logging.getLogger(NAMESPACE)
    root.setLevel(numeric)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if numeric <= logging.DEBUG else logging.WARNING)

    if _configured:
        for handler in root.handlers:
            handler.setLevel(numeric)
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    if not _configured:
        setup_logging()
    return logging.getLogger(name)
