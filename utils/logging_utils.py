"""Process-wide logging setup.

Modules log through ``logging.getLogger(__name__)`` with event-style messages
and structured ``extra`` fields; this attaches one stream handler to the root
logger that renders those fields after the message.
"""
from __future__ import annotations

import logging

_LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARN,
    "warning": logging.WARN,
    "error": logging.ERROR,
}

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED = set(vars(logging.LogRecord("x", 0, "x", 0, "", None, None))) | {"message", "asctime"}


class ExtraFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = {k: v for k, v in vars(record).items() if k not in _RESERVED}
        if not extras:
            return base
        return base + " " + " ".join(f"{k}={v}" for k, v in sorted(extras.items()))


def configure_logging(level: str = "info") -> None:
    root = logging.getLogger()
    if not any(getattr(h, "_kundali_handler", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(ExtraFormatter("[%(levelname)s] %(name)s: %(message)s"))
        handler._kundali_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(_LEVEL_MAP.get(level.lower(), logging.INFO))
