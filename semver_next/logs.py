import json
import logging
from typing import Any

logger = logging.getLogger("semver_next")

_structured = True


def setup_logging(level: str | None, default: int = logging.WARNING, structured: bool = True) -> None:
    global _structured
    _structured = structured
    if not logger.handlers:
        handler = logging.StreamHandler()  # stderr, stdout carries results
        logger.addHandler(handler)
    logger.setLevel((level or "").upper() or default)


def log_event(log: logging.Logger, event: str, **fields: Any) -> None:
    """Emit one structured event line (or a plain one when structured logging is off)."""
    if _structured:
        log.info(json.dumps({"event": event, **fields}, default=str))
    else:
        log.info("%s %s", event, " ".join(f"{k}={v}" for k, v in fields.items()))
