"""
Logging utilities with consistent formatting and request correlation.
"""
import logging
import os
from contextvars import ContextVar
from typing import Final

LEVEL_TAGS: Final[dict[str, str]] = {
    "DEBUG": "debug",
    "INFO": "info",
    "WARNING": "warn",
    "ERROR": "error",
    "CRITICAL": "fatal",
    "SUCCESS": "ok",
}

PREFIX: Final[str] = "VideoGrid"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Add SUCCESS level
SUCCESS_LEVEL: Final[int] = 25  # Between INFO (20) and WARNING (30)
logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")

_VALID_LEVELS: Final[dict[str, int]] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class CorrelationFilter(logging.Filter):
    """Inject `request_id` from `request_id_var` into each log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("")
        return True


class TaggedFormatter(logging.Formatter):
    """Single-line formatter: `VideoGrid [level] name [rid]: message`."""

    def format(self, record: logging.LogRecord) -> str:
        tag = LEVEL_TAGS.get(record.levelname, record.levelname.lower())
        rid = str(getattr(record, "request_id", "") or "").strip()
        rid_part = f" [{rid}]" if rid else ""
        formatter = logging.Formatter(f"{PREFIX} [{tag}] %(name)s{rid_part}: %(message)s")
        return formatter.format(record)


def resolve_log_level() -> int:
    """
    Resolve the process log level from the environment.

    `VG_LOG_LEVEL` wins when set and must name a standard level; otherwise
    `VG_DEV=1` selects DEBUG and everything else INFO.

    Raises:
        ValueError: `VG_LOG_LEVEL` is set to an unknown level name.
    """
    raw = (os.environ.get("VG_LOG_LEVEL") or "").strip().upper()
    if raw:
        if raw not in _VALID_LEVELS:
            raise ValueError(f"Invalid log level: {raw}")
        return _VALID_LEVELS[raw]
    if (os.environ.get("VG_DEV") or "").strip().lower() in ("1", "true", "yes", "on"):
        return logging.DEBUG
    return logging.INFO


def _ensure_correlation_filter(logger: logging.Logger) -> None:
    if any(isinstance(f, CorrelationFilter) for f in logger.filters):
        return
    logger.addFilter(CorrelationFilter())


def get_logger(name: str, level: int | None = None) -> logging.Logger:
    """
    Get a logger under the `videogrid.` namespace.

    Args:
        name: Logger name (usually __name__)
        level: Optional logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured logger instance
    """
    if name.startswith("__main__"):
        name = "main"
    elif "." in name:
        parts = name.split(".")
        if parts[0] in ("vg_backend", "vg_shared"):
            name = ".".join(parts[1:]) or parts[0]

    logger = logging.getLogger(f"videogrid.{name}")
    _ensure_correlation_filter(logger)

    if level is not None:
        logger.setLevel(level)

    root = logging.getLogger("videogrid")
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(TaggedFormatter())
        handler.addFilter(CorrelationFilter())
        root.addHandler(handler)
        root.setLevel(logging.INFO)
        # Prevent propagation to avoid duplicate logs
        root.propagate = False

    return logger


def log_success(logger: logging.Logger, message: str) -> None:
    """
    Log a success message at the SUCCESS level.

    Args:
        logger: Logger instance
        message: Success message
    """
    logger.log(SUCCESS_LEVEL, message)

