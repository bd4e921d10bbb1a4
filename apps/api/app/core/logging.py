import logging
import sys

from app.core.config import settings

LOG_LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

_LOGGING_INITIALIZED = False


def setup_logging(level: str | None = None) -> None:
    """Attach one stdout handler to the root logger (idempotent)."""
    global _LOGGING_INITIALIZED
    if _LOGGING_INITIALIZED:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel((level or settings.log_level).upper())

    # uvicorn installs its own handlers; route them through ours
    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        log = logging.getLogger(logger_name)
        log.handlers = []
        log.propagate = True

    # httpx logs every request at INFO, including the proxied API key in the URL
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _LOGGING_INITIALIZED = True
