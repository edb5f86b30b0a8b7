"""Logging configuration driven by LOG_LEVEL / LOG_FORMAT."""
import json
import logging
import sys
from datetime import datetime, timezone

from app.middleware.correlation import get_current_correlation_id

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] cid=%(cid)s %(message)s"


class CorrelationIdFilter(logging.Filter):
    """Inject the current correlation id into every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "cid", None):
            record.cid = get_current_correlation_id() or "-"
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "cid": getattr(record, "cid", "-"),
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Configure the root logger once; repeated calls replace our handler."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_taskforge", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler._taskforge = True
    handler.addFilter(CorrelationIdFilter())
    if fmt.lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root.addHandler(handler)
    root.setLevel(level.upper())
