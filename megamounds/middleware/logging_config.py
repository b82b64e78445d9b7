"""
Logging setup for the dashboard API.

Production writes one JSON object per line so the log shipper can index
request fields (project, role, duration). Development and tests get a
short coloured line per record.
"""

import json
import logging
import sys
from datetime import datetime, timezone

# Attributes set via ``extra=`` by the timing middleware and services.
REQUEST_FIELDS = (
    "request_id", "method", "path", "status", "duration_ms",
    "remote_addr", "profile_id", "role", "project_id",
)

QUIET_LOGGERS = ("werkzeug", "sqlalchemy.engine", "alembic", "urllib3")


def _with_traceback(formatter: logging.Formatter, record: logging.LogRecord, text: str) -> str:
    if record.exc_info and record.exc_info[0] is not None:
        return f"{text}\n{formatter.formatException(record.exc_info)}"
    return text


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update(
            (field, getattr(record, field))
            for field in REQUEST_FIELDS
            if getattr(record, field, None) is not None
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    LEVEL_COLOURS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        colour = self.LEVEL_COLOURS.get(record.levelname, "")
        line = f"{colour}{clock} {record.levelname:<8}{self.RESET} {record.name}: {record.getMessage()}"

        project_id = getattr(record, "project_id", None)
        if project_id is not None:
            line += f" project={project_id}"
        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            line += f" [{duration:.0f}ms]"
        return _with_traceback(self, record, line)


def configure_logging(app):
    """Install a single stderr handler on the root logger.

    The level comes from ``LOG_LEVEL`` when set, otherwise INFO in
    production and DEBUG elsewhere. Existing root handlers are replaced so
    building several apps in one process does not duplicate output.
    """
    testing = bool(app.config.get("TESTING"))
    production = not testing and not app.config.get("DEBUG")

    level_name = (app.config.get("LOG_LEVEL") or ("INFO" if production else "DEBUG")).upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if production else ReadableFormatter())
    handler.setLevel(level)

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not testing:
        app.logger.info("Logging ready (level=%s, json=%s)", level_name, production)
