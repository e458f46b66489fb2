"""
Logging configuration for the back office.

Two renderings of the same records:
- console: one human-readable line per record (DEBUG default)
- json: one JSON object per line on stdout (production default)

Commands log with extra={...}. The JSON formatter keeps the tenant and
ledger identifiers (company_id, transaction_number, ...) at the top level
so log queries can filter on them; every other extra lands under "extra".

Environment variables:
- LOG_FORMAT: "json" or "console"
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR
- SQL_LOG: "True" to echo queries when DEBUG is on
"""
import json
import logging
import os
from datetime import datetime, timezone

# Loggers of our own apps; each gets the console handler and LOG_LEVEL.
APP_LOGGERS = ("accounts", "people", "accounting", "reports", "ops", "celery")

# Extras promoted next to "message" in JSON output.
CONTEXT_KEYS = (
    "company_id",
    "company",
    "user_id",
    "membership_id",
    "transaction_number",
    "payment_id",
    "quote_id",
    "task_id",
)

_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


def get_logging_config(debug: bool = False) -> dict:
    """Return the Django LOGGING dict for the current environment."""
    log_level = os.environ.get("LOG_LEVEL", "DEBUG" if debug else "INFO")
    log_format = os.environ.get("LOG_FORMAT", "console" if debug else "json")
    sql_log = debug and os.environ.get("SQL_LOG", "False") == "True"

    formatters = {
        "json": {"()": "ops.logging_config.JsonFormatter"},
        "console": {
            "format": "[{asctime}] {levelname:<7} {name}: {message}",
            "style": "{",
        },
    }

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json" if log_format == "json" else "console",
                "stream": "ext://sys.stdout",
            },
            "null": {"class": "logging.NullHandler"},
        },
        "root": {"handlers": ["console"], "level": log_level},
        "loggers": {
            "django": {"handlers": ["console"], "level": log_level, "propagate": False},
            "django.request": {
                "handlers": ["console"],
                "level": log_level if debug else "ERROR",
                "propagate": False,
            },
            "django.db.backends": {
                "handlers": ["console"] if sql_log else ["null"],
                "level": "DEBUG",
                "propagate": False,
            },
        },
    }

    for name in APP_LOGGERS:
        config["loggers"][name] = {"handlers": ["console"], "level": log_level, "propagate": False}

    return config


def _jsonable(value):
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record:
    {"timestamp", "level", "logger", "message", <context keys>, "extra"?, "exception"?}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extras = {
            key: _jsonable(value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
        }
        for key in CONTEXT_KEYS:
            if key in extras:
                entry[key] = extras.pop(key)
        if extras:
            entry["extra"] = extras

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
            entry["location"] = f"{record.pathname}:{record.lineno}"

        return json.dumps(entry, default=str)
