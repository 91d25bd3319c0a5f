"""
Structured Logging Configuration for FieldAgent uploads.

Key Features:
- Structured JSON output outside of development
- Plain console output for development
- Automatic log level management by environment
- Upload event and error helpers that attach searchable fields
"""

import json
import logging
import logging.config
import traceback
from datetime import datetime, timezone
from typing import Any

from fieldagent_uploads.config.env import EnvConfig

# Fields copied from the record onto the JSON entry when present
_STRUCTURED_FIELDS = (
  "action",
  "file_id",
  "storage_key",
  "upload_id",
  "part_number",
  "byte_length",
  "status_code",
  "duration_ms",
  "attempt",
)


class StructuredFormatter(logging.Formatter):
  """
  JSON formatter producing one searchable object per log line.

  - Timestamp in ISO format
  - Consistent field names for filtering
  - Component/action structure
  - Metadata preserved as searchable fields
  """

  def format(self, record: logging.LogRecord) -> str:
    log_entry: dict[str, Any] = {
      "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
      .isoformat()
      .replace("+00:00", "Z"),
      "level": record.levelname,
      "component": getattr(record, "component", record.name),
      "message": record.getMessage(),
    }

    for name in _STRUCTURED_FIELDS:
      if hasattr(record, name):
        log_entry[name] = getattr(record, name)

    if record.levelno >= logging.ERROR:
      if record.exc_info:
        log_entry["error"] = {
          "type": record.exc_info[0].__name__ if record.exc_info[0] else "Unknown",
          "message": str(record.exc_info[1]) if record.exc_info[1] else "",
          "traceback": traceback.format_exception(*record.exc_info),
        }

      if hasattr(record, "error_category"):
        log_entry["error_category"] = record.error_category

    if hasattr(record, "metadata"):
      log_entry["metadata"] = record.metadata

    return json.dumps(log_entry, default=str, separators=(",", ":"))


def get_logging_config(environment: str | None = None) -> dict[str, Any]:
  """
  Generate logging configuration based on environment.

  - prod: INFO level, structured output
  - test: WARNING level, minimal output for clean test runs
  - dev: LOG_LEVEL (default INFO), plain console output
  """
  env = environment or EnvConfig.ENVIRONMENT

  if env in ("prod", "production"):
    default_level = "INFO"
  elif env in ("test", "testing"):
    default_level = "WARNING"
  else:
    default_level = EnvConfig.LOG_LEVEL.upper() or "INFO"

  structured = env not in ("dev", "development", "local")

  return {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
      "structured": {
        "()": StructuredFormatter,
      },
      "simple": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
    },
    "handlers": {
      "console": {
        "class": "logging.StreamHandler",
        "level": default_level,
        "formatter": "structured" if structured else "simple",
        "stream": "ext://sys.stderr",
      },
    },
    "loggers": {
      "fieldagent_uploads": {
        "level": default_level,
        "handlers": ["console"],
        "propagate": False,
      },
      # Third-party loggers (reduced verbosity)
      "httpx": {
        "level": "WARNING",
        "handlers": ["console"],
        "propagate": False,
      },
      "httpcore": {
        "level": "WARNING",
        "handlers": ["console"],
        "propagate": False,
      },
    },
    "root": {
      "level": "WARNING",
      "handlers": ["console"],
    },
  }


def setup_logging(environment: str | None = None) -> None:
  """Initialize structured logging configuration."""
  logging.config.dictConfig(get_logging_config(environment))


def get_logger(name: str) -> logging.Logger:
  """Get a logger with structured logging capabilities."""
  return logging.getLogger(name)


def log_upload_event(
  logger: logging.Logger,
  action: str,
  message: str,
  level: int = logging.INFO,
  **fields: Any,
) -> None:
  """Log an upload lifecycle event with structured fields."""
  extra = {"component": "uploads", "action": action}
  extra.update({key: value for key, value in fields.items() if value is not None})
  logger.log(level, message, extra=extra)


def log_error(
  logger: logging.Logger,
  error: Exception,
  component: str,
  action: str,
  error_category: str = "application",
  metadata: dict[str, Any] | None = None,
) -> None:
  """Log error with structured data for easy searching."""
  logger.error(
    f"Error in {component}.{action}: {error!s}",
    exc_info=error,
    extra={
      "component": component,
      "action": action,
      "error_category": error_category,
      "metadata": metadata or {},
    },
  )


def mask_secret(value: str, visible: int = 8) -> str:
  """Keep the first few characters of a secret for debug output."""
  if len(value) <= visible:
    return "***"
  return value[:visible] + "..."
