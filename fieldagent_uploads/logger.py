"""
FieldAgent uploads logging.

Exposes the package loggers along with convenience helpers that keep call
sites short. Handlers are left to the host application; the CLI installs the
structured configuration through setup_logging.
"""

import logging
from typing import Any, Dict, Optional

from .config.logging import (
  get_logger,
  log_error,
  log_upload_event,
)

logger = get_logger("fieldagent_uploads")
if not any(isinstance(h, logging.NullHandler) for h in logger.handlers):
  logger.addHandler(logging.NullHandler())

uploads_logger = get_logger("fieldagent_uploads.uploads")
client_logger = get_logger("fieldagent_uploads.client")


def log_upload(
  action: str,
  message: str,
  level: int = logging.INFO,
  **fields: Any,
) -> None:
  """Log upload lifecycle events with structured data."""
  log_upload_event(uploads_logger, action, message, level, **fields)


def log_app_error(
  error: Exception,
  component: str,
  action: str,
  error_category: str = "application",
  metadata: Optional[Dict[str, Any]] = None,
) -> None:
  """Log application errors with context."""
  log_error(logger, error, component, action, error_category, metadata)


__all__ = [
  "logger",
  "uploads_logger",
  "client_logger",
  "log_upload",
  "log_app_error",
  "get_logger",
]
