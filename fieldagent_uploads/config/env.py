"""
Centralized environment variable configuration.

This module provides a single source of truth for all environment variables,
with type conversions and default values.

Organization:
- Helper functions for type-safe env var access
- Core application settings
- FieldAgent API connection
- Upload behavior
"""

import os
from pathlib import Path
from typing import Optional

from .constants import (
  DEFAULT_ACCESS_TOKEN_FILENAME,
  DEFAULT_FIELDAGENT_SERVER,
  DEFAULT_MAX_CONCURRENCY,
  DEFAULT_MAX_RETRIES,
  DEFAULT_RETRY_BACKOFF,
  DEFAULT_RETRY_DELAY,
  GRAPHQL_PATH,
)


# ==========================================================================
# HELPER FUNCTIONS FOR TYPE-SAFE ENVIRONMENT VARIABLE ACCESS
# ==========================================================================


def get_int_env(key: str, default: int) -> int:
  """
  Get an integer environment variable with safe type conversion.

  Args:
      key: Environment variable name
      default: Default value if not set or invalid

  Returns:
      Integer value from environment or default
  """
  try:
    return int(os.getenv(key, str(default)))
  except (ValueError, TypeError):
    # Use print instead of logger to avoid circular import
    print(f"Warning: Invalid {key} value, using default: {default}")
    return default


def get_float_env(key: str, default: float) -> float:
  """
  Get a float environment variable with safe type conversion.

  Args:
      key: Environment variable name
      default: Default value if not set or invalid

  Returns:
      Float value from environment or default
  """
  try:
    return float(os.getenv(key, str(default)))
  except (ValueError, TypeError):
    print(f"Warning: Invalid {key} value, using default: {default}")
    return default


def get_bool_env(key: str, default: bool = False) -> bool:
  """Get a boolean environment variable."""
  value = os.getenv(key, str(default)).lower()
  return value in ("true", "1", "yes", "on")


def get_str_env(key: str, default: str = "") -> str:
  """Get a string environment variable."""
  return os.getenv(key, default)


def load_access_token(path: str) -> Optional[str]:
  """
  Read the FieldAgent access token from a file on disk.

  Returns None when the file doesn't exist or is empty.
  """
  token_file = Path(path).expanduser()
  if not token_file.is_file():
    return None
  token = token_file.read_text().strip()
  return token or None


# ==========================================================================
# MAIN CONFIGURATION CLASS
# ==========================================================================


class EnvConfig:
  """
  Centralized environment variable configuration.

  Variables are organized into logical groups for easier maintenance.
  All variables use type-safe helper functions for consistent behavior.
  """

  # ==========================================================================
  # CORE APPLICATION SETTINGS
  # ==========================================================================

  ENVIRONMENT = get_str_env("ENVIRONMENT", "dev")
  LOG_LEVEL = get_str_env("LOG_LEVEL", "INFO")

  # ==========================================================================
  # FIELDAGENT API
  # ==========================================================================

  # Defaults to FieldAgent production
  FIELDAGENT_SERVER = get_str_env("FIELDAGENT_SERVER", DEFAULT_FIELDAGENT_SERVER)
  FIELDAGENT_ACCESS_TOKEN_FILE = get_str_env(
    "FIELDAGENT_ACCESS_TOKEN_FILE", DEFAULT_ACCESS_TOKEN_FILENAME
  )
  FIELDAGENT_ACCESS_TOKEN = get_str_env("FIELDAGENT_ACCESS_TOKEN", "") or None

  # ==========================================================================
  # UPLOAD BEHAVIOR
  # ==========================================================================

  UPLOAD_MAX_CONCURRENCY = get_int_env(
    "UPLOAD_MAX_CONCURRENCY", DEFAULT_MAX_CONCURRENCY
  )
  UPLOAD_PART_MAX_RETRIES = get_int_env("UPLOAD_PART_MAX_RETRIES", DEFAULT_MAX_RETRIES)
  UPLOAD_RETRY_DELAY = get_float_env("UPLOAD_RETRY_DELAY", DEFAULT_RETRY_DELAY)
  UPLOAD_RETRY_BACKOFF = get_float_env("UPLOAD_RETRY_BACKOFF", DEFAULT_RETRY_BACKOFF)
  UPLOAD_ABORT_ON_FAILURE = get_bool_env("UPLOAD_ABORT_ON_FAILURE", True)

  # ==========================================================================
  # HELPER METHODS
  # ==========================================================================

  @classmethod
  def graphql_endpoint(cls) -> str:
    """Full URL of the FieldAgent GraphQL endpoint."""
    return cls.FIELDAGENT_SERVER.rstrip("/") + GRAPHQL_PATH

  @classmethod
  def access_token(cls) -> Optional[str]:
    """
    Resolve the access token.

    The FIELDAGENT_ACCESS_TOKEN variable wins; otherwise the token file is read.
    """
    if cls.FIELDAGENT_ACCESS_TOKEN:
      return cls.FIELDAGENT_ACCESS_TOKEN
    return load_access_token(cls.FIELDAGENT_ACCESS_TOKEN_FILE)


# ==========================================================================
# SINGLETON INSTANCE
# ==========================================================================

env = EnvConfig()
