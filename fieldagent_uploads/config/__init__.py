"""
Centralized configuration package for FieldAgent uploads.

Single source of truth for environment settings, backend constants and
logging configuration.
"""

from .constants import MAX_PARTS, MIB, MIN_PART_SIZE, UPLOAD_SUCCESS_STATUS
from .env import EnvConfig, env

__all__ = [
  "EnvConfig",
  "MAX_PARTS",
  "MIB",
  "MIN_PART_SIZE",
  "UPLOAD_SUCCESS_STATUS",
  "env",
]
