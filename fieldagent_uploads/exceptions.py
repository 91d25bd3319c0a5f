"""
Custom Exception Types for FieldAgent uploads.

Every failure surfaced by an upload workflow derives from FileUploadError so
callers can catch one type, while the concrete subclass names the step that
failed. Each exception carries a machine-readable error code and a details
mapping for debugging.
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class FileUploadError(Exception):
  """
  Base exception for all upload workflow errors.

  Attributes:
      message: Human-readable error message
      error_code: Application-specific error code for categorization
      details: Additional error context and metadata
      timestamp: When the error occurred
  """

  def __init__(
    self,
    message: str,
    error_code: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
  ):
    super().__init__(message)
    self.message = message
    self.error_code = error_code or self.__class__.__name__
    self.details = details or {}
    self.timestamp = datetime.now(timezone.utc).isoformat()

  def to_dict(self) -> Dict[str, Any]:
    """Convert exception to dictionary for reporting."""
    return {
      "error": self.error_code,
      "message": self.message,
      "details": self.details,
      "timestamp": self.timestamp,
    }


# ============================================================================
# Planning Exceptions
# ============================================================================


class InvalidInputError(FileUploadError):
  """Raised when part planning receives bad parameters."""

  def __init__(self, message: str, **details: Any):
    super().__init__(message, error_code="INVALID_INPUT", details=details)


class TooManyPartsError(InvalidInputError):
  """Raised when a file would need more parts than the backend allows."""

  def __init__(self, total_size: int, part_count: int, max_parts: int):
    super().__init__(
      f"File of {total_size} bytes needs {part_count} parts, "
      f"more than the {max_parts} allowed",
      total_size=total_size,
      part_count=part_count,
      max_parts=max_parts,
    )
    self.error_code = "TOO_MANY_PARTS"


# ============================================================================
# Workflow Step Exceptions
# ============================================================================


class InitiationError(FileUploadError):
  """Raised when the upload cannot be created on the server."""

  def __init__(self, reason: str, **details: Any):
    super().__init__(
      f"Failed to create file upload: {reason}",
      error_code="INITIATION_FAILED",
      details={"reason": reason, **details},
    )


class ReadError(FileUploadError):
  """Raised when the source holds fewer bytes than the plan declared."""

  def __init__(self, part_number: int, expected: int, actual: int, offset: int):
    super().__init__(
      f"Short read for part {part_number}: expected {expected} bytes at "
      f"offset {offset}, got {actual}. The file changed after the upload started",
      error_code="READ_FAILED",
      details={
        "part_number": part_number,
        "expected": expected,
        "actual": actual,
        "offset": offset,
      },
    )
    self.part_number = part_number


class UploadError(FileUploadError):
  """Raised when bytes could not be PUT to storage."""

  def __init__(
    self,
    message: str,
    status_code: Optional[int] = None,
    error_code: Optional[str] = None,
    **details: Any,
  ):
    if status_code is not None:
      details["status_code"] = status_code
    super().__init__(message, error_code=error_code or "UPLOAD_FAILED", details=details)
    self.status_code = status_code


class PartUrlError(UploadError):
  """Raised when a pre-signed URL for a part cannot be obtained."""

  def __init__(self, part_number: int, reason: str):
    super().__init__(
      f"Failed to prepare part {part_number}: {reason}",
      error_code="PART_URL_FAILED",
      part_number=part_number,
      reason=reason,
    )
    self.part_number = part_number


class PartUploadError(UploadError):
  """Raised when the PUT of a part does not succeed."""

  def __init__(
    self, part_number: int, reason: str, status_code: Optional[int] = None
  ):
    super().__init__(
      f"Error uploading part {part_number}: {reason}",
      status_code=status_code,
      error_code="PART_UPLOAD_FAILED",
      part_number=part_number,
      reason=reason,
    )
    self.part_number = part_number


class FinalizationError(FileUploadError):
  """Raised when the multipart upload cannot be completed."""

  def __init__(self, reason: str, **details: Any):
    super().__init__(
      f"Failed to complete multipart upload: {reason}",
      error_code="FINALIZATION_FAILED",
      details={"reason": reason, **details},
    )


class IncompleteManifestError(FinalizationError):
  """Raised when part results don't cover the plan exactly once each."""

  def __init__(
    self,
    missing: Optional[list] = None,
    duplicates: Optional[list] = None,
    unexpected: Optional[list] = None,
  ):
    super().__init__(
      "completion manifest does not match the part plan",
      missing=missing or [],
      duplicates=duplicates or [],
      unexpected=unexpected or [],
    )
    self.error_code = "INCOMPLETE_MANIFEST"
