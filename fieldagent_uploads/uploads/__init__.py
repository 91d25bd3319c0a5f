"""
File upload workflows for the FieldAgent GraphQL API.
"""

from .api import upload_file, upload_file_single, upload_multipart, upload_single
from .models import (
  CompletionManifest,
  FileUploadOwner,
  PartResult,
  PartSpec,
  SingleUploadTicket,
  UploadSession,
  UploadState,
)
from .multipart import (
  MultipartUploadConfig,
  MultipartUploader,
  MultipartUploadRun,
  strip_etag,
)
from .planner import count_parts, plan_parts
from .single import SingleFileUploader
from .sources import ByteSource, open_source

__all__ = [
  "ByteSource",
  "CompletionManifest",
  "FileUploadOwner",
  "MultipartUploadConfig",
  "MultipartUploadRun",
  "MultipartUploader",
  "PartResult",
  "PartSpec",
  "SingleFileUploader",
  "SingleUploadTicket",
  "UploadSession",
  "UploadState",
  "count_parts",
  "open_source",
  "plan_parts",
  "strip_etag",
  "upload_file",
  "upload_file_single",
  "upload_multipart",
  "upload_single",
]
