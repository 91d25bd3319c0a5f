"""
FieldAgent uploads - upload files to Sentera cloud storage through the
FieldAgent GraphQL API.
"""

from .exceptions import (
  FileUploadError,
  FinalizationError,
  IncompleteManifestError,
  InitiationError,
  InvalidInputError,
  PartUploadError,
  PartUrlError,
  ReadError,
  TooManyPartsError,
  UploadError,
)
from .uploads import (
  FileUploadOwner,
  MultipartUploadConfig,
  MultipartUploader,
  SingleFileUploader,
  plan_parts,
  upload_file,
  upload_file_single,
  upload_multipart,
  upload_single,
)

__all__ = [
  "FileUploadError",
  "FileUploadOwner",
  "FinalizationError",
  "IncompleteManifestError",
  "InitiationError",
  "InvalidInputError",
  "MultipartUploadConfig",
  "MultipartUploader",
  "PartUploadError",
  "PartUrlError",
  "ReadError",
  "SingleFileUploader",
  "TooManyPartsError",
  "UploadError",
  "plan_parts",
  "upload_file",
  "upload_file_single",
  "upload_multipart",
  "upload_single",
]
