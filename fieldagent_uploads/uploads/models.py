"""Data models for the upload workflows."""

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from fieldagent_uploads.exceptions import IncompleteManifestError


class UploadSession(BaseModel):
  """Server-side multipart upload created by create_multipart_file_upload."""

  model_config = ConfigDict(
    frozen=True, populate_by_name=True, coerce_numbers_to_str=True
  )

  file_id: str = Field(..., min_length=1, description="ID used to attach the file")
  owner_id: str = Field(
    ...,
    min_length=1,
    alias="owner_sentera_id",
    description="Sentera ID of the file owner created for this upload",
  )
  storage_key: str = Field(
    ..., min_length=1, alias="s3_key", description="Key of the object being assembled"
  )
  upload_id: str = Field(..., min_length=1, description="Storage upload ID")


class SingleUploadTicket(BaseModel):
  """Pre-signed target returned by create_file_upload."""

  model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

  file_id: str = Field(..., min_length=1, alias="id")
  url: str = Field(..., min_length=1)
  headers: Dict[str, str] = Field(default_factory=dict)


class FileUploadOwner(BaseModel):
  """
  Owner descriptor for a multipart upload.

  The API creates an owner of ``owner_type`` (MOSAIC, FEATURE_SET, ...)
  inside the resource identified by ``parent_sentera_id``.
  """

  model_config = ConfigDict(frozen=True)

  parent_sentera_id: str = Field(..., min_length=1)
  owner_type: str = Field(..., min_length=1)


class PartResult(BaseModel):
  """Storage ETag recorded for one uploaded part."""

  model_config = ConfigDict(frozen=True)

  part_number: int = Field(..., ge=1)
  etag: str


@dataclass(frozen=True)
class PartSpec:
  """Byte range of one part, numbered from 1."""

  part_number: int
  byte_offset: int
  byte_length: int

  @property
  def end_offset(self) -> int:
    return self.byte_offset + self.byte_length


PartPlan = Tuple[PartSpec, ...]


class CompletionManifest(Sequence[PartResult]):
  """
  Ordered part results covering a plan exactly once each.

  Only ``from_results`` builds one, so holding a manifest means the
  multipart upload can be completed.
  """

  def __init__(self, parts: Tuple[PartResult, ...]):
    self._parts = parts

  @classmethod
  def from_results(
    cls, results: Iterable[PartResult], plan: Sequence[PartSpec]
  ) -> "CompletionManifest":
    """
    Sort results by part number and check them against the plan.

    Raises:
        IncompleteManifestError: On missing, duplicate or unplanned parts
    """
    ordered = sorted(results, key=lambda result: result.part_number)
    expected = [spec.part_number for spec in plan]
    seen = Counter(result.part_number for result in ordered)

    duplicates = sorted(n for n, count in seen.items() if count > 1)
    missing = [n for n in expected if n not in seen]
    unexpected = sorted(set(seen) - set(expected))

    if duplicates or missing or unexpected:
      raise IncompleteManifestError(
        missing=missing, duplicates=duplicates, unexpected=unexpected
      )

    return cls(tuple(ordered))

  def __getitem__(self, index):
    return self._parts[index]

  def __len__(self) -> int:
    return len(self._parts)

  def __iter__(self) -> Iterator[PartResult]:
    return iter(self._parts)

  def __repr__(self) -> str:
    return f"CompletionManifest({list(self._parts)!r})"

  def to_variables(self) -> List[Dict[str, Any]]:
    """Serialize as the ``parts`` variable of complete_multipart_file_upload."""
    return [part.model_dump() for part in self._parts]


class UploadState(str, Enum):
  """Lifecycle of one multipart upload call."""

  UNINITIATED = "uninitiated"
  INITIATED = "initiated"
  PARTS_PENDING = "parts_pending"
  PARTS_COMPLETE = "parts_complete"
  FINALIZED = "finalized"
  FAILED = "failed"


ALLOWED_TRANSITIONS: Dict[UploadState, Tuple[UploadState, ...]] = {
  UploadState.UNINITIATED: (UploadState.INITIATED, UploadState.FAILED),
  UploadState.INITIATED: (UploadState.PARTS_PENDING, UploadState.FAILED),
  UploadState.PARTS_PENDING: (UploadState.PARTS_COMPLETE, UploadState.FAILED),
  UploadState.PARTS_COMPLETE: (UploadState.FINALIZED, UploadState.FAILED),
  UploadState.FINALIZED: (),
  UploadState.FAILED: (),
}
