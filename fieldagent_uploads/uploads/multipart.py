"""
Multipart upload orchestration.

Drives one multipart upload end to end:

1. plan fixed-size parts
2. create_multipart_file_upload to open a storage-side upload
3. for every part, prepare_multipart_file_upload_part for a pre-signed URL,
   PUT the bytes and keep the returned ETag
4. complete_multipart_file_upload with the ordered part list

Parts are uploaded by concurrent tasks bounded by a semaphore. Any part that
still fails after its retries cancels the remaining tasks, and the completion
call is never made with a partial part list.

Create, prepare and complete bypass the gateway's retries. Create and
complete are not idempotent, and part URL requests are retried by the
per-part loop here.
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ValidationError

from fieldagent_uploads.client.exceptions import GatewayAPIError
from fieldagent_uploads.client.graphql import extract_field
from fieldagent_uploads.client.interfaces import GraphQLRequester, UploadTransport
from fieldagent_uploads.config import env
from fieldagent_uploads.config.constants import (
  MAX_CONCURRENCY,
  MIN_CONCURRENCY,
  MIN_PART_SIZE,
  UPLOAD_SUCCESS_STATUS,
)
from fieldagent_uploads.exceptions import (
  FinalizationError,
  InitiationError,
  InvalidInputError,
  PartUploadError,
  PartUrlError,
  ReadError,
)
from fieldagent_uploads.logger import log_app_error, log_upload, uploads_logger as logger
from . import mutations
from .models import (
  ALLOWED_TRANSITIONS,
  CompletionManifest,
  FileUploadOwner,
  PartPlan,
  PartResult,
  PartSpec,
  UploadSession,
  UploadState,
)
from .planner import plan_parts
from .sources import ByteSource, UploadInput, open_source

OwnerDescriptor = Union[FileUploadOwner, Mapping[str, Any]]
ProgressCallback = Callable[[PartSpec, PartResult], None]


@dataclass
class MultipartUploadConfig:
  """Behavior of the multipart orchestrator."""

  max_concurrency: int = env.UPLOAD_MAX_CONCURRENCY
  part_max_retries: int = env.UPLOAD_PART_MAX_RETRIES
  retry_delay: float = env.UPLOAD_RETRY_DELAY
  retry_backoff: float = env.UPLOAD_RETRY_BACKOFF
  abort_on_failure: bool = env.UPLOAD_ABORT_ON_FAILURE

  def __post_init__(self):
    if not MIN_CONCURRENCY <= self.max_concurrency <= MAX_CONCURRENCY:
      raise InvalidInputError(
        f"max_concurrency must be between {MIN_CONCURRENCY} and {MAX_CONCURRENCY}",
        max_concurrency=self.max_concurrency,
      )
    if self.part_max_retries < 0:
      raise InvalidInputError(
        "part_max_retries must be non-negative",
        part_max_retries=self.part_max_retries,
      )

  def retry_delay_for(self, attempt: int) -> float:
    """Exponential backoff with jitter for a 0-based attempt."""
    delay = self.retry_delay * (self.retry_backoff**attempt)
    return delay + random.uniform(0, delay * 0.1)


@dataclass
class MultipartUploadRun:
  """State of a single ``upload`` call."""

  filename: str
  byte_size: int
  content_type: str
  state: UploadState = UploadState.UNINITIATED
  session: Optional[UploadSession] = None
  plan: PartPlan = ()
  results: Dict[int, PartResult] = field(default_factory=dict)

  def transition(self, new_state: UploadState) -> None:
    if new_state not in ALLOWED_TRANSITIONS[self.state]:
      raise RuntimeError(
        f"Invalid upload state transition {self.state.value} -> {new_state.value}"
      )
    self.state = new_state

  def fail(self) -> None:
    if self.state is not UploadState.FAILED:
      self.transition(UploadState.FAILED)

  def record(self, result: PartResult) -> None:
    # one task per part number, so each key has a single writer
    self.results[result.part_number] = result


def strip_etag(etag: str) -> str:
  """Remove one layer of surrounding double quotes from an ETag."""
  if len(etag) >= 2 and etag[0] == etag[-1] == '"':
    return etag[1:-1]
  return etag


def owner_variables(owner: OwnerDescriptor) -> Dict[str, Any]:
  """Serialize an owner descriptor as the file_upload_owner variable."""
  if isinstance(owner, BaseModel):
    return owner.model_dump()
  return dict(owner)


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
  value = headers.get(name)
  if value is not None:
    return value
  lowered = name.lower()
  for key, value in headers.items():
    if key.lower() == lowered:
      return value
  return None


class MultipartUploader:
  """
  Uploads a file in parts through pre-signed URLs and completes the upload.

  Example:
      async with GraphQLGateway() as gateway, TransportClient() as transport:
          uploader = MultipartUploader(gateway, transport)
          file_id = await uploader.upload(
              "ortho.tif",
              "image/tiff",
              FileUploadOwner(parent_sentera_id="...", owner_type="MOSAIC"),
          )
  """

  def __init__(
    self,
    gateway: GraphQLRequester,
    transport: UploadTransport,
    config: Optional[MultipartUploadConfig] = None,
    progress_callback: Optional[ProgressCallback] = None,
  ):
    self.gateway = gateway
    self.transport = transport
    self.config = config or MultipartUploadConfig()
    self.progress_callback = progress_callback

  async def upload(
    self,
    file: UploadInput,
    content_type: str,
    owner: OwnerDescriptor,
    filename: Optional[str] = None,
  ) -> str:
    """
    Upload ``file`` and return the file ID to attach it with.

    Args:
        file: Path, bytes, or seekable binary file object
        content_type: MIME content type of the file
        owner: Owner descriptor passed as file_upload_owner
        filename: Name reported to the API; inferred from paths and file objects

    Raises:
        InvalidInputError: Unusable input or a file too large to plan
        InitiationError: The upload could not be created
        ReadError: The file shrank after the upload was created
        PartUrlError: A part URL could not be obtained after retries
        PartUploadError: A part could not be uploaded after retries
        FinalizationError: The upload could not be completed
    """
    with open_source(file, filename) as source:
      run = MultipartUploadRun(
        filename=source.name, byte_size=source.size, content_type=content_type
      )
      started = time.perf_counter()

      try:
        file_id = await self._run(run, source, owner)
      except asyncio.CancelledError:
        run.fail()
        raise
      except Exception as e:
        run.fail()
        log_app_error(
          e,
          component="uploads",
          action="multipart_upload",
          error_category="upload",
          metadata={
            "filename": run.filename,
            "storage_key": run.session.storage_key if run.session else None,
            "parts_uploaded": len(run.results),
            "parts_planned": len(run.plan),
          },
        )
        if run.session is not None and self.config.abort_on_failure:
          await self._abort(run.session)
        raise

      log_upload(
        "upload_completed",
        f"Uploaded {run.filename} ({run.byte_size:,} bytes) in {len(run.plan)} parts",
        file_id=file_id,
        storage_key=run.session.storage_key if run.session else None,
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
      )
      return file_id

  async def _run(
    self, run: MultipartUploadRun, source: ByteSource, owner: OwnerDescriptor
  ) -> str:
    # An unplannable file must fail before a server-side upload exists
    plan = plan_parts(run.byte_size, MIN_PART_SIZE)

    session = await self._initiate(run, owner)
    run.session = session
    run.transition(UploadState.INITIATED)

    run.plan = plan
    if run.byte_size == 0:
      logger.warning(
        f"{run.filename} is empty; uploading a single zero-length part"
      )
    run.transition(UploadState.PARTS_PENDING)

    await self._upload_parts(run, session, source)

    manifest = CompletionManifest.from_results(run.results.values(), run.plan)
    run.transition(UploadState.PARTS_COMPLETE)

    await self._finalize(session, manifest)
    run.transition(UploadState.FINALIZED)

    return session.file_id

  async def _initiate(
    self, run: MultipartUploadRun, owner: OwnerDescriptor
  ) -> UploadSession:
    log_upload("create_upload", "Create a multipart file upload", byte_length=run.byte_size)

    variables = {
      "byte_size": run.byte_size,
      "content_type": run.content_type,
      "filename": run.filename,
      "file_upload_owner": owner_variables(owner),
    }

    try:
      response = await self.gateway.request(
        mutations.CREATE_MULTIPART_FILE_UPLOAD, variables, retry=False
      )
      payload = extract_field(response, "create_multipart_file_upload")
    except GatewayAPIError as e:
      raise InitiationError(str(e), status_code=e.status_code) from e

    try:
      session = UploadSession.model_validate(payload)
    except ValidationError as e:
      raise InitiationError(
        "response is missing required fields",
        errors=[error["msg"] for error in e.errors()],
      ) from e

    log_upload(
      "upload_created",
      f"Created multipart upload {session.upload_id}",
      file_id=session.file_id,
      storage_key=session.storage_key,
      upload_id=session.upload_id,
    )
    return session

  async def _upload_parts(
    self, run: MultipartUploadRun, session: UploadSession, source: ByteSource
  ) -> None:
    semaphore = asyncio.Semaphore(self.config.max_concurrency)
    tasks = [
      asyncio.create_task(self._upload_part(run, session, source, spec, semaphore))
      for spec in run.plan
    ]

    try:
      await asyncio.gather(*tasks)
    except BaseException:
      for task in tasks:
        task.cancel()
      await asyncio.gather(*tasks, return_exceptions=True)
      raise

  async def _upload_part(
    self,
    run: MultipartUploadRun,
    session: UploadSession,
    source: ByteSource,
    spec: PartSpec,
    semaphore: asyncio.Semaphore,
  ) -> PartResult:
    async with semaphore:
      data = await asyncio.to_thread(
        source.read_range, spec.byte_offset, spec.byte_length
      )
      if len(data) != spec.byte_length:
        raise ReadError(
          spec.part_number, spec.byte_length, len(data), spec.byte_offset
        )

      attempts = self.config.part_max_retries + 1
      for attempt in range(attempts):
        try:
          url = await self._prepare_part(session, spec.part_number)
          result = await self._put_part(url, spec.part_number, data)
          break
        except (PartUrlError, PartUploadError) as e:
          if attempt + 1 >= attempts:
            raise
          delay = self.config.retry_delay_for(attempt)
          log_upload(
            "part_retry",
            f"Part {spec.part_number} failed (attempt {attempt + 1}/{attempts}), "
            f"retrying in {delay:.2f}s: {e}",
            level=logging.WARNING,
            part_number=spec.part_number,
            attempt=attempt + 1,
          )
          await asyncio.sleep(delay)

    run.record(result)
    log_upload(
      "part_uploaded",
      f"Uploaded part {spec.part_number}/{len(run.plan)}",
      part_number=spec.part_number,
      byte_length=spec.byte_length,
    )
    if self.progress_callback is not None:
      self.progress_callback(spec, result)
    return result

  async def _prepare_part(self, session: UploadSession, part_number: int) -> str:
    variables = {
      "part_number": part_number,
      "s3_key": session.storage_key,
      "upload_id": session.upload_id,
    }
    try:
      response = await self.gateway.request(
        mutations.PREPARE_MULTIPART_FILE_UPLOAD_PART, variables, retry=False
      )
      payload = extract_field(response, "prepare_multipart_file_upload_part")
    except GatewayAPIError as e:
      raise PartUrlError(part_number, str(e)) from e

    url = payload.get("url") if isinstance(payload, dict) else None
    if not url:
      raise PartUrlError(part_number, "response did not include a url")
    return url

  async def _put_part(self, url: str, part_number: int, data: bytes) -> PartResult:
    try:
      response = await self.transport.put(url, {}, data)
    except GatewayAPIError as e:
      raise PartUploadError(part_number, str(e)) from e

    logger.debug(f"upload part {part_number} response.code = {response.status_code}")

    if response.status_code != UPLOAD_SUCCESS_STATUS:
      raise PartUploadError(
        part_number,
        f"response code {response.status_code}",
        status_code=response.status_code,
      )

    etag = _header(response.headers, "ETag")
    if not etag:
      raise PartUploadError(
        part_number, "response did not include an ETag", status_code=200
      )

    return PartResult(part_number=part_number, etag=strip_etag(etag))

  async def _finalize(self, session: UploadSession, manifest: CompletionManifest) -> None:
    log_upload(
      "complete_upload",
      "Complete multipart file upload",
      storage_key=session.storage_key,
      upload_id=session.upload_id,
    )
    variables = {
      "parts": manifest.to_variables(),
      "s3_key": session.storage_key,
      "upload_id": session.upload_id,
    }
    try:
      response = await self.gateway.request(
        mutations.COMPLETE_MULTIPART_FILE_UPLOAD, variables, retry=False
      )
      completed = extract_field(response, "complete_multipart_file_upload")
    except GatewayAPIError as e:
      raise FinalizationError(
        str(e), storage_key=session.storage_key, upload_id=session.upload_id
      ) from e

    if not completed:
      raise FinalizationError(
        "server reported the upload as not completed",
        storage_key=session.storage_key,
        upload_id=session.upload_id,
      )

  async def _abort(self, session: UploadSession) -> None:
    """Ask the API to discard the storage-side upload; never raises."""
    variables = {"s3_key": session.storage_key, "upload_id": session.upload_id}
    try:
      response = await self.gateway.request(
        mutations.ABORT_MULTIPART_FILE_UPLOAD, variables
      )
      extract_field(response, "abort_multipart_file_upload")
    except Exception as e:
      logger.warning(
        f"Could not abort multipart upload {session.upload_id}; storage key "
        f"{session.storage_key} is left incomplete: {e}"
      )
      return

    log_upload(
      "upload_aborted",
      f"Aborted multipart upload {session.upload_id}",
      storage_key=session.storage_key,
      upload_id=session.upload_id,
    )
