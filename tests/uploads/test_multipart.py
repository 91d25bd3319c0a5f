"""Tests for the multipart upload orchestrator."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from fieldagent_uploads.client.exceptions import (
  GatewayClientError,
  GatewayServerError,
  GatewayTransientError,
)
from fieldagent_uploads.client.graphql import GraphQLResponse
from fieldagent_uploads.client.transport import TransportResponse
from fieldagent_uploads.config.constants import MAX_PARTS, MIB, MIN_PART_SIZE
from fieldagent_uploads.exceptions import (
  FileUploadError,
  FinalizationError,
  InitiationError,
  InvalidInputError,
  PartUploadError,
  PartUrlError,
  ReadError,
  TooManyPartsError,
)
from fieldagent_uploads.uploads import mutations
from fieldagent_uploads.uploads.models import FileUploadOwner, UploadState
from fieldagent_uploads.uploads.multipart import (
  MultipartUploadConfig,
  MultipartUploader,
  MultipartUploadRun,
  owner_variables,
  strip_etag,
)
from fieldagent_uploads.uploads.sources import BytesSource
from tests.conftest import SESSION_PAYLOAD, calls_for, gql_data, part_url

OWNER = FileUploadOwner(parent_sentera_id="survey-1", owner_type="MOSAIC")


def make_data(size):
  pattern = bytes(range(256))
  return pattern * (size // 256) + pattern[: size % 256]


def override(gateway, document, handler):
  """Replace the gateway answer for one mutation, keeping the others."""
  default = gateway.request.side_effect

  async def respond(query, variables=None, retry=True):
    if query == document:
      return await handler(variables)
    return await default(query, variables, retry=retry)

  gateway.request.side_effect = respond


class ShrinkingSource(BytesSource):
  """Reports more bytes than it can serve, like a file truncated mid-upload."""

  def __init__(self, data, name, reported_size):
    super().__init__(data, name)
    self.size = reported_size


class TestMultipartUploadConfig:
  """Test cases for MultipartUploadConfig."""

  def test_defaults(self):
    """Test default orchestrator settings."""
    config = MultipartUploadConfig()

    assert config.max_concurrency == 4
    assert config.part_max_retries == 3
    assert config.abort_on_failure is True

  @pytest.mark.parametrize("concurrency", [0, 33])
  def test_concurrency_bounds(self, concurrency):
    """Test that concurrency must be within 1..32."""
    with pytest.raises(InvalidInputError):
      MultipartUploadConfig(max_concurrency=concurrency)

  def test_negative_retries(self):
    """Test that retries cannot be negative."""
    with pytest.raises(InvalidInputError):
      MultipartUploadConfig(part_max_retries=-1)

  def test_retry_delay_grows(self):
    """Test exponential backoff between part attempts."""
    config = MultipartUploadConfig(retry_delay=1.0, retry_backoff=2.0)

    assert 1.0 <= config.retry_delay_for(0) <= 1.1
    assert 4.0 <= config.retry_delay_for(2) <= 4.4


class TestHelpers:
  """Test cases for module helpers."""

  @pytest.mark.parametrize(
    "raw,expected",
    [
      ('"abc"', "abc"),
      ("abc", "abc"),
      ('""abc""', '"abc"'),
      ('"', '"'),
      ('""', ""),
      ('"abc', '"abc'),
    ],
  )
  def test_strip_etag(self, raw, expected):
    """Test that exactly one layer of quotes is removed."""
    assert strip_etag(raw) == expected

  def test_owner_variables_from_model(self):
    """Test serializing an owner model."""
    assert owner_variables(OWNER) == {
      "parent_sentera_id": "survey-1",
      "owner_type": "MOSAIC",
    }

  def test_owner_variables_from_mapping(self):
    """Test that mappings are passed through unchanged."""
    owner = {"parent_sentera_id": "p", "owner_type": "FEATURE_SET", "extra": 1}

    assert owner_variables(owner) == owner


class TestMultipartUploadRun:
  """Test cases for MultipartUploadRun state handling."""

  def test_happy_path_transitions(self):
    """Test the forward sequence of states."""
    run = MultipartUploadRun(filename="a", byte_size=1, content_type="x")

    for state in (
      UploadState.INITIATED,
      UploadState.PARTS_PENDING,
      UploadState.PARTS_COMPLETE,
      UploadState.FINALIZED,
    ):
      run.transition(state)

    assert run.state is UploadState.FINALIZED

  def test_skipping_a_state_is_rejected(self):
    """Test that parts cannot start before initiation."""
    run = MultipartUploadRun(filename="a", byte_size=1, content_type="x")

    with pytest.raises(RuntimeError, match="Invalid upload state transition"):
      run.transition(UploadState.PARTS_PENDING)

  def test_fail_is_idempotent(self):
    """Test that failing twice keeps the failed state."""
    run = MultipartUploadRun(filename="a", byte_size=1, content_type="x")

    run.fail()
    run.fail()

    assert run.state is UploadState.FAILED

  def test_finalized_cannot_fail(self):
    """Test that a finalized run is terminal."""
    run = MultipartUploadRun(
      filename="a", byte_size=1, content_type="x", state=UploadState.FINALIZED
    )

    with pytest.raises(RuntimeError):
      run.fail()


class TestMultipartUploader:
  """Test cases for MultipartUploader.upload."""

  async def test_uploads_all_parts_and_finalizes(self, gateway, transport, upload_config):
    """Test a 12 MiB upload in three parts."""
    data = make_data(12 * MIB)
    uploader = MultipartUploader(gateway, transport, upload_config)

    file_id = await uploader.upload(data, "image/tiff", OWNER, filename="ortho.tif")

    assert file_id == "file-123"

    create_vars = calls_for(gateway, mutations.CREATE_MULTIPART_FILE_UPLOAD)
    assert create_vars == [
      {
        "byte_size": 12 * MIB,
        "content_type": "image/tiff",
        "filename": "ortho.tif",
        "file_upload_owner": {"parent_sentera_id": "survey-1", "owner_type": "MOSAIC"},
      }
    ]

    prepare_vars = calls_for(gateway, mutations.PREPARE_MULTIPART_FILE_UPLOAD_PART)
    assert sorted(v["part_number"] for v in prepare_vars) == [1, 2, 3]
    assert all(v["s3_key"] == SESSION_PAYLOAD["s3_key"] for v in prepare_vars)
    assert all(v["upload_id"] == SESSION_PAYLOAD["upload_id"] for v in prepare_vars)

    puts = {call.args[0]: call.args[2] for call in transport.put.call_args_list}
    assert puts[part_url(1)] == data[: 5 * MIB]
    assert puts[part_url(2)] == data[5 * MIB : 10 * MIB]
    assert puts[part_url(3)] == data[10 * MIB :]

    complete_vars = calls_for(gateway, mutations.COMPLETE_MULTIPART_FILE_UPLOAD)
    assert complete_vars == [
      {
        "parts": [
          {"part_number": 1, "etag": "abc"},
          {"part_number": 2, "etag": "abc"},
          {"part_number": 3, "etag": "abc"},
        ],
        "s3_key": SESSION_PAYLOAD["s3_key"],
        "upload_id": SESSION_PAYLOAD["upload_id"],
      }
    ]
    assert calls_for(gateway, mutations.ABORT_MULTIPART_FILE_UPLOAD) == []

  async def test_upload_from_path(self, gateway, transport, upload_config, tmp_path):
    """Test that the filename comes from the path."""
    path = tmp_path / "field.tif"
    path.write_bytes(make_data(1000))
    uploader = MultipartUploader(gateway, transport, upload_config)

    await uploader.upload(path, "image/tiff", OWNER)

    create_vars = calls_for(gateway, mutations.CREATE_MULTIPART_FILE_UPLOAD)[0]
    assert create_vars["filename"] == "field.tif"
    assert create_vars["byte_size"] == 1000

  async def test_out_of_order_completion_yields_ordered_manifest(
    self, gateway, transport
  ):
    """Test that parts finishing in reverse order are completed in order."""
    delays = {1: 0.3, 2: 0.15, 3: 0.0}
    finished = []

    async def put(url, headers=None, body=b""):
      part_number = int(url.rsplit("=", 1)[1])
      await asyncio.sleep(delays[part_number])
      finished.append(part_number)
      return TransportResponse(200, {"ETag": f'"etag-{part_number}"'})

    transport.put.side_effect = put
    config = MultipartUploadConfig(max_concurrency=3, part_max_retries=0, retry_delay=0)

    await MultipartUploader(gateway, transport, config).upload(
      make_data(12 * MIB), "image/tiff", OWNER, filename="a.tif"
    )

    assert finished == [3, 2, 1]
    parts = calls_for(gateway, mutations.COMPLETE_MULTIPART_FILE_UPLOAD)[0]["parts"]
    assert parts == [
      {"part_number": 1, "etag": "etag-1"},
      {"part_number": 2, "etag": "etag-2"},
      {"part_number": 3, "etag": "etag-3"},
    ]

  async def test_concurrency_is_bounded(self, gateway, transport):
    """Test that no more than max_concurrency parts are in flight."""
    in_flight = 0
    peak = 0

    async def put(url, headers=None, body=b""):
      nonlocal in_flight, peak
      in_flight += 1
      peak = max(peak, in_flight)
      await asyncio.sleep(0.01)
      in_flight -= 1
      return TransportResponse(200, {"ETag": '"x"'})

    transport.put.side_effect = put
    config = MultipartUploadConfig(max_concurrency=2, part_max_retries=0, retry_delay=0)

    await MultipartUploader(gateway, transport, config).upload(
      make_data(25 * MIB), "image/tiff", OWNER, filename="a.tif"
    )

    assert transport.put.await_count == 5
    assert peak == 2

  async def test_part_failure_skips_finalize_and_aborts(
    self, gateway, transport, upload_config
  ):
    """Test that a failing part stops the upload before completion."""

    async def put(url, headers=None, body=b""):
      if url == part_url(2):
        return TransportResponse(500, {})
      return TransportResponse(200, {"ETag": '"abc"'})

    transport.put.side_effect = put
    uploader = MultipartUploader(gateway, transport, upload_config)

    with pytest.raises(PartUploadError) as exc_info:
      await uploader.upload(make_data(12 * MIB), "image/tiff", OWNER, filename="a.tif")

    assert exc_info.value.part_number == 2
    assert exc_info.value.status_code == 500
    assert calls_for(gateway, mutations.COMPLETE_MULTIPART_FILE_UPLOAD) == []
    assert calls_for(gateway, mutations.ABORT_MULTIPART_FILE_UPLOAD) == [
      {"s3_key": SESSION_PAYLOAD["s3_key"], "upload_id": SESSION_PAYLOAD["upload_id"]}
    ]

  async def test_part_failure_cancels_pending_parts(self, gateway, transport):
    """Test that a failure cancels parts still waiting on their PUT."""
    blocked = asyncio.Event()
    others_waiting = asyncio.Event()
    waiting = []
    cancelled = []

    async def put(url, headers=None, body=b""):
      if url == part_url(1):
        await others_waiting.wait()
        return TransportResponse(403, {})
      waiting.append(url)
      if len(waiting) == 2:
        others_waiting.set()
      try:
        await blocked.wait()
      except asyncio.CancelledError:
        cancelled.append(url)
        raise
      return TransportResponse(200, {"ETag": '"abc"'})

    transport.put.side_effect = put
    config = MultipartUploadConfig(max_concurrency=3, part_max_retries=0, retry_delay=0)

    with pytest.raises(PartUploadError):
      await asyncio.wait_for(
        MultipartUploader(gateway, transport, config).upload(
          make_data(12 * MIB), "image/tiff", OWNER, filename="a.tif"
        ),
        timeout=5,
      )

    assert sorted(cancelled) == sorted([part_url(2), part_url(3)])

  async def test_part_retry_requests_fresh_url(self, gateway, transport):
    """Test that a retried part gets a new URL and succeeds."""
    attempts = {"count": 0}

    async def put(url, headers=None, body=b""):
      attempts["count"] += 1
      if attempts["count"] == 1:
        return TransportResponse(503, {})
      return TransportResponse(200, {"ETag": '"retried"'})

    transport.put.side_effect = put
    config = MultipartUploadConfig(max_concurrency=1, part_max_retries=2, retry_delay=0)

    file_id = await MultipartUploader(gateway, transport, config).upload(
      b"small", "text/plain", OWNER, filename="a.txt"
    )

    assert file_id == "file-123"
    assert len(calls_for(gateway, mutations.PREPARE_MULTIPART_FILE_UPLOAD_PART)) == 2
    parts = calls_for(gateway, mutations.COMPLETE_MULTIPART_FILE_UPLOAD)[0]["parts"]
    assert parts == [{"part_number": 1, "etag": "retried"}]

  async def test_part_retries_exhausted(self, gateway, transport):
    """Test that a part failing every attempt raises after the retry budget."""
    transport.put.return_value = TransportResponse(500, {})
    config = MultipartUploadConfig(max_concurrency=1, part_max_retries=2, retry_delay=0)

    with pytest.raises(PartUploadError):
      await MultipartUploader(gateway, transport, config).upload(
        b"small", "text/plain", OWNER, filename="a.txt"
      )

    assert transport.put.await_count == 3

  async def test_missing_etag(self, gateway, transport, upload_config):
    """Test that a 200 without an ETag is a part failure."""
    transport.put.return_value = TransportResponse(200, {})

    with pytest.raises(PartUploadError, match="ETag"):
      await MultipartUploader(gateway, transport, upload_config).upload(
        b"abc", "text/plain", OWNER, filename="a.txt"
      )

  async def test_etag_header_lookup_is_case_insensitive(
    self, gateway, transport, upload_config
  ):
    """Test that a lowercase etag header is accepted."""
    transport.put.return_value = TransportResponse(200, {"etag": '"lower"'})

    await MultipartUploader(gateway, transport, upload_config).upload(
      b"abc", "text/plain", OWNER, filename="a.txt"
    )

    parts = calls_for(gateway, mutations.COMPLETE_MULTIPART_FILE_UPLOAD)[0]["parts"]
    assert parts == [{"part_number": 1, "etag": "lower"}]

  async def test_transport_error_is_part_upload_error(
    self, gateway, transport, upload_config
  ):
    """Test that network failures surface as part upload errors."""
    transport.put.side_effect = GatewayTransientError("Connection error: reset")

    with pytest.raises(PartUploadError, match="Connection error"):
      await MultipartUploader(gateway, transport, upload_config).upload(
        b"abc", "text/plain", OWNER, filename="a.txt"
      )

  async def test_prepare_failure(self, gateway, transport, upload_config):
    """Test that a failing part URL request raises PartUrlError."""

    async def fail(variables):
      raise GatewayServerError("boom", 500)

    override(gateway, mutations.PREPARE_MULTIPART_FILE_UPLOAD_PART, fail)

    with pytest.raises(PartUrlError) as exc_info:
      await MultipartUploader(gateway, transport, upload_config).upload(
        b"abc", "text/plain", OWNER, filename="a.txt"
      )

    assert exc_info.value.part_number == 1
    transport.put.assert_not_awaited()
    assert calls_for(gateway, mutations.COMPLETE_MULTIPART_FILE_UPLOAD) == []

  async def test_prepare_without_url(self, gateway, transport, upload_config):
    """Test that a part payload without a URL raises PartUrlError."""

    async def no_url(variables):
      return gql_data("prepare_multipart_file_upload_part", {"url": ""})

    override(gateway, mutations.PREPARE_MULTIPART_FILE_UPLOAD_PART, no_url)

    with pytest.raises(PartUrlError, match="url"):
      await MultipartUploader(gateway, transport, upload_config).upload(
        b"abc", "text/plain", OWNER, filename="a.txt"
      )

  async def test_initiation_gateway_error(self, gateway, transport, upload_config):
    """Test that a failed create call raises InitiationError without abort."""

    async def fail(variables):
      raise GatewayClientError("Unauthorized", 401)

    override(gateway, mutations.CREATE_MULTIPART_FILE_UPLOAD, fail)

    with pytest.raises(InitiationError) as exc_info:
      await MultipartUploader(gateway, transport, upload_config).upload(
        b"abc", "text/plain", OWNER, filename="a.txt"
      )

    assert exc_info.value.details["status_code"] == 401
    transport.put.assert_not_awaited()
    assert calls_for(gateway, mutations.ABORT_MULTIPART_FILE_UPLOAD) == []

  async def test_initiation_graphql_errors(self, gateway, transport, upload_config):
    """Test that GraphQL errors from create raise InitiationError."""

    async def errors(variables):
      return GraphQLResponse(
        200,
        {"data": {"create_multipart_file_upload": None}, "errors": [{"message": "denied"}]},
      )

    override(gateway, mutations.CREATE_MULTIPART_FILE_UPLOAD, errors)

    with pytest.raises(InitiationError, match="denied"):
      await MultipartUploader(gateway, transport, upload_config).upload(
        b"abc", "text/plain", OWNER, filename="a.txt"
      )

  async def test_initiation_missing_fields(self, gateway, transport, upload_config):
    """Test that a create payload without upload_id raises InitiationError."""

    async def partial(variables):
      payload = dict(SESSION_PAYLOAD)
      del payload["upload_id"]
      return gql_data("create_multipart_file_upload", payload)

    override(gateway, mutations.CREATE_MULTIPART_FILE_UPLOAD, partial)

    with pytest.raises(InitiationError, match="missing required fields"):
      await MultipartUploader(gateway, transport, upload_config).upload(
        b"abc", "text/plain", OWNER, filename="a.txt"
      )

    transport.put.assert_not_awaited()

  async def test_finalize_returns_false(self, gateway, transport, upload_config):
    """Test that an unsuccessful completion raises FinalizationError."""

    async def not_completed(variables):
      return gql_data("complete_multipart_file_upload", False)

    override(gateway, mutations.COMPLETE_MULTIPART_FILE_UPLOAD, not_completed)

    with pytest.raises(FinalizationError, match="not completed"):
      await MultipartUploader(gateway, transport, upload_config).upload(
        b"abc", "text/plain", OWNER, filename="a.txt"
      )

  async def test_finalize_gateway_error(self, gateway, transport, upload_config):
    """Test that a failed completion call raises FinalizationError."""

    async def fail(variables):
      raise GatewayServerError("Internal error", 500)

    override(gateway, mutations.COMPLETE_MULTIPART_FILE_UPLOAD, fail)

    with pytest.raises(FinalizationError) as exc_info:
      await MultipartUploader(gateway, transport, upload_config).upload(
        b"abc", "text/plain", OWNER, filename="a.txt"
      )

    assert exc_info.value.details["upload_id"] == SESSION_PAYLOAD["upload_id"]
    assert len(calls_for(gateway, mutations.ABORT_MULTIPART_FILE_UPLOAD)) == 1

  async def test_short_read(self, gateway, transport, upload_config):
    """Test that a file shrinking after initiation raises ReadError."""
    source = ShrinkingSource(make_data(7 * MIB), "a.tif", reported_size=12 * MIB)

    with pytest.raises(ReadError) as exc_info:
      await MultipartUploader(gateway, transport, upload_config).upload(
        source, "image/tiff", OWNER
      )

    assert exc_info.value.part_number in (2, 3)
    assert calls_for(gateway, mutations.COMPLETE_MULTIPART_FILE_UPLOAD) == []

  async def test_zero_byte_file(self, gateway, transport, upload_config):
    """Test that an empty file is uploaded as one empty part."""
    file_id = await MultipartUploader(gateway, transport, upload_config).upload(
      b"", "text/plain", OWNER, filename="empty.txt"
    )

    assert file_id == "file-123"
    assert calls_for(gateway, mutations.CREATE_MULTIPART_FILE_UPLOAD)[0]["byte_size"] == 0
    transport.put.assert_awaited_once_with(part_url(1), {}, b"")
    parts = calls_for(gateway, mutations.COMPLETE_MULTIPART_FILE_UPLOAD)[0]["parts"]
    assert parts == [{"part_number": 1, "etag": "abc"}]

  async def test_abort_disabled(self, gateway, transport):
    """Test that no abort is sent when disabled."""
    transport.put.return_value = TransportResponse(500, {})
    config = MultipartUploadConfig(part_max_retries=0, abort_on_failure=False)

    with pytest.raises(PartUploadError):
      await MultipartUploader(gateway, transport, config).upload(
        b"abc", "text/plain", OWNER, filename="a.txt"
      )

    assert calls_for(gateway, mutations.ABORT_MULTIPART_FILE_UPLOAD) == []

  async def test_abort_failure_keeps_original_error(
    self, gateway, transport, upload_config
  ):
    """Test that a failing abort does not replace the part error."""
    transport.put.return_value = TransportResponse(500, {})

    async def abort_fails(variables):
      raise GatewayServerError("abort exploded", 500)

    override(gateway, mutations.ABORT_MULTIPART_FILE_UPLOAD, abort_fails)

    with pytest.raises(PartUploadError):
      await MultipartUploader(gateway, transport, upload_config).upload(
        b"abc", "text/plain", OWNER, filename="a.txt"
      )

    assert len(calls_for(gateway, mutations.ABORT_MULTIPART_FILE_UPLOAD)) == 1

  async def test_each_upload_creates_its_own_session(
    self, gateway, transport, upload_config
  ):
    """Test that uploading twice initiates twice."""
    uploader = MultipartUploader(gateway, transport, upload_config)

    await uploader.upload(b"one", "text/plain", OWNER, filename="a.txt")
    await uploader.upload(b"two", "text/plain", OWNER, filename="a.txt")

    assert len(calls_for(gateway, mutations.CREATE_MULTIPART_FILE_UPLOAD)) == 2
    assert len(calls_for(gateway, mutations.COMPLETE_MULTIPART_FILE_UPLOAD)) == 2

  async def test_progress_callback(self, gateway, transport, upload_config):
    """Test that the callback sees every uploaded part."""
    seen = []
    uploader = MultipartUploader(
      gateway,
      transport,
      upload_config,
      progress_callback=lambda spec, result: seen.append(
        (spec.part_number, spec.byte_length, result.etag)
      ),
    )

    await uploader.upload(make_data(12 * MIB), "image/tiff", OWNER, filename="a.tif")

    assert sorted(seen) == [(1, 5 * MIB, "abc"), (2, 5 * MIB, "abc"), (3, 2 * MIB, "abc")]

  async def test_owner_mapping_passthrough(self, gateway, transport, upload_config):
    """Test that an owner mapping is sent as given."""
    owner = {"parent_sentera_id": "plot-7", "owner_type": "FEATURE_SET"}

    await MultipartUploader(gateway, transport, upload_config).upload(
      b"abc", "application/json", owner, filename="a.geojson"
    )

    create_vars = calls_for(gateway, mutations.CREATE_MULTIPART_FILE_UPLOAD)[0]
    assert create_vars["file_upload_owner"] == owner

  async def test_invalid_input_makes_no_calls(self, gateway, transport, upload_config):
    """Test that unusable input fails before any network call."""
    with pytest.raises(InvalidInputError):
      await MultipartUploader(gateway, transport, upload_config).upload(
        b"abc", "text/plain", OWNER
      )

    gateway.request.assert_not_awaited()

  async def test_too_many_parts_fails_before_create(
    self, gateway, transport, upload_config
  ):
    """Test that a file needing more than MAX_PARTS parts never creates an upload."""
    source = ShrinkingSource(b"", "huge.bin", (MAX_PARTS + 1) * MIN_PART_SIZE)

    with pytest.raises(TooManyPartsError):
      await MultipartUploader(gateway, transport, upload_config).upload(
        source, "application/octet-stream", OWNER
      )

    gateway.request.assert_not_awaited()
    transport.put.assert_not_awaited()

  async def test_upload_mutations_bypass_gateway_retries(
    self, gateway, transport, upload_config
  ):
    """Test that create, prepare and complete are sent with retry=False."""
    await MultipartUploader(gateway, transport, upload_config).upload(
      make_data(6 * MIB), "image/tiff", OWNER, filename="ortho.tif"
    )

    for call in gateway.request.call_args_list:
      assert call.kwargs["retry"] is False

  async def test_abort_keeps_gateway_retries(self, gateway, transport, upload_config):
    """Test that the abort call is left to the gateway's retry policy."""
    transport.put.return_value = TransportResponse(500, {})

    with pytest.raises(PartUploadError):
      await MultipartUploader(gateway, transport, upload_config).upload(
        b"abc", "text/plain", OWNER, filename="a.txt"
      )

    abort_calls = [
      call
      for call in gateway.request.call_args_list
      if call.args[0] == mutations.ABORT_MULTIPART_FILE_UPLOAD
    ]
    assert len(abort_calls) == 1
    assert abort_calls[0].kwargs.get("retry", True) is True

  async def test_all_failures_are_file_upload_errors(
    self, gateway, transport, upload_config
  ):
    """Test that callers can catch the common base class."""
    transport.put.return_value = TransportResponse(500, {})

    with pytest.raises(FileUploadError):
      await MultipartUploader(gateway, transport, upload_config).upload(
        b"abc", "text/plain", OWNER, filename="a.txt"
      )

  async def test_cancellation_propagates(self, gateway, transport, upload_config):
    """Test that cancelling the upload cancels in-flight parts."""
    started = asyncio.Event()

    async def hang(url, headers=None, body=b""):
      started.set()
      await asyncio.sleep(60)

    transport.put.side_effect = hang
    task = asyncio.create_task(
      MultipartUploader(gateway, transport, upload_config).upload(
        b"abc", "text/plain", OWNER, filename="a.txt"
      )
    )
    await asyncio.wait_for(started.wait(), timeout=5)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
      await task

    assert calls_for(gateway, mutations.COMPLETE_MULTIPART_FILE_UPLOAD) == []


class TestMultipartUploaderWithMockGateway:
  """Test cases driving the uploader with a bare AsyncMock gateway."""

  async def test_sequential_responses(self, transport, upload_config):
    """Test the exact call sequence for a one-part upload."""
    gateway = AsyncMock()
    gateway.request.side_effect = [
      gql_data("create_multipart_file_upload", dict(SESSION_PAYLOAD)),
      gql_data("prepare_multipart_file_upload_part", {"url": part_url(1)}),
      gql_data("complete_multipart_file_upload", True),
    ]

    file_id = await MultipartUploader(gateway, transport, upload_config).upload(
      b"abc", "text/plain", OWNER, filename="a.txt"
    )

    assert file_id == "file-123"
    documents = [call.args[0] for call in gateway.request.call_args_list]
    assert documents == [
      mutations.CREATE_MULTIPART_FILE_UPLOAD,
      mutations.PREPARE_MULTIPART_FILE_UPLOAD_PART,
      mutations.COMPLETE_MULTIPART_FILE_UPLOAD,
    ]
