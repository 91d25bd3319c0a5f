import os

# Quiet logging and keep the developer's token file out of test runs
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("FIELDAGENT_ACCESS_TOKEN_FILE", "/nonexistent/fieldagent_token")

from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402

from fieldagent_uploads.client.config import GatewayClientConfig  # noqa: E402
from fieldagent_uploads.client.graphql import GraphQLResponse  # noqa: E402
from fieldagent_uploads.client.interfaces import (  # noqa: E402
  GraphQLRequester,
  UploadTransport,
)
from fieldagent_uploads.client.transport import TransportResponse  # noqa: E402
from fieldagent_uploads.uploads import mutations  # noqa: E402
from fieldagent_uploads.uploads.multipart import MultipartUploadConfig  # noqa: E402

TEST_ENDPOINT = "https://fieldagent.test/graphql"
TEST_TOKEN = "test-access-token-123456"

SESSION_PAYLOAD = {
  "file_id": "file-123",
  "owner_sentera_id": "owner-456",
  "s3_key": "uploads/abc/ortho.tif",
  "upload_id": "upload-789",
}


def gql_data(field_name, value, status_code=200):
  """Build a successful GraphQL response for one top-level field."""
  return GraphQLResponse(status_code=status_code, body={"data": {field_name: value}})


def part_url(part_number):
  return f"https://storage.test/uploads/abc/ortho.tif?partNumber={part_number}"


def calls_for(gateway, document):
  """Variables of every gateway call made with ``document``."""
  return [
    call.args[1] for call in gateway.request.call_args_list if call.args[0] == document
  ]


@pytest.fixture
def client_config():
  """Client configuration with fast retries."""
  return GatewayClientConfig(
    endpoint=TEST_ENDPOINT,
    access_token=TEST_TOKEN,
    max_retries=2,
    retry_delay=0.0,
    retry_backoff=1.0,
  )


@pytest.fixture
def upload_config():
  """Orchestrator configuration without retry delays."""
  return MultipartUploadConfig(
    max_concurrency=2,
    part_max_retries=0,
    retry_delay=0.0,
    retry_backoff=1.0,
    abort_on_failure=True,
  )


@pytest.fixture
def gateway():
  """GraphQL gateway mock answering every upload mutation successfully."""
  mock = AsyncMock(spec=GraphQLRequester)

  async def respond(query, variables=None, retry=True):
    if query == mutations.CREATE_MULTIPART_FILE_UPLOAD:
      return gql_data("create_multipart_file_upload", dict(SESSION_PAYLOAD))
    if query == mutations.PREPARE_MULTIPART_FILE_UPLOAD_PART:
      return gql_data(
        "prepare_multipart_file_upload_part",
        {"url": part_url(variables["part_number"])},
      )
    if query == mutations.COMPLETE_MULTIPART_FILE_UPLOAD:
      return gql_data("complete_multipart_file_upload", True)
    if query == mutations.ABORT_MULTIPART_FILE_UPLOAD:
      return gql_data("abort_multipart_file_upload", True)
    if query == mutations.CREATE_FILE_UPLOAD:
      return gql_data(
        "create_file_upload",
        {
          "id": "single-file-1",
          "url": "https://storage.test/single/boundary.geojson",
          "headers": {"Content-MD5": variables["checksum"]},
        },
      )
    raise AssertionError(f"Unexpected query: {query}")

  mock.request.side_effect = respond
  return mock


@pytest.fixture
def transport():
  """Transport mock returning 200 with a quoted ETag for every PUT."""
  mock = AsyncMock(spec=UploadTransport)
  mock.put.return_value = TransportResponse(status_code=200, headers={"ETag": '"abc"'})
  return mock
