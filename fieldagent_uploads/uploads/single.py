"""
Single-request upload.

For files small enough to send in one PUT: create_file_upload returns a
pre-signed URL plus the headers the PUT must carry (including the MD5
checksum declared at creation), then the whole file is uploaded at once.
"""

import asyncio
from typing import Optional

from pydantic import ValidationError

from fieldagent_uploads.client.exceptions import GatewayAPIError
from fieldagent_uploads.client.graphql import extract_field
from fieldagent_uploads.client.interfaces import GraphQLRequester, UploadTransport
from fieldagent_uploads.config.constants import UPLOAD_SUCCESS_STATUS
from fieldagent_uploads.exceptions import InitiationError, ReadError, UploadError
from fieldagent_uploads.logger import log_upload
from . import mutations
from .models import SingleUploadTicket
from .sources import ByteSource, UploadInput, open_source


class SingleFileUploader:
  """Uploads a whole file with one pre-signed PUT."""

  def __init__(self, gateway: GraphQLRequester, transport: UploadTransport):
    self.gateway = gateway
    self.transport = transport

  async def upload(
    self,
    file: UploadInput,
    content_type: str,
    filename: Optional[str] = None,
  ) -> str:
    """
    Upload ``file`` and return its file ID.

    Raises:
        InitiationError: The upload could not be created
        UploadError: The PUT did not succeed
    """
    with open_source(file, filename) as source:
      ticket = await self._create(source, content_type)
      await self._put(ticket, source)

    log_upload(
      "upload_completed",
      f"Uploaded {source.name} ({source.size:,} bytes)",
      file_id=ticket.file_id,
    )
    return ticket.file_id

  async def _create(self, source: ByteSource, content_type: str) -> SingleUploadTicket:
    log_upload("create_upload", "Create file upload", byte_length=source.size)

    checksum = await asyncio.to_thread(source.md5_base64)
    variables = {
      "byte_size": source.size,
      "checksum": checksum,
      "content_type": content_type,
      "filename": source.name,
    }

    try:
      response = await self.gateway.request(
        mutations.CREATE_FILE_UPLOAD, variables, retry=False
      )
      payload = extract_field(response, "create_file_upload")
      return SingleUploadTicket.model_validate(payload)
    except GatewayAPIError as e:
      raise InitiationError(str(e), status_code=e.status_code) from e
    except ValidationError as e:
      raise InitiationError(
        "response is missing required fields",
        errors=[error["msg"] for error in e.errors()],
      ) from e

  async def _put(self, ticket: SingleUploadTicket, source: ByteSource) -> None:
    log_upload("upload_file", "Upload file", file_id=ticket.file_id)

    content = await asyncio.to_thread(source.read_range, 0, source.size)
    if len(content) != source.size:
      raise ReadError(1, source.size, len(content), 0)

    try:
      response = await self.transport.put(ticket.url, ticket.headers, content)
    except GatewayAPIError as e:
      raise UploadError(f"Error uploading file: {e}") from e

    if response.status_code != UPLOAD_SUCCESS_STATUS:
      raise UploadError(
        f"Error uploading file, response code: {response.status_code}",
        status_code=response.status_code,
        file_id=ticket.file_id,
      )
