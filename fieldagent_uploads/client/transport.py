"""
Upload transport.

Issues PUT requests against pre-signed storage URLs. Network failures are
retried with backoff; any HTTP status is handed back to the caller, which
decides what counts as success.
"""

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

import httpx

from fieldagent_uploads.config.constants import DEFAULT_UPLOAD_TIMEOUT
from fieldagent_uploads.logger import client_logger as logger
from .base import BaseGatewayClient
from .config import GatewayClientConfig
from .interfaces import UploadTransport


@dataclass(frozen=True)
class TransportResponse:
  """Status code and headers of a PUT."""

  status_code: int
  headers: Mapping[str, str] = field(default_factory=dict)


class TransportClient(BaseGatewayClient, UploadTransport):
  """Asynchronous PUT client for pre-signed URLs."""

  def __init__(
    self,
    config: Optional[GatewayClientConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **kwargs,
  ):
    if config is None:
      config = GatewayClientConfig.from_env().with_overrides(
        timeout=DEFAULT_UPLOAD_TIMEOUT
      )
    super().__init__(config, transport, **kwargs)

  async def put(
    self,
    url: str,
    headers: Optional[Mapping[str, str]] = None,
    body: bytes = b"",
  ) -> TransportResponse:
    """
    PUT a byte buffer to a URL.

    Pre-signed URLs embed their own credentials, so no authorization header
    is added here.

    Returns:
        TransportResponse with status code and case-insensitive headers

    Raises:
        GatewayTransientError: If the request kept failing at the network level
    """
    request_headers: Dict[str, str] = dict(headers or {})

    async def make_request() -> TransportResponse:
      response = await self.client.put(url, content=body, headers=request_headers)
      logger.debug(f"PUT {len(body)} bytes -> {response.status_code}")
      return TransportResponse(
        status_code=response.status_code, headers=response.headers
      )

    return await self._execute_with_retry(make_request)
