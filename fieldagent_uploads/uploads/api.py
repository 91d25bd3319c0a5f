"""
Convenience entry points.

Open the gateway and transport clients from configuration, run one upload
and close the clients again. The synchronous variants are meant for scripts
and the CLI.
"""

import asyncio
import concurrent.futures
from typing import Optional

from fieldagent_uploads.client import GatewayClientConfig, GraphQLGateway, TransportClient
from fieldagent_uploads.config.constants import DEFAULT_UPLOAD_TIMEOUT
from .multipart import (
  MultipartUploadConfig,
  MultipartUploader,
  OwnerDescriptor,
  ProgressCallback,
)
from .single import SingleFileUploader
from .sources import UploadInput


def _transport_config(client_config: GatewayClientConfig) -> GatewayClientConfig:
  # PUTs of whole parts need a longer timeout than GraphQL calls
  return client_config.with_overrides(
    timeout=max(client_config.timeout, DEFAULT_UPLOAD_TIMEOUT)
  )


async def upload_multipart(
  file: UploadInput,
  content_type: str,
  owner: OwnerDescriptor,
  filename: Optional[str] = None,
  client_config: Optional[GatewayClientConfig] = None,
  upload_config: Optional[MultipartUploadConfig] = None,
  progress_callback: Optional[ProgressCallback] = None,
) -> str:
  """Upload ``file`` in parts and return its file ID."""
  client_config = client_config or GatewayClientConfig.from_env()

  async with GraphQLGateway(client_config) as gateway, TransportClient(
    _transport_config(client_config)
  ) as transport:
    uploader = MultipartUploader(
      gateway, transport, upload_config, progress_callback=progress_callback
    )
    return await uploader.upload(file, content_type, owner, filename)


async def upload_single(
  file: UploadInput,
  content_type: str,
  filename: Optional[str] = None,
  client_config: Optional[GatewayClientConfig] = None,
) -> str:
  """Upload ``file`` with one PUT and return its file ID."""
  client_config = client_config or GatewayClientConfig.from_env()

  async with GraphQLGateway(client_config) as gateway, TransportClient(
    _transport_config(client_config)
  ) as transport:
    return await SingleFileUploader(gateway, transport).upload(
      file, content_type, filename
    )


def _run_async(coro):
  """Run a coroutine from synchronous code."""
  try:
    asyncio.get_running_loop()
  except RuntimeError:
    # No running loop, we can use asyncio.run directly
    return asyncio.run(coro)

  # Already inside an event loop, run in a worker thread with its own loop
  with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
    return executor.submit(asyncio.run, coro).result()


def upload_file(
  file: UploadInput,
  content_type: str,
  owner: OwnerDescriptor,
  filename: Optional[str] = None,
  client_config: Optional[GatewayClientConfig] = None,
  upload_config: Optional[MultipartUploadConfig] = None,
  progress_callback: Optional[ProgressCallback] = None,
) -> str:
  """Synchronous wrapper around ``upload_multipart``."""
  return _run_async(
    upload_multipart(
      file,
      content_type,
      owner,
      filename,
      client_config,
      upload_config,
      progress_callback,
    )
  )


def upload_file_single(
  file: UploadInput,
  content_type: str,
  filename: Optional[str] = None,
  client_config: Optional[GatewayClientConfig] = None,
) -> str:
  """Synchronous wrapper around ``upload_single``."""
  return _run_async(upload_single(file, content_type, filename, client_config))
