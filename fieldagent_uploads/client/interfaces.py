"""
Interfaces the upload workflows depend on.

The workflows only need to send a GraphQL document with variables and to PUT
bytes to a URL; anything implementing these two contracts can drive them.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

if TYPE_CHECKING:
  from .graphql import GraphQLResponse
  from .transport import TransportResponse


class GraphQLRequester(ABC):
  """Contract for sending parameterized GraphQL operations."""

  @abstractmethod
  async def request(
    self,
    query: str,
    variables: Optional[Dict[str, Any]] = None,
    retry: bool = True,
  ) -> "GraphQLResponse":
    """
    Send a document with variables.

    ``retry=False`` sends the document at most once.

    Returns:
        Response carrying the HTTP status and parsed JSON body

    Raises:
        GatewayAPIError: If the endpoint could not be reached or rejected the call
    """
    raise NotImplementedError("Subclasses must implement request")


class UploadTransport(ABC):
  """Contract for PUTting bytes to pre-signed URLs."""

  @abstractmethod
  async def put(
    self,
    url: str,
    headers: Optional[Mapping[str, str]] = None,
    body: bytes = b"",
  ) -> "TransportResponse":
    """
    PUT ``body`` to ``url``.

    Returns:
        Response carrying status code and headers; HTTP errors are not raised

    Raises:
        GatewayAPIError: If the request failed at the network level
    """
    raise NotImplementedError("Subclasses must implement put")
