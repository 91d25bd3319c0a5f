"""
Gateway clients - async HTTP access to the FieldAgent GraphQL API and to
pre-signed storage URLs.
"""

from .config import GatewayClientConfig
from .exceptions import (
  GatewayAPIError,
  GatewayClientError,
  GatewayServerError,
  GatewayTimeoutError,
  GatewayTransientError,
  GraphQLResponseError,
)
from .graphql import GraphQLGateway, GraphQLResponse, extract_field
from .interfaces import GraphQLRequester, UploadTransport
from .transport import TransportClient, TransportResponse

__all__ = [
  "GatewayAPIError",
  "GatewayClientConfig",
  "GatewayClientError",
  "GatewayServerError",
  "GatewayTimeoutError",
  "GatewayTransientError",
  "GraphQLRequester",
  "GraphQLGateway",
  "GraphQLResponse",
  "GraphQLResponseError",
  "TransportClient",
  "TransportResponse",
  "UploadTransport",
  "extract_field",
]
