"""
Gateway Client Exceptions.

Defines the exception hierarchy for GraphQL gateway and upload transport calls.
"""

from typing import Optional, Dict, Any, List


class GatewayAPIError(Exception):
  """Base exception for all gateway errors."""

  def __init__(
    self,
    message: str,
    status_code: Optional[int] = None,
    response_data: Optional[Dict[str, Any]] = None,
  ):
    super().__init__(message)
    self.status_code = status_code
    self.response_data = response_data


class GatewayTransientError(GatewayAPIError):
  """
  Transient errors that can be retried.

  Examples: Network timeouts, 503 Service Unavailable, 502 Bad Gateway
  """

  pass


class GatewayTimeoutError(GatewayTransientError):
  """Request timeout errors."""

  pass


class GatewayClientError(GatewayAPIError):
  """
  Client errors that should not be retried.

  Examples: 400 Bad Request, 401 Unauthorized, 422 Unprocessable Entity
  """

  pass


class GatewayServerError(GatewayAPIError):
  """
  Server errors that might be retriable.

  Examples: 500 Internal Server Error
  """

  pass


class GraphQLResponseError(GatewayAPIError):
  """
  The endpoint answered but the GraphQL result carries errors or no data.

  Never retried: the same document and variables would fail the same way.
  """

  def __init__(
    self,
    message: str,
    errors: Optional[List[Dict[str, Any]]] = None,
    status_code: Optional[int] = None,
    response_data: Optional[Dict[str, Any]] = None,
  ):
    super().__init__(message, status_code, response_data)
    self.errors = errors or []
