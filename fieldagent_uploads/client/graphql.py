"""
Asynchronous GraphQL Gateway.

Sends parameterized GraphQL documents to the FieldAgent endpoint with bearer
token authorization and returns the parsed response.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from fieldagent_uploads.config.logging import mask_secret
from fieldagent_uploads.logger import client_logger as logger
from .base import BaseGatewayClient
from .config import GatewayClientConfig
from .exceptions import GraphQLResponseError
from .interfaces import GraphQLRequester


@dataclass(frozen=True)
class GraphQLResponse:
  """HTTP status and decoded JSON body of a GraphQL call."""

  status_code: int
  body: Dict[str, Any] = field(default_factory=dict)

  @property
  def data(self) -> Dict[str, Any]:
    return self.body.get("data") or {}

  @property
  def errors(self) -> List[Dict[str, Any]]:
    return self.body.get("errors") or []


class GraphQLGateway(BaseGatewayClient, GraphQLRequester):
  """Asynchronous client for the FieldAgent GraphQL API."""

  def __init__(
    self,
    config: Optional[GatewayClientConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **kwargs,
  ):
    """
    Initialize the gateway.

    Args:
        config: Client configuration (endpoint, token, retries)
        transport: Optional httpx transport, mainly for tests
        **kwargs: Additional config overrides
    """
    super().__init__(config, transport, **kwargs)

    if not self.config.endpoint:
      raise ValueError("endpoint must be provided or set in environment")

    if self.config.access_token:
      logger.debug("GraphQLGateway configured with access token")
    else:
      logger.warning(
        "GraphQLGateway initialized without access token; requests will be "
        "rejected by the API"
      )

  def _default_headers(self) -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if self.config.access_token:
      headers["Authorization"] = f"Bearer {self.config.access_token}"
    headers.update(self.config.headers)
    return headers

  async def request(
    self,
    query: str,
    variables: Optional[Dict[str, Any]] = None,
    retry: bool = True,
  ) -> GraphQLResponse:
    """
    Send a query or mutation with variables.

    Args:
        query: GraphQL document
        variables: Variables referenced by the document
        retry: Retry transient failures. Pass False for mutations that must
            not be sent twice

    Returns:
        GraphQLResponse with the HTTP status and parsed body

    Raises:
        GatewayAPIError: On HTTP error statuses or network failures
    """
    payload = {"query": query, "variables": variables or {}}

    async def make_request() -> GraphQLResponse:
      if self.config.access_token:
        logger.debug(
          f"Make GraphQL request: uri = {self.config.endpoint}, "
          f"token = {mask_secret(self.config.access_token)}, "
          f"variables = {payload['variables']}"
        )

      response = await self.client.post(self.config.endpoint, json=payload)

      try:
        body = response.json()
      except (json.JSONDecodeError, ValueError):
        body = {"detail": response.text}

      logger.debug(f"GraphQL response: code = {response.status_code}, body = {body}")

      if response.status_code >= 400:
        raise self._handle_response_error(response.status_code, body)

      if not isinstance(body, dict):
        raise GraphQLResponseError(
          "GraphQL response body is not an object",
          status_code=response.status_code,
        )

      return GraphQLResponse(status_code=response.status_code, body=body)

    if retry:
      return await self._execute_with_retry(make_request)
    return await self._execute_once(make_request)


def extract_field(response: GraphQLResponse, field_name: str) -> Any:
  """
  Return ``data[field_name]`` from a GraphQL response.

  Raises:
      GraphQLResponseError: If the response carries errors or lacks the field
  """
  if response.errors:
    messages = "; ".join(
      str(error.get("message", error)) if isinstance(error, dict) else str(error)
      for error in response.errors
    )
    raise GraphQLResponseError(
      f"{field_name} returned errors: {messages}",
      errors=response.errors,
      status_code=response.status_code,
      response_data=response.body,
    )

  if response.data.get(field_name) is None:
    raise GraphQLResponseError(
      f"{field_name} returned no data",
      status_code=response.status_code,
      response_data=response.body,
    )

  return response.data[field_name]
