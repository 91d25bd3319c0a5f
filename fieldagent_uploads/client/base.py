"""
Base Gateway Client.

Shared retry, backoff and circuit breaker behavior for the GraphQL gateway
and the upload transport.
"""

import asyncio
import time
import random
from typing import Any, Awaitable, Callable, Optional, Dict, TypeVar

import httpx

from fieldagent_uploads.logger import client_logger as logger
from .config import GatewayClientConfig
from .exceptions import (
  GatewayAPIError,
  GatewayTransientError,
  GatewayTimeoutError,
  GatewayClientError,
  GatewayServerError,
  GraphQLResponseError,
)

T = TypeVar("T")


class BaseGatewayClient:
  """Base class for async HTTP clients with retries and a circuit breaker."""

  def __init__(
    self,
    config: Optional[GatewayClientConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **kwargs,
  ):
    """
    Initialize the client.

    Args:
        config: Client configuration, read from the environment when omitted
        transport: Optional httpx transport, mainly for tests
        **kwargs: Additional config overrides
    """
    self.config = config or GatewayClientConfig.from_env()
    if kwargs:
      self.config = self.config.with_overrides(**kwargs)

    # Circuit breaker state
    self._circuit_breaker_failures = 0
    self._circuit_breaker_last_failure = 0.0
    self._circuit_breaker_open = False

    limits = httpx.Limits(
      max_connections=self.config.max_connections,
      max_keepalive_connections=self.config.max_keepalive_connections,
      keepalive_expiry=self.config.keepalive_expiry,
    )
    self.client = httpx.AsyncClient(
      timeout=httpx.Timeout(self.config.timeout),
      limits=limits,
      headers=self._default_headers(),
      verify=self.config.verify_ssl,
      transport=transport,
    )

  def _default_headers(self) -> Dict[str, str]:
    """Headers sent on every request."""
    return dict(self.config.headers)

  async def __aenter__(self):
    """Async context manager entry."""
    return self

  async def __aexit__(self, exc_type, exc_val, exc_tb):
    """Async context manager exit."""
    await self.close()

  async def close(self):
    """Close the client and cleanup resources."""
    await self.client.aclose()

  def _should_retry(self, error: Exception, attempt: int) -> bool:
    """
    Determine if request should be retried.

    Args:
        error: The exception that occurred
        attempt: Current attempt number (0-based)

    Returns:
        True if should retry, False otherwise
    """
    if attempt >= self.config.max_retries:
      return False

    # GraphQL errors are deterministic - fail fast
    if isinstance(error, GraphQLResponseError):
      return False

    if isinstance(error, GatewayTransientError):
      return True

    if isinstance(error, GatewayServerError):
      # 500 errors might be retriable
      return True

    # Client errors and unknown errors are not retried
    return False

  def _calculate_retry_delay(self, attempt: int) -> float:
    """
    Calculate delay before retry using exponential backoff with jitter.

    Args:
        attempt: Current attempt number (0-based)

    Returns:
        Delay in seconds
    """
    delay = self.config.retry_delay * (self.config.retry_backoff**attempt)
    # Add jitter to prevent thundering herd
    jitter = random.uniform(0, delay * 0.1)
    return delay + jitter

  def _check_circuit_breaker(self) -> None:
    """
    Check if circuit breaker is open.

    Raises:
        GatewayTransientError: If circuit breaker is open
    """
    if not self._circuit_breaker_open:
      return

    time_since_failure = time.time() - self._circuit_breaker_last_failure
    if time_since_failure > self.config.circuit_breaker_timeout:
      self._circuit_breaker_open = False
      self._circuit_breaker_failures = 0
      logger.info("Circuit breaker reset")
    else:
      raise GatewayTransientError(
        f"Circuit breaker open. Retry after {self.config.circuit_breaker_timeout - time_since_failure:.0f}s"
      )

  def _record_failure(self) -> None:
    """Record a failure for circuit breaker."""
    self._circuit_breaker_failures += 1
    self._circuit_breaker_last_failure = time.time()

    if self._circuit_breaker_failures >= self.config.circuit_breaker_threshold:
      self._circuit_breaker_open = True
      logger.warning(
        f"Circuit breaker opened after {self._circuit_breaker_failures} failures"
      )

  def _record_success(self) -> None:
    """Record a success for circuit breaker."""
    self._circuit_breaker_failures = 0
    self._circuit_breaker_open = False

  def _handle_response_error(
    self, status_code: int, response_data: Optional[Dict[str, Any]] = None
  ) -> GatewayAPIError:
    """
    Convert HTTP status code to appropriate exception.

    Args:
        status_code: HTTP status code
        response_data: Response body data

    Returns:
        Appropriate GatewayAPIError subclass
    """
    error_message = f"Request failed with status {status_code}"
    if response_data and isinstance(response_data, dict):
      errors = response_data.get("errors")
      if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        error_message = errors[0].get("message", error_message)
      else:
        error_message = response_data.get("detail", error_message)

    if status_code in (502, 503, 504):
      return GatewayTransientError(error_message, status_code, response_data)
    elif status_code in (400, 401, 403, 404, 422):
      return GatewayClientError(error_message, status_code, response_data)
    elif status_code >= 500:
      return GatewayServerError(error_message, status_code, response_data)
    else:
      return GatewayAPIError(error_message, status_code, response_data)

  @staticmethod
  def _convert_request_error(error: Exception) -> Exception:
    """Map httpx transport exceptions onto the gateway hierarchy."""
    if isinstance(error, httpx.TimeoutException):
      return GatewayTimeoutError(f"Request timeout: {error}")
    if isinstance(error, httpx.ConnectError):
      return GatewayTransientError(f"Connection error: {error}")
    if isinstance(error, httpx.RequestError):
      return GatewayTransientError(f"Request error: {error}")
    return error

  async def _execute_once(
    self, func: Callable[..., Awaitable[T]], *args, **kwargs
  ) -> T:
    """
    Execute an async function a single time, without retries.

    The circuit breaker and error conversion match _execute_with_retry.

    Raises:
        GatewayAPIError: If the call fails
    """
    self._check_circuit_breaker()
    try:
      result = await func(*args, **kwargs)
    except (GatewayAPIError, httpx.RequestError) as e:
      error = self._convert_request_error(e)
      if not isinstance(error, GraphQLResponseError):
        self._record_failure()
      if error is e:
        raise
      raise error from e

    self._record_success()
    return result

  async def _execute_with_retry(
    self, func: Callable[..., Awaitable[T]], *args, **kwargs
  ) -> T:
    """
    Execute an async function with retry logic.

    Args:
        func: Async function to execute
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Function result

    Raises:
        GatewayAPIError: If all retries fail
    """
    last_error: Optional[Exception] = None

    for attempt in range(self.config.max_retries + 1):
      try:
        self._check_circuit_breaker()

        result = await func(*args, **kwargs)

        self._record_success()

        return result

      except (GatewayAPIError, httpx.RequestError) as e:
        last_error = self._convert_request_error(e)

        if not self._should_retry(last_error, attempt):
          if not isinstance(last_error, GraphQLResponseError):
            self._record_failure()
          if last_error is e:
            raise
          raise last_error from e

        delay = self._calculate_retry_delay(attempt)
        logger.warning(
          f"Request failed (attempt {attempt + 1}/{self.config.max_retries + 1}), "
          f"retrying in {delay:.2f}s: {last_error}"
        )
        await asyncio.sleep(delay)

    # All retries failed
    self._record_failure()
    if last_error is None:
      raise RuntimeError("Retry logic failed without capturing an exception")
    raise last_error
