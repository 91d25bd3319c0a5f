"""
Gateway Client Configuration.

Centralized configuration for the GraphQL gateway and the upload transport.
"""

import os
from typing import Dict, Any, Optional
from dataclasses import dataclass, field

from fieldagent_uploads.config.constants import (
  DEFAULT_CIRCUIT_BREAKER_THRESHOLD,
  DEFAULT_CIRCUIT_BREAKER_TIMEOUT,
  DEFAULT_HTTP_TIMEOUT,
  DEFAULT_MAX_RETRIES,
  DEFAULT_RETRY_BACKOFF,
  DEFAULT_RETRY_DELAY,
)


@dataclass
class GatewayClientConfig:
  """Configuration for gateway and transport clients."""

  # Connection settings
  endpoint: str = ""
  access_token: Optional[str] = None
  timeout: float = DEFAULT_HTTP_TIMEOUT
  max_retries: int = DEFAULT_MAX_RETRIES
  retry_delay: float = DEFAULT_RETRY_DELAY
  retry_backoff: float = DEFAULT_RETRY_BACKOFF

  # Connection pool settings
  max_connections: int = 100
  max_keepalive_connections: int = 20
  keepalive_expiry: float = 5.0

  # Circuit breaker settings
  circuit_breaker_threshold: int = DEFAULT_CIRCUIT_BREAKER_THRESHOLD
  circuit_breaker_timeout: int = DEFAULT_CIRCUIT_BREAKER_TIMEOUT

  # Request settings
  headers: Dict[str, str] = field(default_factory=dict)
  verify_ssl: bool = True

  @classmethod
  def from_env(cls, prefix: str = "FIELDAGENT_CLIENT_") -> "GatewayClientConfig":
    """
    Create configuration from environment variables.

    The endpoint and token default to the application settings
    (FIELDAGENT_SERVER, FIELDAGENT_ACCESS_TOKEN) and can be overridden
    with prefixed variables like everything else.

    Args:
        prefix: Environment variable prefix

    Returns:
        GatewayClientConfig instance
    """
    from fieldagent_uploads.config import env

    config = cls(endpoint=env.graphql_endpoint(), access_token=env.access_token())

    # Map of config attribute to env var suffix
    env_mappings = {
      "endpoint": "ENDPOINT",
      "access_token": "ACCESS_TOKEN",
      "timeout": "TIMEOUT",
      "max_retries": "MAX_RETRIES",
      "retry_delay": "RETRY_DELAY",
      "retry_backoff": "RETRY_BACKOFF",
      "max_connections": "MAX_CONNECTIONS",
      "max_keepalive_connections": "MAX_KEEPALIVE_CONNECTIONS",
      "keepalive_expiry": "KEEPALIVE_EXPIRY",
      "circuit_breaker_threshold": "CIRCUIT_BREAKER_THRESHOLD",
      "circuit_breaker_timeout": "CIRCUIT_BREAKER_TIMEOUT",
      "verify_ssl": "VERIFY_SSL",
    }

    for attr, env_suffix in env_mappings.items():
      value = os.environ.get(prefix + env_suffix)

      if value is not None:
        # Convert to the type of the default
        current = getattr(config, attr)
        attr_type = type(current)
        if attr_type is bool:
          setattr(config, attr, value.lower() in ("true", "1", "yes"))
        elif attr_type in (int, float):
          setattr(config, attr, attr_type(value))
        else:
          setattr(config, attr, value)

    return config

  def with_overrides(self, **kwargs: Any) -> "GatewayClientConfig":
    """
    Create a new config with overridden values.

    Args:
        **kwargs: Values to override

    Returns:
        New GatewayClientConfig instance
    """
    config_dict: Dict[str, Any] = {
      "endpoint": self.endpoint,
      "access_token": self.access_token,
      "timeout": self.timeout,
      "max_retries": self.max_retries,
      "retry_delay": self.retry_delay,
      "retry_backoff": self.retry_backoff,
      "max_connections": self.max_connections,
      "max_keepalive_connections": self.max_keepalive_connections,
      "keepalive_expiry": self.keepalive_expiry,
      "circuit_breaker_threshold": self.circuit_breaker_threshold,
      "circuit_breaker_timeout": self.circuit_breaker_timeout,
      "headers": self.headers.copy(),
      "verify_ssl": self.verify_ssl,
    }
    config_dict.update(kwargs)
    return GatewayClientConfig(**config_dict)
