"""
Static constants configuration.

Operational constants that are fixed by the storage backend or the
FieldAgent API and don't change based on environment.
"""

# =============================================================================
# STORAGE BACKEND LIMITS
# =============================================================================

MIB = 1024 * 1024

# Smallest part size the object store accepts for any non-final part
MIN_PART_SIZE = 5 * MIB

# Part numbers run from 1 to 10,000
MAX_PARTS = 10_000

# Only success code the pre-signed PUT returns
UPLOAD_SUCCESS_STATUS = 200

# =============================================================================
# API DEFAULTS
# =============================================================================

DEFAULT_FIELDAGENT_SERVER = "https://api.sentera.com"
GRAPHQL_PATH = "/graphql"
DEFAULT_ACCESS_TOKEN_FILENAME = "fieldagent_access_token.txt"

# Default Timeouts (seconds)
DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_UPLOAD_TIMEOUT = 300.0

# Retry Configuration
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0  # seconds
DEFAULT_RETRY_BACKOFF = 2.0

# Circuit breaker
DEFAULT_CIRCUIT_BREAKER_THRESHOLD = 5
DEFAULT_CIRCUIT_BREAKER_TIMEOUT = 60  # seconds

# Part upload workers
DEFAULT_MAX_CONCURRENCY = 4
MIN_CONCURRENCY = 1
MAX_CONCURRENCY = 32
