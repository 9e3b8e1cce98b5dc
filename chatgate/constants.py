"""Service-wide constants and defaults.

Values here are the fallbacks used when the corresponding environment
variable is not set.
"""

# =============================================================================
# Credential transport
# =============================================================================
AUTHORIZATION_HEADER = "authorization"
BEARER_SCHEME = "bearer"

# Cookie names checked for a bearer token, highest priority first.
ACCESS_TOKEN_COOKIE = "sb-access-token"
LEGACY_TOKEN_COOKIE = "sb-token"
LEGACY_AUTH_TOKEN_COOKIE = "supabase-auth-token"
CREDENTIAL_COOKIE_ORDER = (
    ACCESS_TOKEN_COOKIE,
    LEGACY_TOKEN_COOKIE,
    LEGACY_AUTH_TOKEN_COOKIE,
)

# =============================================================================
# Identity provider
# =============================================================================
DEFAULT_IDENTITY_TIMEOUT_SECONDS = 10.0
SESSION_COOKIE_BASE64_PREFIX = "base64-"
MAX_SESSION_COOKIE_CHUNKS = 10

# =============================================================================
# Usage metering
# =============================================================================
UNLIMITED_DAILY_LIMIT = -1
DEFAULT_USAGE_TIMEZONE = "UTC"
DEFAULT_TRIAL_DAILY_LIMIT = UNLIMITED_DAILY_LIMIT
DEFAULT_PLAN_CACHE_TTL_SECONDS = 300
# Billing-provider trials still carry a paid plan for the period
ACTIVE_SUBSCRIPTION_STATUSES = ("active", "trialing")
IDEMPOTENCY_KEY_MAX_LENGTH = 200

# =============================================================================
# Admin sessions
# =============================================================================
DEFAULT_ADMIN_SESSION_COOKIE = "admin_session"
DEFAULT_ADMIN_SESSION_TTL_SECONDS = 60 * 60 * 8
ADMIN_TOKEN_BYTES = 32
# Column widths for client-supplied audit fields on admin_sessions
ADMIN_USER_AGENT_MAX_LENGTH = 512
ADMIN_IP_MAX_LENGTH = 64
ADMIN_CLEANUP_FUNCTION = "cleanup_admin_sessions"
DEFAULT_ADMIN_CLEANUP_INTERVAL_SECONDS = 0

# =============================================================================
# Database pool
# =============================================================================
DEFAULT_DB_POOL_SIZE = 5
DEFAULT_DB_MAX_OVERFLOW = 10
DEFAULT_DB_POOL_TIMEOUT = 30
DEFAULT_DB_POOL_RECYCLE = 1800  # 30 minutes in seconds
DEFAULT_SQLITE_BUSY_TIMEOUT = 30
