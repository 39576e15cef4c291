"""Package-wide constants for jwt-engine.

Defaults that define engine behavior when configuration omits a value.
For user-configurable settings, see config.py.
"""

# ============================================================================
# Signing Defaults
# ============================================================================

# Algorithm used when none is configured (HMAC with SHA-256)
DEFAULT_ALGORITHM: str = "HS256"

# Default token lifetime, in the same string form accepted by parse_duration()
DEFAULT_EXPIRES_IN: str = "1 day"

# Random secret length when no key material is supplied (bytes, hex encoded)
GENERATED_SECRET_BYTES: int = 32

# Algorithms that use a single shared secret for signing and verification
SYMMETRIC_ALGORITHMS: frozenset[str] = frozenset({"HS256", "HS384", "HS512"})

# Algorithms that require a private/public key pair
ASYMMETRIC_ALGORITHMS: frozenset[str] = frozenset(
    {
        "RS256",
        "RS384",
        "RS512",
        "PS256",
        "PS384",
        "PS512",
        "ES256",
        "ES384",
        "ES512",
        "EdDSA",
    }
)

# ============================================================================
# Transport Defaults
# ============================================================================

DEFAULT_COOKIE_NAME: str = "jwt_token"
DEFAULT_COOKIE_PATH: str = "/"

# Request header carrying the primary token for header transport
DEFAULT_AUTH_HEADER: str = "authorization"
DEFAULT_AUTH_SCHEME: str = "Bearer"

# Response header used to hand a freshly signed token to header-based clients
DEFAULT_TOKEN_RESPONSE_HEADER: str = "x-auth-token"

# ============================================================================
# Modifier Token Defaults
# ============================================================================

DEFAULT_MODIFIER_COOKIE_NAME: str = "jwt_modifier"
DEFAULT_MODIFIER_HEADER: str = "x-modifier-token"
