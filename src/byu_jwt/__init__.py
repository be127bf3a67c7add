"""
BYU JWT - verifies BYU signed JWTs

Discovers signing keys through the .well-known OpenID configuration and
re-shapes BYU / WSO2 claims into nested groups.
"""

from byu_jwt.validator import (
    BYUJWT,
    BYU_JWT_HEADER_CURRENT,
    BYU_JWT_HEADER_ORIGINAL,
    DEFAULT_ALGORITHMS,
    DEFAULT_HOST,
)
from byu_jwt.discovery import DiscoveryClient, WellKnown
from byu_jwt.keys import KeyResolver
from byu_jwt.claims import parse_claims
from byu_jwt.errors import (
    BYUJWTError,
    ConfigurationError,
    DiscoveryUnavailable,
    DecodeFailure,
    ExpiredTokenError,
    KeyUnavailable,
    NoIssuerException,
    BadIssuerException,
    NoExpirationException
)

__version__ = "0.1.0"

__all__ = [
    "BYUJWT",
    "BYU_JWT_HEADER_CURRENT",
    "BYU_JWT_HEADER_ORIGINAL",
    "DEFAULT_ALGORITHMS",
    "DEFAULT_HOST",
    "DiscoveryClient",
    "WellKnown",
    "KeyResolver",
    "parse_claims",
    "BYUJWTError",
    "ConfigurationError",
    "DiscoveryUnavailable",
    "DecodeFailure",
    "ExpiredTokenError",
    "KeyUnavailable",
    "NoIssuerException",
    "BadIssuerException",
    "NoExpirationException"
]
