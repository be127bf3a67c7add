"""
BYU JWT error classes
"""

from typing import Optional


class BYUJWTError(Exception):
    """Base exception for all BYU JWT errors"""
    pass


class ConfigurationError(BYUJWTError):
    """
    Raised when the verifier is constructed with invalid or conflicting settings
    """
    pass


class DiscoveryUnavailable(BYUJWTError):
    """
    Raised internally when the .well-known document cannot be fetched or parsed.
    Never propagated to callers; recorded as the verifier's last exception.
    """
    def __init__(self, message: str, url: str = None):
        super().__init__(message)
        self.url = url


class DecodeFailure(BYUJWTError):
    """
    Raised when a token cannot be decoded with any available key
    (malformed token, bad signature, disallowed algorithm, expired token)
    """
    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class ExpiredTokenError(DecodeFailure):
    """Raised when the token's signature checks out but 'exp' is in the past"""
    pass


class KeyUnavailable(DecodeFailure):
    """
    Raised when no usable public key could be resolved from the key set
    """
    def __init__(self, message: str, jwks_uri: str = None, cause: Optional[Exception] = None):
        super().__init__(message, cause=cause)
        self.jwks_uri = jwks_uri


class NoIssuerException(BYUJWTError):
    """Raised when a decoded token carries no 'iss' claim"""
    pass


class BadIssuerException(BYUJWTError):
    """
    Raised when the token's 'iss' claim does not match the .well-known issuer
    """
    def __init__(self, message: str, issuer: str = None, expected: str = None):
        super().__init__(message)
        self.issuer = issuer
        self.expected = expected


class NoExpirationException(BYUJWTError):
    """Raised when a decoded token carries no 'exp' claim"""
    pass
