"""
BYU JWT Verifier - Core Implementation

Retrieves the BYU .well-known document, resolves its signing keys and
verifies BYU signed JWTs against them.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError

from byu_jwt.cache import InstanceCache
from byu_jwt.claims import parse_claims
from byu_jwt.discovery import DiscoveryClient, WellKnown, discovery_url
from byu_jwt.errors import (
    BadIssuerException,
    ConfigurationError,
    DecodeFailure,
    ExpiredTokenError,
    KeyUnavailable,
    NoExpirationException,
    NoIssuerException,
)
from byu_jwt.keys import KeyId, KeyResolver, KeyValue

logger = logging.getLogger(__name__)

BYU_JWT_HEADER_CURRENT = "X-JWT-Assertion"
BYU_JWT_HEADER_ORIGINAL = "X-JWT-Assertion-Original"

DEFAULT_HOST = "https://api.byu.edu"
# Accepted when the .well-known document lists no signing algorithms
DEFAULT_ALGORITHMS = ("RS256",)

DECODE_OPTIONS = {"verify_aud": False}


class BYUJWT:
    """
    Verifies JWTs issued by the authority behind one .well-known host.

    Order of operations in decode():
    1. .well-known document -> issuer, jwks_uri, allowed algorithms
    2. Signing keys from jwks_uri
    3. Verify signature (and 'exp' if present) against each key until one succeeds
    4. Require 'iss' (matching .well-known) and 'exp'
    5. Re-shape the BYU / WSO2 claims

    The .well-known document and keys are cached on the instance, so
    production and sandbox verifiers can live side by side.
    """

    BYU_JWT_HEADER_CURRENT = BYU_JWT_HEADER_CURRENT
    BYU_JWT_HEADER_ORIGINAL = BYU_JWT_HEADER_ORIGINAL

    def __init__(
        self,
        host: Optional[str] = None,
        well_known_url: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
        cache_enabled: bool = True,
        cache_ttl: Optional[float] = None,
        timeout: float = 10.0,
        use_key_set: bool = True,
    ):
        if host is not None and well_known_url is not None:
            raise ConfigurationError("Provide only one: host or well_known_url")
        if host is not None and not host.strip():
            raise ConfigurationError("host must not be empty")
        if well_known_url is not None and not well_known_url.strip():
            raise ConfigurationError("well_known_url must not be empty")

        self.host = self._normalize(host) if host is not None else DEFAULT_HOST
        self.well_known_url = well_known_url.strip() if well_known_url else discovery_url(self.host)
        self.use_key_set = use_key_set

        # Most recent failure, kept for callers of validate_jwt()
        self.last_exception: Optional[Exception] = None

        self._cache = InstanceCache(enabled=cache_enabled, ttl=cache_ttl)
        self.discovery = DiscoveryClient(http_client, self._cache, timeout, on_error=self._record)
        self.key_resolver = KeyResolver(http_client, self._cache, timeout, on_error=self._record)

    def _normalize(self, host: str) -> str:
        """Convert 'api.byu.edu' to 'https://api.byu.edu'"""
        host = host.strip()
        if not host.startswith("http"):
            host = f"https://{host}"
        return host.rstrip("/")

    def _record(self, error: Exception) -> None:
        self.last_exception = error

    def get_well_known(self) -> Optional[WellKnown]:
        """The parsed .well-known document, or None if it can't be retrieved"""
        return self.discovery.fetch_url(self.well_known_url)

    def get_public_key(self) -> Optional[str]:
        """PEM public key from the first certificate of the key set, or None"""
        return self.key_resolver.resolve_primary_key(self.get_well_known())

    def get_public_keys(self) -> Dict[KeyId, KeyValue]:
        """All usable keys of the key set, by 'kid' (or position), or {}"""
        return self.key_resolver.resolve_key_set(self.get_well_known())

    def get_issuer(self, token: str) -> Optional[str]:
        """
        The 'iss' claim of a token, read WITHOUT verifying its signature.
        Only fit for deciding which verifier to hand the token to.
        """
        if not isinstance(token, str):
            return None
        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError as e:
            self.last_exception = e
            return None
        issuer = claims.get("iss")
        return issuer if isinstance(issuer, str) and issuer else None

    def validate_jwt(self, token: str) -> bool:
        """
        True if ``token`` decodes, False otherwise. Never raises; the reason
        for a False is left in ``last_exception``.
        """
        try:
            decoded = self.decode(token)
        except Exception as e:
            # Anything at all, including a missing (None) token, is a False
            self.last_exception = e
            return False
        return bool(decoded)

    def decode(self, token: str) -> Dict[str, Any]:
        """
        Verify ``token`` and return its claims with the 'byu' and 'wso2'
        groups added.

        Raises DecodeFailure (ExpiredTokenError, KeyUnavailable),
        NoIssuerException, BadIssuerException or NoExpirationException.
        """
        well_known = self.get_well_known()
        candidates, algorithms = self._candidates(well_known, token)

        claims, error = self._verify_signature(token, candidates, algorithms)
        if claims is None:
            if error is None:
                raise KeyUnavailable(
                    "Could not decode JWT: no signing keys available",
                    jwks_uri=well_known.jwks_uri if well_known else None,
                )
            error_class = ExpiredTokenError if isinstance(error, ExpiredSignatureError) else DecodeFailure
            raise error_class(f"Could not decode JWT: {error}", cause=error) from error

        # jwt.decode checks 'exp' only when present and doesn't check 'iss' at all
        if not claims.get("iss"):
            raise NoIssuerException("No issuer in JWT")
        if claims["iss"] != well_known.issuer:
            raise BadIssuerException(
                "JWT issuer does not match well-known",
                issuer=claims["iss"],
                expected=well_known.issuer,
            )
        if not claims.get("exp"):
            raise NoExpirationException("No expiration in JWT")

        return parse_claims(claims)

    def parse_claims(self, claims: Dict[str, Any]) -> Dict[str, Any]:
        return parse_claims(claims)

    def clear_cache(self) -> None:
        self._cache.clear()

    def reset(self) -> None:
        """Forget cached documents and keys and the last recorded failure"""
        self.clear_cache()
        self.last_exception = None

    def _candidates(self, well_known: Optional[WellKnown], token: str) -> Tuple[List[Any], Sequence[str]]:
        if well_known is None:
            return ([], DEFAULT_ALGORITHMS)

        algorithms = well_known.id_token_signing_alg_values_supported
        if not self.use_key_set:
            key = self.key_resolver.resolve_primary_key(well_known)
            return ([key] if key else [], algorithms or DEFAULT_ALGORITHMS)

        keys = self.key_resolver.resolve_key_set(well_known)
        kid = self._header_kid(token)
        if isinstance(kid, str) and kid in keys:
            # Try the key the token names first
            ordered = [keys[kid]] + [key for key_id, key in keys.items() if key_id != kid]
        else:
            ordered = list(keys.values())
        return (ordered, algorithms)

    def _header_kid(self, token: str) -> Optional[str]:
        try:
            header = jwt.get_unverified_header(token)
        except JWTError:
            # Malformed; the decode attempts will report why
            return None
        return header.get("kid")

    def _verify_signature(
        self, token: str, keys: Sequence[Any], algorithms: Sequence[str]
    ) -> Tuple[Optional[Dict[str, Any]], Optional[JWTError]]:
        """
        Returns (claims, None) for the first key that verifies ``token``,
        otherwise (None, error from the last key tried). A key whose signature
        matches but whose claims fail (expired, bad nbf) ends the search.
        """
        last_error: Optional[JWTError] = None
        for position, key in enumerate(keys):
            claims, error = self._try_key(token, key, algorithms)
            if claims is not None:
                logger.debug("JWT verified with candidate key %d", position)
                return (claims, None)
            logger.debug("Candidate key %d rejected JWT: %s", position, error)
            if isinstance(error, (ExpiredSignatureError, JWTClaimsError)):
                # Signature matched, the claims did not; other keys won't do better
                return (None, error)
            last_error = error
        return (None, last_error)

    def _try_key(
        self, token: str, key: Any, algorithms: Sequence[str]
    ) -> Tuple[Optional[Dict[str, Any]], Optional[JWTError]]:
        try:
            return (jwt.decode(token, key, algorithms=list(algorithms), options=DECODE_OPTIONS), None)
        except JWTError as e:
            return (None, e)
