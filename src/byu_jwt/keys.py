"""
Public key resolution from the JWKS document named by .well-known
"""

import base64
import logging
from typing import Any, Dict, Optional, Union

import httpx
from cryptography import x509
from cryptography.hazmat.primitives import serialization
from jose import jwk
from jose.backends.base import Key
from jose.exceptions import JWKError

from byu_jwt.cache import InstanceCache
from byu_jwt.discovery import ErrorRecorder, WellKnown, fetch_json
from byu_jwt.errors import KeyUnavailable

logger = logging.getLogger(__name__)

KeyId = Union[str, int]
# A jose Key when the JWK pins its 'alg', otherwise the JWK itself so that
# jose builds it for whatever algorithm the token header names
KeyValue = Union[Key, Dict[str, Any]]

# Used to check JWK entries that carry no 'alg'
DEFAULT_KEY_ALGORITHMS = {
    "RSA": "RS256",
    "EC": "ES256",
    "oct": "HS256",
}


class KeyResolver:
    """
    Resolves signing keys in one of two ways:
    1. Primary key: the public key of the first entry's x5c[0] certificate (PEM string)
    2. Key set: every parseable entry, as {kid (or position): jose Key or JWK dict}

    Results are cached per JWKS URI. Nothing here raises; failures are
    reported through ``on_error`` and come back as None / {}.
    """

    def __init__(
        self,
        http_client: Optional[httpx.Client] = None,
        cache: Optional[InstanceCache] = None,
        timeout: float = 10.0,
        on_error: Optional[ErrorRecorder] = None,
    ):
        self.http_client = http_client
        self.cache = cache if cache is not None else InstanceCache()
        self.timeout = timeout
        self.on_error = on_error

    def resolve_primary_key(self, well_known: Optional[WellKnown]) -> Optional[str]:
        if well_known is None or not well_known.jwks_uri:
            return None
        jwks_uri = well_known.jwks_uri

        hit, cached = self.cache.get(("public_key", jwks_uri))
        if hit:
            return cached

        jwks = self._fetch(jwks_uri)
        if jwks is None:
            return None

        try:
            certificate = jwks["keys"][0]["x5c"][0]
        except (KeyError, IndexError, TypeError) as e:
            self._fail(KeyUnavailable(f"No x5c certificate in first key at '{jwks_uri}'", jwks_uri=jwks_uri, cause=e))
            return None

        try:
            key = _certificate_public_key(certificate)
        except (ValueError, TypeError) as e:
            self._fail(KeyUnavailable(f"Invalid certificate in key set at '{jwks_uri}': {e}", jwks_uri=jwks_uri, cause=e))
            return None

        self.cache.set(("public_key", jwks_uri), key)
        return key

    def resolve_key_set(self, well_known: Optional[WellKnown]) -> Dict[KeyId, KeyValue]:
        if well_known is None or not well_known.jwks_uri:
            return {}
        jwks_uri = well_known.jwks_uri

        hit, cached = self.cache.get(("public_keys", jwks_uri))
        if hit:
            return dict(cached)

        jwks = self._fetch(jwks_uri)
        if jwks is None:
            return {}

        entries = jwks.get("keys") if isinstance(jwks, dict) else None
        if not isinstance(entries, list):
            self._fail(KeyUnavailable(f"Document at '{jwks_uri}' is not a JWK set", jwks_uri=jwks_uri))
            return {}

        keys: Dict[KeyId, KeyValue] = {}
        for position, entry in enumerate(entries):
            key_id = entry.get("kid", position) if isinstance(entry, dict) else position
            try:
                keys[key_id] = _construct_key(entry)
            except Exception as e:
                # jose raises assorted types for malformed JWKs; one bad entry
                # doesn't spoil the rest of the set
                logger.warning("Skipping unusable key %r at '%s': %s", key_id, jwks_uri, e)

        if not keys:
            self._fail(KeyUnavailable(f"No usable keys in key set at '{jwks_uri}'", jwks_uri=jwks_uri))
            return {}

        self.cache.set(("public_keys", jwks_uri), keys)
        return dict(keys)

    def _fetch(self, jwks_uri: str) -> Any:
        try:
            return fetch_json(jwks_uri, self.http_client, self.timeout)
        except httpx.HTTPError as e:
            self._fail(KeyUnavailable(f"Failed to fetch JWKS from '{jwks_uri}': {e}", jwks_uri=jwks_uri, cause=e))
        except ValueError as e:
            self._fail(KeyUnavailable(f"JWKS at '{jwks_uri}' is not valid JSON: {e}", jwks_uri=jwks_uri, cause=e))
        return None

    def _fail(self, error: KeyUnavailable) -> None:
        error.__cause__ = error.cause
        logger.warning("%s", error)
        if self.on_error is not None:
            self.on_error(error)


def _certificate_public_key(certificate: str) -> str:
    """Base64 DER certificate (no PEM armor) -> PEM encoded public key"""
    der = base64.b64decode(certificate, validate=True)
    public_key = x509.load_der_x509_certificate(der).public_key()
    return public_key.public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


def _construct_key(entry: Dict[str, Any]) -> KeyValue:
    if not isinstance(entry, dict):
        raise JWKError("Key entry is not a JSON object")
    if entry.get("alg"):
        return jwk.construct(entry, entry["alg"])

    algorithm = DEFAULT_KEY_ALGORITHMS.get(entry.get("kty"))
    if not algorithm:
        raise JWKError(f"Unable to find an algorithm for key type {entry.get('kty')!r}")
    # Parse once to weed out malformed entries, but keep the key algorithm-free
    jwk.construct(entry, algorithm)
    return dict(entry)
