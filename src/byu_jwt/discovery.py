"""
OpenID Connect discovery (.well-known) retrieval
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

import httpx

from byu_jwt.cache import InstanceCache
from byu_jwt.errors import DiscoveryUnavailable

logger = logging.getLogger(__name__)

WELL_KNOWN_PATH = "/.well-known/openid-configuration"

ErrorRecorder = Callable[[Exception], None]


def discovery_url(host: str) -> str:
    """'https://api.byu.edu/' -> 'https://api.byu.edu/.well-known/openid-configuration'"""
    return host.rstrip("/") + WELL_KNOWN_PATH


def fetch_json(url: str, http_client: Optional[httpx.Client] = None, timeout: float = 10.0) -> Any:
    """
    GET a URL and parse the body as JSON.

    Raises httpx.HTTPError on transport failures and non-2xx responses,
    ValueError when the body is not JSON.
    """
    logger.debug("Fetching %s", url)
    if http_client is not None:
        response = http_client.get(url, timeout=timeout)
        response.raise_for_status()
        return response.json()

    with httpx.Client() as client:
        response = client.get(url, timeout=timeout)
        response.raise_for_status()
        return response.json()


@dataclass(frozen=True)
class WellKnown:
    """
    Parsed discovery document. Only the fields used for verification are
    lifted out; the full document stays available in ``raw``.
    """
    issuer: str
    jwks_uri: str
    id_token_signing_alg_values_supported: Tuple[str, ...]
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_json(cls, data: Any) -> "WellKnown":
        if not isinstance(data, dict):
            raise ValueError("Discovery document is not a JSON object")

        algorithms = data.get("id_token_signing_alg_values_supported") or []
        if isinstance(algorithms, str):
            algorithms = [algorithms]
        if not isinstance(algorithms, list) or not all(isinstance(alg, str) for alg in algorithms):
            raise ValueError("id_token_signing_alg_values_supported must be a list of strings")

        issuer = data.get("issuer") or ""
        jwks_uri = data.get("jwks_uri") or ""
        if not isinstance(issuer, str) or not isinstance(jwks_uri, str):
            raise ValueError("issuer and jwks_uri must be strings")

        return cls(
            issuer=issuer,
            jwks_uri=jwks_uri,
            id_token_signing_alg_values_supported=tuple(algorithms),
            raw=dict(data),
        )

    def __getitem__(self, key: str) -> Any:
        return self.raw[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.raw.get(key, default)


class DiscoveryClient:
    """
    Fetches the .well-known document for a host and caches it per URL.
    Failures are reported through ``on_error`` and come back as None.
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

    def fetch(self, host: str) -> Optional[WellKnown]:
        return self.fetch_url(discovery_url(host))

    def fetch_url(self, url: str) -> Optional[WellKnown]:
        hit, cached = self.cache.get(("well_known", url))
        if hit:
            logger.debug("Using cached discovery document for %s", url)
            return cached

        try:
            document = WellKnown.from_json(fetch_json(url, self.http_client, self.timeout))
        except httpx.HTTPError as e:
            self._fail(DiscoveryUnavailable(f"Failed to fetch discovery document from '{url}': {e}", url=url), e)
            return None
        except ValueError as e:
            self._fail(DiscoveryUnavailable(f"Discovery document at '{url}' could not be parsed: {e}", url=url), e)
            return None

        self.cache.set(("well_known", url), document)
        return document

    def _fail(self, error: DiscoveryUnavailable, cause: Exception) -> None:
        error.__cause__ = cause
        logger.warning("%s", error)
        if self.on_error is not None:
            self.on_error(error)
