"""
Shared fixtures: a fake BYU authority served through httpx.MockTransport,
plus locally generated signing keys and tokens.
"""

import time

import pytest

from byu_jwt import BYUJWT

from helpers import CLIENT_CLAIMS, ISSUER, JWKS_URI, WELL_KNOWN_URL, WSO2_CLAIMS, FakeAuthority, SigningKey


@pytest.fixture(scope="session")
def signing_key():
    return SigningKey("key-1")


@pytest.fixture(scope="session")
def second_key():
    return SigningKey("key-2")


@pytest.fixture
def well_known_document():
    return {
        "issuer": ISSUER,
        "jwks_uri": JWKS_URI,
        "id_token_signing_alg_values_supported": ["RS256"],
        "response_types_supported": ["code", "token"],
    }


@pytest.fixture
def authority(well_known_document, signing_key, second_key):
    fake = FakeAuthority()
    fake.routes[WELL_KNOWN_URL] = well_known_document
    fake.routes[JWKS_URI] = {"keys": [signing_key.jwk(), second_key.jwk()]}
    return fake


@pytest.fixture
def verifier(authority):
    return BYUJWT(http_client=authority.client())


@pytest.fixture
def claims():
    """Claims of a valid client token, expiring in an hour"""
    payload = {"iss": ISSUER, "exp": int(time.time()) + 3600}
    payload.update(CLIENT_CLAIMS)
    payload.update(WSO2_CLAIMS)
    return payload
