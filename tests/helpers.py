"""
Test doubles for the BYU authority: canned claims, RSA signing keys with
self-signed certificates, and an httpx.MockTransport backed fake.
"""

import base64
import datetime
from typing import Optional

import httpx
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID
from jose import jwk, jwt

ISSUER = "https://api.byu.edu"
WELL_KNOWN_URL = "https://api.byu.edu/.well-known/openid-configuration"
JWKS_URI = "https://api.byu.edu/.well-known/byucerts"

CLIENT_CLAIMS = {
    "http://byu.edu/claims/client_byu_id": "649019965",
    "http://byu.edu/claims/client_claim_source": "CLIENT_SUBSCRIBER",
    "http://byu.edu/claims/client_net_id": "adddrop",
    "http://byu.edu/claims/client_person_id": "377228062",
    "http://byu.edu/claims/client_preferred_first_name": "Add",
    "http://byu.edu/claims/client_name_prefix": " ",
    "http://byu.edu/claims/client_rest_of_name": "Add",
    "http://byu.edu/claims/client_sort_name": "Drop, Add",
    "http://byu.edu/claims/client_subscriber_net_id": "adddrop",
    "http://byu.edu/claims/client_name_suffix": " ",
    "http://byu.edu/claims/client_surname": "Drop",
    "http://byu.edu/claims/client_surname_position": "L",
}

WSO2_CLAIMS = {
    "http://wso2.org/claims/subscriber": "BYU/adddrop",
    "http://wso2.org/claims/applicationid": "2085",
    "http://wso2.org/claims/applicationname": "DefaultApplication",
    "http://wso2.org/claims/applicationtier": "Unlimited",
    "http://wso2.org/claims/apicontext": "/echo/v1",
    "http://wso2.org/claims/version": "v1",
    "http://wso2.org/claims/tier": "Bronze",
    "http://wso2.org/claims/keytype": "PRODUCTION",
    "http://wso2.org/claims/usertype": "APPLICATION",
    "http://wso2.org/claims/enduser": "adddrop@carbon.super",
    "http://wso2.org/claims/enduserTenantId": "-1234",
    "http://wso2.org/claims/client_id": "5gzLjMUcx7qut3MuSf9xr8GV2BAa",
}


class SigningKey:
    """An RSA key pair with a self-signed certificate and its JWK form"""

    def __init__(self, kid: str):
        self.kid = kid
        self.private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        self.private_pem = self.private_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        ).decode("ascii")
        self.public_pem = self.private_key.public_key().public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode("ascii")
        self.certificate = self._self_signed_certificate()

    def _self_signed_certificate(self) -> str:
        name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "api.byu.edu")])
        now = datetime.datetime.now(datetime.timezone.utc)
        cert = (
            x509.CertificateBuilder()
            .subject_name(name)
            .issuer_name(name)
            .public_key(self.private_key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - datetime.timedelta(days=1))
            .not_valid_after(now + datetime.timedelta(days=30))
            .sign(self.private_key, hashes.SHA256())
        )
        return base64.b64encode(cert.public_bytes(serialization.Encoding.DER)).decode("ascii")

    def jwk(self) -> dict:
        data = jwk.construct(self.public_pem, "RS256").to_dict()
        data.update({"kid": self.kid, "use": "sig", "x5c": [self.certificate]})
        return data

    def sign(self, claims: dict, kid: Optional[str] = None, algorithm: str = "RS256", with_kid: bool = True) -> str:
        headers = {"kid": kid or self.kid} if with_kid else None
        return jwt.encode(claims, self.private_pem, algorithm=algorithm, headers=headers)


class FakeAuthority:
    """
    Serves canned responses by URL. A route may be JSON-able data, raw text,
    or a callable taking the request and returning an httpx.Response.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, text="Not Found")
        if callable(route):
            return route(request)
        if isinstance(route, str):
            return httpx.Response(200, text=route)
        return httpx.Response(200, json=route)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    def count(self, url: str) -> int:
        return self.requests.count(url)


