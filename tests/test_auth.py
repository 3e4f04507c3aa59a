import asyncio
import base64
import datetime
import json
import time

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.x509.oid import NameOID
from fastapi import HTTPException
from fastapi.testclient import TestClient

from studiodesk import auth
from studiodesk.main import app

PROJECT_ID = "studio-test"
KID = "test-key"


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


@pytest.fixture(scope="module")
def signing_key():
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "securetoken")])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(days=1))
        .sign(key, hashes.SHA256())
    )
    return key, cert.public_bytes(serialization.Encoding.PEM).decode()


@pytest.fixture
def firebase(monkeypatch, signing_key):
    _, pem = signing_key

    async def public_keys(refresh=False):
        return {KID: pem}

    monkeypatch.setattr(auth, "FIREBASE_PROJECT_ID", PROJECT_ID)
    monkeypatch.setattr(auth, "get_google_public_keys", public_keys)


def make_token(key, **claims) -> str:
    now = int(time.time())
    payload = {
        "aud": PROJECT_ID,
        "iss": f"https://securetoken.google.com/{PROJECT_ID}",
        "sub": "owner-uid-a",
        "iat": now,
        "exp": now + 3600,
    }
    payload.update(claims)
    header = _b64(json.dumps({"alg": "RS256", "kid": KID}).encode())
    body = _b64(json.dumps(payload).encode())
    signature = key.sign(f"{header}.{body}".encode(), padding.PKCS1v15(), hashes.SHA256())
    return f"{header}.{body}.{_b64(signature)}"


def test_valid_token(firebase, signing_key):
    key, _ = signing_key
    payload = asyncio.run(auth.verify_firebase_token(make_token(key)))
    assert payload["sub"] == "owner-uid-a"


def test_expired_token(firebase, signing_key):
    key, _ = signing_key
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(auth.verify_firebase_token(make_token(key, exp=int(time.time()) - 10)))
    assert exc_info.value.status_code == 401
    assert exc_info.value.headers == {"X-Token-Expired": "true"}


def test_wrong_audience(firebase, signing_key):
    key, _ = signing_key
    with pytest.raises(HTTPException):
        asyncio.run(auth.verify_firebase_token(make_token(key, aud="someone-else")))


def test_tampered_token(firebase, signing_key):
    key, _ = signing_key
    header, _, signature = make_token(key).split(".")
    forged = _b64(json.dumps({"aud": PROJECT_ID, "sub": "owner-uid-b"}).encode())
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(auth.verify_firebase_token(f"{header}.{forged}.{signature}"))
    assert exc_info.value.detail == "Invalid token signature"


def test_malformed_token(firebase):
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(auth.verify_firebase_token("not-a-jwt"))
    assert exc_info.value.detail == "Invalid token format"


def test_missing_bearer_is_unauthorized():
    app.dependency_overrides.clear()
    response = TestClient(app).get("/appointments")
    assert response.status_code in (401, 403)
