import base64
import json
from datetime import timedelta

import pytest
from jose import jwt

from app.core.exceptions import InvalidTokenError
from app.core.security import TokenService, get_password_hash, verify_password


def _b64(payload: dict) -> str:
    raw = json.dumps(payload, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def test_password_hash_is_salted_and_verifies():
    first = get_password_hash("hunter2")
    second = get_password_hash("hunter2")

    assert first != "hunter2"
    assert first != second
    assert verify_password("hunter2", first)
    assert verify_password("hunter2", second)
    assert not verify_password("hunter3", first)


def test_token_round_trip_carries_user_id():
    service = TokenService("secret")
    token = service.create_access_token(42)

    assert service.verify_access_token(token) == 42


def test_token_expires_after_configured_lifetime():
    service = TokenService("secret", expire_minutes=60)
    claims = jwt.get_unverified_claims(service.create_access_token(1))

    assert claims["userId"] == 1
    assert claims["exp"] - claims["iat"] == 3600


def test_expired_token_is_rejected():
    service = TokenService("secret")
    token = service.create_access_token(1, expires_delta=timedelta(seconds=-10))

    with pytest.raises(InvalidTokenError):
        service.verify_access_token(token)


def test_token_signed_with_other_secret_is_rejected():
    service = TokenService("secret")
    forged = TokenService("other-secret").create_access_token(1)

    with pytest.raises(InvalidTokenError):
        service.verify_access_token(forged)


def test_tampered_signature_is_rejected():
    service = TokenService("secret")
    header, payload, _ = service.create_access_token(1).split(".")
    _, _, other_signature = TokenService("other-secret").create_access_token(1).split(".")

    with pytest.raises(InvalidTokenError):
        service.verify_access_token(f"{header}.{payload}.{other_signature}")


def test_altered_payload_is_rejected():
    service = TokenService("secret")
    token = service.create_access_token(1)
    header, _, signature = token.split(".")
    claims = jwt.get_unverified_claims(token)
    claims["userId"] = 2

    with pytest.raises(InvalidTokenError):
        service.verify_access_token(f"{header}.{_b64(claims)}.{signature}")


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c", "Bearer abc"])
def test_malformed_token_is_rejected(token):
    with pytest.raises(InvalidTokenError):
        TokenService("secret").verify_access_token(token)


@pytest.mark.parametrize("user_id", ["1", None, True, 1.5])
def test_non_integer_user_id_claim_is_rejected(user_id):
    token = jwt.encode({"userId": user_id, "exp": 4102444800}, "secret", algorithm="HS256")

    with pytest.raises(InvalidTokenError):
        TokenService("secret").verify_access_token(token)


def test_token_without_expiry_is_rejected():
    token = jwt.encode({"userId": 1}, "secret", algorithm="HS256")

    with pytest.raises(InvalidTokenError):
        TokenService("secret").verify_access_token(token)


def test_unsigned_token_is_rejected():
    header = _b64({"alg": "none", "typ": "JWT"})
    payload = _b64({"userId": 1, "exp": 4102444800})

    with pytest.raises(InvalidTokenError):
        TokenService("secret").verify_access_token(f"{header}.{payload}.")


def test_token_service_requires_secret():
    with pytest.raises(ValueError):
        TokenService("")
