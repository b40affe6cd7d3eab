import json
import time
from unittest.mock import AsyncMock, MagicMock

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from claimdocs.core.auth import _role_from_claims
from claimdocs.core.jwks import JWKKey
from claimdocs.core.jwt import JWTVerifier, jwk_to_pem

SUPABASE_URL = "https://test.supabase.co"
SECRET = "test-jwt-secret-with-at-least-32-bytes!!"


def _payload(**overrides):
    now = int(time.time())
    payload = {
        "sub": "6c1f4c52-0d8e-4a51-9d57-1b3f1f0e2a11",
        "email": "adjuster@example.com",
        "role": "authenticated",
        "aud": "authenticated",
        "iss": f"{SUPABASE_URL}/auth/v1",
        "iat": now,
        "exp": now + 3600,
    }
    payload.update(overrides)
    return payload


def _keys_returning(key):
    keys = MagicMock()
    keys.get_key = AsyncMock(return_value=key)
    return keys


@pytest.mark.asyncio
async def test_hs256_token_verified():
    verifier = JWTVerifier(SUPABASE_URL, jwt_secret=SECRET, keys=_keys_returning(None))
    token = jwt.encode(_payload(app_metadata={"role": "admin"}), SECRET, algorithm="HS256")

    claims = await verifier.verify_token(token)

    assert claims.email == "adjuster@example.com"
    assert claims.app_metadata == {"role": "admin"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"exp": int(time.time()) - 10},
        {"iss": "https://elsewhere.supabase.co/auth/v1"},
        {"aud": "anon"},
    ],
)
async def test_hs256_token_rejected(overrides):
    verifier = JWTVerifier(SUPABASE_URL, jwt_secret=SECRET, keys=_keys_returning(None))
    token = jwt.encode(_payload(**overrides), SECRET, algorithm="HS256")

    with pytest.raises(jwt.InvalidTokenError):
        await verifier.verify_token(token)


@pytest.mark.asyncio
async def test_hs256_wrong_secret():
    verifier = JWTVerifier(SUPABASE_URL, jwt_secret=SECRET, keys=_keys_returning(None))
    token = jwt.encode(_payload(), "another-secret-that-is-also-32-bytes-long", algorithm="HS256")

    with pytest.raises(jwt.InvalidTokenError):
        await verifier.verify_token(token)


@pytest.mark.asyncio
async def test_hs256_without_configured_secret():
    verifier = JWTVerifier(SUPABASE_URL, keys=_keys_returning(None))
    token = jwt.encode(_payload(), SECRET, algorithm="HS256")

    with pytest.raises(jwt.InvalidTokenError):
        await verifier.verify_token(token)


@pytest.mark.asyncio
async def test_rs256_token_verified_through_jwks():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    jwk = json.loads(jwt.algorithms.RSAAlgorithm.to_jwk(private_key.public_key()))
    keys = _keys_returning(JWKKey(kid="key-1", **jwk))
    verifier = JWTVerifier(SUPABASE_URL, keys=keys)
    token = jwt.encode(_payload(), private_key, algorithm="RS256", headers={"kid": "key-1"})

    claims = await verifier.verify_token(token)

    assert claims.sub == "6c1f4c52-0d8e-4a51-9d57-1b3f1f0e2a11"
    keys.get_key.assert_awaited_once_with("key-1")


@pytest.mark.asyncio
async def test_rs256_unknown_kid():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    verifier = JWTVerifier(SUPABASE_URL, keys=_keys_returning(None))
    token = jwt.encode(_payload(), private_key, algorithm="RS256", headers={"kid": "gone"})

    with pytest.raises(jwt.InvalidTokenError):
        await verifier.verify_token(token)


@pytest.mark.asyncio
async def test_es256_token_verified_through_jwks():
    private_key = ec.generate_private_key(ec.SECP256R1())
    jwk = json.loads(jwt.algorithms.ECAlgorithm.to_jwk(private_key.public_key()))
    verifier = JWTVerifier(SUPABASE_URL, keys=_keys_returning(JWKKey(kid="ec-1", **jwk)))
    token = jwt.encode(_payload(), private_key, algorithm="ES256", headers={"kid": "ec-1"})

    claims = await verifier.verify_token(token)

    assert claims.email == "adjuster@example.com"


def test_jwk_to_pem_rejects_unknown_key_type():
    with pytest.raises(ValueError):
        jwk_to_pem(JWKKey(kid="k", kty="oct"))


@pytest.mark.parametrize(
    "role,app_metadata,expected",
    [
        ("authenticated", {"role": "admin"}, "admin"),
        ("authenticated", None, "user"),
        ("service_role", {}, "service_role"),
    ],
)
def test_role_from_claims(role, app_metadata, expected):
    assert _role_from_claims(role, app_metadata) == expected
