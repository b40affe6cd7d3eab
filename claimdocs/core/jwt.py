"""Verification of Supabase access tokens presented by operators.

HS256 tokens are checked against the project's shared secret. RS256 and
ES256 tokens are checked against the public key named by the header's
``kid``, looked up through the JWKS cache.
"""

import base64
from typing import Any, Dict, Optional

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from pydantic import BaseModel

from claimdocs.core.config import settings
from claimdocs.core.jwks import JWKKey, JWKSService, jwks_service
from claimdocs.utils.logging import get_logger

LOGGER = get_logger(__name__)

REQUIRED_CLAIMS = ["sub", "email", "exp", "iat", "iss"]

_EC_CURVES = {
    "P-256": ec.SECP256R1,
    "P-384": ec.SECP384R1,
    "P-521": ec.SECP521R1,
}


class JWTClaims(BaseModel):
    """Decoded JWT claims from Supabase."""

    sub: str  # User ID
    email: str
    role: str = "authenticated"
    exp: int
    iat: int
    iss: str
    aud: str = ""

    app_metadata: Optional[Dict[str, Any]] = None
    user_metadata: Optional[Dict[str, Any]] = None
    session_id: Optional[str] = None


def _b64url_to_int(value: Optional[str]) -> int:
    if not value:
        raise ValueError("JWK is missing a key component")
    padded = value + "=" * (-len(value) % 4)
    return int.from_bytes(base64.urlsafe_b64decode(padded), byteorder="big")


def jwk_to_pem(jwk_key: JWKKey) -> str:
    """Convert an RSA or EC JWK into a PEM public key PyJWT can use.

    Raises:
        ValueError: If the key type or curve is unsupported
    """
    if jwk_key.kty == "RSA":
        public_key = rsa.RSAPublicNumbers(
            _b64url_to_int(jwk_key.e), _b64url_to_int(jwk_key.n)
        ).public_key()
    elif jwk_key.kty == "EC":
        curve_cls = _EC_CURVES.get(jwk_key.crv or "")
        if curve_cls is None:
            raise ValueError(f"Unsupported curve: {jwk_key.crv}")
        public_key = ec.EllipticCurvePublicNumbers(
            x=_b64url_to_int(jwk_key.x),
            y=_b64url_to_int(jwk_key.y),
            curve=curve_cls(),
        ).public_key()
    else:
        raise ValueError(f"Unsupported key type: {jwk_key.kty}")

    pem = public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return pem.decode("utf-8")


class JWTVerifier:
    """JWT verifier for Supabase access tokens."""

    def __init__(
        self,
        supabase_url: str,
        jwt_secret: str = "",
        keys: Optional[JWKSService] = None,
    ):
        self.supabase_url = supabase_url.rstrip("/")
        self.expected_issuer = f"{self.supabase_url}/auth/v1"
        self.jwt_secret = jwt_secret
        self.keys = keys or jwks_service

    async def verify_token(self, token: str) -> JWTClaims:
        """Verify and decode a Supabase JWT token.

        Args:
            token: JWT access token from Authorization header

        Returns:
            Decoded and validated JWT claims

        Raises:
            jwt.InvalidTokenError: If the token is malformed, expired, signed
                with an unknown key or issued by someone else
        """
        try:
            header = jwt.get_unverified_header(token)
            alg = header.get("alg")

            if alg == "HS256":
                if not self.jwt_secret:
                    raise jwt.InvalidTokenError(
                        "HS256 token received but SUPABASE_JWT_SECRET is not configured"
                    )
                key = self.jwt_secret
            elif alg in ("RS256", "ES256"):
                kid = header.get("kid")
                if not kid:
                    raise jwt.InvalidTokenError("JWT header missing 'kid' (key ID)")
                jwk_key = await self.keys.get_key(kid)
                if jwk_key is None:
                    raise jwt.InvalidTokenError(f"No matching key found for kid: {kid}")
                key = jwk_to_pem(jwk_key)
            else:
                raise jwt.InvalidTokenError(f"Unsupported algorithm: {alg}")

            payload = jwt.decode(
                token,
                key,
                algorithms=[alg],
                audience="authenticated",
                issuer=self.expected_issuer,
                options={"require": REQUIRED_CLAIMS},
            )
            claims = JWTClaims(**payload)
            LOGGER.debug(f"Successfully verified token for user: {claims.sub}")
            return claims

        except jwt.ExpiredSignatureError as e:
            LOGGER.warning(f"Token expired: {e}")
            raise jwt.InvalidTokenError("Token has expired") from e
        except jwt.InvalidIssuerError as e:
            LOGGER.warning(f"Invalid issuer: {e}")
            raise jwt.InvalidTokenError("Invalid token issuer") from e
        except jwt.InvalidTokenError:
            raise
        except (ValueError, RuntimeError) as e:
            LOGGER.error(f"Token verification failed: {e}")
            raise jwt.InvalidTokenError("Token verification failed") from e


jwt_verifier = JWTVerifier(
    supabase_url=settings.supabase_url,
    jwt_secret=settings.supabase_jwt_secret,
)
