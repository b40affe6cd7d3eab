"""Authentication dependencies for FastAPI routes.

Operators authenticate with a Supabase access token sent as a Bearer
credential. Public upload routes never depend on anything in here.
"""

from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from claimdocs.core.jwt import jwt_verifier
from claimdocs.schemas.auth import CurrentUser
from claimdocs.utils.logging import get_logger

LOGGER = get_logger(__name__)

security = HTTPBearer(auto_error=False)


def _role_from_claims(role: Optional[str], app_metadata: Optional[dict]) -> str:
    # Supabase puts "authenticated" in the role claim; app roles live in app_metadata
    if app_metadata and app_metadata.get("role"):
        return app_metadata["role"]
    if role and role != "authenticated":
        return role
    return "user"


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """Get the current authenticated operator from the Bearer token.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    if not credentials:
        LOGGER.warning("No authorization credentials provided")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = await jwt_verifier.verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        LOGGER.warning(f"Invalid token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    user_metadata = claims.user_metadata or {}
    user = CurrentUser(
        id=claims.sub,
        email=claims.email,
        role=_role_from_claims(claims.role, claims.app_metadata),
        full_name=user_metadata.get("full_name"),
        app_metadata=claims.app_metadata,
        user_metadata=claims.user_metadata,
    )
    LOGGER.debug(f"Authenticated user: {user.id} ({user.email})")
    return user


def require_role(required_role: str):
    """Create a dependency that requires a specific user role.

    Example:
        admin_only = require_role("admin")
    """
    async def role_checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role != required_role:
            LOGGER.warning(
                f"Access denied for user {user.id}: role '{user.role}', required '{required_role}'"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required role: {required_role}",
            )
        return user

    return role_checker


require_admin = require_role("admin")
