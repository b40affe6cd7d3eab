from typing import Annotated

from fastapi import APIRouter, Depends

from claimdocs.core.auth import get_current_user
from claimdocs.core.dependencies import get_user_service
from claimdocs.schemas.auth import CurrentUser, UserProfile
from claimdocs.services.user_service import UserService
from claimdocs.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


@router.get(
    "/me",
    response_model=UserProfile,
    summary="Get current user profile",
    description="Get the current operator's profile, creating the local record on first call",
    operation_id="get_current_user_profile",
)
async def get_current_user_profile(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
) -> UserProfile:
    LOGGER.info(f"User profile retrieved for user: {current_user.id}")
    return await user_service.get_current_user_profile(current_user)
