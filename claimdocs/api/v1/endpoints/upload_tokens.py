from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from claimdocs.core.auth import get_current_user, require_admin
from claimdocs.core.dependencies import get_upload_token_service, get_user_service
from claimdocs.core.exceptions import AppError
from claimdocs.schemas.auth import CurrentUser
from claimdocs.schemas.common import ApiResponse
from claimdocs.schemas.upload_tokens import IssueTokenRequest, PurgeResult
from claimdocs.services.upload_token_service import UploadTokenService
from claimdocs.services.user_service import UserService
from claimdocs.utils.logging import get_logger
from claimdocs.utils.responses import create_api_response, http_error_from

LOGGER = get_logger(__name__)

router = APIRouter()


@router.post(
    "/claims/{claim_id}/upload-tokens",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue a shareable upload link for a claim",
    operation_id="issue_upload_token",
)
async def issue_upload_token(
    request: Request,
    claim_id: UUID,
    body: IssueTokenRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    token_service: Annotated[UploadTokenService, Depends(get_upload_token_service)],
) -> ApiResponse:
    """Issue a batch token, or a label-bound one when ``label`` is given."""
    user = await user_service.get_or_create_user_from_jwt(current_user)
    try:
        issued = await token_service.issue_token(
            claim_id,
            issued_by=user.id,
            expiry_hours=body.expiry_hours,
            label=body.label,
        )
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(data=issued, message="Upload link created", request=request)


@router.delete(
    "/upload-tokens/expired",
    response_model=ApiResponse,
    summary="Delete expired upload tokens",
    operation_id="purge_expired_upload_tokens",
)
async def purge_expired_upload_tokens(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(require_admin)],
    token_service: Annotated[UploadTokenService, Depends(get_upload_token_service)],
) -> ApiResponse:
    try:
        purged = await token_service.purge_expired()
    except AppError as e:
        raise http_error_from(e, request) from e

    LOGGER.info(f"Expired upload tokens purged by {current_user.id}: {purged}")
    return create_api_response(
        data=PurgeResult(purged=purged),
        message="Expired upload tokens removed",
        request=request
    )
