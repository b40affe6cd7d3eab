from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from claimdocs.core.auth import get_current_user
from claimdocs.core.dependencies import get_claim_service, get_user_service
from claimdocs.core.exceptions import AppError
from claimdocs.schemas.auth import CurrentUser
from claimdocs.schemas.claims import ClaimCreate
from claimdocs.schemas.common import ApiResponse
from claimdocs.services.claim_service import ClaimService
from claimdocs.services.user_service import UserService
from claimdocs.utils.logging import get_logger
from claimdocs.utils.responses import create_api_response, http_error_from

LOGGER = get_logger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a claim",
    operation_id="create_claim",
)
async def create_claim(
    request: Request,
    body: ClaimCreate,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    claim_service: Annotated[ClaimService, Depends(get_claim_service)],
) -> ApiResponse:
    user = await user_service.get_or_create_user_from_jwt(current_user)
    try:
        claim = await claim_service.create_claim(body, user.id)
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(data=claim, message="Claim created successfully", request=request)


@router.get(
    "",
    response_model=ApiResponse,
    summary="List the operator's claims",
    operation_id="list_claims",
)
async def list_claims(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    claim_service: Annotated[ClaimService, Depends(get_claim_service)],
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> ApiResponse:
    user = await user_service.get_or_create_user_from_jwt(current_user)
    result = await claim_service.list_claims(user.id, limit=limit, offset=offset)
    return create_api_response(data=result, message="Claims retrieved successfully", request=request)


@router.get(
    "/{claim_id}",
    response_model=ApiResponse,
    summary="Get claim details",
    operation_id="get_claim",
)
async def get_claim(
    request: Request,
    claim_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    claim_service: Annotated[ClaimService, Depends(get_claim_service)],
) -> ApiResponse:
    try:
        claim = await claim_service.get_claim(claim_id)
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(data=claim, message="Claim retrieved successfully", request=request)
