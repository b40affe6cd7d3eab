from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request

from claimdocs.core.auth import get_current_user, require_admin
from claimdocs.core.dependencies import get_policy_type_service
from claimdocs.core.exceptions import AppError
from claimdocs.schemas.auth import CurrentUser
from claimdocs.schemas.common import ApiResponse
from claimdocs.schemas.policy_types import RequiredDocumentsUpdate
from claimdocs.services.policy_type_service import PolicyTypeService
from claimdocs.utils.responses import create_api_response, http_error_from

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse,
    summary="List policy types and their required documents",
    operation_id="list_policy_types",
)
async def list_policy_types(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    policy_type_service: Annotated[PolicyTypeService, Depends(get_policy_type_service)],
) -> ApiResponse:
    policy_types = await policy_type_service.list_policy_types()
    return create_api_response(
        data={"policy_types": policy_types},
        message="Policy types retrieved successfully",
        request=request
    )


@router.put(
    "/{policy_type_id}/required-documents",
    response_model=ApiResponse,
    summary="Replace a policy type's required documents",
    operation_id="update_required_documents",
)
async def update_required_documents(
    request: Request,
    policy_type_id: UUID,
    body: RequiredDocumentsUpdate,
    current_user: Annotated[CurrentUser, Depends(require_admin)],
    policy_type_service: Annotated[PolicyTypeService, Depends(get_policy_type_service)],
) -> ApiResponse:
    try:
        policy_type = await policy_type_service.update_required_documents(
            policy_type_id, body.required_documents
        )
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(
        data=policy_type,
        message="Required documents updated",
        request=request
    )
