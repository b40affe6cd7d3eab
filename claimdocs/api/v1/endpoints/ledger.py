from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request

from claimdocs.core.auth import get_current_user
from claimdocs.core.dependencies import get_ledger_service
from claimdocs.core.exceptions import AppError
from claimdocs.schemas.auth import CurrentUser
from claimdocs.schemas.common import ApiResponse
from claimdocs.schemas.ledger import AssignRequest, LabelRequest
from claimdocs.services.ledger_service import LedgerService
from claimdocs.utils.logging import get_logger
from claimdocs.utils.responses import create_api_response, http_error_from

LOGGER = get_logger(__name__)

router = APIRouter()

LedgerDep = Annotated[LedgerService, Depends(get_ledger_service)]
UserDep = Annotated[CurrentUser, Depends(get_current_user)]


@router.get(
    "/{claim_id}/ledger",
    response_model=ApiResponse,
    summary="Get the claim's document assignments",
    operation_id="get_ledger",
)
async def get_ledger(
    request: Request, claim_id: UUID, current_user: UserDep, ledger_service: LedgerDep
) -> ApiResponse:
    try:
        ledger = await ledger_service.get_ledger(claim_id)
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(data=ledger, message="Ledger retrieved successfully", request=request)


@router.post(
    "/{claim_id}/ledger/assignments",
    response_model=ApiResponse,
    summary="Assign a document to a label",
    operation_id="assign_document",
)
async def assign_document(
    request: Request,
    claim_id: UUID,
    body: AssignRequest,
    current_user: UserDep,
    ledger_service: LedgerDep,
) -> ApiResponse:
    try:
        document = await ledger_service.assign(claim_id, body.label, body.document_id)
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(data=document, message="Document assigned", request=request)


@router.delete(
    "/{claim_id}/ledger/assignments/{label}",
    response_model=ApiResponse,
    summary="Clear the document assigned to a label",
    operation_id="unassign_document",
)
async def unassign_document(
    request: Request, claim_id: UUID, label: str, current_user: UserDep, ledger_service: LedgerDep
) -> ApiResponse:
    try:
        await ledger_service.unassign(claim_id, label)
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(data=None, message="Document unassigned", request=request)


@router.post(
    "/{claim_id}/ledger/labels",
    response_model=ApiResponse,
    summary="Add a custom document label to the claim",
    operation_id="add_custom_label",
)
async def add_custom_label(
    request: Request,
    claim_id: UUID,
    body: LabelRequest,
    current_user: UserDep,
    ledger_service: LedgerDep,
) -> ApiResponse:
    try:
        labels = await ledger_service.add_custom_label(claim_id, body.name)
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(data=labels, message="Custom label saved", request=request)


@router.delete(
    "/{claim_id}/ledger/labels/{label}",
    response_model=ApiResponse,
    summary="Remove a custom document label from the claim",
    operation_id="remove_custom_label",
)
async def remove_custom_label(
    request: Request, claim_id: UUID, label: str, current_user: UserDep, ledger_service: LedgerDep
) -> ApiResponse:
    try:
        labels = await ledger_service.remove_custom_label(claim_id, label)
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(data=labels, message="Custom label removed", request=request)
