from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import JSONResponse

from claimdocs.core.auth import get_current_user
from claimdocs.core.dependencies import get_document_service, get_user_service
from claimdocs.core.exceptions import AppError, ValidationError
from claimdocs.schemas.auth import CurrentUser
from claimdocs.schemas.common import ApiResponse
from claimdocs.schemas.documents import DirectUploadResponse
from claimdocs.services.document_service import DocumentService
from claimdocs.services.user_service import UserService
from claimdocs.utils.logging import get_logger
from claimdocs.utils.responses import create_api_response, http_error_from

LOGGER = get_logger(__name__)

router = APIRouter()


@router.get(
    "/claims/{claim_id}/documents",
    response_model=ApiResponse,
    summary="List a claim's documents",
    operation_id="list_claim_documents",
)
async def list_documents(
    request: Request,
    claim_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
) -> ApiResponse:
    """List uploaded files on a claim, newest first."""
    try:
        documents = await document_service.list_documents(claim_id)
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(
        data={"documents": documents, "total": len(documents)},
        message="Documents retrieved successfully",
        request=request
    )


@router.post(
    "/claims/{claim_id}/documents",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload one or multiple documents to a claim",
    operation_id="upload_claim_documents",
)
async def upload_documents(
    request: Request,
    claim_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
    files: List[UploadFile] = File(..., description="One or more documents to upload"),
) -> ApiResponse:
    """Upload several files; a failed file never aborts the others."""
    user = await user_service.get_or_create_user_from_jwt(current_user)
    try:
        result = await document_service.upload_documents(files, claim_id, user.id)
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(
        data=result,
        message=f"Uploaded {result.total_uploaded} of {len(files)} documents",
        request=request
    )


@router.get(
    "/documents/{document_id}/url",
    response_model=ApiResponse,
    summary="Get a view URL for a document",
    operation_id="get_document_url",
)
async def get_document_url(
    request: Request,
    document_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
) -> ApiResponse:
    try:
        result = await document_service.get_document_url(document_id)
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(data=result, message="Document URL created", request=request)


@router.delete(
    "/documents/{document_id}",
    response_model=ApiResponse,
    summary="Delete document",
    operation_id="delete_document",
)
async def delete_document(
    request: Request,
    document_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
) -> ApiResponse:
    try:
        await document_service.delete_document(document_id)
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(data=None, message="Document deleted successfully", request=request)


@router.post(
    "/upload-doc",
    summary="Upload a single document on the operator's session",
    operation_id="upload_direct",
)
async def upload_direct(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
    file: Optional[UploadFile] = File(None),
    claim_id: Optional[str] = Form(None, alias="claimId"),
    uploader_name: Optional[str] = Form(None, alias="uploaderName"),
) -> JSONResponse:
    """Returns ``{success, url, fileName}`` with a one-hour signed URL."""
    user = await user_service.get_or_create_user_from_jwt(current_user)
    try:
        parsed_claim_id = _parse_uuid(claim_id)
        result: DirectUploadResponse = await document_service.upload_direct(
            file, parsed_claim_id, uploader_name, user.id
        )
    except AppError as e:
        raise http_error_from(e, request) from e

    return JSONResponse(status_code=status.HTTP_200_OK, content=result.model_dump(by_alias=True))


def _parse_uuid(value: Optional[str]) -> Optional[UUID]:
    if not value:
        return None
    try:
        return UUID(value)
    except ValueError as e:
        raise ValidationError(f"Invalid claim id: {value}", original_error=e)
