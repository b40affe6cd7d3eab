"""Anonymous upload endpoints reached through a shared upload link.

No operator session is involved; the token in the form body is the only
credential. Responses use the relay's own flat envelope rather than the
operator API envelope.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import JSONResponse

from claimdocs.core.dependencies import get_public_upload_service, get_upload_token_service
from claimdocs.core.exceptions import AppError
from claimdocs.schemas.documents import DocumentResponse, PublicUploadError, PublicUploadResponse
from claimdocs.schemas.upload_tokens import TokenCheckResponse
from claimdocs.services.public_upload_service import PublicUploadService
from claimdocs.services.upload_token_service import UploadTokenService
from claimdocs.utils.logging import get_logger
from claimdocs.utils.responses import INTERNAL_ERROR_MESSAGE, status_for_error

LOGGER = get_logger(__name__)

router = APIRouter()


def _error_response(error: AppError) -> JSONResponse:
    code, _ = status_for_error(error)
    if code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        LOGGER.error(
            f"Public upload failed: {error.message}",
            exc_info=error.original_error or error,
        )
        message = INTERNAL_ERROR_MESSAGE
    else:
        LOGGER.info(f"Public upload rejected ({code}): {error.message}")
        message = error.message
    return JSONResponse(status_code=code, content=PublicUploadError(error=message).model_dump())


@router.post(
    "",
    response_model=PublicUploadResponse,
    responses={400: {"model": PublicUploadError}, 401: {"model": PublicUploadError}, 500: {"model": PublicUploadError}},
    summary="Upload a file using a shared upload link",
    operation_id="public_upload",
)
async def public_upload(
    upload_service: Annotated[PublicUploadService, Depends(get_public_upload_service)],
    file: Optional[UploadFile] = File(None),
    token: Optional[str] = Form(None),
    uploader_name: Optional[str] = Form(None, alias="uploaderName"),
) -> JSONResponse:
    try:
        document = await upload_service.upload(token, file, uploader_name)
    except AppError as e:
        return _error_response(e)

    body = PublicUploadResponse(
        success=True,
        message="File uploaded successfully",
        document=DocumentResponse.model_validate(document),
    )
    return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump(mode="json"))


@router.get(
    "/validate",
    response_model=TokenCheckResponse,
    summary="Check an upload link before showing the upload form",
    operation_id="validate_upload_token",
)
async def validate_upload_token(
    token_service: Annotated[UploadTokenService, Depends(get_upload_token_service)],
    token: Optional[str] = Query(None),
) -> TokenCheckResponse:
    return await token_service.check(token)
