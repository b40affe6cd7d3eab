from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import HTTPException, Request, status

from claimdocs.core.exceptions import (
    AppError,
    AssignmentConflictError,
    AuthenticationError,
    InvalidUploadTokenError,
    NotFoundError,
    ValidationError,
)
from claimdocs.schemas.common import ApiResponse, ErrorDetail, ResponseMeta
from claimdocs.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Most specific first; anything unmatched is a 500
ERROR_STATUS_MAP: list[tuple[type[AppError], int, str]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST, "Invalid Request"),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED, "Authentication Required"),
    (InvalidUploadTokenError, status.HTTP_401_UNAUTHORIZED, "Invalid Upload Token"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "Not Found"),
    (AssignmentConflictError, status.HTTP_409_CONFLICT, "Assignment Conflict"),
]

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _request_id(request: Optional[Request]) -> str:
    if request is not None and hasattr(request.state, "request_id"):
        return request.state.request_id
    return str(uuid4())


def create_api_response(
    data: Any,
    message: str = "Operation successful",
    status: bool = True,
    request: Optional[Request] = None,
    api_version: str = "v1"
) -> Dict[str, Any]:
    """Create a standardized API response as a dictionary.

    Returns a dict to be compatible with FastAPI's response_model=dict.
    """
    meta = ResponseMeta(
        timestamp=datetime.now(timezone.utc),
        request_id=_request_id(request),
        api_version=api_version
    )

    data_dict: Dict[str, Any] = {}
    if isinstance(data, dict):
        data_dict = {
            key: value.model_dump(mode="json") if hasattr(value, "model_dump") else value
            for key, value in data.items()
        }
    elif hasattr(data, "model_dump"):
        data_dict = data.model_dump(mode="json")
    elif isinstance(data, list):
        data_dict = {"items": [item.model_dump(mode="json") if hasattr(item, "model_dump") else item for item in data]}
    elif data is None:
        data_dict = {}
    else:
        data_dict = {"value": data}

    response = ApiResponse(
        status=status,
        message=message,
        data=data_dict,
        meta=meta
    )
    return response.model_dump(mode="json")


def create_error_detail(
    title: str,
    status: int,
    detail: str,
    request: Optional[Request] = None,
    instance: Optional[str] = None
) -> ErrorDetail:
    """Create a standardized error detail (RFC 7807)."""
    return ErrorDetail(
        title=title,
        status=status,
        detail=detail,
        instance=instance or (request.url.path if request else None),
        request_id=_request_id(request),
        timestamp=datetime.now(timezone.utc)
    )


def status_for_error(error: AppError) -> tuple[int, str]:
    """Map a service exception to an HTTP status code and problem title."""
    for error_type, code, title in ERROR_STATUS_MAP:
        if isinstance(error, error_type):
            return code, title
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error"


def http_error_from(error: AppError, request: Optional[Request] = None) -> HTTPException:
    """Build the HTTPException an endpoint raises for a service exception.

    Server-side failures carry a generic message; the real cause is only logged.
    """
    code, title = status_for_error(error)
    if code >= 500:
        LOGGER.error(
            f"{type(error).__name__}: {error.message}",
            exc_info=error.original_error or error,
            extra={"path": request.url.path if request else None}
        )
    message = error.message if code < 500 else INTERNAL_ERROR_MESSAGE
    error_detail = create_error_detail(
        title=title,
        status=code,
        detail=message,
        request=request
    )
    headers = {"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None
    return HTTPException(status_code=code, detail=error_detail.model_dump(mode="json"), headers=headers)
