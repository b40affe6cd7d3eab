"""Document schemas for operator and public upload responses."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from claimdocs.database.models import DocumentKind


class DocumentResponse(BaseModel):
    """Claim document as returned by the API."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    claim_id: UUID
    kind: DocumentKind = DocumentKind.FILE
    file_name: str
    storage_path: Optional[str] = None
    byte_size: int = 0
    mime_type: Optional[str] = None
    uploaded_by: Optional[UUID] = None
    assigned_label: Optional[str] = None
    is_selected: bool = False
    uploaded_via_link: bool = False
    upload_token_id: Optional[UUID] = None
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias="document_metadata")
    created_at: datetime


class FailedUpload(BaseModel):
    file_name: str
    error: str


class MultipleDocumentResponse(BaseModel):
    """Result of a multi-file upload; each file succeeds or fails on its own."""

    documents: List[DocumentResponse] = Field(default_factory=list)
    total_uploaded: int = 0
    failed_uploads: List[FailedUpload] = Field(default_factory=list)


class DocumentUrlResponse(BaseModel):
    document_id: UUID
    url: str
    expires_in: Optional[int] = Field(
        None, description="Seconds until the URL stops working; None for external URLs"
    )


class DirectUploadResponse(BaseModel):
    """Body of ``POST /upload-doc``."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    url: str
    file_name: str = Field(..., serialization_alias="fileName")


class PublicUploadResponse(BaseModel):
    """Body of a successful ``POST /public-upload``."""

    success: bool = True
    message: str
    document: DocumentResponse


class PublicUploadError(BaseModel):
    error: str
