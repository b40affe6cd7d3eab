"""Document service for operator-side document management."""

from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from claimdocs.core.config import settings
from claimdocs.core.exceptions import (
    AppError,
    ClaimNotFoundError,
    DocumentNotFoundError,
    PersistenceError,
    StorageError,
    ValidationError,
)
from claimdocs.database.models import ClaimDocument, DocumentKind
from claimdocs.repositories.claim_repository import ClaimRepository
from claimdocs.repositories.document_repository import DocumentRepository
from claimdocs.schemas.documents import (
    DirectUploadResponse,
    DocumentResponse,
    DocumentUrlResponse,
    FailedUpload,
    MultipleDocumentResponse,
)
from claimdocs.services.base_service import BaseService
from claimdocs.services.storage_service import StorageService
from claimdocs.utils.files import read_within_limit, safe_object_name
from claimdocs.utils.logging import get_logger
from claimdocs.utils.time import epoch_millis, utcnow

LOGGER = get_logger(__name__)

UPLOAD_SOURCE_DIRECT = "direct"


def is_external_url(path: Optional[str]) -> bool:
    return bool(path) and path.startswith(("http://", "https://"))


class DocumentService(BaseService):
    """Service for document management operations.

    Handles operator uploads, listing, view URLs and deletion.
    """

    def __init__(self, session: AsyncSession, storage: Optional[StorageService] = None):
        super().__init__()
        self.session = session
        self.doc_repo = DocumentRepository(session)
        self.claim_repo = ClaimRepository(session)
        self.storage_service = storage or StorageService()

    async def run(self, *args, **kwargs) -> Any:
        """Route to appropriate handler based on action."""
        action = kwargs.get("action")

        if action == "upload_documents":
            return await self._upload_documents_logic(
                kwargs.get("files"),
                kwargs.get("claim_id"),
                kwargs.get("user_id"),
            )
        elif action == "upload_direct":
            return await self._upload_direct_logic(
                kwargs.get("file"),
                kwargs.get("claim_id"),
                kwargs.get("uploader_name"),
                kwargs.get("user_id"),
            )
        else:
            raise AppError(f"Unknown action: {action}")

    async def upload_documents(
        self,
        files: List[UploadFile],
        claim_id: UUID,
        user_id: UUID,
    ) -> MultipleDocumentResponse:
        """Upload several files to a claim; each file succeeds or fails on its own."""
        return await self.execute(
            action="upload_documents",
            files=files,
            claim_id=claim_id,
            user_id=user_id,
        )

    async def upload_direct(
        self,
        file: Optional[UploadFile],
        claim_id: Optional[UUID],
        uploader_name: Optional[str],
        user_id: UUID,
    ) -> DirectUploadResponse:
        """Upload one file on the operator's own session and return a view URL."""
        return await self.execute(
            action="upload_direct",
            file=file,
            claim_id=claim_id,
            uploader_name=uploader_name,
            user_id=user_id,
        )

    async def _store(
        self,
        file: UploadFile,
        claim_id: UUID,
        user_id: UUID,
        metadata: Dict[str, Any],
    ) -> ClaimDocument:
        """Write one file to storage and record it, removing the blob if the insert fails."""
        content = await read_within_limit(file, settings.max_upload_bytes)
        uploaded_at = utcnow()
        storage_path = (
            f"claims/{claim_id}/{epoch_millis(uploaded_at)}-{safe_object_name(file.filename)}"
        )

        await self.storage_service.upload_file(content, storage_path, content_type=file.content_type)

        try:
            document = await self.doc_repo.create(
                claim_id=claim_id,
                kind=DocumentKind.FILE,
                file_name=file.filename,
                storage_path=storage_path,
                byte_size=len(content),
                mime_type=file.content_type,
                uploaded_by=user_id,
                uploaded_via_link=False,
                document_metadata={**metadata, "upload_date": uploaded_at.isoformat()},
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            LOGGER.error(
                "Document insert failed, removing stored blob",
                exc_info=True,
                extra={"claim_id": str(claim_id), "storage_path": storage_path}
            )
            try:
                await self.storage_service.delete_files([storage_path])
            except StorageError:
                LOGGER.error("Could not remove orphaned upload", extra={"storage_path": storage_path})
            raise PersistenceError("Failed to save document", original_error=e)

        LOGGER.info(
            f"Document created: document_id={document.id}, file={file.filename}",
            extra={"claim_id": str(claim_id), "storage_path": storage_path}
        )
        return document

    async def _require_claim(self, claim_id: Optional[UUID]) -> UUID:
        if claim_id is None:
            raise ValidationError("Missing claim id")
        if not await self.claim_repo.exists(claim_id):
            raise ClaimNotFoundError(f"Claim {claim_id} not found")
        return claim_id

    async def _upload_documents_logic(
        self,
        files: List[UploadFile],
        claim_id: UUID,
        user_id: UUID,
    ) -> MultipleDocumentResponse:
        await self._require_claim(claim_id)

        uploaded_documents: List[DocumentResponse] = []
        failed_uploads: List[FailedUpload] = []

        for file in files:
            if not file.filename:
                failed_uploads.append(FailedUpload(file_name="unknown", error="File has no filename"))
                continue
            try:
                document = await self._store(
                    file, claim_id, user_id, {"upload_source": UPLOAD_SOURCE_DIRECT}
                )
                uploaded_documents.append(DocumentResponse.model_validate(document))
            except AppError as e:
                LOGGER.warning(
                    f"Failed to upload {file.filename}: {e.message}",
                    extra={"claim_id": str(claim_id)}
                )
                # Server-side failure detail stays in the log
                message = e.message if isinstance(e, ValidationError) else "Upload failed"
                failed_uploads.append(FailedUpload(file_name=file.filename, error=message))

        return MultipleDocumentResponse(
            documents=uploaded_documents,
            total_uploaded=len(uploaded_documents),
            failed_uploads=failed_uploads,
        )

    async def _upload_direct_logic(
        self,
        file: Optional[UploadFile],
        claim_id: Optional[UUID],
        uploader_name: Optional[str],
        user_id: UUID,
    ) -> DirectUploadResponse:
        if file is None or not file.filename or claim_id is None:
            raise ValidationError("Missing file or claim id")
        await self._require_claim(claim_id)

        metadata: Dict[str, Any] = {"upload_source": UPLOAD_SOURCE_DIRECT}
        if uploader_name and uploader_name.strip():
            metadata["uploader_name"] = uploader_name.strip()

        document = await self._store(file, claim_id, user_id, metadata)
        url = await self.storage_service.create_download_url(document.storage_path)
        return DirectUploadResponse(success=True, url=url, file_name=document.file_name)

    async def list_documents(self, claim_id: UUID) -> List[DocumentResponse]:
        """Uploaded files for a claim, newest first; placeholders are left out."""
        await self._require_claim(claim_id)
        documents = await self.doc_repo.list_files(claim_id)
        return [DocumentResponse.model_validate(d) for d in documents]

    async def get_document_url(self, document_id: UUID) -> DocumentUrlResponse:
        """View URL for a document: a stored external URL as is, otherwise a signed URL.

        Raises:
            DocumentNotFoundError: Unknown document or a placeholder with no file
        """
        document = await self.doc_repo.get_by_id(document_id)
        if document is None or not document.storage_path:
            raise DocumentNotFoundError(f"Document with ID {document_id} not found")

        if is_external_url(document.storage_path):
            return DocumentUrlResponse(document_id=document.id, url=document.storage_path)

        ttl = settings.upload.signed_url_ttl_seconds
        url = await self.storage_service.create_download_url(document.storage_path, ttl)
        return DocumentUrlResponse(document_id=document.id, url=url, expires_in=ttl)

    async def delete_document(self, document_id: UUID) -> None:
        """Delete a document row; removing its blob is best effort."""
        document = await self.doc_repo.get_by_id(document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document with ID {document_id} not found")

        storage_path = document.storage_path
        try:
            await self.session.delete(document)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError("Failed to delete document", original_error=e)

        if storage_path and not is_external_url(storage_path):
            try:
                await self.storage_service.delete_files([storage_path])
            except StorageError:
                LOGGER.warning(
                    "Document deleted but blob removal failed",
                    extra={"document_id": str(document_id), "storage_path": storage_path}
                )

        LOGGER.info("Document deleted", extra={"document_id": str(document_id)})
