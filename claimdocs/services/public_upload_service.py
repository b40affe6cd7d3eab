"""Anonymous upload relay behind ``POST /public-upload``.

The caller holds only an upload token. A request is checked in a fixed
order: required fields, body size, token, then the blob is written and
the document row inserted. When the insert fails the blob is removed again
so storage never holds a file no document points at.
"""

from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from claimdocs.core.config import settings
from claimdocs.core.exceptions import (
    InvalidUploadTokenError,
    PersistenceError,
    StorageError,
    ValidationError,
)
from claimdocs.database.models import ClaimDocument, DocumentKind
from claimdocs.repositories.document_repository import DocumentRepository
from claimdocs.services.base_service import BaseService
from claimdocs.services.storage_service import StorageService
from claimdocs.services.upload_token_service import UploadTokenService
from claimdocs.utils.files import read_within_limit, safe_object_name
from claimdocs.utils.logging import get_logger
from claimdocs.utils.time import epoch_millis

LOGGER = get_logger(__name__)

UPLOAD_SOURCE_PUBLIC_LINK = "public_link"


class PublicUploadService(BaseService):
    """Accepts files from token holders and records them against the claim."""

    def __init__(
        self,
        db_session: AsyncSession,
        storage: Optional[StorageService] = None,
        token_service: Optional[UploadTokenService] = None,
    ):
        self.session = db_session
        self.storage = storage or StorageService()
        self.token_service = token_service or UploadTokenService(db_session)
        super().__init__(DocumentRepository(db_session))

    async def upload(
        self, token: Optional[str], file: Any, uploader_name: Optional[str] = None
    ) -> ClaimDocument:
        return await self.execute(token, file, uploader_name)

    def validate(self, token: Optional[str], file: Any, uploader_name: Optional[str] = None):
        if file is None or not getattr(file, "filename", None) or not token:
            raise ValidationError("Missing file or token")

    async def run(
        self, token: str, file: Any, uploader_name: Optional[str] = None
    ) -> ClaimDocument:
        content = await read_within_limit(file, settings.max_upload_bytes)

        scope = await self.token_service.validate(token)
        if scope is None:
            raise InvalidUploadTokenError("Invalid or expired upload link")

        clock = self.token_service.clock
        uploaded_at = clock()
        storage_path = (
            f"public-uploads/{scope.claim_id}/{token}/"
            f"{epoch_millis(uploaded_at)}-{safe_object_name(file.filename)}"
        )

        try:
            await self.storage.upload_file(content, storage_path, content_type=file.content_type)
        except StorageError:
            LOGGER.error(
                "Public upload failed at storage",
                exc_info=True,
                extra={"claim_id": str(scope.claim_id), "token_id": str(scope.token_id)}
            )
            raise

        try:
            document = await self.repository.create(
                claim_id=scope.claim_id,
                kind=DocumentKind.FILE,
                file_name=file.filename,
                storage_path=storage_path,
                byte_size=len(content),
                mime_type=file.content_type,
                uploaded_by=None,
                assigned_label=scope.label,
                is_selected=False,
                uploaded_via_link=True,
                upload_token_id=scope.token_id,
                document_metadata={
                    "uploader_name": (uploader_name or "").strip() or None,
                    "upload_source": UPLOAD_SOURCE_PUBLIC_LINK,
                    "upload_date": uploaded_at.isoformat(),
                },
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            LOGGER.error(
                "Public upload failed at database insert, removing stored blob",
                exc_info=True,
                extra={"claim_id": str(scope.claim_id), "storage_path": storage_path}
            )
            await self._discard_blob(storage_path)
            raise PersistenceError("Failed to save document", original_error=e)

        LOGGER.info(
            "Public upload stored",
            extra={
                "claim_id": str(scope.claim_id),
                "document_id": str(document.id),
                "label": scope.label,
                "byte_size": len(content),
            }
        )
        return document

    async def _discard_blob(self, storage_path: str) -> None:
        try:
            await self.storage.delete_files([storage_path])
        except StorageError:
            LOGGER.error(
                "Could not remove orphaned upload",
                exc_info=True,
                extra={"storage_path": storage_path}
            )
