"""Upload token issuing, validation and cleanup.

A token is a bearer capability: whoever holds the string may upload files
into one claim until ``expires_at``. Batch tokens tag uploads with the
"Batch Upload" label; label-bound tokens tag them with the label they were
issued for and leave a placeholder document behind so operators can see
the link is outstanding.
"""

import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from claimdocs.core.config import settings
from claimdocs.core.exceptions import (
    AuthenticationError,
    PersistenceError,
    ValidationError,
)
from claimdocs.database.models import BATCH_UPLOAD_LABEL, DocumentKind
from claimdocs.repositories.document_repository import DocumentRepository
from claimdocs.repositories.upload_token_repository import UploadTokenRepository
from claimdocs.schemas.upload_tokens import IssuedToken, TokenCheckResponse, TokenScope
from claimdocs.services.ledger_service import LedgerService
from claimdocs.utils.logging import get_logger
from claimdocs.utils.time import as_utc, utcnow

LOGGER = get_logger(__name__)

Clock = Callable[[], datetime]


def build_upload_url(token: str, origin: Optional[str] = None) -> str:
    origin = (origin or settings.upload.public_app_origin).rstrip("/")
    return f"{origin}/public-upload?token={token}"


class UploadTokenService:
    """Issues and resolves upload tokens."""

    def __init__(self, db_session: AsyncSession, clock: Clock = utcnow):
        self.session = db_session
        self.clock = clock
        self.tokens = UploadTokenRepository(db_session)
        self.ledger = LedgerService(db_session)
        self.documents = DocumentRepository(db_session)

    async def issue_token(
        self,
        claim_id: UUID,
        issued_by: Optional[UUID],
        expiry_hours: Optional[int] = None,
        label: Optional[str] = None,
    ) -> IssuedToken:
        """Mint a token granting uploads into ``claim_id``.

        Args:
            claim_id: Claim the uploads will land in
            issued_by: Operator issuing the link; required
            expiry_hours: Lifetime of the link, defaults to one week
            label: Requirement label; blank or missing issues a batch token

        Raises:
            AuthenticationError: No operator identity
            ValidationError: Lifetime out of range, or a label the claim does not list
            ClaimNotFoundError: Unknown claim
            PersistenceError: Insert failed
        """
        if issued_by is None:
            raise AuthenticationError("User not authenticated")

        if expiry_hours is None:
            expiry_hours = settings.upload.default_token_expiry_hours
        max_hours = settings.upload.max_token_expiry_hours
        if expiry_hours <= 0 or expiry_hours > max_hours:
            raise ValidationError(f"expiry_hours must be between 1 and {max_hours}")

        labels = await self.ledger.labels_for_claim(claim_id)
        target_label = (label or "").strip() or BATCH_UPLOAD_LABEL
        if target_label != BATCH_UPLOAD_LABEL and target_label not in labels:
            raise ValidationError(f"Label '{target_label}' is not a document label of this claim")
        token_value = str(uuid.uuid4())
        expires_at = self.clock() + timedelta(hours=expiry_hours)

        try:
            upload_token = await self.tokens.create(
                token=token_value,
                claim_id=claim_id,
                target_label=target_label,
                expires_at=expires_at,
                created_by=issued_by,
            )
            if not upload_token.is_batch:
                await self.documents.create(
                    claim_id=claim_id,
                    kind=DocumentKind.PLACEHOLDER,
                    file_name=f"Awaiting upload: {target_label}",
                    storage_path=None,
                    byte_size=0,
                    uploaded_by=issued_by,
                    assigned_label=target_label,
                    is_selected=False,
                    upload_token_id=upload_token.id,
                    document_metadata={"expires_at": expires_at.isoformat()},
                )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            LOGGER.error(
                "Failed to store upload token",
                exc_info=True,
                extra={"claim_id": str(claim_id)}
            )
            raise PersistenceError("Failed to generate upload token", original_error=e)

        LOGGER.info(
            "Issued upload token",
            extra={
                "claim_id": str(claim_id),
                "label": target_label,
                "expires_at": expires_at.isoformat(),
            }
        )
        return IssuedToken(
            token=token_value,
            claim_id=claim_id,
            label=target_label,
            is_batch=target_label == BATCH_UPLOAD_LABEL,
            expires_at=expires_at,
            upload_url=build_upload_url(token_value),
        )

    async def validate(self, token: Optional[str]) -> Optional[TokenScope]:
        """Resolve a token to its scope, or None when unknown or expired.

        The token stays usable afterwards; validation never consumes it.
        """
        if not token:
            return None

        upload_token = await self.tokens.get_by_token(token)
        if upload_token is None:
            return None

        expires_at = as_utc(upload_token.expires_at)
        if self.clock() >= expires_at:
            LOGGER.info("Rejected expired upload token", extra={"token_id": str(upload_token.id)})
            return None

        return TokenScope(
            token_id=upload_token.id,
            claim_id=upload_token.claim_id,
            label=upload_token.target_label,
            expires_at=expires_at,
        )

    async def check(self, token: Optional[str]) -> TokenCheckResponse:
        """Public pre-check used by the upload page before showing the form."""
        scope = await self.validate(token)
        if scope is None:
            return TokenCheckResponse(valid=False)
        return TokenCheckResponse(valid=True, label=scope.label, expires_at=scope.expires_at)

    async def purge_expired(self) -> int:
        """Delete expired tokens and the placeholders they left; returns the token count.

        Documents uploaded through a purged token survive with their token
        reference cleared.
        """
        expired = await self.tokens.list_expired(self.clock())
        token_ids = [t.id for t in expired]
        if not token_ids:
            return 0

        try:
            placeholders = await self.documents.delete_placeholders_for_tokens(token_ids)
            purged = await self.tokens.delete_ids(token_ids)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError("Failed to purge expired upload tokens", original_error=e)

        LOGGER.info(
            "Purged expired upload tokens",
            extra={"tokens": purged, "placeholders": placeholders}
        )
        return purged
