"""Repository for claim documents and their label assignments."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from claimdocs.database.models import ClaimDocument, DocumentKind
from claimdocs.repositories.base_repository import BaseRepository


class DocumentRepository(BaseRepository[ClaimDocument]):
    """Repository for ClaimDocument entity operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ClaimDocument)

    async def get_for_claim(self, document_id: UUID, claim_id: UUID) -> Optional[ClaimDocument]:
        stmt = select(ClaimDocument).where(
            ClaimDocument.id == document_id, ClaimDocument.claim_id == claim_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_files(self, claim_id: UUID) -> List[ClaimDocument]:
        """Real uploaded files for a claim, newest first."""
        stmt = (
            select(ClaimDocument)
            .where(
                ClaimDocument.claim_id == claim_id,
                ClaimDocument.kind == DocumentKind.FILE,
            )
            .order_by(ClaimDocument.created_at.desc(), ClaimDocument.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_selected(self, claim_id: UUID) -> List[ClaimDocument]:
        stmt = (
            select(ClaimDocument)
            .where(ClaimDocument.claim_id == claim_id, ClaimDocument.is_selected.is_(True))
            .order_by(ClaimDocument.assigned_label)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_placeholder_labels(self, claim_id: UUID) -> List[str]:
        stmt = (
            select(ClaimDocument.assigned_label)
            .where(
                ClaimDocument.claim_id == claim_id,
                ClaimDocument.kind == DocumentKind.PLACEHOLDER,
                ClaimDocument.assigned_label.is_not(None),
            )
            .distinct()
            .order_by(ClaimDocument.assigned_label)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def clear_selection(
        self, claim_id: UUID, label: str, keep_id: Optional[UUID] = None
    ) -> int:
        """Detach every document selected for ``(claim, label)`` except ``keep_id``.

        The document keeps existing; only its label and selection are cleared.
        """
        stmt = (
            update(ClaimDocument)
            .where(
                ClaimDocument.claim_id == claim_id,
                ClaimDocument.assigned_label == label,
                ClaimDocument.is_selected.is_(True),
            )
            .values(assigned_label=None, is_selected=False)
            .execution_options(synchronize_session="fetch")
        )
        if keep_id is not None:
            stmt = stmt.where(ClaimDocument.id != keep_id)
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def delete_placeholders(self, claim_id: UUID, label: str) -> int:
        stmt = (
            delete(ClaimDocument)
            .where(
                ClaimDocument.claim_id == claim_id,
                ClaimDocument.assigned_label == label,
                ClaimDocument.kind == DocumentKind.PLACEHOLDER,
            )
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def delete_placeholders_for_tokens(self, token_ids: List[UUID]) -> int:
        if not token_ids:
            return 0
        stmt = (
            delete(ClaimDocument)
            .where(
                ClaimDocument.upload_token_id.in_(token_ids),
                ClaimDocument.kind == DocumentKind.PLACEHOLDER,
            )
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0
