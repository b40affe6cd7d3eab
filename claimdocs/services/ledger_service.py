"""Document assignment ledger.

For one claim the ledger maps each requirement label to at most one
selected document. Labels come from the claim's policy type followed by
the custom labels operators added to the claim. The storage layer backs
the "one selected document per label" rule with a partial unique index,
so two concurrent assigns cannot both win.
"""

from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from claimdocs.core.exceptions import (
    AssignmentConflictError,
    ClaimNotFoundError,
    DocumentNotFoundError,
    PersistenceError,
    ValidationError,
)
from claimdocs.database.models import Claim
from claimdocs.repositories.claim_repository import ClaimLabelRepository, ClaimRepository
from claimdocs.repositories.document_repository import DocumentRepository
from claimdocs.schemas.documents import DocumentResponse
from claimdocs.schemas.ledger import CustomLabels, Ledger
from claimdocs.services.policy_type_service import normalize_labels
from claimdocs.utils.logging import get_logger

LOGGER = get_logger(__name__)


def _clean_label(label: Optional[str]) -> str:
    cleaned = (label or "").strip()
    if not cleaned:
        raise ValidationError("Label must not be empty")
    return cleaned


class LedgerService:
    """Reads and edits which document satisfies which label on a claim."""

    def __init__(self, db_session: AsyncSession):
        self.session = db_session
        self.claims = ClaimRepository(db_session)
        self.labels = ClaimLabelRepository(db_session)
        self.documents = DocumentRepository(db_session)

    async def _load_claim(self, claim_id: UUID) -> Claim:
        claim = await self.claims.get_with_policy_type(claim_id)
        if claim is None:
            raise ClaimNotFoundError(f"Claim {claim_id} not found")
        return claim

    def _required_labels(self, claim: Claim) -> List[str]:
        if claim.policy_type is None:
            return []
        return normalize_labels(claim.policy_type.required_documents or [])

    async def _custom_labels(self, claim_id: UUID) -> List[str]:
        return [row.label for row in await self.labels.list_for_claim(claim_id)]

    async def labels_for_claim(self, claim_id: UUID) -> List[str]:
        """Required labels then custom labels, each listed once.

        Raises:
            ClaimNotFoundError: Unknown claim
        """
        claim = await self._load_claim(claim_id)
        return normalize_labels(self._required_labels(claim) + await self._custom_labels(claim_id))

    async def get_ledger(self, claim_id: UUID) -> Ledger:
        """Current label-to-document view of a claim; reading never writes."""
        claim = await self._load_claim(claim_id)
        required = self._required_labels(claim)
        custom = await self._custom_labels(claim_id)
        labels = normalize_labels(required + custom)

        assignments: Dict[str, Optional[DocumentResponse]] = {label: None for label in labels}
        for document in await self.documents.list_selected(claim_id):
            if document.is_placeholder or document.assigned_label not in assignments:
                continue
            assignments[document.assigned_label] = DocumentResponse.model_validate(document)

        pending = [
            label
            for label in await self.documents.list_placeholder_labels(claim_id)
            if label in assignments and assignments[label] is None
        ]

        return Ledger(
            claim_id=claim_id,
            required_labels=required,
            custom_labels=custom,
            labels=labels,
            assignments=assignments,
            pending_labels=pending,
        )

    async def assign(self, claim_id: UUID, label: str, document_id: UUID) -> DocumentResponse:
        """Make ``document_id`` the selected document for ``label``.

        Any other document selected for the label is detached. Assigning a
        real file clears the label's "awaiting upload" placeholders.

        Raises:
            ClaimNotFoundError: Unknown claim
            DocumentNotFoundError: Document missing or owned by another claim
            ValidationError: Blank label, or one the claim does not list
            AssignmentConflictError: A concurrent assign won the label
        """
        label = _clean_label(label)
        if label not in await self.labels_for_claim(claim_id):
            raise ValidationError(f"Label '{label}' is not a document label of this claim")

        document = await self.documents.get_for_claim(document_id, claim_id)
        if document is None:
            raise DocumentNotFoundError(
                f"Document {document_id} not found on claim {claim_id}"
            )

        try:
            await self.documents.clear_selection(claim_id, label, keep_id=document.id)
            document.assigned_label = label
            document.is_selected = True
            await self.session.flush()
            if not document.is_placeholder:
                await self.documents.delete_placeholders(claim_id, label)
            await self.session.commit()
        except (IntegrityError, OperationalError) as e:
            await self.session.rollback()
            LOGGER.warning(
                "Concurrent assignment detected",
                extra={"claim_id": str(claim_id), "label": label, "document_id": str(document_id)}
            )
            raise AssignmentConflictError(
                f"Label '{label}' was assigned concurrently, reload and retry", original_error=e
            )
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError("Failed to assign document", original_error=e)

        await self.session.refresh(document)
        LOGGER.info(
            "Document assigned",
            extra={"claim_id": str(claim_id), "label": label, "document_id": str(document_id)}
        )
        return DocumentResponse.model_validate(document)

    async def unassign(self, claim_id: UUID, label: str) -> None:
        """Detach whatever is selected for ``label``; the document itself is kept."""
        label = _clean_label(label)
        if not await self.claims.exists(claim_id):
            raise ClaimNotFoundError(f"Claim {claim_id} not found")

        try:
            cleared = await self.documents.clear_selection(claim_id, label)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError("Failed to unassign document", original_error=e)

        if cleared:
            LOGGER.info("Document unassigned", extra={"claim_id": str(claim_id), "label": label})

    async def add_custom_label(self, claim_id: UUID, name: str) -> CustomLabels:
        """Append a custom label unless an identical one already exists."""
        label = _clean_label(name)
        if not await self.claims.exists(claim_id):
            raise ClaimNotFoundError(f"Claim {claim_id} not found")

        existing = await self._custom_labels(claim_id)
        if label in existing:
            return CustomLabels(claim_id=claim_id, custom_labels=existing)

        try:
            position = await self.labels.next_position(claim_id)
            await self.labels.create(claim_id=claim_id, label=label, position=position)
            await self.session.commit()
        except IntegrityError:
            # Same label added concurrently; the result is the same
            await self.session.rollback()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError("Failed to add custom label", original_error=e)

        return CustomLabels(claim_id=claim_id, custom_labels=await self._custom_labels(claim_id))

    async def remove_custom_label(self, claim_id: UUID, name: str) -> CustomLabels:
        """Remove a custom label and detach any document selected for it.

        The selection and any "awaiting upload" placeholders survive when the
        policy type also requires the label.
        Removing a label the claim does not have changes nothing.
        """
        label = _clean_label(name)
        claim = await self._load_claim(claim_id)

        try:
            removed = await self.labels.delete_label(claim_id, label)
            if removed and label not in self._required_labels(claim):
                await self.documents.clear_selection(claim_id, label)
                await self.documents.delete_placeholders(claim_id, label)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError("Failed to remove custom label", original_error=e)

        if removed:
            LOGGER.info("Custom label removed", extra={"claim_id": str(claim_id), "label": label})
        return CustomLabels(claim_id=claim_id, custom_labels=await self._custom_labels(claim_id))
