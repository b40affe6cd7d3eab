from typing import List
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from claimdocs.core.exceptions import PersistenceError, PolicyTypeNotFoundError
from claimdocs.repositories.policy_type_repository import PolicyTypeRepository
from claimdocs.schemas.policy_types import PolicyTypeResponse
from claimdocs.utils.logging import get_logger

LOGGER = get_logger(__name__)


def normalize_labels(labels: List[str]) -> List[str]:
    """Trim labels, drop blanks and repeats, keep first-seen order."""
    seen: list[str] = []
    for label in labels:
        cleaned = label.strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


class PolicyTypeService:
    """Reference data for the document labels each policy type requires."""

    def __init__(self, db_session: AsyncSession):
        self.session = db_session
        self.repository = PolicyTypeRepository(db_session)

    async def list_policy_types(self) -> List[PolicyTypeResponse]:
        policy_types = await self.repository.list_ordered()
        return [PolicyTypeResponse.model_validate(p) for p in policy_types]

    async def update_required_documents(
        self, policy_type_id: UUID, required_documents: List[str]
    ) -> PolicyTypeResponse:
        """Replace the required-document labels of a policy type.

        Raises:
            PolicyTypeNotFoundError: If the policy type does not exist
            PersistenceError: If the change cannot be saved
        """
        labels = normalize_labels(required_documents)
        try:
            policy_type = await self.repository.update(policy_type_id, required_documents=labels)
            if policy_type is None:
                raise PolicyTypeNotFoundError(f"Policy type {policy_type_id} not found")
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError("Failed to update required documents", original_error=e)

        await self.session.refresh(policy_type)
        LOGGER.info(
            "Updated required documents",
            extra={"policy_type_id": str(policy_type_id), "count": len(labels)}
        )
        return PolicyTypeResponse.model_validate(policy_type)
