"""Claim service: the aggregate that documents, labels and tokens hang off."""

import secrets
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from claimdocs.core.exceptions import ClaimNotFoundError, PersistenceError, PolicyTypeNotFoundError
from claimdocs.database.models import Claim
from claimdocs.repositories.claim_repository import ClaimRepository
from claimdocs.repositories.policy_type_repository import PolicyTypeRepository
from claimdocs.schemas.claims import ClaimCreate, ClaimListResponse, ClaimResponse
from claimdocs.utils.logging import get_logger
from claimdocs.utils.time import utcnow

LOGGER = get_logger(__name__)


def generate_claim_number() -> str:
    """Human-friendly claim number, e.g. ``CLM-20260301-7F3A9C``."""
    return f"CLM-{utcnow():%Y%m%d}-{secrets.token_hex(3).upper()}"


class ClaimService:
    def __init__(self, db_session: AsyncSession):
        self.session = db_session
        self.repository = ClaimRepository(db_session)
        self.policy_types = PolicyTypeRepository(db_session)

    async def create_claim(self, data: ClaimCreate, user_id: UUID) -> ClaimResponse:
        """Open a claim against a policy type for the given operator.

        Raises:
            PolicyTypeNotFoundError: If the policy type does not exist
            PersistenceError: If the insert fails
        """
        if await self.policy_types.get_by_id(data.policy_type_id) is None:
            raise PolicyTypeNotFoundError(f"Policy type {data.policy_type_id} not found")

        try:
            claim = await self.repository.create(
                user_id=user_id,
                policy_type_id=data.policy_type_id,
                claim_number=data.claim_number or generate_claim_number(),
                title=data.title.strip(),
                description=data.description,
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError("Failed to create claim", original_error=e)

        LOGGER.info(
            "Claim created",
            extra={"claim_id": str(claim.id), "claim_number": claim.claim_number}
        )
        return ClaimResponse.model_validate(claim)

    async def get_claim(self, claim_id: UUID) -> ClaimResponse:
        claim = await self.require_claim(claim_id)
        return ClaimResponse.model_validate(claim)

    async def list_claims(
        self, user_id: UUID, limit: int = 50, offset: int = 0
    ) -> ClaimListResponse:
        claims = await self.repository.list_for_user(user_id, limit=limit, offset=offset)
        total = await self.repository.count(filters={"user_id": user_id})
        return ClaimListResponse(
            claims=[ClaimResponse.model_validate(c) for c in claims],
            total=total,
            limit=limit,
            offset=offset,
        )

    async def require_claim(self, claim_id: UUID) -> Claim:
        """Load a claim or raise ClaimNotFoundError."""
        claim: Optional[Claim] = await self.repository.get_by_id(claim_id)
        if claim is None:
            raise ClaimNotFoundError(f"Claim {claim_id} not found")
        return claim
