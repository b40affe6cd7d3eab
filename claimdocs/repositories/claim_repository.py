"""Repository for claims and their custom requirement labels."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from claimdocs.database.models import Claim, ClaimLabel
from claimdocs.repositories.base_repository import BaseRepository


class ClaimRepository(BaseRepository[Claim]):
    """Repository for Claim entity operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Claim)

    async def get_with_policy_type(self, claim_id: UUID) -> Optional[Claim]:
        """Load a claim together with its policy type and custom labels."""
        stmt = (
            select(Claim)
            .where(Claim.id == claim_id)
            .options(selectinload(Claim.policy_type), selectinload(Claim.labels))
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def exists(self, claim_id: UUID) -> bool:
        result = await self.session.execute(select(Claim.id).where(Claim.id == claim_id))
        return result.scalar_one_or_none() is not None

    async def list_for_user(self, user_id: UUID, limit: int = 50, offset: int = 0) -> List[Claim]:
        stmt = (
            select(Claim)
            .where(Claim.user_id == user_id)
            .order_by(Claim.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class ClaimLabelRepository(BaseRepository[ClaimLabel]):
    """Repository for the custom labels an operator adds to a claim."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ClaimLabel)

    async def list_for_claim(self, claim_id: UUID) -> List[ClaimLabel]:
        stmt = (
            select(ClaimLabel)
            .where(ClaimLabel.claim_id == claim_id)
            .order_by(ClaimLabel.position, ClaimLabel.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def next_position(self, claim_id: UUID) -> int:
        stmt = select(func.max(ClaimLabel.position)).where(ClaimLabel.claim_id == claim_id)
        current = (await self.session.execute(stmt)).scalar_one_or_none()
        return 0 if current is None else current + 1

    async def delete_label(self, claim_id: UUID, label: str) -> int:
        """Delete every row carrying ``label`` for the claim; returns the count."""
        stmt = delete(ClaimLabel).where(
            ClaimLabel.claim_id == claim_id, ClaimLabel.label == label
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0
