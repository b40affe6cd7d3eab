from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from claimdocs.database.models import PolicyType
from claimdocs.repositories.base_repository import BaseRepository


class PolicyTypeRepository(BaseRepository[PolicyType]):
    """Repository for policy type reference data."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, PolicyType)

    async def list_ordered(self) -> List[PolicyType]:
        result = await self.session.execute(select(PolicyType).order_by(PolicyType.name))
        return list(result.scalars().all())
