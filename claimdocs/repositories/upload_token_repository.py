from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from claimdocs.database.models import UploadToken
from claimdocs.repositories.base_repository import BaseRepository


class UploadTokenRepository(BaseRepository[UploadToken]):
    """Repository for upload tokens."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, UploadToken)

    async def get_by_token(self, token: str) -> Optional[UploadToken]:
        """Exact-match lookup on the token string."""
        result = await self.session.execute(
            select(UploadToken).where(UploadToken.token == token)
        )
        return result.scalar_one_or_none()

    async def list_expired(self, now: datetime) -> List[UploadToken]:
        result = await self.session.execute(
            select(UploadToken).where(UploadToken.expires_at <= now)
        )
        return list(result.scalars().all())

    async def delete_ids(self, token_ids: List[UUID]) -> int:
        if not token_ids:
            return 0
        result = await self.session.execute(
            delete(UploadToken).where(UploadToken.id.in_(token_ids))
        )
        return result.rowcount or 0
