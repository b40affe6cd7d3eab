"""Repository for operator accounts."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from claimdocs.database.models import User
from claimdocs.repositories.base_repository import BaseRepository
from claimdocs.schemas.auth import UserCreate
from claimdocs.utils.logging import get_logger

LOGGER = get_logger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for User entity operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, User)

    async def get_by_supabase_id(self, supabase_user_id: str) -> Optional[User]:
        """Get user by Supabase user ID.

        Args:
            supabase_user_id: Supabase user ID

        Returns:
            User instance or None if not found
        """
        stmt = select(User).where(User.supabase_user_id == supabase_user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_user(self, user_data: UserCreate) -> User:
        user = await self.create(
            supabase_user_id=user_data.supabase_user_id,
            email=user_data.email,
            full_name=user_data.full_name,
            role=user_data.role,
        )
        LOGGER.info(f"Created user: {user.id} ({user.email})")
        return user
