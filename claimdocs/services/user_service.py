"""User service for operator accounts."""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from claimdocs.database.models import User
from claimdocs.repositories.user_repository import UserRepository
from claimdocs.schemas.auth import CurrentUser, UserCreate, UserProfile
from claimdocs.utils.logging import get_logger

LOGGER = get_logger(__name__)


class UserService:
    """Service for user business logic operations."""

    def __init__(self, db_session: AsyncSession):
        self.session = db_session
        self.repository = UserRepository(db_session)

    async def get_or_create_user_from_jwt(self, current_user: CurrentUser) -> User:
        """Get the local user row for a verified token, creating it on first sight.

        Email, name and role follow the token on every call.

        Args:
            current_user: Current user from JWT token

        Returns:
            User database instance
        """
        user = await self.repository.get_by_supabase_id(current_user.id)
        if user:
            changed = False
            for field in ("email", "full_name", "role"):
                value = getattr(current_user, field)
                if value and getattr(user, field) != value:
                    setattr(user, field, value)
                    changed = True
            if changed:
                await self.session.commit()
            return user

        user_data = UserCreate(
            supabase_user_id=current_user.id,
            email=current_user.email,
            full_name=current_user.full_name,
            role=current_user.role,
        )
        try:
            user = await self.repository.create_user(user_data)
            await self.session.commit()
        except IntegrityError:
            # Another request created the same user first
            await self.session.rollback()
            user = await self.repository.get_by_supabase_id(current_user.id)
            if user is None:
                raise
        return user

    async def get_current_user_profile(self, current_user: CurrentUser) -> UserProfile:
        user = await self.get_or_create_user_from_jwt(current_user)
        return UserProfile(
            id=user.id,
            supabase_user_id=user.supabase_user_id,
            email=user.email,
            full_name=user.full_name,
            role=user.role,
            created_at=user.created_at,
        )
