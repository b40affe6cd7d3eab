"""Centralized dependency injection for FastAPI application.

Factory functions building services per request. Tests swap any of them
through ``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from claimdocs.core.database import get_async_session
from claimdocs.services.claim_service import ClaimService
from claimdocs.services.document_service import DocumentService
from claimdocs.services.ledger_service import LedgerService
from claimdocs.services.policy_type_service import PolicyTypeService
from claimdocs.services.public_upload_service import PublicUploadService
from claimdocs.services.storage_service import StorageService
from claimdocs.services.upload_token_service import UploadTokenService
from claimdocs.services.user_service import UserService

SessionDep = Annotated[AsyncSession, Depends(get_async_session)]


def get_storage_service() -> StorageService:
    return StorageService()


async def get_user_service(db_session: SessionDep) -> UserService:
    return UserService(db_session)


async def get_claim_service(db_session: SessionDep) -> ClaimService:
    return ClaimService(db_session)


async def get_policy_type_service(db_session: SessionDep) -> PolicyTypeService:
    return PolicyTypeService(db_session)


async def get_upload_token_service(db_session: SessionDep) -> UploadTokenService:
    return UploadTokenService(db_session)


async def get_ledger_service(db_session: SessionDep) -> LedgerService:
    return LedgerService(db_session)


async def get_document_service(
    db_session: SessionDep,
    storage: Annotated[StorageService, Depends(get_storage_service)],
) -> DocumentService:
    return DocumentService(db_session, storage=storage)


async def get_public_upload_service(
    db_session: SessionDep,
    storage: Annotated[StorageService, Depends(get_storage_service)],
) -> PublicUploadService:
    return PublicUploadService(db_session, storage=storage)
