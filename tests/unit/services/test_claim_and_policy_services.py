import uuid
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from claimdocs.core.exceptions import ClaimNotFoundError, PersistenceError, PolicyTypeNotFoundError
from claimdocs.database.models import User
from claimdocs.schemas.auth import CurrentUser
from claimdocs.schemas.claims import ClaimCreate
from claimdocs.services.claim_service import ClaimService, generate_claim_number
from claimdocs.services.policy_type_service import PolicyTypeService, normalize_labels
from claimdocs.services.user_service import UserService


@pytest.mark.asyncio
async def test_create_claim_generates_number(db_session, seed):
    service = ClaimService(db_session)

    claim = await service.create_claim(
        ClaimCreate(policy_type_id=seed.policy_type.id, title="  Hail damage "), seed.user.id
    )

    assert claim.claim_number.startswith("CLM-")
    assert claim.title == "Hail damage"
    assert claim.status == "draft"
    assert (await service.get_claim(claim.id)).id == claim.id


@pytest.mark.asyncio
async def test_create_claim_unknown_policy_type(db_session, seed):
    with pytest.raises(PolicyTypeNotFoundError):
        await ClaimService(db_session).create_claim(
            ClaimCreate(policy_type_id=uuid.uuid4(), title="x"), seed.user.id
        )


@pytest.mark.asyncio
async def test_list_claims_for_user(db_session, seed):
    service = ClaimService(db_session)
    await service.create_claim(ClaimCreate(policy_type_id=seed.policy_type.id, title="Second"), seed.user.id)

    result = await service.list_claims(seed.user.id)

    assert result.total == 2
    assert {c.title for c in result.claims} == {"Rear-end collision", "Second"}
    assert (await service.list_claims(uuid.uuid4())).total == 0


@pytest.mark.asyncio
async def test_get_claim_unknown(db_session, seed):
    with pytest.raises(ClaimNotFoundError):
        await ClaimService(db_session).get_claim(uuid.uuid4())


def test_generate_claim_number_is_unique():
    assert generate_claim_number() != generate_claim_number()


def test_normalize_labels():
    assert normalize_labels([" Invoice", "Invoice", "", "  ", "Photos"]) == ["Invoice", "Photos"]


@pytest.mark.asyncio
async def test_update_required_documents(db_session, seed):
    service = PolicyTypeService(db_session)

    updated = await service.update_required_documents(
        seed.policy_type.id, ["Invoice", " Photos ", "Invoice"]
    )

    assert updated.required_documents == ["Invoice", "Photos"]
    listed = await service.list_policy_types()
    assert listed[0].required_documents == ["Invoice", "Photos"]


@pytest.mark.asyncio
async def test_update_required_documents_unknown(db_session, seed):
    with pytest.raises(PolicyTypeNotFoundError):
        await PolicyTypeService(db_session).update_required_documents(uuid.uuid4(), ["Invoice"])


@pytest.mark.asyncio
async def test_update_required_documents_database_failure(db_session, seed):
    service = PolicyTypeService(db_session)
    failure = OperationalError("UPDATE", {}, Exception("database is locked"))

    with patch.object(db_session, "commit", AsyncMock(side_effect=failure)):
        with pytest.raises(PersistenceError):
            await service.update_required_documents(seed.policy_type.id, ["Photos"])

    listed = await service.list_policy_types()
    assert listed[0].required_documents == ["Invoice", "Police Report"]


@pytest.mark.asyncio
async def test_user_created_on_first_sight_and_synced(db_session):
    service = UserService(db_session)
    current = CurrentUser(id=str(uuid.uuid4()), email="new@example.com", role="user")

    created = await service.get_or_create_user_from_jwt(current)
    assert created.email == "new@example.com"

    renamed = current.model_copy(update={"full_name": "New Name", "role": "admin"})
    synced = await service.get_or_create_user_from_jwt(renamed)

    assert synced.id == created.id
    assert synced.full_name == "New Name"
    assert synced.role == "admin"
    rows = (await db_session.execute(select(User))).scalars().all()
    assert len(rows) == 1


@pytest.mark.asyncio
async def test_current_user_profile(db_session, seed, operator):
    profile = await UserService(db_session).get_current_user_profile(operator)

    assert profile.id == seed.user.id
    assert profile.email == "adjuster@example.com"
