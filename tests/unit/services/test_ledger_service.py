import asyncio
import uuid

import pytest
from sqlalchemy import func, select

from claimdocs.core.exceptions import (
    AssignmentConflictError,
    ClaimNotFoundError,
    DocumentNotFoundError,
    ValidationError,
)
from claimdocs.database.models import Claim, ClaimDocument, DocumentKind
from claimdocs.services.ledger_service import LedgerService
from claimdocs.services.public_upload_service import PublicUploadService
from claimdocs.services.upload_token_service import UploadTokenService


async def _add_file(session, claim_id, name="file.pdf", label=None, selected=False):
    document = ClaimDocument(
        claim_id=claim_id,
        kind=DocumentKind.FILE,
        file_name=name,
        storage_path=f"claims/{claim_id}/{name}",
        byte_size=10,
        assigned_label=label,
        is_selected=selected,
    )
    session.add(document)
    await session.commit()
    return document


async def _selected_count(session, claim_id, label):
    result = await session.execute(
        select(func.count()).select_from(ClaimDocument).where(
            ClaimDocument.claim_id == claim_id,
            ClaimDocument.assigned_label == label,
            ClaimDocument.is_selected.is_(True),
        )
    )
    return result.scalar_one()


@pytest.mark.asyncio
async def test_empty_ledger_lists_required_labels(db_session, seed):
    ledger = await LedgerService(db_session).get_ledger(seed.claim.id)

    assert ledger.required_labels == ["Invoice", "Police Report"]
    assert ledger.custom_labels == []
    assert ledger.labels == ["Invoice", "Police Report"]
    assert ledger.assignments == {"Invoice": None, "Police Report": None}
    assert ledger.pending_labels == []


@pytest.mark.asyncio
async def test_ledger_unknown_claim(db_session, seed):
    with pytest.raises(ClaimNotFoundError):
        await LedgerService(db_session).get_ledger(uuid.uuid4())


@pytest.mark.asyncio
async def test_assign_selects_document(db_session, seed):
    service = LedgerService(db_session)
    document = await _add_file(db_session, seed.claim.id)

    assigned = await service.assign(seed.claim.id, "Invoice", document.id)

    assert assigned.assigned_label == "Invoice"
    assert assigned.is_selected is True
    ledger = await service.get_ledger(seed.claim.id)
    assert ledger.assignments["Invoice"].id == document.id
    assert ledger.assignments["Police Report"] is None


@pytest.mark.asyncio
async def test_assign_replaces_previous_selection(db_session, seed):
    service = LedgerService(db_session)
    first = await _add_file(db_session, seed.claim.id, "first.pdf")
    second = await _add_file(db_session, seed.claim.id, "second.pdf")

    await service.assign(seed.claim.id, "Invoice", first.id)
    await service.assign(seed.claim.id, "Invoice", second.id)

    assert await _selected_count(db_session, seed.claim.id, "Invoice") == 1
    await db_session.refresh(first)
    assert first.is_selected is False
    assert first.assigned_label is None
    ledger = await service.get_ledger(seed.claim.id)
    assert ledger.assignments["Invoice"].id == second.id


@pytest.mark.asyncio
async def test_assign_document_from_other_claim(db_session, seed):
    other = Claim(
        user_id=seed.user.id,
        policy_type_id=seed.policy_type.id,
        claim_number="CLM-OTHER",
        title="Other claim",
    )
    db_session.add(other)
    await db_session.commit()
    foreign = await _add_file(db_session, other.id)

    with pytest.raises(DocumentNotFoundError):
        await LedgerService(db_session).assign(seed.claim.id, "Invoice", foreign.id)


@pytest.mark.asyncio
async def test_assign_blank_label(db_session, seed):
    document = await _add_file(db_session, seed.claim.id)

    with pytest.raises(ValidationError):
        await LedgerService(db_session).assign(seed.claim.id, "  ", document.id)


@pytest.mark.asyncio
async def test_assign_label_outside_claim_labels(db_session, seed):
    document = await _add_file(db_session, seed.claim.id)
    service = LedgerService(db_session)

    with pytest.raises(ValidationError):
        await service.assign(seed.claim.id, "Invoce", document.id)

    ledger = await service.get_ledger(seed.claim.id)
    assert list(ledger.assignments) == ledger.labels == ["Invoice", "Police Report"]
    await db_session.refresh(document)
    assert document.assigned_label is None


@pytest.mark.asyncio
async def test_assign_real_file_clears_placeholders(db_session, seed, clock):
    tokens = UploadTokenService(db_session, clock=clock)
    await tokens.issue_token(seed.claim.id, issued_by=seed.user.id, label="Invoice")
    service = LedgerService(db_session)

    assert (await service.get_ledger(seed.claim.id)).pending_labels == ["Invoice"]

    document = await _add_file(db_session, seed.claim.id)
    await service.assign(seed.claim.id, "Invoice", document.id)

    placeholders = await db_session.execute(
        select(ClaimDocument).where(ClaimDocument.kind == DocumentKind.PLACEHOLDER)
    )
    assert placeholders.scalars().all() == []
    assert (await service.get_ledger(seed.claim.id)).pending_labels == []


@pytest.mark.asyncio
async def test_selected_placeholder_is_not_reported(db_session, seed, clock):
    tokens = UploadTokenService(db_session, clock=clock)
    await tokens.issue_token(seed.claim.id, issued_by=seed.user.id, label="Invoice")
    placeholder = (await db_session.execute(select(ClaimDocument))).scalar_one()
    service = LedgerService(db_session)

    await service.assign(seed.claim.id, "Invoice", placeholder.id)

    ledger = await service.get_ledger(seed.claim.id)
    assert ledger.assignments["Invoice"] is None
    assert (await db_session.execute(select(func.count()).select_from(ClaimDocument))).scalar_one() == 1


@pytest.mark.asyncio
async def test_unassign_keeps_document(db_session, seed):
    service = LedgerService(db_session)
    document = await _add_file(db_session, seed.claim.id)
    await service.assign(seed.claim.id, "Invoice", document.id)

    await service.unassign(seed.claim.id, "Invoice")
    await service.unassign(seed.claim.id, "Invoice")

    await db_session.refresh(document)
    assert document.is_selected is False
    assert document.assigned_label is None
    assert (await service.get_ledger(seed.claim.id)).assignments["Invoice"] is None


@pytest.mark.asyncio
async def test_ledger_read_is_idempotent(db_session, seed):
    service = LedgerService(db_session)
    document = await _add_file(db_session, seed.claim.id)
    await service.assign(seed.claim.id, "Police Report", document.id)
    await service.add_custom_label(seed.claim.id, "Medical Bill")

    first = await service.get_ledger(seed.claim.id)
    second = await service.get_ledger(seed.claim.id)

    assert first.model_dump() == second.model_dump()


@pytest.mark.asyncio
async def test_custom_labels_trim_and_dedupe(db_session, seed):
    service = LedgerService(db_session)

    await service.add_custom_label(seed.claim.id, " Medical Bill ")
    await service.add_custom_label(seed.claim.id, "Medical Bill")
    result = await service.add_custom_label(seed.claim.id, "medical bill")

    assert result.custom_labels == ["Medical Bill", "medical bill"]
    ledger = await service.get_ledger(seed.claim.id)
    assert ledger.labels == ["Invoice", "Police Report", "Medical Bill", "medical bill"]


@pytest.mark.asyncio
async def test_custom_label_matching_required_label_is_listed_once(db_session, seed):
    service = LedgerService(db_session)

    await service.add_custom_label(seed.claim.id, "Invoice")

    ledger = await service.get_ledger(seed.claim.id)
    assert ledger.labels == ["Invoice", "Police Report"]


@pytest.mark.asyncio
async def test_blank_custom_label_rejected(db_session, seed):
    with pytest.raises(ValidationError):
        await LedgerService(db_session).add_custom_label(seed.claim.id, "   ")


@pytest.mark.asyncio
async def test_remove_custom_label_unassigns_document(db_session, seed):
    service = LedgerService(db_session)
    await service.add_custom_label(seed.claim.id, "Medical Bill")
    await service.add_custom_label(seed.claim.id, "Tow Receipt")
    document = await _add_file(db_session, seed.claim.id)
    await service.assign(seed.claim.id, "Medical Bill", document.id)

    result = await service.remove_custom_label(seed.claim.id, "Medical Bill")

    assert result.custom_labels == ["Tow Receipt"]
    await db_session.refresh(document)
    assert document.is_selected is False
    ledger = await service.get_ledger(seed.claim.id)
    assert "Medical Bill" not in ledger.assignments


@pytest.mark.asyncio
async def test_remove_custom_label_drops_pending_upload(db_session, seed, clock):
    service = LedgerService(db_session)
    await service.add_custom_label(seed.claim.id, "Tow Receipt")
    tokens = UploadTokenService(db_session, clock=clock)
    await tokens.issue_token(seed.claim.id, issued_by=seed.user.id, label="Tow Receipt")
    assert (await service.get_ledger(seed.claim.id)).pending_labels == ["Tow Receipt"]

    await service.remove_custom_label(seed.claim.id, "Tow Receipt")

    ledger = await service.get_ledger(seed.claim.id)
    assert ledger.pending_labels == []
    assert "Tow Receipt" not in ledger.assignments
    placeholders = await db_session.execute(
        select(ClaimDocument).where(ClaimDocument.kind == DocumentKind.PLACEHOLDER)
    )
    assert placeholders.scalars().all() == []


@pytest.mark.asyncio
async def test_remove_unknown_label_is_noop(db_session, seed):
    service = LedgerService(db_session)
    await service.add_custom_label(seed.claim.id, "Tow Receipt")
    document = await _add_file(db_session, seed.claim.id)
    await service.assign(seed.claim.id, "Invoice", document.id)

    result = await service.remove_custom_label(seed.claim.id, "Invoice")

    assert result.custom_labels == ["Tow Receipt"]
    await db_session.refresh(document)
    assert document.is_selected is True


@pytest.mark.asyncio
async def test_remove_then_add_does_not_duplicate(db_session, seed):
    service = LedgerService(db_session)
    await service.add_custom_label(seed.claim.id, "A")
    await service.add_custom_label(seed.claim.id, "B")

    await service.remove_custom_label(seed.claim.id, "A")
    await service.remove_custom_label(seed.claim.id, "A")
    result = await service.add_custom_label(seed.claim.id, "A")

    assert result.custom_labels == ["B", "A"]


@pytest.mark.asyncio
async def test_concurrent_assigns_leave_one_selection(session_factory, seed):
    async with session_factory() as setup:
        first = await _add_file(setup, seed.claim.id, "first.pdf")
        second = await _add_file(setup, seed.claim.id, "second.pdf")

    async def assign(document_id):
        async with session_factory() as session:
            return await LedgerService(session).assign(seed.claim.id, "Invoice", document_id)

    results = await asyncio.gather(assign(first.id), assign(second.id), return_exceptions=True)

    for result in results:
        if isinstance(result, Exception):
            assert isinstance(result, AssignmentConflictError)
    assert any(not isinstance(result, Exception) for result in results)

    async with session_factory() as check:
        assert await _selected_count(check, seed.claim.id, "Invoice") == 1


@pytest.mark.asyncio
async def test_batch_upload_then_assign_invoice(db_session, seed, clock, mock_storage, upload_file):
    tokens = UploadTokenService(db_session, clock=clock)
    relay = PublicUploadService(db_session, storage=mock_storage, token_service=tokens)
    service = LedgerService(db_session)

    issued = await tokens.issue_token(seed.claim.id, issued_by=seed.user.id)
    uploaded = await relay.upload(issued.token, upload_file(filename="receipt.pdf"), uploader_name="Pat")

    ledger = await service.get_ledger(seed.claim.id)
    assert ledger.assignments["Invoice"] is None

    await service.assign(seed.claim.id, "Invoice", uploaded.id)

    ledger = await service.get_ledger(seed.claim.id)
    assert ledger.assignments["Invoice"].id == uploaded.id
    assert ledger.assignments["Invoice"].uploaded_via_link is True
    assert await _selected_count(db_session, seed.claim.id, "Invoice") == 1
