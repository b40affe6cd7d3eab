from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from claimdocs.core.exceptions import (
    AppError,
    InvalidUploadTokenError,
    PersistenceError,
    SizeLimitError,
    StorageError,
    ValidationError,
)
from claimdocs.database.models import BATCH_UPLOAD_LABEL, ClaimDocument, DocumentKind
from claimdocs.services.public_upload_service import PublicUploadService
from claimdocs.services.upload_token_service import UploadTokenService

FIFTEEN_MB = 15 * 1024 * 1024


@pytest.fixture
def token_service(db_session, clock):
    return UploadTokenService(db_session, clock=clock)


@pytest.fixture
def relay(db_session, mock_storage, token_service):
    return PublicUploadService(db_session, storage=mock_storage, token_service=token_service)


async def _file_documents(db_session):
    result = await db_session.execute(
        select(ClaimDocument).where(ClaimDocument.kind == DocumentKind.FILE)
    )
    return result.scalars().all()


@pytest.mark.asyncio
async def test_upload_with_batch_token(relay, token_service, db_session, seed, clock, mock_storage, upload_file):
    issued = await token_service.issue_token(seed.claim.id, issued_by=seed.user.id)

    document = await relay.upload(issued.token, upload_file(), uploader_name=" Pat Claimant ")

    assert document.claim_id == seed.claim.id
    assert document.assigned_label == BATCH_UPLOAD_LABEL
    assert document.is_selected is False
    assert document.uploaded_via_link is True
    assert document.uploaded_by is None
    assert document.document_metadata["uploader_name"] == "Pat Claimant"
    assert document.document_metadata["upload_source"] == "public_link"
    expected_prefix = f"public-uploads/{seed.claim.id}/{issued.token}/"
    assert document.storage_path.startswith(expected_prefix)
    assert document.storage_path.endswith("-invoice.pdf")

    mock_storage.upload_file.assert_awaited_once()
    args, kwargs = mock_storage.upload_file.call_args
    assert args[1] == document.storage_path
    assert kwargs["content_type"] == "application/pdf"


@pytest.mark.asyncio
async def test_label_token_tags_document_with_label(relay, token_service, seed, upload_file):
    issued = await token_service.issue_token(seed.claim.id, issued_by=seed.user.id, label="Police Report")

    document = await relay.upload(issued.token, upload_file(filename="report.pdf"))

    assert document.assigned_label == "Police Report"
    assert document.is_selected is False


@pytest.mark.asyncio
async def test_token_can_be_reused_until_expiry(relay, token_service, db_session, seed, upload_file):
    issued = await token_service.issue_token(seed.claim.id, issued_by=seed.user.id)

    await relay.upload(issued.token, upload_file(filename="one.pdf"))
    await relay.upload(issued.token, upload_file(filename="two.pdf"))

    assert len(await _file_documents(db_session)) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("declare_size", [True, False])
async def test_oversize_rejected_before_storage(
    relay, token_service, db_session, seed, mock_storage, upload_file, declare_size
):
    issued = await token_service.issue_token(seed.claim.id, issued_by=seed.user.id)

    with pytest.raises(SizeLimitError):
        await relay.upload(issued.token, upload_file(content=b"x" * FIFTEEN_MB, declare_size=declare_size))

    mock_storage.upload_file.assert_not_called()
    assert await _file_documents(db_session) == []


@pytest.mark.asyncio
async def test_size_checked_regardless_of_token(relay, mock_storage, seed, upload_file):
    with pytest.raises(SizeLimitError):
        await relay.upload("no-such-token", upload_file(content=b"x" * FIFTEEN_MB))

    mock_storage.upload_file.assert_not_called()


@pytest.mark.asyncio
async def test_expired_token_leaves_no_trace(relay, token_service, db_session, seed, clock, mock_storage, upload_file):
    issued = await token_service.issue_token(seed.claim.id, issued_by=seed.user.id, expiry_hours=1)
    clock.advance(hours=2)

    with pytest.raises(InvalidUploadTokenError):
        await relay.upload(issued.token, upload_file())

    mock_storage.upload_file.assert_not_called()
    assert await _file_documents(db_session) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("token,with_file", [(None, True), ("", True), ("abc", False)])
async def test_missing_fields(relay, mock_storage, upload_file, token, with_file):
    with pytest.raises(ValidationError):
        await relay.upload(token, upload_file() if with_file else None)

    mock_storage.upload_file.assert_not_called()


@pytest.mark.asyncio
async def test_unexpected_failure_surfaces_as_app_error(relay, token_service, db_session, seed, mock_storage, upload_file):
    issued = await token_service.issue_token(seed.claim.id, issued_by=seed.user.id)
    mock_storage.upload_file.side_effect = RuntimeError("connection reset")

    with pytest.raises(AppError) as exc_info:
        await relay.upload(issued.token, upload_file())

    assert type(exc_info.value) is AppError
    assert isinstance(exc_info.value.original_error, RuntimeError)
    assert await _file_documents(db_session) == []


@pytest.mark.asyncio
async def test_storage_failure_writes_no_row(relay, token_service, db_session, seed, mock_storage, upload_file):
    issued = await token_service.issue_token(seed.claim.id, issued_by=seed.user.id)
    mock_storage.upload_file.side_effect = StorageError("Upload failed: 503")

    with pytest.raises(StorageError):
        await relay.upload(issued.token, upload_file())

    assert await _file_documents(db_session) == []


@pytest.mark.asyncio
async def test_insert_failure_removes_blob(relay, token_service, seed, mock_storage, upload_file):
    issued = await token_service.issue_token(seed.claim.id, issued_by=seed.user.id)
    failing_create = AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("disk full")))

    with patch.object(relay.repository, "create", failing_create):
        with pytest.raises(PersistenceError):
            await relay.upload(issued.token, upload_file())

    stored_path = mock_storage.upload_file.call_args.args[1]
    mock_storage.delete_files.assert_awaited_once_with([stored_path])


@pytest.mark.asyncio
async def test_insert_failure_survives_cleanup_failure(relay, token_service, seed, mock_storage, upload_file):
    issued = await token_service.issue_token(seed.claim.id, issued_by=seed.user.id)
    mock_storage.delete_files.side_effect = StorageError("Delete failed")
    failing_create = AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("disk full")))

    with patch.object(relay.repository, "create", failing_create):
        with pytest.raises(PersistenceError):
            await relay.upload(issued.token, upload_file())


@pytest.mark.asyncio
async def test_unsafe_file_name_is_flattened(relay, token_service, seed, upload_file):
    issued = await token_service.issue_token(seed.claim.id, issued_by=seed.user.id)

    document = await relay.upload(issued.token, upload_file(filename="../../etc/pass wd?.pdf"))

    assert document.file_name == "../../etc/pass wd?.pdf"
    assert document.storage_path.endswith("-pass wd_.pdf")
    assert "/../" not in document.storage_path
