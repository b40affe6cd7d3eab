"""Upload token schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class IssueTokenRequest(BaseModel):
    """Body of ``POST /claims/{claim_id}/upload-tokens``.

    Omitting ``label`` (or sending a blank one) issues a batch token.
    """

    expiry_hours: int = Field(default=168, description="Hours until the link stops working")
    label: Optional[str] = Field(None, description="Requirement label the upload is meant for")


class IssuedToken(BaseModel):
    token: str
    claim_id: UUID
    label: str
    is_batch: bool
    expires_at: datetime
    upload_url: str


class TokenScope(BaseModel):
    """What a valid token grants: uploads into one claim, tagged with one label."""

    token_id: UUID
    claim_id: UUID
    label: str
    expires_at: datetime


class TokenCheckResponse(BaseModel):
    """Public pre-check result; never exposes the claim id."""

    valid: bool
    label: Optional[str] = None
    expires_at: Optional[datetime] = None


class PurgeResult(BaseModel):
    purged: int
