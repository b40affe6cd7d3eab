"""Claim schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ClaimCreate(BaseModel):
    policy_type_id: UUID
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    claim_number: Optional[str] = Field(
        None, description="Generated when omitted"
    )


class ClaimResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    claim_number: str
    title: str
    description: Optional[str] = None
    status: str
    policy_type_id: UUID
    user_id: Optional[UUID] = None
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias="claim_metadata")
    created_at: datetime
    updated_at: datetime


class ClaimListResponse(BaseModel):
    claims: List[ClaimResponse]
    total: int
    limit: int
    offset: int
