"""Document assignment ledger schemas."""

from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from claimdocs.schemas.documents import DocumentResponse


class Ledger(BaseModel):
    """Per-claim view of which document satisfies which requirement label."""

    claim_id: UUID
    required_labels: List[str] = Field(default_factory=list)
    custom_labels: List[str] = Field(default_factory=list)
    labels: List[str] = Field(default_factory=list)
    assignments: Dict[str, Optional[DocumentResponse]] = Field(default_factory=dict)
    pending_labels: List[str] = Field(
        default_factory=list,
        description="Labels with an upload link sent and no document selected yet",
    )


class AssignRequest(BaseModel):
    label: str = Field(..., min_length=1)
    document_id: UUID


class LabelRequest(BaseModel):
    name: str


class CustomLabels(BaseModel):
    claim_id: UUID
    custom_labels: List[str]
