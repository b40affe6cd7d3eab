"""Policy type schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PolicyTypeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: Optional[str] = None
    required_documents: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class RequiredDocumentsUpdate(BaseModel):
    required_documents: List[str]
