"""SQLAlchemy models for all database tables."""

import enum
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    TIMESTAMP,
    Boolean,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from claimdocs.core.database import Base
from claimdocs.utils.time import utcnow

BATCH_UPLOAD_LABEL = "Batch Upload"

# JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


class DocumentKind(str, enum.Enum):
    """Discriminates uploaded files from "link sent, awaiting upload" rows."""

    FILE = "file"
    PLACEHOLDER = "placeholder"


class ClaimStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    PAID = "paid"


class User(Base):
    """Operator account mirrored from Supabase auth."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    supabase_user_id: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String, nullable=True)
    role: Mapped[str] = mapped_column(String, nullable=False, default="user")
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    claims: Mapped[list["Claim"]] = relationship("Claim", back_populates="user")


class PolicyType(Base):
    """Reference data: which document labels claims of this type require."""

    __tablename__ = "policy_types"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    required_documents: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    claims: Mapped[list["Claim"]] = relationship("Claim", back_populates="policy_type")


class Claim(Base):
    """Aggregate root owning documents, custom labels and upload tokens."""

    __tablename__ = "claims"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    policy_type_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("policy_types.id"), nullable=False
    )
    claim_number: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=ClaimStatus.DRAFT.value
    )
    claim_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONType, nullable=False, default=dict
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    user: Mapped["User | None"] = relationship("User", back_populates="claims")
    policy_type: Mapped["PolicyType"] = relationship("PolicyType", back_populates="claims")
    documents: Mapped[list["ClaimDocument"]] = relationship(
        "ClaimDocument", back_populates="claim", cascade="all, delete-orphan"
    )
    labels: Mapped[list["ClaimLabel"]] = relationship(
        "ClaimLabel",
        back_populates="claim",
        cascade="all, delete-orphan",
        order_by="ClaimLabel.position",
    )
    upload_tokens: Mapped[list["UploadToken"]] = relationship(
        "UploadToken", back_populates="claim", cascade="all, delete-orphan"
    )


class ClaimLabel(Base):
    """Custom requirement label added to one claim by an operator."""

    __tablename__ = "claim_labels"
    __table_args__ = (
        UniqueConstraint("claim_id", "label", name="uq_claim_labels_claim_label"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    claim_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("claims.id", ondelete="CASCADE"), nullable=False
    )
    label: Mapped[str] = mapped_column(String, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, nullable=False
    )

    claim: Mapped["Claim"] = relationship("Claim", back_populates="labels")


class UploadToken(Base):
    """Bearer capability to upload files into one claim until it expires."""

    __tablename__ = "upload_tokens"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    token: Mapped[str] = mapped_column(String, unique=True, nullable=False, index=True)
    claim_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("claims.id", ondelete="CASCADE"), nullable=False
    )
    target_label: Mapped[str] = mapped_column(
        String, nullable=False, default=BATCH_UPLOAD_LABEL
    )
    expires_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, nullable=False
    )

    claim: Mapped["Claim"] = relationship("Claim", back_populates="upload_tokens")
    documents: Mapped[list["ClaimDocument"]] = relationship(
        "ClaimDocument", back_populates="upload_token", passive_deletes=True
    )

    @property
    def is_batch(self) -> bool:
        return self.target_label == BATCH_UPLOAD_LABEL


class ClaimDocument(Base):
    """Uploaded file (or awaiting-upload placeholder) attached to a claim."""

    __tablename__ = "claim_documents"
    __table_args__ = (
        # At most one selected document per (claim, label)
        Index(
            "uq_claim_documents_selected_label",
            "claim_id",
            "assigned_label",
            unique=True,
            postgresql_where=text("is_selected"),
            sqlite_where=text("is_selected = 1"),
        ),
        Index("ix_claim_documents_claim_id", "claim_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    claim_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("claims.id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[DocumentKind] = mapped_column(
        Enum(DocumentKind, name="document_kind", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=DocumentKind.FILE,
    )
    file_name: Mapped[str] = mapped_column(String, nullable=False)
    storage_path: Mapped[str | None] = mapped_column(String, nullable=True)
    byte_size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    mime_type: Mapped[str | None] = mapped_column(String, nullable=True)
    uploaded_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    assigned_label: Mapped[str | None] = mapped_column(String, nullable=True)
    is_selected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    uploaded_via_link: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    upload_token_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("upload_tokens.id", ondelete="SET NULL"), nullable=True
    )
    document_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONType, nullable=False, default=dict
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    claim: Mapped["Claim"] = relationship("Claim", back_populates="documents")
    upload_token: Mapped["UploadToken | None"] = relationship(
        "UploadToken", back_populates="documents"
    )

    @property
    def is_placeholder(self) -> bool:
        return self.kind == DocumentKind.PLACEHOLDER
