"""CV record model."""

import secrets
from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from ..database.base import Base

PLACEHOLDER = "Processing..."
NOT_SPECIFIED = "Not Specified"


def new_record_id() -> str:
    """24 hex characters, the format accepted by bulk delete."""
    return secrets.token_hex(12)


class CVRecord(Base):
    __tablename__ = "cv_records"

    id = Column(String(24), primary_key=True, default=new_record_id)
    owner_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    storage_path = Column(String(1024), nullable=False)
    original_name = Column(String(255), nullable=False)
    mime_type = Column(String(100), nullable=False)
    file_size = Column(Integer, nullable=False)

    # Written by the enrichment scheduler
    position = Column(String(255), default=PLACEHOLDER, index=True)
    summary = Column(Text, default=PLACEHOLDER)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    owner = relationship("User", back_populates="cv_records")

    __table_args__ = (
        UniqueConstraint("owner_id", "storage_path", name="uq_cv_records_owner_path"),
        Index("idx_cv_records_owner_created", "owner_id", "created_at"),
        Index("idx_cv_records_owner_position", "owner_id", "position"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "path": self.storage_path,
            "original_name": self.original_name,
            "mime_type": self.mime_type,
            "file_size": self.file_size,
            "position": self.position,
            "summary": self.summary,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
