"""Extracted contact table."""

from uuid import UUID

from sqlalchemy import Boolean, Float, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from uuid_utils.compat import uuid7

from .base import Base, CreatedAtMixin


class ExtractedContactRecord(Base, CreatedAtMixin):
    """A contact candidate extracted from source content and scored once."""

    __tablename__ = "extracted_contacts"

    contact_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid7)
    extraction_id: Mapped[str] = mapped_column(String(100), nullable=False)
    search_id: Mapped[str] = mapped_column(String(100), nullable=False)
    source_url: Mapped[str] = mapped_column(Text, nullable=False)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    social_profiles: Mapped[list] = mapped_column(nullable=False, default=list)

    # Scores
    confidence_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    quality_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    relevance_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    extraction_method: Mapped[str] = mapped_column(String(50), nullable=False)
    verification_status: Mapped[str] = mapped_column(String(50), nullable=False)
    is_duplicate: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    contact_metadata: Mapped[dict] = mapped_column("metadata", nullable=False, default=dict)

    __table_args__ = (
        Index("idx_extracted_contacts_search", "search_id"),
        Index("idx_extracted_contacts_email", "email"),
    )

    def __repr__(self) -> str:
        return f"<ExtractedContactRecord(id={self.contact_id}, name={self.name!r})>"
