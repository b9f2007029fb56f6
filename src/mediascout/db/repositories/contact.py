"""SQL-backed repository for extracted contacts."""

from uuid import UUID

from sqlalchemy import select

from mediascout.db.models.contact import ExtractedContactRecord
from mediascout.db.repositories.base import BaseRepository
from mediascout.extraction.types import (
    ExtractedContact,
    ExtractionMethod,
    SocialProfile,
    VerificationStatus,
)


def contact_from_row(row: ExtractedContactRecord) -> ExtractedContact:
    """Convert a contact row to the domain dataclass."""
    return ExtractedContact(
        contact_id=row.contact_id,
        extraction_id=row.extraction_id,
        search_id=row.search_id,
        source_url=row.source_url,
        name=row.name,
        title=row.title,
        bio=row.bio,
        email=row.email,
        social_profiles=[SocialProfile(**p) for p in row.social_profiles or []],
        confidence_score=row.confidence_score,
        quality_score=row.quality_score,
        relevance_score=row.relevance_score,
        extraction_method=ExtractionMethod(row.extraction_method),
        verification_status=VerificationStatus(row.verification_status),
        is_duplicate=row.is_duplicate,
        metadata=dict(row.contact_metadata or {}),
        created_at=row.created_at,
    )


class ExtractedContactRepository(BaseRepository[ExtractedContactRecord, UUID]):
    """Repository for scored contacts."""

    model = ExtractedContactRecord

    async def create(self, contact: ExtractedContact) -> ExtractedContact:
        """Insert a scored contact."""
        row = ExtractedContactRecord(
            contact_id=contact.contact_id,
            extraction_id=contact.extraction_id,
            search_id=contact.search_id,
            source_url=contact.source_url,
            name=contact.name,
            title=contact.title,
            bio=contact.bio,
            email=contact.email,
            social_profiles=[p.to_dict() for p in contact.social_profiles],
            confidence_score=contact.confidence_score,
            quality_score=contact.quality_score,
            relevance_score=contact.relevance_score,
            extraction_method=contact.extraction_method.value,
            verification_status=(contact.verification_status or VerificationStatus.PENDING).value,
            is_duplicate=contact.is_duplicate,
            contact_metadata=dict(contact.metadata),
            created_at=contact.created_at,
        )
        row = await self.add(row)
        return contact_from_row(row)

    async def get_for_search(
        self,
        search_id: str,
        *,
        include_duplicates: bool = False,
        min_confidence: float | None = None,
    ) -> list[ExtractedContact]:
        """Get contacts of a search, highest confidence first.

        Args:
            search_id: Search the contacts belong to
            include_duplicates: Whether to include flagged duplicates
            min_confidence: Optional confidence floor
        """
        stmt = select(ExtractedContactRecord).where(ExtractedContactRecord.search_id == search_id)
        if not include_duplicates:
            stmt = stmt.where(ExtractedContactRecord.is_duplicate.is_(False))
        if min_confidence is not None:
            stmt = stmt.where(ExtractedContactRecord.confidence_score >= min_confidence)
        stmt = stmt.order_by(
            ExtractedContactRecord.confidence_score.desc(), ExtractedContactRecord.name
        )
        result = await self.db.execute(stmt)
        return [contact_from_row(row) for row in result.scalars().all()]
