"""Types for extracted contact candidates and their scores."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from urllib.parse import urlparse
from uuid import UUID

from uuid_utils.compat import uuid7


class ExtractionMethod(str, Enum):
    """How a contact was extracted from its source."""

    AI_BASED = "ai_based"
    RULE_BASED = "rule_based"
    HYBRID = "hybrid"
    MANUAL = "manual"


class VerificationStatus(str, Enum):
    """Review state of an extracted contact."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    MANUAL_REVIEW = "manual_review"
    REJECTED = "rejected"


@dataclass
class SocialProfile:
    """A social media profile linked to a contact."""

    platform: str
    handle: str = ""
    url: str = ""
    verified: bool = False
    followers: int = 0
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "platform": self.platform,
            "handle": self.handle,
            "url": self.url,
            "verified": self.verified,
            "followers": self.followers,
            "description": self.description,
        }


@dataclass
class SourceMetadata:
    """Metadata of the content a contact was extracted from."""

    author: str | None = None
    domain: str | None = None
    word_count: int = 0


@dataclass
class SourceContent:
    """Parsed source content supplied by the extraction collaborator."""

    url: str
    title: str = ""
    content: str = ""
    metadata: SourceMetadata = field(default_factory=SourceMetadata)
    language: str | None = None

    @property
    def domain(self) -> str:
        """Source domain, from metadata or the URL host."""
        if self.metadata.domain:
            return self.metadata.domain.lower()
        return source_domain(self.url)


def source_domain(url: str) -> str:
    """Lowercased host of a URL without a leading ``www.``."""
    host = (urlparse(url).hostname or "").lower()
    return host.removeprefix("www.")


@dataclass
class ExtractedContact:
    """A contact candidate extracted from source content."""

    name: str
    source_url: str
    extraction_id: str = ""
    search_id: str = ""
    title: str | None = None
    bio: str | None = None
    email: str | None = None
    social_profiles: list[SocialProfile] = field(default_factory=list)

    # Scores, set once by the confidence scorer
    confidence_score: float = 0.0
    quality_score: float = 0.0
    relevance_score: float = 0.0

    extraction_method: ExtractionMethod = ExtractionMethod.AI_BASED
    verification_status: VerificationStatus | None = VerificationStatus.PENDING
    is_duplicate: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
    contact_id: UUID = field(default_factory=uuid7)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "contact_id": str(self.contact_id),
            "extraction_id": self.extraction_id,
            "search_id": self.search_id,
            "source_url": self.source_url,
            "name": self.name,
            "title": self.title,
            "bio": self.bio,
            "email": self.email,
            "social_profiles": [p.to_dict() for p in self.social_profiles],
            "confidence_score": self.confidence_score,
            "quality_score": self.quality_score,
            "relevance_score": self.relevance_score,
            "extraction_method": self.extraction_method.value,
            "verification_status": (
                self.verification_status.value if self.verification_status else None
            ),
            "is_duplicate": self.is_duplicate,
            "metadata": self.metadata,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class FactorBreakdown:
    """Detailed breakdown of a single scoring factor."""

    name: str
    raw_value: float  # 0.0 - 1.0
    weight: float
    weighted_value: float  # raw_value * weight
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "raw_value": self.raw_value,
            "weight": self.weight,
            "weighted_value": self.weighted_value,
            "description": self.description,
        }


@dataclass
class ConfidenceFactors:
    """Identity-plausibility sub-factors. ``None`` means not applicable."""

    name_confidence: float = 0.0
    email_confidence: float = 0.0
    title_confidence: float | None = None
    bio_confidence: float | None = None
    social_confidence: float | None = None
    overall_confidence: float = 0.0
    suspicious_name: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name_confidence": self.name_confidence,
            "email_confidence": self.email_confidence,
            "title_confidence": self.title_confidence,
            "bio_confidence": self.bio_confidence,
            "social_confidence": self.social_confidence,
            "overall_confidence": self.overall_confidence,
            "suspicious_name": self.suspicious_name,
        }


@dataclass
class QualityFactors:
    """Source and data-quality sub-factors."""

    source_credibility: float = 0.0
    content_freshness: float = 0.0
    contact_completeness: float = 0.0
    information_consistency: float = 1.0
    verification: float | None = None
    overall_quality: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source_credibility": self.source_credibility,
            "content_freshness": self.content_freshness,
            "contact_completeness": self.contact_completeness,
            "information_consistency": self.information_consistency,
            "verification": self.verification,
            "overall_quality": self.overall_quality,
        }


@dataclass
class ContactScoringResult:
    """Scores of one contact with an explainable breakdown. Not persisted."""

    contact_id: UUID
    confidence_score: float
    quality_score: float
    relevance_score: float
    confidence_factors: ConfidenceFactors
    quality_factors: QualityFactors
    factor_breakdown: list[FactorBreakdown] = field(default_factory=list)
    reasoning: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "contact_id": str(self.contact_id),
            "confidence_score": self.confidence_score,
            "quality_score": self.quality_score,
            "relevance_score": self.relevance_score,
            "confidence_factors": self.confidence_factors.to_dict(),
            "quality_factors": self.quality_factors.to_dict(),
            "factor_breakdown": [f.to_dict() for f in self.factor_breakdown],
            "reasoning": list(self.reasoning),
            "recommendations": list(self.recommendations),
        }
