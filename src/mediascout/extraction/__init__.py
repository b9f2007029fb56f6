"""Contact extraction support: contact types, scoring and duplicate flagging."""

from .confidence_scorer import (
    HIGH_CONFIDENCE_MARKER,
    SUSPICIOUS_NAME_MARKER,
    ConfidenceScorer,
    ContactScorerConfig,
    create_confidence_scorer,
    is_suspicious_name,
)
from .duplicates import flag_duplicates, normalize_name
from .protocols import SourceContentProvider
from .types import (
    ConfidenceFactors,
    ContactScoringResult,
    ExtractedContact,
    ExtractionMethod,
    FactorBreakdown,
    QualityFactors,
    SocialProfile,
    SourceContent,
    SourceMetadata,
    VerificationStatus,
)

__all__ = [
    "HIGH_CONFIDENCE_MARKER",
    "SUSPICIOUS_NAME_MARKER",
    "ConfidenceFactors",
    "ConfidenceScorer",
    "ContactScorerConfig",
    "ContactScoringResult",
    "ExtractedContact",
    "ExtractionMethod",
    "FactorBreakdown",
    "QualityFactors",
    "SocialProfile",
    "SourceContent",
    "SourceContentProvider",
    "SourceMetadata",
    "VerificationStatus",
    "create_confidence_scorer",
    "flag_duplicates",
    "is_suspicious_name",
    "normalize_name",
]
