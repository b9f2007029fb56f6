"""Confidence, quality and relevance scoring of extracted contacts.

Each axis is a [0, 1] score built from deterministic sub-checks. The
checks that pass or fail become the ``reasoning`` and ``recommendations``
of the result, so every score can be explained without free-text
generation.
"""

import math
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field, model_validator

from mediascout.core.logging import get_logger
from mediascout.observability.metrics import observe_contact_score
from mediascout.query_generation.types import QueryCriteria

from .types import (
    ConfidenceFactors,
    ContactScoringResult,
    ExtractedContact,
    FactorBreakdown,
    QualityFactors,
    SocialProfile,
    SourceContent,
    VerificationStatus,
    source_domain,
)

logger = get_logger(__name__)


class ContactScorerConfig(BaseModel):
    """Configuration for contact scoring."""

    # Confidence factor weights (must sum to 1.0)
    name_weight: float = Field(default=0.30, ge=0.0, le=1.0)
    email_weight: float = Field(default=0.30, ge=0.0, le=1.0)
    title_weight: float = Field(default=0.20, ge=0.0, le=1.0)
    bio_weight: float = Field(default=0.10, ge=0.0, le=1.0)
    social_weight: float = Field(default=0.10, ge=0.0, le=1.0)

    # Quality factor weights (must sum to 1.0); verification is added on top when set
    credibility_weight: float = Field(default=0.30, ge=0.0, le=1.0)
    freshness_weight: float = Field(default=0.20, ge=0.0, le=1.0)
    completeness_weight: float = Field(default=0.30, ge=0.0, le=1.0)
    consistency_weight: float = Field(default=0.20, ge=0.0, le=1.0)
    verification_weight: float = Field(default=0.15, ge=0.0, le=1.0)

    # Confidence never exceeds this when the name looks fake
    suspicious_name_ceiling: float = Field(default=0.4, ge=0.0, le=1.0)

    # Distribution thresholds
    high_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    medium_threshold: float = Field(default=0.6, ge=0.0, le=1.0)

    # Relevance
    relevance_baseline: float = Field(default=0.5, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_weights(self) -> "ContactScorerConfig":
        for group, weights in (
            ("confidence", self.get_weights()),
            ("quality", self.get_quality_weights()),
        ):
            total = sum(weights.values())
            if not math.isclose(total, 1.0, abs_tol=1e-6):
                raise ValueError(f"{group} weights must sum to 1.0, got {total:.4f}")
        return self

    def get_weights(self) -> dict[str, float]:
        """Get confidence factor weights as a dictionary."""
        return {
            "name": self.name_weight,
            "email": self.email_weight,
            "title": self.title_weight,
            "bio": self.bio_weight,
            "social": self.social_weight,
        }

    def get_quality_weights(self) -> dict[str, float]:
        """Get quality factor weights (without verification) as a dictionary."""
        return {
            "source_credibility": self.credibility_weight,
            "content_freshness": self.freshness_weight,
            "contact_completeness": self.completeness_weight,
            "information_consistency": self.consistency_weight,
        }


# Vocabulary
PROFESSIONAL_TITLES = (
    "editor", "reporter", "journalist", "author", "writer", "correspondent",
    "analyst", "columnist", "producer", "anchor", "host", "contributor",
    "researcher", "critic", "photographer", "presenter", "director", "manager",
)
SENIORITY_TERMS = ("senior", "lead", "chief", "principal", "executive", "managing", "head")
JOURNALIST_TERMS = (
    "journalist", "reporter", "editor", "author", "writer", "correspondent", "contributor",
    "columnist",
)
GENERIC_MAILBOXES = frozenset({
    "info", "contact", "hello", "news", "newsroom", "editor", "editors", "press",
    "support", "admin", "team", "sales", "marketing", "tips",
})
DISPOSABLE_DOMAIN_MARKERS = (
    "10minutemail", "tempmail", "mailinator", "guerrillamail", "yopmail",
    "throwaway", "spam", "fake", "test",
)
CREDIBLE_DOMAIN_PATTERNS = tuple(
    re.compile(p)
    for p in (
        r"(^|\.)nytimes\.com$",
        r"(^|\.)washingtonpost\.com$",
        r"(^|\.)wsj\.com$",
        r"(^|\.)cnn\.com$",
        r"(^|\.)bbc\.(co\.uk|com)$",
        r"(^|\.)reuters\.com$",
        r"(^|\.)ap\.org$",
        r"(^|\.)npr\.org$",
        r"(^|\.)pbs\.org$",
        r"(^|\.)theguardian\.com$",
        r"(^|\.)ft\.com$",
        r"(^|\.)bloomberg\.(com|net)$",
        r"\.edu$",
        r"\.ac\.[a-z]{2}$",
    )
)
CREDIBLE_PLATFORMS = frozenset({"linkedin", "twitter", "x", "instagram", "facebook", "mastodon"})
BIO_BACKGROUND_TERMS = ("award", "published", "education", "experience", "background")
BIO_CONTACT_TERMS = ("email", "twitter", "linkedin", "contact", "reach")
BIO_PROFESSIONAL_TERMS = ("specializes", "covers", "reports", "writes", "focuses", "expertise")
MEDIA_OUTLET_PATTERN = re.compile(
    r"\b(new york times|washington post|wall street journal|cnn|bbc|reuters"
    r"|associated press|npr|pbs|guardian|financial times|bloomberg)\b",
    re.IGNORECASE,
)

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
FIRST_LAST_LOCAL = re.compile(r"^[a-z]+[._-][a-z]+$")
TITLE_CONTAMINATION = (
    re.compile(r"^(mr|mrs|ms|dr|prof|sir|madam)\.?\s+", re.IGNORECASE),
    re.compile(r",?\s(jr|sr|ii|iii|iv)\.?$", re.IGNORECASE),
    re.compile(r"\s(editor|reporter|journalist|author)$", re.IGNORECASE),
)
SUSPICIOUS_NAME_PATTERNS = (
    re.compile(r"(.)\1{3,}", re.IGNORECASE),  # Repeated character runs
    re.compile(r"\b(test|fake|sample|dummy|example|asdf|qwerty)(?![a-z])", re.IGNORECASE),
    re.compile(r"^[\d\s]+$"),  # Pure digits
    re.compile(r"^[\W_]+$"),  # Only symbols
)

VERIFICATION_SCORES: dict[VerificationStatus, float] = {
    VerificationStatus.CONFIRMED: 1.0,
    VerificationStatus.PENDING: 0.7,
    VerificationStatus.MANUAL_REVIEW: 0.4,
    VerificationStatus.REJECTED: 0.1,
}

HIGH_CONFIDENCE_MARKER = "High confidence contact with complete information"
SUSPICIOUS_NAME_MARKER = "Name contains suspicious patterns"


def _clamp(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def is_suspicious_name(name: str) -> bool:
    """Whether a name looks like placeholder or junk data."""
    text = name.strip()
    return not text or any(p.search(text) for p in SUSPICIOUS_NAME_PATTERNS)


def is_disposable_domain(domain: str) -> bool:
    """Whether an email domain belongs to a throwaway or test mailbox service."""
    return any(marker in domain for marker in DISPOSABLE_DOMAIN_MARKERS)


def is_credible_domain(domain: str) -> bool:
    """Whether an email domain is on the credible allowlist."""
    return any(p.search(domain) for p in CREDIBLE_DOMAIN_PATTERNS)


def domains_match(email_domain: str, outlet_domain: str) -> bool:
    """Whether two domains are equal or one is a subdomain of the other."""
    a, b = email_domain.lower().removeprefix("www."), outlet_domain.lower().removeprefix("www.")
    return bool(a and b) and (a == b or a.endswith("." + b) or b.endswith("." + a))


@dataclass
class _Notes:
    """Reasoning and recommendations collected while scoring."""

    reasoning: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def reason(self, text: str) -> None:
        self.reasoning.append(text)

    def recommend(self, text: str) -> None:
        self.recommendations.append(text)


@dataclass
class _Statistics:
    total: int = 0
    confidence_sum: float = 0.0
    quality_sum: float = 0.0
    distribution: Counter = field(default_factory=Counter)


class ConfidenceScorer:
    """Scores extracted contacts along three independent axes.

    1. Confidence: identity plausibility from name, email, title, bio and
       social profiles. Title, bio and social count only when present.
       A suspicious name caps confidence at ``suspicious_name_ceiling``.
    2. Quality: source credibility, content freshness, contact
       completeness, information consistency and verification status.
    3. Relevance: match between the contact, its source and the search
       criteria, from a baseline.

    Example:
        ```python
        scorer = ConfidenceScorer()
        result = scorer.score_contact(contact, content=content, criteria=criteria)
        scorer.apply_scores(contact, result)
        ```
    """

    def __init__(self, config: ContactScorerConfig | None = None):
        self.config = config or ContactScorerConfig()
        self._stats = _Statistics()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def score_contact(
        self,
        contact: ExtractedContact,
        *,
        content: SourceContent | None = None,
        criteria: QueryCriteria | None = None,
        source_credibility: float = 0.5,
        content_freshness: float = 0.5,
        consistency: float = 1.0,
    ) -> ContactScoringResult:
        """Score a contact on all three axes.

        Args:
            contact: Contact to score
            content: Source content the contact was extracted from
            criteria: Search criteria for relevance
            source_credibility: Caller-supplied credibility, 0.0 - 1.0
            content_freshness: Caller-supplied freshness, 0.0 - 1.0
            consistency: Caller-supplied information consistency, 0.0 - 1.0

        Returns:
            ContactScoringResult with scores, factors and explanations.
        """
        notes = _Notes()
        outlet_domain = content.domain if content else source_domain(contact.source_url)

        confidence_factors, breakdown = self._confidence(contact, outlet_domain, notes)
        quality_factors = self._quality(
            contact, source_credibility, content_freshness, consistency, notes
        )
        relevance = self.calculate_relevance(contact, content, criteria)

        result = ContactScoringResult(
            contact_id=contact.contact_id,
            confidence_score=confidence_factors.overall_confidence,
            quality_score=quality_factors.overall_quality,
            relevance_score=relevance,
            confidence_factors=confidence_factors,
            quality_factors=quality_factors,
            factor_breakdown=breakdown,
            reasoning=notes.reasoning,
            recommendations=notes.recommendations,
        )
        self._record(result)

        logger.debug(
            "Contact scored",
            contact_id=str(contact.contact_id),
            confidence=result.confidence_score,
            quality=result.quality_score,
            relevance=result.relevance_score,
            suspicious_name=confidence_factors.suspicious_name,
        )
        return result

    def calculate_confidence(
        self, contact: ExtractedContact, outlet_domain: str | None = None
    ) -> ConfidenceFactors:
        """Calculate only the confidence factors of a contact."""
        domain = outlet_domain if outlet_domain is not None else source_domain(contact.source_url)
        factors, _ = self._confidence(contact, domain, _Notes())
        return factors

    def calculate_quality(
        self,
        contact: ExtractedContact,
        source_credibility: float = 0.5,
        content_freshness: float = 0.5,
        consistency: float = 1.0,
    ) -> QualityFactors:
        """Calculate only the quality factors of a contact."""
        return self._quality(contact, source_credibility, content_freshness, consistency, _Notes())

    def calculate_relevance(
        self,
        contact: ExtractedContact,
        content: SourceContent | None = None,
        criteria: QueryCriteria | None = None,
    ) -> float:
        """Calculate how well a contact matches the search intent.

        Starts at the baseline and adds:
        - +0.20 when the source byline names the contact
        - +0.15 when the source domain matches a requested outlet
        - +0.10 when the bio mentions a requested beat or topic
        - +0.05 when the content language is a requested language
        - +0.10 when the title is a journalist title
        """
        score = self.config.relevance_baseline
        name = contact.name.strip().lower()

        if content is not None and name:
            author = (content.metadata.author or "").strip().lower()
            if author == name or f"by {name}" in content.content.lower():
                score += 0.20

        if criteria is not None:
            domain = (content.domain if content else source_domain(contact.source_url)).lower()
            squashed_domain = domain.replace("-", "")
            if domain and any(
                outlet.lower().replace(" ", "") in squashed_domain for outlet in criteria.outlets
            ):
                score += 0.15

            bio = (contact.bio or "").lower()
            if bio and any(term.lower() in bio for term in criteria.beats + criteria.topics):
                score += 0.10

            if content is not None and content.language and criteria.languages:
                if content.language.lower() in {lang.lower() for lang in criteria.languages}:
                    score += 0.05

        title = (contact.title or "").lower()
        if any(term in title for term in JOURNALIST_TERMS):
            score += 0.10

        return round(min(score, 1.0), 4)

    def apply_scores(self, contact: ExtractedContact, result: ContactScoringResult) -> None:
        """Copy a scoring result onto its contact."""
        contact.confidence_score = result.confidence_score
        contact.quality_score = result.quality_score
        contact.relevance_score = result.relevance_score
        contact.metadata["confidence_factors"] = result.confidence_factors.to_dict()
        contact.metadata["quality_factors"] = result.quality_factors.to_dict()

    def get_scoring_statistics(self) -> dict[str, Any]:
        """Get running totals across every contact scored so far."""
        total = self._stats.total
        return {
            "total_scores": total,
            "average_confidence": self._stats.confidence_sum / total if total else 0.0,
            "average_quality": self._stats.quality_sum / total if total else 0.0,
            "distribution": {
                "high": self._stats.distribution["high"],
                "medium": self._stats.distribution["medium"],
                "low": self._stats.distribution["low"],
            },
            "factor_weights": {
                "confidence": self.config.get_weights(),
                "quality": {
                    **self.config.get_quality_weights(),
                    "verification": self.config.verification_weight,
                },
            },
        }

    # ------------------------------------------------------------------
    # Confidence
    # ------------------------------------------------------------------

    def _confidence(
        self, contact: ExtractedContact, outlet_domain: str, notes: _Notes
    ) -> tuple[ConfidenceFactors, list[FactorBreakdown]]:
        weights = self.config.get_weights()
        raw: dict[str, float | None] = {
            "name": self._name_confidence(contact.name, notes),
            "email": self._email_confidence(contact.email, contact.name, outlet_domain, notes),
            "title": self._title_confidence(contact.title, notes),
            "bio": self._bio_confidence(contact.bio, notes),
            "social": self._social_confidence(contact.social_profiles, notes),
        }

        applicable = {k: v for k, v in raw.items() if v is not None}
        total_weight = sum(weights[k] for k in applicable)
        breakdown = [
            FactorBreakdown(
                name=k,
                raw_value=v,
                weight=weights[k] / total_weight if total_weight else 0.0,
                weighted_value=v * weights[k] / total_weight if total_weight else 0.0,
            )
            for k, v in applicable.items()
        ]
        overall = sum(f.weighted_value for f in breakdown)

        suspicious = is_suspicious_name(contact.name)
        if suspicious and overall > self.config.suspicious_name_ceiling:
            overall = self.config.suspicious_name_ceiling
            notes.reason("Confidence capped because suspicious patterns were detected")

        overall = round(_clamp(overall), 4)
        if overall >= self.config.high_threshold:
            notes.reason(HIGH_CONFIDENCE_MARKER)
        elif overall >= self.config.medium_threshold:
            notes.reason("Medium confidence contact with some verification")
        else:
            notes.reason("Lower confidence contact, needs additional verification")

        factors = ConfidenceFactors(
            name_confidence=raw["name"] or 0.0,
            email_confidence=raw["email"] or 0.0,
            title_confidence=raw["title"],
            bio_confidence=raw["bio"],
            social_confidence=raw["social"],
            overall_confidence=overall,
            suspicious_name=suspicious,
        )
        return factors, breakdown

    def _name_confidence(self, name: str, notes: _Notes) -> float:
        text = " ".join(name.split())
        if not text:
            notes.reason("Missing name")
            notes.recommend("Contact should have a valid name")
            return 0.0

        parts = text.split(" ")
        letters = [c for c in text if c.isalpha()]
        score = 0.0

        if len(parts) >= 2:
            score += 0.5
            notes.reason("Complete name provided")
        else:
            score += 0.25
            notes.reason("Single name provided")
            notes.recommend("Consider finding full name")

        all_caps = len(letters) > 1 and all(c.isupper() for c in letters)
        all_lower = bool(letters) and all(c.islower() for c in letters)
        has_digits = any(c.isdigit() for c in text)
        if not (all_caps or all_lower or has_digits) and 3 <= len(text) <= 50:
            score += 0.3
            notes.reason("Name format appears realistic")
        else:
            notes.reason("Name format seems unusual")
            notes.recommend("Verify name authenticity")

        if 5 <= len(text) <= 30:
            score += 0.2

        if all_caps:
            score -= 0.2
            notes.reason("Name is written in all caps")
        if has_digits:
            score -= 0.2
            notes.reason("Name contains digits")
        if len(parts) == 1 and len(text) <= 2:
            score -= 0.2
            notes.reason("Name is a single short token")
        if any(p.search(text) for p in TITLE_CONTAMINATION):
            score -= 0.2
            notes.reason("Name may contain title information")
            notes.recommend("Separate name from title")
        if is_suspicious_name(text):
            score -= 0.3
            notes.reason(SUSPICIOUS_NAME_MARKER)
            notes.recommend("Review name for authenticity")

        return round(_clamp(score), 4)

    def _email_confidence(
        self, email: str | None, name: str, outlet_domain: str, notes: _Notes
    ) -> float:
        if not email:
            notes.reason("No email provided")
            notes.recommend("Add email address if available")
            return 0.0

        email = email.strip().lower()
        if not EMAIL_PATTERN.match(email):
            notes.reason("Invalid email format")
            notes.recommend("Correct the email address")
            return 0.0

        local, _, domain = email.partition("@")
        score = 0.3
        notes.reason("Valid email format")

        if FIRST_LAST_LOCAL.match(local):
            score += 0.3
            notes.reason("Professional email format")
        elif local in GENERIC_MAILBOXES:
            score += 0.05
            notes.reason("Generic mailbox address")
            notes.recommend("Look for a personal email address")
        elif local.isalpha() and len(local) >= 3:
            score += 0.15

        if is_disposable_domain(domain):
            score -= 0.5
            notes.reason("Email domain is disposable or untrustworthy")
            notes.recommend("Verify email domain authenticity")
        elif domains_match(domain, outlet_domain):
            score += 0.3
            notes.reason("Email domain matches the source outlet")
        elif is_credible_domain(domain):
            score += 0.3
            notes.reason("Email domain appears credible")

        name_tokens = [t for t in re.split(r"[^a-z]+", name.lower()) if len(t) >= 2]
        if name_tokens and any(t in local for t in name_tokens):
            score += 0.1
            notes.reason("Email matches contact name")

        return round(_clamp(score), 4)

    def _title_confidence(self, title: str | None, notes: _Notes) -> float | None:
        if not title or not title.strip():
            notes.recommend("Add professional title if available")
            return None

        text = title.strip().lower()
        score = 0.0
        matched = [t for t in PROFESSIONAL_TITLES if t in text]
        if matched:
            score += 0.6
            notes.reason(f"Professional title: {', '.join(matched)}")
        else:
            notes.reason("Title is not a recognized professional title")

        if any(t in text for t in SENIORITY_TERMS):
            score += 0.2
            notes.reason("Senior-level position indicated")

        if 5 <= len(text) <= 60:
            score += 0.2
        elif len(text) > 60:
            notes.reason("Title is unusually long")
            notes.recommend("Verify title accuracy")

        return round(_clamp(score), 4)

    def _bio_confidence(self, bio: str | None, notes: _Notes) -> float | None:
        if not bio or not bio.strip():
            return None

        text = bio.strip()
        lower = text.lower()
        score = 0.0

        if 50 <= len(text) <= 300:
            score += 0.3
            notes.reason("Bio length is appropriate")
        elif len(text) < 30:
            notes.reason("Bio is very short")
            notes.recommend("Expand bio information")
        elif len(text) > 500:
            notes.reason("Bio is unusually long")
        else:
            score += 0.15

        background = [t for t in BIO_BACKGROUND_TERMS if t in lower]
        if len(background) >= 2:
            score += 0.2
            notes.reason("Bio contains professional background information")
        elif background:
            score += 0.1

        if any(t in lower for t in BIO_CONTACT_TERMS):
            score += 0.1

        outlets = sorted({m.lower() for m in MEDIA_OUTLET_PATTERN.findall(text)})
        if outlets:
            score += 0.2
            notes.reason(f"Bio mentions media outlets: {', '.join(outlets)}")

        if sum(1 for t in BIO_PROFESSIONAL_TERMS if t in lower) >= 1:
            score += 0.2

        return round(_clamp(score), 4)

    def _social_confidence(self, profiles: list[SocialProfile], notes: _Notes) -> float | None:
        if not profiles:
            return None

        score = 0.2 if len(profiles) >= 2 else 0.1
        credible = [p for p in profiles if p.platform.lower() in CREDIBLE_PLATFORMS]
        if len(credible) >= 2:
            score += 0.3
            notes.reason("Multiple credible platform profiles")
        elif credible:
            score += 0.15

        verified = [p for p in profiles if p.verified]
        if verified:
            score += 0.2
            notes.reason(f"Verified profiles: {len(verified)}")

        followers = sum(p.followers for p in profiles)
        if followers > 10000:
            score += 0.1
        elif followers > 1000:
            score += 0.05

        if all(p.handle and p.url and p.description for p in profiles):
            score += 0.1

        return round(_clamp(score), 4)

    # ------------------------------------------------------------------
    # Quality
    # ------------------------------------------------------------------

    def _quality(
        self,
        contact: ExtractedContact,
        source_credibility: float,
        content_freshness: float,
        consistency: float,
        notes: _Notes,
    ) -> QualityFactors:
        credibility = _clamp(source_credibility)
        freshness = _clamp(content_freshness)
        consistency = _clamp(consistency)

        populated = [
            bool(contact.email and contact.email.strip()),
            bool(contact.title and contact.title.strip()),
            bool(contact.bio and contact.bio.strip()),
            bool(contact.social_profiles),
        ]
        completeness = sum(populated) / len(populated)

        if credibility < self.config.medium_threshold:
            notes.reason("Source credibility needs verification")
        if freshness < 0.5:
            notes.reason("Content may be outdated")
        if completeness < self.config.medium_threshold:
            notes.reason("Contact information is incomplete")
            notes.recommend("Add missing contact details")
        if consistency < self.config.medium_threshold:
            notes.reason("Information consistency issues detected")
            notes.recommend("Review and reconcile conflicting information")

        weighted = {
            "source_credibility": credibility,
            "content_freshness": freshness,
            "contact_completeness": completeness,
            "information_consistency": consistency,
        }
        weights = dict(self.config.get_quality_weights())

        verification = None
        if contact.verification_status is not None:
            verification = VERIFICATION_SCORES[contact.verification_status]
            weighted["verification"] = verification
            weights["verification"] = self.config.verification_weight
            if contact.verification_status == VerificationStatus.REJECTED:
                notes.reason("Contact has been rejected")
            elif contact.verification_status == VerificationStatus.MANUAL_REVIEW:
                notes.recommend("Review contact manually")

        total_weight = sum(weights.values())
        overall = sum(weighted[k] * weights[k] for k in weighted) / total_weight

        return QualityFactors(
            source_credibility=credibility,
            content_freshness=freshness,
            contact_completeness=completeness,
            information_consistency=consistency,
            verification=verification,
            overall_quality=round(_clamp(overall), 4),
        )

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def _record(self, result: ContactScoringResult) -> None:
        self._stats.total += 1
        self._stats.confidence_sum += result.confidence_score
        self._stats.quality_sum += result.quality_score
        if result.confidence_score >= self.config.high_threshold:
            self._stats.distribution["high"] += 1
        elif result.confidence_score >= self.config.medium_threshold:
            self._stats.distribution["medium"] += 1
        else:
            self._stats.distribution["low"] += 1

        observe_contact_score("confidence", result.confidence_score)
        observe_contact_score("quality", result.quality_score)
        observe_contact_score("relevance", result.relevance_score)


def create_confidence_scorer(config: ContactScorerConfig | None = None) -> ConfidenceScorer:
    """Factory function to create a ConfidenceScorer."""
    return ConfidenceScorer(config=config)
