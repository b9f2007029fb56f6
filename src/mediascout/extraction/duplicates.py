"""In-run duplicate flagging of extracted contacts."""

import re
import unicodedata

from mediascout.core.logging import get_logger

from .types import ExtractedContact, source_domain

logger = get_logger(__name__)

_NON_LETTERS = re.compile(r"[^a-z ]+")


def normalize_name(name: str) -> str:
    """Lowercase, strip accents and punctuation, collapse whitespace."""
    decomposed = unicodedata.normalize("NFKD", name)
    ascii_name = decomposed.encode("ascii", "ignore").decode("ascii").lower()
    return " ".join(_NON_LETTERS.sub(" ", ascii_name).split())


def flag_duplicates(
    contacts: list[ExtractedContact],
    earlier: list[ExtractedContact] | None = None,
) -> int:
    """Mark contacts that repeat an earlier contact of the same run.

    A contact is a duplicate when its email matches an earlier contact's
    email, or its normalized name matches an earlier contact from the same
    source domain. The first occurrence is never flagged.

    Args:
        contacts: Contacts in extraction order; flagged in place
        earlier: Contacts already accepted earlier in the run

    Returns:
        Number of contacts newly flagged.
    """
    seen_emails: set[str] = set()
    seen_names: set[tuple[str, str]] = set()

    def remember(contact: ExtractedContact) -> None:
        if contact.email:
            seen_emails.add(contact.email.strip().lower())
        name = normalize_name(contact.name)
        if name:
            seen_names.add((name, source_domain(contact.source_url)))

    for contact in earlier or []:
        remember(contact)

    flagged = 0
    for contact in contacts:
        email = contact.email.strip().lower() if contact.email else ""
        key = (normalize_name(contact.name), source_domain(contact.source_url))
        if (email and email in seen_emails) or (key[0] and key in seen_names):
            if not contact.is_duplicate:
                contact.is_duplicate = True
                flagged += 1
            continue
        remember(contact)

    if flagged:
        logger.debug("Duplicate contacts flagged", count=flagged, total=len(contacts))
    return flagged
