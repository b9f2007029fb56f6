"""Deduplication and greedy diversity selection of candidate queries."""

from itertools import combinations

from .types import QueryCandidate

# Absorbs float error when comparing similarity against the threshold
SIMILARITY_TOLERANCE = 1e-9


def normalize_query(text: str) -> str:
    """Lowercase and collapse whitespace; the dedup identity of a query."""
    return " ".join(text.lower().split())


def tokenize(text: str) -> set[str]:
    """Lowercased whitespace-separated word set."""
    return set(text.lower().split())


def jaccard_similarity(a: str, b: str) -> float:
    """Token-set Jaccard similarity of two queries (0.0 for two empty sets)."""
    tokens_a, tokens_b = tokenize(a), tokenize(b)
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


def deduplicate(candidates: list[QueryCandidate]) -> tuple[list[QueryCandidate], int]:
    """Remove exact duplicates after normalization.

    Candidates are first put in merge order (source priority desc,
    insertion index asc) so the surviving copy does not depend on the
    order results arrived in.

    Returns:
        Tuple of (unique candidates in merge order, number removed).
    """
    seen: set[str] = set()
    unique: list[QueryCandidate] = []
    for candidate in sorted(candidates, key=lambda c: c.merge_key):
        key = normalize_query(candidate.query_text)
        if key in seen:
            continue
        seen.add(key)
        unique.append(candidate)
    return unique, len(candidates) - len(unique)


def selection_order(candidates: list[QueryCandidate]) -> list[QueryCandidate]:
    """Sort by overall score desc, then source priority desc, then insertion index."""
    return sorted(
        candidates,
        key=lambda c: (-c.scores.overall, -c.source_priority, c.insertion_index),
    )


def select_diverse(
    candidates: list[QueryCandidate],
    max_queries: int,
    diversity_threshold: float,
) -> tuple[list[QueryCandidate], int]:
    """Greedily pick a diverse subset in score order.

    A candidate is accepted only if its similarity to every accepted query
    is at most ``1 - diversity_threshold``. Each accepted candidate's
    ``scores.diversity`` is set to one minus its highest similarity to the
    queries accepted before it.

    Returns:
        Tuple of (accepted candidates in acceptance order, number rejected
        for similarity).
    """
    max_similarity = 1.0 - diversity_threshold + SIMILARITY_TOLERANCE
    accepted: list[QueryCandidate] = []
    rejected = 0

    for candidate in selection_order(candidates):
        if len(accepted) >= max_queries:
            break
        similarities = [jaccard_similarity(candidate.query_text, a.query_text) for a in accepted]
        closest = max(similarities, default=0.0)
        if closest > max_similarity:
            rejected += 1
            continue
        candidate.scores.diversity = 1.0 - closest
        accepted.append(candidate)

    return accepted, rejected


def batch_diversity(queries: list[str]) -> float:
    """One minus the mean pairwise similarity of a batch (1.0 below two queries)."""
    pairs = list(combinations(queries, 2))
    if not pairs:
        return 1.0
    return 1.0 - sum(jaccard_similarity(a, b) for a, b in pairs) / len(pairs)
