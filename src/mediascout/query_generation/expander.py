"""Template expansion into literal query strings."""

import itertools
import re

from mediascout.core.logging import get_logger

from .types import QueryCriteria, QueryTemplate

logger = get_logger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{(\w+)\}")

# Singular placeholder -> criteria dimension (one value per query)
SINGULAR_PLACEHOLDERS: dict[str, str] = {
    "category": "categories",
    "beat": "beats",
    "country": "countries",
    "language": "languages",
    "topic": "topics",
    "outlet": "outlets",
}

# Plural placeholder -> criteria dimension (values joined with " OR ")
PLURAL_PLACEHOLDERS: dict[str, str] = {dim: dim for dim in SINGULAR_PLACEHOLDERS.values()}

MIN_QUERY_LENGTH = 3
MAX_QUERY_LENGTH = 1000


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace and trim."""
    return " ".join(text.split())


def validate_query(query: str) -> str | None:
    """Normalize a generated query, or return None if it is unusable.

    A usable query has at least 3 characters, at most 1000, and no
    unresolved placeholder braces.
    """
    text = normalize_whitespace(query)
    if len(text) < MIN_QUERY_LENGTH or len(text) > MAX_QUERY_LENGTH:
        return None
    if "{" in text or "}" in text:
        return None
    return text


class QueryTemplateExpander:
    """Substitutes criteria values into templates.

    Singular placeholders (``{country}``) expand to the cross-product of
    the requested values, taking at most ``cap`` values per dimension.
    Plural placeholders (``{countries}``) become one " OR "-joined list.
    ``{query}`` takes the original query and template ``variables`` are
    substituted by name.

    A template whose placeholder has no value to substitute yields no
    queries.
    """

    def __init__(self, cap: int = 5):
        self.cap = cap

    def placeholders(self, template: QueryTemplate) -> list[str]:
        """Distinct placeholders of a template, in order of first use."""
        return list(dict.fromkeys(PLACEHOLDER_PATTERN.findall(template.template)))

    def expand(
        self,
        template: QueryTemplate,
        criteria: QueryCriteria,
        original_query: str = "",
    ) -> list[str]:
        """Expand a template into literal queries.

        Args:
            template: Template to expand
            criteria: Values available for substitution
            original_query: Value for the ``{query}`` placeholder

        Returns:
            Distinct validated queries in deterministic order.
        """
        fixed: dict[str, str] = {}
        varying: list[tuple[str, list[str]]] = []

        for name in self.placeholders(template):
            if name == "query":
                if not original_query.strip():
                    return self._skip(template, name)
                fixed[name] = original_query.strip()
            elif name in template.variables:
                fixed[name] = str(template.variables[name])
            elif name in SINGULAR_PLACEHOLDERS:
                values = criteria.values_for(SINGULAR_PLACEHOLDERS[name])[: self.cap]
                if not values:
                    return self._skip(template, name)
                varying.append((name, values))
            elif name in PLURAL_PLACEHOLDERS:
                values = criteria.values_for(PLURAL_PLACEHOLDERS[name])[: self.cap]
                if not values:
                    return self._skip(template, name)
                fixed[name] = " OR ".join(values)
            else:
                return self._skip(template, name)

        names = [name for name, _ in varying]
        queries: list[str] = []
        seen: set[str] = set()

        for combination in itertools.product(*(values for _, values in varying)):
            substitutions = {**fixed, **dict(zip(names, combination, strict=True))}
            text = PLACEHOLDER_PATTERN.sub(
                lambda m: substitutions.get(m.group(1), m.group(0)), template.template
            )
            query = validate_query(text)
            if query is None or query.lower() in seen:
                continue
            seen.add(query.lower())
            queries.append(query)

        return queries

    def _skip(self, template: QueryTemplate, placeholder: str) -> list[str]:
        logger.debug(
            "Template skipped",
            template=template.name,
            missing_placeholder=placeholder,
        )
        return []
