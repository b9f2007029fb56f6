"""LLM-backed AI query enhancer.

Asks the model for expanded, refined and localized variants of the
original query, then merges the parsed variants. Expansion and
refinement must succeed for the call to succeed; a failed localization
prompt only loses that country's or language's variants.
"""

import asyncio
import time

from mediascout.core.exceptions import EnhancementError
from mediascout.core.logging import get_logger, log_external_call
from mediascout.models.base import (
    PromptKind,
    QueryVariantModel,
    VariantPrompt,
)

from .expander import validate_query
from .types import QueryCriteria

logger = get_logger(__name__)

COUNTRY_CONTEXT: dict[str, str] = {
    "US": "Major publications include NYT, Washington Post, WSJ. Focus on national and regional media.",
    "GB": "Major publications include BBC, The Guardian, The Times. Focus on UK and European media.",
    "CA": "Major publications include CBC, The Globe and Mail, Toronto Star. Focus on Canadian media.",
    "AU": (
        "Major publications include ABC, The Australian, Sydney Morning Herald. "
        "Focus on Australian and Asia-Pacific media."
    ),
    "DE": (
        "Major publications include Der Spiegel, Die Zeit, Frankfurter Allgemeine. "
        "Focus on German and European media."
    ),
    "FR": "Major publications include Le Monde, Le Figaro, Libération. Focus on French and European media.",
}
DEFAULT_COUNTRY_CONTEXT = "Focus on local and national media outlets."

# Countries/languages given their own localization prompt
MAX_LOCALIZATIONS = 3


def context_info(criteria: QueryCriteria) -> str:
    """Render the criteria as prompt context lines."""
    labels = (
        ("categories", "Categories"),
        ("beats", "Beats"),
        ("countries", "Countries"),
        ("languages", "Languages"),
        ("topics", "Topics"),
        ("outlets", "Target outlets"),
    )
    parts = [
        f"{label}: {', '.join(criteria.values_for(dim))}"
        for dim, label in labels
        if criteria.values_for(dim)
    ]
    return "Additional context:\n" + "\n".join(parts) if parts else ""


def expansion_prompt(query: str, criteria: QueryCriteria) -> str:
    return f"""Given the base search query: "{query}"

{context_info(criteria)}

Generate 5-8 expanded search queries that would help find relevant media contacts. Each query should:
1. Include synonyms and related terms
2. Use different phrasing and structure
3. Incorporate relevant media/journalism terminology
4. Be optimized for search engines
5. Maintain the core intent of the original query

Format your response as a numbered list of queries only, no additional text."""


def refinement_prompt(query: str, criteria: QueryCriteria) -> str:
    return f"""Given the base search query: "{query}"

{context_info(criteria)}

Refine this query into 3-5 more precise versions that would yield higher quality results. Each refined query should:
1. Be more specific and targeted
2. Include professional terminology
3. Add relevant qualifiers and filters
4. Remove ambiguity

Format your response as a numbered list of refined queries only, no additional text."""


def localization_prompt(query: str, country: str, criteria: QueryCriteria) -> str:
    country_context = COUNTRY_CONTEXT.get(country.upper(), DEFAULT_COUNTRY_CONTEXT)
    return f"""Given the base search query: "{query}"

{context_info(criteria)}
Country context: {country_context}

Generate 3-5 localized versions of this query for {country}. Each query should:
1. Incorporate local media terminology
2. Use country-specific publications and outlets
3. Include local geographic references

Format your response as a numbered list of localized queries only, no additional text."""


def language_prompt(query: str, language: str, criteria: QueryCriteria) -> str:
    return f"""Given the base search query: "{query}"

{context_info(criteria)}
Target language: {language}

Generate 3-5 language-specific versions of this query. Each query should:
1. Include relevant language terminology
2. Target language-specific media outlets
3. Stay searchable in English and the target language where applicable

Format your response as a numbered list of language-specific queries only, no additional text."""
class LLMQueryEnhancer:
    """AI enhancer backed by a query-variant model.

    Example:
        ```python
        enhancer = LLMQueryEnhancer(get_variant_model())
        variants = await enhancer.enhance_query("climate reporters", criteria, 30000)
        ```
    """

    def __init__(self, model: QueryVariantModel):
        self.model = model

    async def enhance_query(
        self,
        original_query: str,
        criteria: QueryCriteria,
        timeout_ms: int,
    ) -> list[str]:
        """Generate query variants.

        Raises:
            EnhancementError: If the model call fails, times out, or
                returns no usable queries.
        """
        start = time.perf_counter()
        try:
            queries = await asyncio.wait_for(
                self._enhance(original_query, criteria), timeout=timeout_ms / 1000
            )
        except TimeoutError as e:
            self._log_call(start, success=False, error="timeout")
            raise EnhancementError(f"AI enhancement timed out after {timeout_ms}ms") from e
        except EnhancementError:
            self._log_call(start, success=False)
            raise
        except Exception as e:
            self._log_call(start, success=False, error=str(e))
            raise EnhancementError(f"AI enhancement failed: {e}") from e

        if not queries:
            self._log_call(start, success=False, error="empty response")
            raise EnhancementError("AI enhancement returned no usable queries")

        self._log_call(start, success=True, query_count=len(queries))
        return queries

    def build_prompts(
        self, query: str, criteria: QueryCriteria
    ) -> tuple[list[VariantPrompt], list[VariantPrompt]]:
        """Render the required and the localized prompts for a query."""
        required = [
            VariantPrompt(kind=PromptKind.EXPANSION, text=expansion_prompt(query, criteria)),
            VariantPrompt(kind=PromptKind.REFINEMENT, text=refinement_prompt(query, criteria)),
        ]
        localized = [
            VariantPrompt(
                kind=PromptKind.LOCALIZATION,
                target=country,
                text=localization_prompt(query, country, criteria),
            )
            for country in criteria.countries[:MAX_LOCALIZATIONS]
        ] + [
            VariantPrompt(
                kind=PromptKind.LANGUAGE,
                target=language,
                text=language_prompt(query, language, criteria),
            )
            for language in criteria.languages[:MAX_LOCALIZATIONS]
        ]
        return required, localized

    async def _enhance(self, query: str, criteria: QueryCriteria) -> list[str]:
        required, localized = self.build_prompts(query, criteria)

        responses = list(await asyncio.gather(*(self.model.suggest(p) for p in required)))
        results = await asyncio.gather(
            *(self.model.suggest(p) for p in localized), return_exceptions=True
        )
        for prompt, result in zip(localized, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning(
                    "Localization prompt failed",
                    kind=prompt.kind.value,
                    target=prompt.target,
                    error=str(result),
                )
                continue
            responses.append(result)

        queries: list[str] = []
        seen: set[str] = set()
        for response in responses:
            for text in response.queries:
                valid = validate_query(text)
                if valid is None or valid.lower() in seen:
                    continue
                seen.add(valid.lower())
                queries.append(valid)
        return queries

    def _log_call(self, start: float, *, success: bool, **kwargs) -> None:
        log_external_call(
            logger,
            service=self.model.model_name,
            operation="enhance_query",
            duration_ms=(time.perf_counter() - start) * 1000,
            success=success,
            **kwargs,
        )
