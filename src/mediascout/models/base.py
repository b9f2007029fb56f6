"""Query-variant model contract.

A variant model answers one prompt with a list of candidate search
queries. Adapters own the transport (client, sampling parameters) and the
parsing of the model's numbered-list reply, so callers only see queries.
"""

import re
from abc import ABC, abstractmethod
from enum import Enum

from pydantic import BaseModel, Field


class PromptKind(str, Enum):
    """Family of variant prompt sent to the model."""

    EXPANSION = "expansion"
    REFINEMENT = "refinement"
    LOCALIZATION = "localization"  # target is a country code
    LANGUAGE = "language"  # target is a language


class VariantPrompt(BaseModel):
    """One rendered prompt asking for query variants."""

    kind: PromptKind
    text: str
    target: str | None = None


class VariantResponse(BaseModel):
    """Queries parsed from one model reply."""

    kind: PromptKind
    queries: list[str] = Field(default_factory=list)
    target: str | None = None
    model: str
    input_tokens: int = 0
    output_tokens: int = 0


_NUMBERED_LINE = re.compile(r"^\d+[.)]\s*(.+)$")
_QUOTES = "\"'“”‘’"


def parse_numbered_list(content: str) -> list[str]:
    """Extract items from a numbered list, stripping surrounding quotes.

    Lines that do not start with a number are ignored.
    """
    queries: list[str] = []
    for line in content.splitlines():
        match = _NUMBERED_LINE.match(line.strip())
        if not match:
            continue
        query = match.group(1).strip().strip(_QUOTES).strip()
        if query:
            queries.append(query)
    return queries


class QueryVariantModel(ABC):
    """Model that turns a variant prompt into candidate queries."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Name of the backing model, used in external-call logs."""
        ...

    @abstractmethod
    async def suggest(self, prompt: VariantPrompt) -> VariantResponse:
        """Ask the model for query variants.

        Raises:
            Exception: Transport or provider errors propagate unchanged;
                the enhancer decides which prompts may fail.
        """
        ...
