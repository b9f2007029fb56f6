"""Query-variant models for LLM-backed query enhancement."""

from mediascout.models.base import (
    PromptKind,
    QueryVariantModel,
    VariantPrompt,
    VariantResponse,
    parse_numbered_list,
)
from mediascout.models.registry import get_variant_model

__all__ = [
    "PromptKind",
    "QueryVariantModel",
    "VariantPrompt",
    "VariantResponse",
    "get_variant_model",
    "parse_numbered_list",
]
