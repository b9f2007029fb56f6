"""Factory for the configured query-variant model."""

from mediascout.config.settings import get_settings
from mediascout.models.anthropic_adapter import AnthropicVariantModel
from mediascout.models.base import QueryVariantModel
from mediascout.utils.exceptions import ConfigurationError


def get_variant_model(model_name: str | None = None) -> QueryVariantModel:
    """Build the variant model used by the AI enhancer.

    Args:
        model_name: Model to use. If None, uses the default from settings.

    Raises:
        ConfigurationError: If the Anthropic API key is not configured.
    """
    settings = get_settings()

    if settings.anthropic_api_key is None:
        raise ConfigurationError("API key not configured for provider: anthropic")

    return AnthropicVariantModel(
        api_key=settings.anthropic_api_key,
        model=model_name or settings.anthropic_model,
    )
