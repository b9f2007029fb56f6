"""Claude-backed query-variant model."""

from typing import Any

from langchain_anthropic import ChatAnthropic
from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import SecretStr

from mediascout.models.base import (
    QueryVariantModel,
    VariantPrompt,
    VariantResponse,
    parse_numbered_list,
)

SYSTEM_PROMPT = "You are an expert in media research and search query optimization."


def response_text(content: Any) -> str:
    """Flatten a chat message's content into plain text.

    Claude may answer with a list of content blocks instead of a string;
    only the text blocks carry the numbered list.
    """
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(str(block.get("text", "")))
    return "\n".join(parts)


class AnthropicVariantModel(QueryVariantModel):
    """Query-variant model over ``ChatAnthropic``."""

    def __init__(
        self,
        api_key: SecretStr,
        model: str = "claude-sonnet-4-20250514",
        *,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> None:
        self._model = model
        self._client = ChatAnthropic(
            api_key=api_key,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    @property
    def model_name(self) -> str:
        return self._model

    async def suggest(self, prompt: VariantPrompt) -> VariantResponse:
        """Send the prompt under the media-research system prompt."""
        reply = await self._client.ainvoke(
            [SystemMessage(content=SYSTEM_PROMPT), HumanMessage(content=prompt.text)]
        )

        usage = getattr(reply, "usage_metadata", None) or {}
        return VariantResponse(
            kind=prompt.kind,
            target=prompt.target,
            queries=parse_numbered_list(response_text(reply.content)),
            model=self._model,
            input_tokens=usage.get("input_tokens", 0),
            output_tokens=usage.get("output_tokens", 0),
        )
