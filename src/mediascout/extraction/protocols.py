"""Contracts consumed from the content extraction collaborator."""

from typing import Protocol, runtime_checkable

from .types import SourceContent


@runtime_checkable
class SourceContentProvider(Protocol):
    """Supplies parsed source content for contact scoring."""

    async def get_content(self, url: str) -> SourceContent:
        """Get the parsed content a contact was extracted from."""
        ...
