"""Domain exceptions for the query generation and scoring pipeline.

Callers must be able to tell "succeeded with caveats" from "failed
outright": fatal classes (``TemplateStoreError``, ``ConfigurationError``)
propagate out of ``QueryGenerationService.generate_queries``, while
``EnhancementError`` and ``PersistenceWriteError`` are caught by the
service and surfaced as ``errors[]`` entries on a completed result.
"""

from mediascout.utils.exceptions import ConfigurationError, MediaScoutError


class QueryGenerationError(MediaScoutError):
    """Base class for errors raised inside the generation pipeline.

    Attributes:
        stage: Pipeline stage where the error occurred (e.g. "initializing")
    """

    def __init__(self, message: str, stage: str | None = None):
        super().__init__(message)
        self.stage = stage

    def __str__(self) -> str:
        if self.stage:
            return f"{type(self).__name__}({self.stage}): {self.args[0]}"
        return f"{type(self).__name__}: {self.args[0]}"


class TemplateStoreError(QueryGenerationError):
    """Raised when the template store cannot be read or updated.

    Fatal: generation cannot proceed without templates, and the counter
    flush is the last write of a batch.
    """


class DuplicateTemplateError(TemplateStoreError):
    """Raised when a template name is already taken.

    Seeding treats it as another process having seeded first.
    """

    def __init__(self, message: str, stage: str | None = "initializing"):
        super().__init__(message, stage)


class EnhancementError(QueryGenerationError):
    """Raised when AI query enhancement fails or times out.

    Non-fatal: the pipeline continues with template-only candidates.
    """

    def __init__(self, message: str, stage: str | None = "ai_enhancement"):
        super().__init__(message, stage)


class PersistenceWriteError(QueryGenerationError):
    """Raised when a single audit record cannot be written.

    Attributes:
        record_type: Kind of record ("generated_query" or "performance_log")
    """

    def __init__(self, message: str, record_type: str, stage: str | None = "persistence"):
        super().__init__(message, stage)
        self.record_type = record_type


__all__ = [
    "ConfigurationError",
    "DuplicateTemplateError",
    "EnhancementError",
    "PersistenceWriteError",
    "QueryGenerationError",
    "TemplateStoreError",
]
