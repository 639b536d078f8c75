"""Error types shared by the ingestion and retrieval pipelines.

    DocChatError
    +-- ValidationError      bad input shape or size, user-correctable
    +-- ExtractionError      unreadable or corrupt PDF
    +-- ConfigurationError   deployment/programming defect, not retryable
    +-- Unauthenticated      no verified identity
    +-- DependencyError      external collaborator failure, retryable by the caller
        +-- EmbeddingError
        +-- VectorIndexError
        +-- GenerationError
        +-- RetrievalError
"""


class DocChatError(Exception):
    """Base exception for all DocChat errors."""

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        self.message = message
        super().__init__(message)


class ValidationError(DocChatError):
    """Input rejected before any work was done."""


class ExtractionError(DocChatError):
    """Text could not be extracted from the uploaded file."""


class ConfigurationError(DocChatError):
    """Invalid settings or arguments, e.g. chunk overlap >= chunk size."""


class Unauthenticated(DocChatError):
    """The caller has no verified identity."""


class DependencyError(DocChatError):
    """An external collaborator failed or timed out."""


class EmbeddingError(DependencyError):
    pass


class VectorIndexError(DependencyError):
    pass


class GenerationError(DependencyError):
    pass


class RetrievalError(DependencyError):
    """Query embedding or the filtered index search failed."""
