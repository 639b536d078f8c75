"""Owner-scoped similarity search over ingested chunks."""

from __future__ import annotations

from docchat.core.errors import DependencyError, RetrievalError, ValidationError
from docchat.core.logging import get_logger
from docchat.models.documents import Chunk, Query, RetrievedChunk, RetrievedContext
from docchat.services.embedder import EmbeddingGateway
from docchat.services.vectordb import VectorIndex

logger = get_logger(__name__)

DEFAULT_TOP_K = 4

# Metadata field every chunk is tagged with at ingestion time.
OWNER_FIELD = "owner_id"


class RetrievalPipeline:
    def __init__(
        self,
        *,
        embedder: EmbeddingGateway,
        index: VectorIndex,
        default_k: int = DEFAULT_TOP_K,
    ) -> None:
        self._embedder = embedder
        self._index = index
        self._default_k = default_k

    def retrieve(self, query_text: str, owner_id: str, k: int | None = None) -> RetrievedContext:
        """Return the owner's ``k`` most similar chunks, best first.

        The owner filter is part of the index query; other owners' chunks
        never leave the index. An empty result is a valid outcome.

        Raises:
            ValidationError: blank query, blank owner or k < 1
            RetrievalError: embedding or index failure
        """
        if not isinstance(query_text, str) or not query_text.strip():
            raise ValidationError("Question must not be empty.")
        if not owner_id or not str(owner_id).strip():
            raise ValidationError("An owner id is required for retrieval.")
        k = self._default_k if k is None else k
        if k < 1:
            raise ValidationError("k must be at least 1.")

        query = Query(text=query_text.strip(), owner_id=str(owner_id))

        try:
            vector = self._embedder.embed(query.text)
            matches = self._index.query(vector, k, filter={OWNER_FIELD: query.owner_id})
        except DependencyError as exc:
            logger.error(
                "Retrieval failed for owner %s - %s: %s", query.owner_id, type(exc).__name__, exc
            )
            raise RetrievalError(f"Retrieval failed: {exc.message}") from exc

        items = []
        for match in matches:
            chunk = Chunk.from_metadata(match.text, match.metadata)
            if chunk.owner_id != query.owner_id:
                # The index ignored the filter; refuse to return anything.
                logger.error(
                    "Index returned chunk %s of another owner for owner %s", match.id, query.owner_id
                )
                raise RetrievalError("Vector index returned a chunk outside the caller's scope.")
            items.append(RetrievedChunk(chunk=chunk, score=match.score))

        items.sort(key=lambda item: (-item.score, item.chunk.sequence_index))
        logger.info("Retrieved %d chunks for owner %s", len(items), query.owner_id)
        return RetrievedContext(owner_id=query.owner_id, items=tuple(items[:k]))
