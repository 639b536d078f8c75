"""OpenAI embedding calls with batching and retry logic."""

from __future__ import annotations

import time
from typing import Protocol

from openai import (
    APIConnectionError,
    APIError,
    InternalServerError,
    OpenAI,
    RateLimitError,
)

from docchat.core.errors import EmbeddingError
from docchat.core.logging import get_logger
from docchat.core.retry import RetryPolicy

logger = get_logger(__name__)

# Batch size for embedding requests (OpenAI allows up to 2048 texts per request)
EMBEDDING_BATCH_SIZE = 20

# Delay between batches to avoid rate limits (seconds)
INTER_BATCH_DELAY = 1.0

TRANSIENT_ERRORS = (RateLimitError, APIConnectionError, InternalServerError)


class EmbeddingGateway(Protocol):
    def embed(self, text: str) -> list[float]: ...

    def embed_batch(self, texts: list[str]) -> list[list[float]]: ...


class OpenAIEmbeddingGateway:
    """Maps text to fixed-length vectors with the OpenAI embeddings API."""

    def __init__(
        self,
        client: OpenAI,
        *,
        model: str = "text-embedding-3-small",
        retry_policy: RetryPolicy | None = None,
        batch_size: int = EMBEDDING_BATCH_SIZE,
        inter_batch_delay: float = INTER_BATCH_DELAY,
    ) -> None:
        self._client = client
        self._model = model
        self._retry = retry_policy or RetryPolicy()
        self._batch_size = batch_size
        self._inter_batch_delay = inter_batch_delay

    @classmethod
    def from_api_key(cls, api_key: str, *, timeout: float, **kwargs) -> "OpenAIEmbeddingGateway":
        # max_retries=0: RetryPolicy is the only retry loop.
        client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        return cls(client, **kwargs)

    def embed(self, text: str) -> list[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed texts in batches with delays to avoid rate limits.

        Returns:
            List of embedding vectors in same order as input

        Raises:
            EmbeddingError: If the API fails after all retries
            ValueError: If any text is blank
        """
        if not texts:
            return []
        if any(not isinstance(text, str) or not text.strip() for text in texts):
            raise ValueError("All texts must be non-empty strings for embedding.")

        all_embeddings: list[list[float]] = []
        num_batches = (len(texts) + self._batch_size - 1) // self._batch_size

        for i in range(0, len(texts), self._batch_size):
            batch = texts[i : i + self._batch_size]
            all_embeddings.extend(self._embed_once(batch))

            # Skip the delay after the last batch
            batch_num = i // self._batch_size + 1
            if batch_num < num_batches and self._inter_batch_delay > 0:
                time.sleep(self._inter_batch_delay)

        if len(all_embeddings) != len(texts):
            raise EmbeddingError(
                "Embedding count mismatch: expected "
                f"{len(texts)} vectors, got {len(all_embeddings)}."
            )
        return all_embeddings

    def _embed_once(self, batch: list[str]) -> list[list[float]]:
        try:
            resp = self._retry.call(
                self._client.embeddings.create,
                model=self._model,
                input=batch,
                retry_on=TRANSIENT_ERRORS,
            )
        except APIError as exc:
            logger.error("Embedding request failed: %s", exc)
            raise EmbeddingError(f"Embedding request failed: {type(exc).__name__}") from exc

        ordered = sorted(resp.data, key=lambda item: item.index)
        return [item.embedding for item in ordered]
