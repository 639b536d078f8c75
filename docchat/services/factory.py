"""Builds the collaborators and pipelines from Settings.

Nothing here is cached at module level: each call returns fresh instances
that the application holds for its lifetime.
"""

from __future__ import annotations

from dataclasses import dataclass

from docchat.core.config import Settings, get_pinecone_host
from docchat.core.logging import get_logger
from docchat.core.retry import RetryPolicy
from docchat.services.answer import AnswerComposer
from docchat.services.embedder import OpenAIEmbeddingGateway
from docchat.services.generator import OpenRouterGenerator
from docchat.services.ingestion import IngestionPipeline
from docchat.services.memory_index import InMemoryVectorIndex
from docchat.services.parser import DoclingPdfExtractor
from docchat.services.retrieval import RetrievalPipeline
from docchat.services.vectordb import PineconeVectorIndex, VectorIndex

logger = get_logger(__name__)


@dataclass(frozen=True)
class Services:
    ingestion: IngestionPipeline
    retrieval: RetrievalPipeline
    composer: AnswerComposer
    max_upload_bytes: int
    jwt_secret: str

    def close(self) -> None:
        self.composer.close()


def build_index(settings: Settings, retry_policy: RetryPolicy) -> VectorIndex:
    if settings.vector_backend == "memory":
        logger.warning("Using in-memory vector index; chunks are lost on restart")
        return InMemoryVectorIndex()
    return PineconeVectorIndex.connect(
        settings.pinecone_api_key,
        settings.pinecone_index,
        host=get_pinecone_host(settings),
        namespace=settings.pinecone_namespace,
        timeout=settings.index_timeout,
        retry_policy=retry_policy,
    )


def build_services(settings: Settings) -> Services:
    retry_policy = RetryPolicy(attempts=settings.retry_attempts)

    embedder = OpenAIEmbeddingGateway.from_api_key(
        settings.openai_api_key,
        timeout=settings.embedding_timeout,
        model=settings.embedding_model,
        retry_policy=retry_policy,
    )
    index = build_index(settings, retry_policy)
    generator = OpenRouterGenerator.from_settings(
        settings.openrouter_api_key,
        settings.openrouter_base_url,
        settings.openrouter_model,
        timeout=settings.generation_timeout,
        retry_policy=retry_policy,
    )

    return Services(
        ingestion=IngestionPipeline(
            extractor=DoclingPdfExtractor(timeout=settings.extraction_timeout),
            embedder=embedder,
            index=index,
            chunk_size=settings.chunk_size,
            chunk_overlap=settings.chunk_overlap,
            max_concurrent_extractions=settings.max_concurrent_extractions,
        ),
        retrieval=RetrievalPipeline(
            embedder=embedder, index=index, default_k=settings.retrieval_top_k
        ),
        composer=AnswerComposer(generator, fallback_answer=settings.fallback_answer),
        max_upload_bytes=settings.max_upload_bytes,
        jwt_secret=settings.jwt_secret,
    )
