"""PDF ingestion: extract -> normalize -> chunk -> tag -> embed -> upsert."""

from __future__ import annotations

import asyncio
import functools
import threading
import uuid
from pathlib import Path

from docchat.core.errors import ConfigurationError, EmbeddingError, ExtractionError, ValidationError
from docchat.core.logging import get_logger
from docchat.models.documents import Chunk, Document, IngestResult
from docchat.services.chunker import DEFAULT_CHUNK_OVERLAP, DEFAULT_CHUNK_SIZE, split_text
from docchat.services.embedder import EmbeddingGateway
from docchat.services.file_storage import UPLOADS_DIR, cleanup_job_files, save_upload
from docchat.services.parser import PDF_CONTENT_TYPE, PDF_EXTENSION, TextExtractor
from docchat.services.text_normalizer import normalize
from docchat.services.vectordb import VectorIndex, VectorRecord

logger = get_logger(__name__)

WRITE_BATCH_SIZE = 100
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024

# PDF conversions allowed to run at once on the shared extractor.
DEFAULT_MAX_CONCURRENT_EXTRACTIONS = 1


def validate_upload(
    filename: str | None,
    content_type: str | None,
    size: int,
    *,
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
) -> None:
    """Reject uploads that must never reach the pipeline.

    Raises:
        ValidationError: missing filename, non-PDF type, empty or oversized payload
    """
    if not filename or not filename.strip():
        raise ValidationError("Filename is required.")

    if (content_type or "").split(";", 1)[0].strip().lower() != PDF_CONTENT_TYPE:
        raise ValidationError("Only PDF files are accepted.")

    if not filename.lower().endswith(PDF_EXTENSION):
        raise ValidationError(f"Unsupported file type for '{filename}'. Expected a .pdf file.")

    if size <= 0:
        raise ValidationError("Uploaded file is empty.")
    if size > max_bytes:
        raise ValidationError(f"File is too large. The upload limit is {max_bytes} bytes.")


class IngestionPipeline:
    """Turns one uploaded PDF into owner-tagged chunks in the vector index.

    Either every chunk of a document is written, or, when any step fails, the
    writes already sent are deleted again before the error propagates. The
    staged upload file is removed in every case.
    """

    def __init__(
        self,
        *,
        extractor: TextExtractor,
        embedder: EmbeddingGateway,
        index: VectorIndex,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
        uploads_dir: Path = UPLOADS_DIR,
        max_concurrent_extractions: int = DEFAULT_MAX_CONCURRENT_EXTRACTIONS,
    ) -> None:
        if not 0 <= chunk_overlap < chunk_size:
            raise ConfigurationError(
                f"chunk_overlap ({chunk_overlap}) must be >= 0 and smaller than chunk_size ({chunk_size})."
            )
        if max_concurrent_extractions < 1:
            raise ConfigurationError("max_concurrent_extractions must be at least 1.")
        self._extractor = extractor
        self._embedder = embedder
        self._index = index
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap
        self._uploads_dir = uploads_dir
        # Shared by every worker thread running ingest().
        self._extraction_slots = threading.BoundedSemaphore(max_concurrent_extractions)

    def ingest(self, file_bytes: bytes, owner_id: str, source_name: str) -> IngestResult:
        """Ingest one PDF for ``owner_id``.

        Args:
            file_bytes: Raw PDF payload, already validated by validate_upload
            owner_id: Verified identity of the uploading user
            source_name: Original filename, kept for citations

        Returns:
            IngestResult with the number of chunks written

        Raises:
            ValidationError: blank owner id
            ExtractionError: unreadable PDF or no text; nothing is written
            EmbeddingError, VectorIndexError: after compensation has run
        """
        if not owner_id or not str(owner_id).strip():
            raise ValidationError("An owner id is required for ingestion.")

        ingestion_id = uuid.uuid4().hex
        document = Document(owner_id=str(owner_id), source_name=source_name)
        logger.info(
            "Ingestion %s: owner=%s, file=%s, bytes=%d",
            ingestion_id,
            document.owner_id,
            source_name,
            len(file_bytes),
        )

        try:
            file_path = save_upload(
                ingestion_id, file_bytes, source_name, base_dir=self._uploads_dir
            )

            # 1. Extract raw text
            logger.info("Ingestion %s: extracting text", ingestion_id)
            with self._extraction_slots:
                raw_text = self._extractor.extract(file_path)

            # 2-5. Normalize, chunk, drop blanks, tag with owner
            chunks = self.build_chunks(document, raw_text)
            if not chunks:
                raise ExtractionError(f"No text extracted from '{source_name}'.")
            logger.info("Ingestion %s: produced %d chunks", ingestion_id, len(chunks))

            # 6. Embed and write, compensating on failure
            self._write_chunks(ingestion_id, chunks)
        except Exception as exc:
            logger.error("Ingestion %s: failed - %s: %s", ingestion_id, type(exc).__name__, exc)
            raise
        finally:
            cleanup_job_files(ingestion_id, base_dir=self._uploads_dir)

        logger.info("Ingestion %s: completed, %d chunks written", ingestion_id, len(chunks))
        return IngestResult(
            ingestion_id=ingestion_id, source_name=source_name, chunk_count=len(chunks)
        )

    async def ingest_async(
        self, file_bytes: bytes, owner_id: str, source_name: str
    ) -> IngestResult:
        """Run ingest() on a worker thread.

        Cancelling the awaiting task does not stop the worker, so writes that
        were already dispatched finish and compensation still runs on failure.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, functools.partial(self.ingest, file_bytes, owner_id, source_name)
        )

    def build_chunks(self, document: Document, raw_text: str) -> list[Chunk]:
        text = normalize(raw_text)
        pieces = (piece.strip() for piece in split_text(text, self._chunk_size, self._chunk_overlap))
        return [
            Chunk.from_document(document, piece, sequence_index)
            for sequence_index, piece in enumerate(p for p in pieces if p)
        ]

    def _write_chunks(self, ingestion_id: str, chunks: list[Chunk]) -> None:
        vectors = self._embedder.embed_batch([chunk.text for chunk in chunks])
        if len(vectors) != len(chunks):
            raise EmbeddingError(
                f"Embedding count mismatch: expected {len(chunks)} vectors, got {len(vectors)}."
            )

        records = [
            VectorRecord(
                id=f"{ingestion_id}-{chunk.sequence_index}",
                values=vector,
                text=chunk.text,
                metadata={**chunk.metadata(), "ingestion_id": ingestion_id},
            )
            for chunk, vector in zip(chunks, vectors)
        ]

        # Ids of every batch sent, including one that failed midway.
        sent_ids: list[str] = []
        try:
            for i in range(0, len(records), WRITE_BATCH_SIZE):
                batch = records[i : i + WRITE_BATCH_SIZE]
                sent_ids.extend(record.id for record in batch)
                self._index.upsert(batch)
        except BaseException:
            self._compensate(ingestion_id, sent_ids)
            raise

    def _compensate(self, ingestion_id: str, ids: list[str]) -> None:
        logger.warning(
            "Ingestion %s: deleting %d chunks from the failed batch", ingestion_id, len(ids)
        )
        try:
            self._index.delete(ids)
        except Exception:
            logger.exception(
                "Ingestion %s: compensating delete failed, orphaned chunk ids: %s",
                ingestion_id,
                ids,
            )
