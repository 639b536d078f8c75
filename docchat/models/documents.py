"""Data contracts shared by the ingestion and retrieval pipelines."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AuthenticatedUser:
    """Verified identity supplied by the session, never by a request body."""

    id: str
    email: str


@dataclass(frozen=True)
class Document:
    """One uploaded PDF. Only ever persisted through the chunks it produces."""

    owner_id: str
    source_name: str
    uploaded_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class Chunk:
    text: str
    owner_id: str
    source_name: str
    sequence_index: int
    uploaded_at: datetime | None = None

    @classmethod
    def from_document(cls, document: Document, text: str, sequence_index: int) -> "Chunk":
        return cls(
            text=text,
            owner_id=document.owner_id,
            source_name=document.source_name,
            sequence_index=sequence_index,
            uploaded_at=document.uploaded_at,
        )

    def metadata(self) -> dict[str, Any]:
        """Index metadata for this chunk. The text itself travels separately."""
        meta: dict[str, Any] = {
            "owner_id": self.owner_id,
            "source_name": self.source_name,
            "sequence_index": self.sequence_index,
        }
        if self.uploaded_at is not None:
            meta["uploaded_at"] = self.uploaded_at.isoformat()
        return meta

    @classmethod
    def from_metadata(cls, text: str, metadata: dict[str, Any]) -> "Chunk":
        uploaded_at = metadata.get("uploaded_at")
        return cls(
            text=text,
            owner_id=str(metadata.get("owner_id", "")),
            source_name=str(metadata.get("source_name", "")),
            sequence_index=int(metadata.get("sequence_index", 0)),
            uploaded_at=datetime.fromisoformat(uploaded_at) if uploaded_at else None,
        )


@dataclass(frozen=True)
class Query:
    text: str
    owner_id: str


@dataclass(frozen=True)
class RetrievedChunk:
    chunk: Chunk
    score: float


@dataclass(frozen=True)
class RetrievedContext:
    """Up to ``k`` chunks for one query, best match first.

    Every chunk belongs to ``owner_id``.
    """

    owner_id: str
    items: tuple[RetrievedChunk, ...] = ()

    def __iter__(self) -> Iterator[RetrievedChunk]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def texts(self) -> list[str]:
        return [item.chunk.text for item in self.items]


@dataclass(frozen=True)
class IngestResult:
    ingestion_id: str
    source_name: str
    chunk_count: int
