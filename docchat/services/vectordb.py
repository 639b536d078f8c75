"""Vector index contract and the Pinecone implementation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from pinecone.exceptions import PineconeException
from pinecone.grpc import PineconeGRPC as Pinecone

from docchat.core.errors import ConfigurationError, VectorIndexError
from docchat.core.logging import get_logger
from docchat.core.retry import RetryPolicy

logger = get_logger(__name__)

UPSERT_BATCH_SIZE = 100

TRANSIENT_ERRORS = (PineconeException, ConnectionError, TimeoutError)


@dataclass(frozen=True)
class VectorRecord:
    id: str
    values: list[float]
    text: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class IndexMatch:
    id: str
    text: str
    metadata: dict[str, Any]
    score: float


class VectorIndex(Protocol):
    """Stores (vector, text, metadata) records and answers filtered similarity queries.

    ``query`` requires a non-empty equality filter, applied by the index itself.
    """

    def upsert(self, records: list[VectorRecord]) -> None: ...

    def query(
        self, vector: list[float], k: int, filter: dict[str, Any]
    ) -> list[IndexMatch]: ...

    def delete(self, ids: list[str]) -> None: ...


def require_filter(filter: dict[str, Any] | None) -> dict[str, Any]:
    if not filter:
        raise ConfigurationError("Vector index queries must carry a metadata filter.")
    return filter


def to_pinecone_filter(filter: dict[str, Any]) -> dict[str, Any]:
    """Translate an equality predicate into Pinecone's filter syntax."""
    return {key: {"$eq": value} for key, value in filter.items()}


class PineconeVectorIndex:
    """All tenants share one namespace; owner scoping is a metadata filter."""

    def __init__(
        self,
        index: Any,
        *,
        namespace: str,
        timeout: float | None = 20.0,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._index = index
        self._namespace = namespace
        self._timeout = timeout
        self._retry = retry_policy or RetryPolicy(initial_wait=1, max_wait=30)

    @classmethod
    def connect(
        cls, api_key: str, index_name: str, *, host: str | None = None, **kwargs: Any
    ) -> "PineconeVectorIndex":
        pc = Pinecone(api_key=api_key)
        index = pc.Index(host=host) if host else pc.Index(index_name)
        return cls(index, **kwargs)

    def upsert(self, records: list[VectorRecord]) -> None:
        """Upsert records in batches of UPSERT_BATCH_SIZE.

        Not atomic across batches: on failure some batches may already be
        stored. Callers that need all-or-nothing delete the ids they sent.
        """
        if not records:
            return

        total_batches = (len(records) + UPSERT_BATCH_SIZE - 1) // UPSERT_BATCH_SIZE
        for i in range(0, len(records), UPSERT_BATCH_SIZE):
            batch = records[i : i + UPSERT_BATCH_SIZE]
            upsert_data = [
                {"id": r.id, "values": r.values, "metadata": {**r.metadata, "text": r.text}}
                for r in batch
            ]
            self._call(
                "upsert",
                self._index.upsert,
                vectors=upsert_data,
                namespace=self._namespace,
                timeout=self._timeout,
            )
            logger.debug(
                "Upserted batch %d/%d (%d vectors)",
                i // UPSERT_BATCH_SIZE + 1,
                total_batches,
                len(batch),
            )

    def query(self, vector: list[float], k: int, filter: dict[str, Any]) -> list[IndexMatch]:
        pinecone_filter = to_pinecone_filter(require_filter(filter))
        response = self._call(
            "query",
            self._index.query,
            vector=vector,
            top_k=k,
            namespace=self._namespace,
            filter=pinecone_filter,
            include_metadata=True,
            include_values=False,
            timeout=self._timeout,
        )

        matches: list[IndexMatch] = []
        for match in response.matches:
            metadata = dict(match.metadata or {})
            text = str(metadata.pop("text", ""))
            matches.append(
                IndexMatch(id=match.id, text=text, metadata=metadata, score=float(match.score))
            )
        return matches

    def delete(self, ids: list[str]) -> None:
        for i in range(0, len(ids), UPSERT_BATCH_SIZE):
            self._call(
                "delete",
                self._index.delete,
                ids=ids[i : i + UPSERT_BATCH_SIZE],
                namespace=self._namespace,
                timeout=self._timeout,
            )

    def _call(self, operation: str, fn, **kwargs: Any) -> Any:
        try:
            return self._retry.call(fn, retry_on=TRANSIENT_ERRORS, **kwargs)
        except (PineconeException, ConnectionError, TimeoutError) as exc:
            logger.error("Pinecone %s failed: %s", operation, exc)
            raise VectorIndexError(f"Vector index {operation} failed: {type(exc).__name__}") from exc
