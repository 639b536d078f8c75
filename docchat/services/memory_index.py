"""In-process vector index for local development and tests."""

from __future__ import annotations

import math
import threading
from typing import Any

from docchat.services.vectordb import IndexMatch, VectorRecord, require_filter


def cosine_similarity(a: list[float], b: list[float]) -> float:
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(x * x for x in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return sum(x * y for x, y in zip(a, b)) / (norm_a * norm_b)


class InMemoryVectorIndex:
    """Same contract as PineconeVectorIndex, held in a dict.

    Filters are applied while scanning, before ranking, so records that fail
    the filter never leave the index.
    """

    def __init__(self) -> None:
        self._records: dict[str, VectorRecord] = {}
        self._lock = threading.Lock()

    def upsert(self, records: list[VectorRecord]) -> None:
        with self._lock:
            for record in records:
                self._records[record.id] = record

    def query(self, vector: list[float], k: int, filter: dict[str, Any]) -> list[IndexMatch]:
        require_filter(filter)
        with self._lock:
            candidates = [
                record
                for record in self._records.values()
                if all(record.metadata.get(key) == value for key, value in filter.items())
            ]

        scored = [
            IndexMatch(
                id=record.id,
                text=record.text,
                metadata=dict(record.metadata),
                score=cosine_similarity(vector, record.values),
            )
            for record in candidates
        ]
        scored.sort(key=lambda match: match.score, reverse=True)
        return scored[:k]

    def delete(self, ids: list[str]) -> None:
        with self._lock:
            for record_id in ids:
                self._records.pop(record_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
