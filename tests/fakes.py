"""In-test stand-ins for the external collaborators."""

from __future__ import annotations

import re

from docchat.core.errors import ExtractionError, VectorIndexError
from docchat.core.prompts import FALLBACK_ANSWER
from docchat.services.memory_index import InMemoryVectorIndex

STOPWORDS = {
    "a", "about", "an", "and", "are", "does", "document", "documents", "for", "in",
    "is", "my", "of", "say", "the", "to", "what", "which", "who",
}

_TOKEN = re.compile(r"[a-z0-9]+")


def content_terms(text: str) -> list[str]:
    return [t for t in _TOKEN.findall(text.lower()) if t not in STOPWORDS]


def filler_text(length: int) -> str:
    """Terminator-free text whose characters at multiples of 7 start a word."""
    pattern = "abcdef "
    return (pattern * (length // len(pattern) + 1))[:length]


class VocabularyEmbedder:
    """Bag-of-words vectors over a vocabulary that grows as words are seen."""

    dimensions = 512

    def __init__(self) -> None:
        self._vocabulary: dict[str, int] = {}
        self.batch_calls: list[list[str]] = []
        self.single_calls: list[str] = []

    def _vector(self, text: str) -> list[float]:
        vector = [0.0] * self.dimensions
        for term in content_terms(text):
            slot = self._vocabulary.setdefault(term, len(self._vocabulary))
            vector[slot % self.dimensions] += 1.0
        return vector

    def embed(self, text: str) -> list[float]:
        self.single_calls.append(text)
        return self._vector(text)

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batch_calls.append(list(texts))
        return [self._vector(text) for text in texts]


class FailingEmbedder(VocabularyEmbedder):
    def __init__(self, error: Exception) -> None:
        super().__init__()
        self.error = error

    def embed(self, text: str) -> list[float]:
        raise self.error

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        raise self.error


class TextFileExtractor:
    """Treats the staged upload as UTF-8 text; payloads starting with %CORRUPT fail."""

    def __init__(self) -> None:
        self.paths: list[str] = []

    def extract(self, path: str) -> str:
        self.paths.append(path)
        with open(path, "rb") as f:
            data = f.read()
        if data.startswith(b"%CORRUPT"):
            raise ExtractionError("Could not read PDF: corrupt payload")
        return data.decode("utf-8")


class FlakyVectorIndex(InMemoryVectorIndex):
    """Fails the Nth upsert call after storing the batch it was given halfway."""

    def __init__(self, fail_on_upsert: int, *, fail_delete: bool = False) -> None:
        super().__init__()
        self.fail_on_upsert = fail_on_upsert
        self.fail_delete = fail_delete
        self.upsert_calls = 0
        self.deleted_ids: list[str] = []

    def upsert(self, records):
        self.upsert_calls += 1
        if self.upsert_calls == self.fail_on_upsert:
            super().upsert(records[: len(records) // 2])
            raise VectorIndexError("Vector index upsert failed: ConnectionError")
        super().upsert(records)

    def delete(self, ids):
        self.deleted_ids.extend(ids)
        if self.fail_delete:
            raise VectorIndexError("Vector index delete failed: ConnectionError")
        super().delete(ids)


class RuleFollowingGenerator:
    """Behaves like a model that obeys the answer instructions.

    Quotes the first context passage that mentions a term from the question,
    otherwise answers with the fallback sentence.
    """

    _PROMPT = re.compile(r"Context:\n(.*)\n\nQuestion: (.*)\n\nAnswer:", re.S)

    def __init__(self, fallback: str = FALLBACK_ANSWER) -> None:
        self.fallback = fallback
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        match = self._PROMPT.search(prompt)
        if match is None:
            raise AssertionError("Prompt does not follow the answer template")
        context, question = match.group(1), match.group(2)

        terms = content_terms(question)
        for passage in re.split(r"(?<=[.?!])\s+|\n+", context):
            if any(term in content_terms(passage) for term in terms):
                return f"  According to your document: {passage.strip()}  "
        return self.fallback
