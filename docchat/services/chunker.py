"""Sentence-aware splitting of normalized text into overlapping chunks."""

from docchat.core.errors import ConfigurationError

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200
SENTENCE_TERMINATORS = (".", "?", "!")


def split_text(
    text: str,
    max_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[str]:
    """Split text into chunks of about ``max_size`` characters.

    Each chunk ends right after the last sentence terminator found between the
    chunk's midpoint and its tentative end; when there is none, the chunk is cut
    hard at ``max_size``. Consecutive chunks share ``overlap`` characters.
    Chunks are trimmed and blank ones are dropped.

    Args:
        text: Normalized text
        max_size: Target chunk length in characters
        overlap: Characters repeated at the start of the next chunk

    Returns:
        Chunks in document order

    Raises:
        ConfigurationError: if max_size <= 0, overlap < 0 or overlap >= max_size
    """
    if max_size <= 0:
        raise ConfigurationError(f"max_size must be positive, got {max_size}.")
    if overlap < 0 or overlap >= max_size:
        raise ConfigurationError(
            f"overlap ({overlap}) must be >= 0 and smaller than max_size ({max_size})."
        )

    chunks: list[str] = []
    length = len(text)
    cursor = 0

    while cursor < length:
        end = cursor + max_size
        if end < length:
            end = _sentence_boundary(text, cursor, end, max_size)
        else:
            end = length

        chunk = text[cursor:end].strip()
        if chunk:
            chunks.append(chunk)

        if end >= length:
            break

        next_cursor = end - overlap
        # A short sentence-aligned chunk can end before cursor + overlap.
        cursor = next_cursor if next_cursor > cursor else end

    return chunks


def _sentence_boundary(text: str, cursor: int, end: int, max_size: int) -> int:
    """Return one past the last terminator in [cursor + max_size / 2, end], else ``end``."""
    last_terminator = max(text.rfind(mark, cursor, end + 1) for mark in SENTENCE_TERMINATORS)
    # Compared doubled so an odd max_size keeps the exact half-way point.
    if last_terminator >= cursor and 2 * (last_terminator - cursor) >= max_size:
        return last_terminator + 1
    return end
