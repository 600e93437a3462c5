"""Fixed-size sliding-window text chunking.

Splits stored chapter text into overlapping character windows sized for the
embedding model's input limit.  The window advances by
``max_size - overlap`` characters, so consecutive chunks share exactly
``overlap`` characters and a concept straddling one boundary is still
whole in at least one chunk.

Boundary rule: when the window starting at the current offset reaches or
passes the end of the text, the remainder is emitted as the final chunk
and the walk stops.  The last chunk therefore never degenerates into a
tail that is entirely contained in its predecessor::

    chunk_text("ABCDEFGHIJ", 4, 1)  -> ["ABCD", "DEFG", "GHIJ"]
    chunk_text("ABCDEFGH", 5, 2)    -> ["ABCDE", "DEFGH"]

Dropping the first ``overlap`` characters of every chunk after the first
and concatenating reconstructs the (line-ending normalised) input.
"""

from __future__ import annotations


def _validate(max_size: int, overlap: int) -> None:
    if overlap < 0:
        raise ValueError(f"overlap must be >= 0, got {overlap}")
    if max_size <= overlap:
        raise ValueError(
            f"max_size ({max_size}) must be greater than overlap ({overlap})"
        )


def normalize_newlines(text: str) -> str:
    """Convert ``\\r\\n`` and bare ``\\r`` line endings to ``\\n``."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def chunk_text(text: str | None, max_size: int, overlap: int) -> list[str]:
    """Split *text* into overlapping windows of at most *max_size* characters.

    Parameters
    ----------
    text:
        Text to split.  ``None`` or ``""`` yields ``[]``.
    max_size:
        Maximum characters per chunk.
    overlap:
        Characters shared by consecutive chunks; must be smaller than
        *max_size*.

    Raises
    ------
    ValueError
        If ``overlap < 0`` or ``max_size <= overlap``.
    """
    _validate(max_size, overlap)
    if not text:
        return []

    normalized = normalize_newlines(text)
    length = len(normalized)
    step = max_size - overlap

    chunks: list[str] = []
    offset = 0
    while True:
        if offset + max_size >= length:
            chunks.append(normalized[offset:])
            break
        chunks.append(normalized[offset : offset + max_size])
        offset += step
    return chunks


class TextChunker:
    """Sliding-window chunker with fixed parameters.

    Parameters
    ----------
    chunk_size:
        Maximum characters per chunk (default 1000).
    overlap:
        Characters of overlap between consecutive chunks (default 100).
    """

    def __init__(self, chunk_size: int = 1000, overlap: int = 100) -> None:
        _validate(chunk_size, overlap)
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    def chunk(self, text: str | None) -> list[str]:
        """Split *text* with this chunker's window and overlap."""
        return chunk_text(text, self._chunk_size, self._overlap)
