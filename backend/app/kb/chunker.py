"""Character-window text chunking."""
from typing import NamedTuple


class TextChunk(NamedTuple):
    """A text chunk with its position in the normalized source text."""
    index: int
    content: str
    start_idx: int
    end_idx: int


def normalize_text(text: str) -> str:
    """Normalize line endings to \\n and trim surrounding whitespace."""
    return text.replace("\r\n", "\n").replace("\r", "\n").strip()


def chunk_text(
    text: str,
    chunk_size: int = 1000,
    chunk_overlap: int = 200,
) -> list[TextChunk]:
    """
    Split text into overlapping fixed-size character windows.

    Windows start every ``max(1, chunk_size - chunk_overlap)`` characters.
    Each window is stripped; windows that are empty after stripping are
    skipped without shifting later windows, and ``index`` counts emitted
    chunks only. The last window is the first one that reaches the end of
    the text, so the output is deterministic for a given input and config.

    Args:
        text: Input text to chunk
        chunk_size: Characters per window (default: 1000)
        chunk_overlap: Characters shared by consecutive windows (default: 200)

    Returns:
        List of TextChunk objects, in text order
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if chunk_overlap < 0:
        raise ValueError(f"chunk_overlap must not be negative, got {chunk_overlap}")

    normalized = normalize_text(text)
    if not normalized:
        return []

    step = max(1, chunk_size - chunk_overlap)
    chunks = []
    start_idx = 0

    while start_idx < len(normalized):
        end_idx = min(start_idx + chunk_size, len(normalized))
        window = normalized[start_idx:end_idx].strip()

        if window:
            chunks.append(TextChunk(
                index=len(chunks),
                content=window,
                start_idx=start_idx,
                end_idx=end_idx,
            ))

        if end_idx >= len(normalized):
            break

        start_idx += step

    return chunks
