"""Text chunking strategies.

Two strategies are available:

``"sentence"`` (default)
    Deterministic character windows.  Each boundary is pulled back to the
    structural break (paragraph, line or sentence end) closest to the
    window's end within its second half.  Without one, the last space is
    used, then a hard cut.  Every chunk after the first starts
    exactly ``overlap`` characters before the previous chunk ended, so::

        chunks[0].text + "".join(c.text[overlap:] for c in chunks[1:]) == text

``"recursive"``
    LangChain's ``RecursiveCharacterTextSplitter``.  Overlap is
    approximate (whole splits are carried over) and chunks are stripped.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Literal

from pydantic import BaseModel, Field

ChunkStrategy = Literal["sentence", "recursive"]

# Structural breaks win over word breaks; among them the latest one wins.
_STRUCTURAL_BREAKS: tuple[str, ...] = ("\n\n", "\n", ". ", "! ", "? ")
_WORD_BREAKS: tuple[str, ...] = (" ",)
_RECURSIVE_SEPARATORS = ["\n\n", "\n", ". ", " ", ""]


class Chunk(BaseModel):
    """A bounded segment of one source document."""

    sequence_index: int = Field(ge=0, description="0-based position among the document's chunks")
    text: str
    length: int = Field(ge=0, description="Character count of ``text``")
    start_offset: int = Field(ge=0, description="Start offset in the normalised source text")
    end_offset: int = Field(ge=0, description="End offset (exclusive) in the normalised source text")


def _validate_sizes(chunk_size: int, overlap: int) -> None:
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0:
        raise ValueError(f"overlap must be >= 0, got {overlap}")
    if overlap >= chunk_size:
        raise ValueError(f"overlap ({overlap}) must be < chunk_size ({chunk_size})")


def _last_break(text: str, separators: tuple[str, ...], lo: int, hi: int) -> int | None:
    """Return the latest position just after one of *separators* ending in ``[lo, hi]``.

    Ties go to the separator listed first.
    """
    best: int | None = None
    for sep in separators:
        idx = text.rfind(sep, max(lo - len(sep), 0), hi)
        if idx != -1 and idx + len(sep) >= lo and (best is None or idx + len(sep) > best):
            best = idx + len(sep)
    return best


def _find_break(text: str, lo: int, hi: int) -> int | None:
    """Break nearest *hi*: paragraph, line or sentence ends first, then a space."""
    brk = _last_break(text, _STRUCTURAL_BREAKS, lo, hi)
    if brk is None:
        brk = _last_break(text, _WORD_BREAKS, lo, hi)
    return brk


def _iter_spans(text: str, chunk_size: int, overlap: int) -> Iterator[tuple[int, int]]:
    n = len(text)
    start = 0
    while start < n:
        end = start + chunk_size
        if end >= n:
            yield start, n
            return
        # Breaks must leave the next start strictly ahead of this one.
        lo = start + max(overlap + 1, chunk_size // 2)
        brk = _find_break(text, lo, end)
        if brk is not None:
            end = brk
        yield start, end
        start = end - overlap


def _iter_sentence_chunks(text: str, chunk_size: int, overlap: int) -> Iterator[Chunk]:
    for index, (start, end) in enumerate(_iter_spans(text, chunk_size, overlap)):
        piece = text[start:end]
        yield Chunk(
            sequence_index=index,
            text=piece,
            length=len(piece),
            start_offset=start,
            end_offset=end,
        )


def _iter_recursive_chunks(text: str, chunk_size: int, overlap: int) -> Iterator[Chunk]:
    from langchain_text_splitters import RecursiveCharacterTextSplitter

    splitter = RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=overlap,
        length_function=len,
        separators=_RECURSIVE_SEPARATORS,
    )
    cursor = 0
    for index, piece in enumerate(splitter.split_text(text)):
        start = text.find(piece, cursor)
        if start == -1:
            start = cursor
        else:
            cursor = start + 1
        yield Chunk(
            sequence_index=index,
            text=piece,
            length=len(piece),
            start_offset=start,
            end_offset=min(start + len(piece), len(text)),
        )


def iter_chunks(
    text: str,
    chunk_size: int = 500,
    overlap: int = 50,
    *,
    strategy: ChunkStrategy = "sentence",
) -> Iterator[Chunk]:
    """Lazily split normalised *text* into overlapping chunks.

    Parameters
    ----------
    text:
        Normalised document text.  Empty text yields nothing.
    chunk_size:
        Maximum number of characters per chunk.
    overlap:
        Number of characters repeated at the start of each following chunk.
        Must be strictly less than *chunk_size*.
    strategy:
        ``"sentence"`` or ``"recursive"`` (see module docstring).

    Raises
    ------
    ValueError
        On invalid sizes or an unknown strategy.  Raised on first iteration.
    """
    _validate_sizes(chunk_size, overlap)
    if not text:
        return
    if strategy == "sentence":
        yield from _iter_sentence_chunks(text, chunk_size, overlap)
    elif strategy == "recursive":
        yield from _iter_recursive_chunks(text, chunk_size, overlap)
    else:
        raise ValueError(f"Unknown chunking strategy: {strategy!r}")


def chunk_text(
    text: str,
    chunk_size: int = 500,
    overlap: int = 50,
    *,
    strategy: ChunkStrategy = "sentence",
) -> list[Chunk]:
    """Eager variant of :func:`iter_chunks`."""
    return list(iter_chunks(text, chunk_size, overlap, strategy=strategy))
