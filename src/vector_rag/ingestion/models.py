"""Request and result models for the ingestion pipeline."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, Field, model_validator

from vector_rag.config import settings
from vector_rag.ingestion.chunker import ChunkStrategy
from vector_rag.retrieval.models import MetadataValue


class DocumentSource(BaseModel):
    """Where a document's content comes from.

    Exactly one of ``document`` (literal text or bytes) and ``url`` may be
    set.  Supplying neither is allowed here and rejected by the pipeline
    with :class:`~vector_rag.exceptions.NoContent`.
    """

    document: str | bytes | None = None
    url: str | None = None

    @model_validator(mode="after")
    def _exclusive(self) -> DocumentSource:
        if self.document and self.url:
            raise ValueError("'document' and 'url' are mutually exclusive")
        return self


class IngestOptions(BaseModel):
    """Per-call chunking options; defaults come from :data:`settings`."""

    chunk_size: int = Field(default_factory=lambda: settings.chunk_size, gt=0)
    overlap: int = Field(default_factory=lambda: settings.chunk_overlap, ge=0)
    strategy: ChunkStrategy = "sentence"
    id_prefix: str = "chunk"
    metadata: dict[str, MetadataValue] = Field(
        default_factory=dict,
        description="Extra metadata copied onto every chunk (computed keys win).",
    )

    @model_validator(mode="after")
    def _overlap_below_size(self) -> IngestOptions:
        if self.overlap >= self.chunk_size:
            raise ValueError(f"overlap ({self.overlap}) must be < chunk_size ({self.chunk_size})")
        return self


class ChunkBatch(BaseModel):
    """Index-aligned ids, texts, and metadatas ready for batch insertion."""

    ids: list[str] = Field(default_factory=list)
    texts: list[str] = Field(default_factory=list)
    metadatas: list[dict[str, Any]] = Field(default_factory=list)

    @model_validator(mode="after")
    def _aligned(self) -> ChunkBatch:
        if not len(self.ids) == len(self.texts) == len(self.metadatas):
            raise ValueError(
                f"ids ({len(self.ids)}), texts ({len(self.texts)}) and "
                f"metadatas ({len(self.metadatas)}) must have equal length"
            )
        return self

    def __len__(self) -> int:
        return len(self.ids)

    def records(self) -> Iterator[tuple[str, str, dict[str, Any]]]:
        """Yield ``(id, text, metadata)`` tuples in chunk order."""
        yield from zip(self.ids, self.texts, self.metadatas)
