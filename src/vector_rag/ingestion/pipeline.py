"""Ingestion pipeline — resolve → decode → normalise → chunk → batch.

Usage::

    pipeline = IngestionPipeline()
    batch = await pipeline.ingest(DocumentSource(url="https://example.com/a.pdf"), "pdf")
    await store.insert_batch("docs", batch)

Any stage failure propagates; a partial batch is never returned.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from vector_rag.exceptions import NoContent, UnsupportedFormat, UnsupportedInlineBinary
from vector_rag.ingestion.chunker import iter_chunks
from vector_rag.ingestion.fetch import fetch_bytes
from vector_rag.ingestion.models import ChunkBatch, DocumentSource, IngestOptions
from vector_rag.ingestion.normalizer import normalize_text
from vector_rag.ingestion.registry import ReaderRegistry, default_registry, normalize_type

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Awaitable[bytes]]


class IngestionPipeline:
    """Turns one source document into a :class:`ChunkBatch`.

    Parameters
    ----------
    registry:
        Format reader registry.  Defaults to :func:`default_registry`.
    fetcher:
        Coroutine function ``url -> bytes``.  Defaults to
        :func:`~vector_rag.ingestion.fetch.fetch_bytes`.
    """

    def __init__(
        self,
        registry: ReaderRegistry | None = None,
        *,
        fetcher: Fetcher | None = None,
    ) -> None:
        self.registry = registry or default_registry()
        self._fetch = fetcher or fetch_bytes

    async def extract_text(self, source: DocumentSource, declared_type: str) -> str:
        """Resolve, decode, and normalise *source* into clean text."""
        tag = normalize_type(declared_type)
        if not source.document and not source.url:
            raise NoContent()
        if not self.registry.supports(tag):
            raise UnsupportedFormat(tag)

        if source.document:
            if not self.registry.is_inline(tag):
                raise UnsupportedInlineBinary(tag)
            if isinstance(source.document, str):
                raw = source.document
            else:
                raw = self.registry.decode(tag, source.document)
        else:
            payload = await self._fetch(source.url)
            if self.registry.is_inline(tag):
                raw = self.registry.decode(tag, payload)
            else:
                raw = await asyncio.to_thread(self.registry.decode, tag, payload)

        return normalize_text(raw)

    def build_batch(
        self,
        text: str,
        options: IngestOptions,
        *,
        base_metadata: dict[str, Any] | None = None,
    ) -> ChunkBatch:
        """Chunk normalised *text* and lay the chunks out as parallel lists."""
        ids: list[str] = []
        texts: list[str] = []
        metadatas: list[dict[str, Any]] = []
        for chunk in iter_chunks(text, options.chunk_size, options.overlap, strategy=options.strategy):
            ids.append(f"{options.id_prefix}-{chunk.sequence_index}")
            texts.append(chunk.text)
            metadatas.append(
                {
                    **(base_metadata or {}),
                    **options.metadata,
                    "chunkIndex": chunk.sequence_index,
                    "length": chunk.length,
                }
            )
        return ChunkBatch(ids=ids, texts=texts, metadatas=metadatas)

    async def ingest(
        self,
        source: DocumentSource,
        declared_type: str,
        options: IngestOptions | None = None,
    ) -> ChunkBatch:
        """Run the full pipeline for one document.

        Raises
        ------
        UnsupportedFormat, NoContent, UnsupportedInlineBinary, FetchFailure, DecodeFailure
            From the corresponding stage; nothing is returned on failure.
        """
        options = options or IngestOptions()
        tag = normalize_type(declared_type)
        text = await self.extract_text(source, tag)

        base_metadata: dict[str, Any] = {"type": tag}
        if source.url:
            base_metadata["source"] = source.url
        batch = self.build_batch(text, options, base_metadata=base_metadata)

        logger.info(
            "Ingested %s (%s): %d chars → %d chunks",
            source.url or "<inline>",
            tag,
            len(text),
            len(batch),
        )
        return batch
