"""Parse capability — the host-facing entry point to the ingestion pipeline.

``parse`` returns either the cleaned document text or a chunk batch,
depending on ``settings.parse_output`` (overridable per parser).

Legacy error mode
-----------------
With ``errors_as_text=True`` (``VECTOR_RAG_PARSE_ERRORS_AS_TEXT``),
pipeline errors are returned as the string ``"Error: <message>"``
instead of being raised.  This mirrors older hosts that expect a string
result in every case; new callers should leave it off.
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, Field

from vector_rag.config import settings
from vector_rag.exceptions import VectorRagError
from vector_rag.ingestion.models import ChunkBatch, DocumentSource, IngestOptions
from vector_rag.ingestion.pipeline import IngestionPipeline

logger = logging.getLogger(__name__)

ParseOutput = Literal["text", "chunks"]


class ParseRequest(BaseModel):
    """Input to :meth:`DocumentParser.parse`."""

    document: str | bytes | None = None
    url: str | None = None
    type: str = Field(description="Declared content type tag, e.g. 'pdf' or '.md'")
    options: IngestOptions | None = None


class DocumentParser:
    """Implements the host ``ParseHandler`` capability.

    Parameters
    ----------
    pipeline:
        Ingestion pipeline to delegate to.
    output:
        ``"text"`` or ``"chunks"``; defaults to ``settings.parse_output``.
    errors_as_text:
        Legacy error mode (see module docstring).
    """

    def __init__(
        self,
        pipeline: IngestionPipeline | None = None,
        *,
        output: ParseOutput | None = None,
        errors_as_text: bool | None = None,
    ) -> None:
        self.pipeline = pipeline or IngestionPipeline()
        self.output: ParseOutput = output or settings.parse_output
        self.errors_as_text = settings.parse_errors_as_text if errors_as_text is None else errors_as_text

    async def parse(self, request: ParseRequest) -> str | ChunkBatch:
        try:
            source = DocumentSource(document=request.document, url=request.url)
            if self.output == "chunks":
                return await self.pipeline.ingest(source, request.type, request.options)
            return await self.pipeline.extract_text(source, request.type)
        except (VectorRagError, ValueError) as exc:
            if not self.errors_as_text:
                raise
            message = exc.message if isinstance(exc, VectorRagError) else str(exc)
            logger.warning("parse failed (%s): %s", type(exc).__name__, message)
            return f"Error: {message}"
