"""
Ingestion — document decoding, normalisation, and chunking.

This module converts raw documents (text, Markdown, HTML, CSV, JSON, PDF,
DOCX, images) into normalised text and then into index-aligned chunk
batches ready for insertion into a vector-store collection.

Public surface
--------------
- :class:`~vector_rag.ingestion.pipeline.IngestionPipeline` — fetch/decode/normalise/chunk.
- :class:`~vector_rag.ingestion.parser.DocumentParser` — host parse capability.
- :class:`~vector_rag.ingestion.registry.ReaderRegistry` — type tag → decoder.
- :func:`~vector_rag.ingestion.normalizer.normalize_text`
- :func:`~vector_rag.ingestion.chunker.iter_chunks`
"""
