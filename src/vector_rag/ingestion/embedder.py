"""Embedding-function factory and pipeline → store persistence."""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_huggingface import HuggingFaceEmbeddings

from vector_rag.config import settings

if TYPE_CHECKING:
    from vector_rag.ingestion.models import ChunkBatch
    from vector_rag.retrieval.vector_store import VectorStore


def get_embedding_function(model_name: str | None = None) -> HuggingFaceEmbeddings:
    """Return the configured sentence-transformer embedding function."""
    return HuggingFaceEmbeddings(model_name=model_name or settings.embedding_model)


async def embed_and_store(
    batch: ChunkBatch,
    store: VectorStore,
    collection: str,
    *,
    create: bool = False,
) -> list[str]:
    """Embed *batch* and insert it into *collection*.

    With ``create=True`` the collection is created first; it must not
    already exist.  Returns the inserted ids.
    """
    if create:
        await store.create_collection(collection)
    return await store.insert_batch(collection, batch)
