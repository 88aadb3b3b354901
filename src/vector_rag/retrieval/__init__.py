"""
Retrieval — collection lifecycle, record CRUD, and similarity search.

This module wraps the vector database behind a clean interface so that
callers never need to know which engine is backing storage.

Public surface
--------------
- :class:`VectorStore` — main entry point; async CRUD + search.
- :class:`StorageBackend` — abstract backend (subclass for Qdrant, etc.).
- :class:`ChromaBackend` — default Chroma backend.
- :class:`InMemoryBackend` — dictionary backend for tests.
- :class:`Record`, :class:`SearchResult`, :class:`CollectionInfo` — data models.
- :func:`create_vector_store` — settings-driven factory.
"""

from vector_rag.retrieval.base import StorageBackend
from vector_rag.retrieval.memory_store import InMemoryBackend
from vector_rag.retrieval.models import CollectionInfo, Record, SearchResult
from vector_rag.retrieval.vector_store import VectorStore, create_vector_store

__all__ = [
    "ChromaBackend",
    "CollectionInfo",
    "InMemoryBackend",
    "Record",
    "SearchResult",
    "StorageBackend",
    "VectorStore",
    "create_vector_store",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaBackend to avoid pulling in chromadb at import time."""
    if name == "ChromaBackend":
        from vector_rag.retrieval.chroma_store import ChromaBackend

        return ChromaBackend
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
