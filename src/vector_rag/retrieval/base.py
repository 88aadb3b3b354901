"""Abstract base class for storage backends.

Adding a new backend (Qdrant, pgvector, …) only requires subclassing
:class:`StorageBackend` and implementing the abstract coroutines.  The
:class:`~vector_rag.retrieval.vector_store.VectorStore` adapter on top is
backend-agnostic: it computes embeddings, generates ids, merges implicit
metadata, and wraps failures.

Backends raise :class:`~vector_rag.exceptions.CollectionNotFound` /
:class:`~vector_rag.exceptions.CollectionExists` for collection state
errors and may let anything else propagate.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from vector_rag.retrieval.models import CollectionInfo, MetadataFilter, Record, SearchResult


class StorageBackend(ABC):
    """Backend-agnostic vector-database interface.

    All methods are coroutines.  Record methods take the collection name
    and must raise ``CollectionNotFound`` when it does not exist.
    """

    # -- collections ----------------------------------------------------------

    @abstractmethod
    async def create_collection(self, name: str, metadata: dict[str, Any]) -> CollectionInfo:
        """Create an empty collection; ``CollectionExists`` if taken."""
        ...

    @abstractmethod
    async def get_collection(self, name: str) -> CollectionInfo: ...

    @abstractmethod
    async def modify_collection(
        self,
        name: str,
        *,
        new_name: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> CollectionInfo:
        """Replace the collection's metadata and/or give it a new name."""
        ...

    @abstractmethod
    async def delete_collection(self, name: str) -> None: ...

    @abstractmethod
    async def list_collections(self) -> list[str]: ...

    # -- records --------------------------------------------------------------

    @abstractmethod
    async def add(
        self,
        collection: str,
        ids: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        documents: Sequence[str | None] | None = None,
        metadatas: Sequence[dict[str, Any] | None] | None = None,
    ) -> None:
        """Insert records.  Existing ids are left untouched."""
        ...

    @abstractmethod
    async def upsert(
        self,
        collection: str,
        ids: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        documents: Sequence[str | None] | None = None,
        metadatas: Sequence[dict[str, Any] | None] | None = None,
    ) -> None:
        """Insert records, replacing any with the same id."""
        ...

    @abstractmethod
    async def update(
        self,
        collection: str,
        ids: Sequence[str],
        *,
        embeddings: Sequence[Sequence[float]] | None = None,
        documents: Sequence[str | None] | None = None,
        metadatas: Sequence[dict[str, Any] | None] | None = None,
    ) -> None:
        """Partially update existing records; ``None`` fields are untouched.

        Metadata is merged key-by-key into the stored metadata.
        """
        ...

    @abstractmethod
    async def get(
        self,
        collection: str,
        *,
        ids: Sequence[str] | None = None,
        where: MetadataFilter | None = None,
        include: Sequence[str] = ("documents", "metadatas"),
    ) -> list[Record]:
        """Return records matching *ids* and/or *where* (all records if neither)."""
        ...

    @abstractmethod
    async def delete(self, collection: str, ids: Sequence[str]) -> None:
        """Delete records by id; unknown ids are ignored."""
        ...

    @abstractmethod
    async def query(
        self,
        collection: str,
        query_embedding: Sequence[float],
        *,
        n_results: int,
        where: MetadataFilter | None = None,
        include: Sequence[str] = ("documents", "metadatas", "distances"),
    ) -> list[SearchResult]:
        """Return up to *n_results* nearest records, nearest first."""
        ...

    @abstractmethod
    async def count(self, collection: str) -> int: ...

    # -- optional overrides ---------------------------------------------------

    async def heartbeat(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        return True
