"""Capability interfaces a host process registers handlers against.

:class:`~vector_rag.retrieval.vector_store.VectorStore` satisfies
:class:`VectorHandler` and :class:`~vector_rag.ingestion.parser.DocumentParser`
satisfies :class:`ParseHandler`.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from vector_rag.ingestion.models import ChunkBatch
    from vector_rag.ingestion.parser import ParseRequest
    from vector_rag.retrieval.models import CollectionInfo, MetadataFilter, Record, SearchResult


@runtime_checkable
class VectorHandler(Protocol):
    async def create_collection(self, name: str, metadata: dict[str, Any] | None = None) -> CollectionInfo: ...

    async def delete_collection(self, name: str) -> None: ...

    async def list_collections(self) -> list[str]: ...

    async def get_collection(self, name: str) -> CollectionInfo: ...

    async def update_collection(
        self,
        name: str,
        *,
        new_name: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> CollectionInfo: ...

    async def insert_vector(
        self,
        collection: str,
        *,
        vector_id: str | None = None,
        text: str | None = None,
        metadata: dict[str, Any] | None = None,
        url: str | None = None,
        content_type: str | None = None,
    ) -> str: ...

    async def batch_insert_vectors(
        self,
        collection: str,
        ids: Sequence[str],
        texts: Sequence[str] | None = None,
        metadatas: Sequence[dict[str, Any] | None] | None = None,
    ) -> list[str]: ...

    async def update_vector(
        self,
        collection: str,
        vector_id: str,
        *,
        text: str | None = None,
        metadata: dict[str, Any] | None = None,
        url: str | None = None,
        content_type: str | None = None,
    ) -> None: ...

    async def delete_vector_by_id(self, collection: str, vector_id: str) -> None: ...

    async def delete_vectors_by_filter(self, collection: str, filter: MetadataFilter) -> int: ...

    async def get_vector_by_id(self, collection: str, vector_id: str) -> Record | None: ...

    async def similarity_search(
        self,
        collection: str,
        query: str,
        top_k: int = 4,
        filter: MetadataFilter | None = None,
        include: Sequence[str] | None = None,
    ) -> list[SearchResult]: ...


@runtime_checkable
class ParseHandler(Protocol):
    async def parse(self, request: ParseRequest) -> str | ChunkBatch: ...
