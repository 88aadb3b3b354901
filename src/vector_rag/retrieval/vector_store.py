"""Vector store adapter — collection lifecycle, record CRUD, and similarity search.

This module is the **primary public interface** for storage.  It sits on
top of any :class:`~vector_rag.retrieval.base.StorageBackend` and owns the
embedding function, which is injected at construction rather than looked
up globally.

Usage::

    from vector_rag.retrieval import VectorStore, InMemoryBackend

    store = VectorStore(InMemoryBackend(), embeddings)
    await store.create_collection("docs")
    vid = await store.insert_vector("docs", text="Chroma is a vector DB", metadata={"type": "a"})
    hits = await store.similarity_search("docs", "vector database", top_k=3)

Update semantics
----------------
:meth:`VectorStore.update_vector` never creates records: updating an id
that is not stored raises :class:`~vector_rag.exceptions.RecordNotFound`.
Use :meth:`VectorStore.upsert_vector` for create-or-replace.
"""

from __future__ import annotations

import logging
import secrets
import string
import time
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from vector_rag.config import settings
from vector_rag.exceptions import RecordExists, RecordNotFound, StoreFailure, VectorRagError
from vector_rag.retrieval.base import StorageBackend
from vector_rag.retrieval.models import (
    EMBEDDING_FUNCTION_KEY,
    CollectionInfo,
    MetadataFilter,
    Record,
    SearchResult,
    normalize_include,
    validate_metadata,
)

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

    from vector_rag.ingestion.models import ChunkBatch

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


# ---------------------------------------------------------------------------
# Id generation
# ---------------------------------------------------------------------------


def time_random_id() -> str:
    """``vec-<epoch millis>-<6 random base36 chars>``; collision-resistant, not unique."""
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"vec-{millis}-{suffix}"


def uuid_id() -> str:
    return uuid4().hex


def default_id_factory() -> Callable[[], str]:
    return uuid_id if settings.id_strategy == "uuid" else time_random_id


def embedding_function_name(embedding_function: Any) -> str:
    """Identity string recorded on collections, e.g. the HF model name."""
    model = getattr(embedding_function, "model_name", None) or getattr(embedding_function, "model", None)
    name = type(embedding_function).__name__
    return f"{name}:{model}" if isinstance(model, str) and model else name


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@contextmanager
def _store_errors(operation: str, collection: str | None, message: str) -> Iterator[None]:
    """Wrap backend failures in :class:`StoreFailure`; our own errors pass through."""
    try:
        yield
    except VectorRagError:
        raise
    except Exception as exc:
        logger.error("%s failed (collection=%r): %s", operation, collection, exc, exc_info=True)
        raise StoreFailure(message, collection=collection, operation=operation, cause=exc) from exc


class VectorStore:
    """Async vector-store adapter over a pluggable backend.

    Parameters
    ----------
    backend:
        Concrete :class:`StorageBackend` (Chroma, in-memory, …).
    embedding_function:
        LangChain ``Embeddings`` used for both documents and queries.
    id_factory:
        Zero-argument callable producing ids for records inserted without
        one.  Defaults to the ``id_strategy`` setting.
    """

    def __init__(
        self,
        backend: StorageBackend,
        embedding_function: Embeddings,
        *,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._backend = backend
        self._embedding_function = embedding_function
        self._id_factory = id_factory or default_id_factory()
        self.embedding_function_name = embedding_function_name(embedding_function)

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    # -- collections ----------------------------------------------------------

    async def create_collection(self, name: str, metadata: dict[str, Any] | None = None) -> CollectionInfo:
        """Create an empty collection bound to this store's embedding function.

        Raises
        ------
        CollectionExists
            A collection with *name* is already present.
        """
        meta = {**validate_metadata(metadata), EMBEDDING_FUNCTION_KEY: self.embedding_function_name}
        with _store_errors("create_collection", name, f"Failed to create collection {name!r}"):
            info = await self._backend.create_collection(name, meta)
        logger.info("Created collection %r", name)
        return info

    async def delete_collection(self, name: str) -> None:
        """Delete *name* and every record in it."""
        with _store_errors("delete_collection", name, f"Failed to delete collection {name!r}"):
            await self._backend.delete_collection(name)
        logger.info("Deleted collection %r", name)

    async def list_collections(self) -> list[str]:
        """Names of all live collections, in backend order."""
        with _store_errors("list_collections", None, "Failed to list collections"):
            return await self._backend.list_collections()

    async def get_collection(self, name: str) -> CollectionInfo:
        with _store_errors("get_collection", name, f"Failed to get collection {name!r}"):
            return await self._backend.get_collection(name)

    async def update_collection(
        self,
        name: str,
        *,
        new_name: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> CollectionInfo:
        """Merge *metadata* into the collection's metadata and/or rename it.

        Read-then-modify is not transactional: a concurrent delete between
        the two steps surfaces as an error on the second step.
        """
        extra = validate_metadata(metadata)
        with _store_errors("update_collection", name, f"Failed to update collection {name!r}"):
            current = await self._backend.get_collection(name)
            merged = {**current.metadata, **extra} if extra else None
            info = await self._backend.modify_collection(name, new_name=new_name, metadata=merged)
        if new_name and new_name != name:
            logger.info("Renamed collection %r → %r", name, new_name)
        return info

    # -- record writes --------------------------------------------------------

    async def _embed(self, texts: list[str]) -> list[list[float]]:
        return await self._embedding_function.aembed_documents(texts)

    async def _reject_stored_ids(self, collection: str, ids: list[str], operation: str) -> None:
        """Raise :class:`RecordExists` if any of *ids* is already stored."""
        stored = await self._backend.get(collection, ids=ids, include=[])
        if stored:
            raise RecordExists(collection, [r.id for r in stored], operation=operation)

    def _implicit_metadata(
        self,
        metadata: dict[str, Any] | None,
        url: str | None = None,
        content_type: str | None = None,
    ) -> dict[str, Any]:
        """Merge implicit keys under caller-supplied metadata (caller wins)."""
        implicit: dict[str, Any] = {"created_at": _now()}
        if url:
            implicit["url"] = url
        if content_type:
            implicit["type"] = content_type
        return {**implicit, **validate_metadata(metadata)}

    async def insert_vector(
        self,
        collection: str,
        *,
        vector_id: str | None = None,
        text: str | None = None,
        metadata: dict[str, Any] | None = None,
        url: str | None = None,
        content_type: str | None = None,
    ) -> str:
        """Insert one record and return its id (generated when omitted).

        ``created_at`` and, when given, ``url`` / ``type`` are added to the
        metadata unless the caller already supplied those keys.  A record
        without text is embedded from the empty string.

        Raises
        ------
        RecordExists
            *vector_id* is already stored; use :meth:`upsert_vector` to replace it.
        """
        full_metadata = self._implicit_metadata(metadata, url, content_type)
        record_id = vector_id or self._id_factory()
        with _store_errors(
            "insert_vector", collection, f"Failed to insert vector into collection {collection!r}"
        ):
            await self._reject_stored_ids(collection, [record_id], "insert_vector")
            embeddings = await self._embed([text or ""])
            await self._backend.add(
                collection,
                [record_id],
                embeddings,
                documents=[text] if text is not None else None,
                metadatas=[full_metadata],
            )
        logger.debug("Inserted %r into %r", record_id, collection)
        return record_id

    async def upsert_vector(
        self,
        collection: str,
        vector_id: str,
        *,
        text: str | None = None,
        metadata: dict[str, Any] | None = None,
        url: str | None = None,
        content_type: str | None = None,
    ) -> str:
        """Create *vector_id* or replace it entirely (text, metadata, embedding)."""
        full_metadata = self._implicit_metadata(metadata, url, content_type)
        with _store_errors(
            "upsert_vector", collection, f"Failed to upsert vector {vector_id!r} in collection {collection!r}"
        ):
            embeddings = await self._embed([text or ""])
            await self._backend.upsert(
                collection,
                [vector_id],
                embeddings,
                documents=[text] if text is not None else None,
                metadatas=[full_metadata],
            )
        return vector_id

    async def batch_insert_vectors(
        self,
        collection: str,
        ids: Sequence[str],
        texts: Sequence[str] | None = None,
        metadatas: Sequence[dict[str, Any] | None] | None = None,
    ) -> list[str]:
        """Insert index-aligned records in a single backend call.

        *texts* and *metadatas* are either omitted or exactly as long as
        *ids*.  The batch fully succeeds or fully fails.

        Raises
        ------
        ValueError
            On cardinality mismatch or duplicate ids, before any backend call.
        RecordExists
            Some of *ids* are already stored; nothing is inserted.
        """
        ids = list(ids)
        if texts is not None and len(texts) != len(ids):
            raise ValueError(f"texts ({len(texts)}) must align with ids ({len(ids)})")
        if metadatas is not None and len(metadatas) != len(ids):
            raise ValueError(f"metadatas ({len(metadatas)}) must align with ids ({len(ids)})")
        if len(set(ids)) != len(ids):
            raise ValueError("ids must be unique within a batch")
        if not ids:
            return []

        full_metadatas = [
            self._implicit_metadata(metadatas[i] if metadatas is not None else None) for i in range(len(ids))
        ]
        with _store_errors(
            "batch_insert_vectors", collection, f"Failed to insert vectors into collection {collection!r}"
        ):
            await self._reject_stored_ids(collection, ids, "batch_insert_vectors")
            embeddings = await self._embed(list(texts) if texts is not None else [""] * len(ids))
            await self._backend.add(
                collection,
                ids,
                embeddings,
                documents=list(texts) if texts is not None else None,
                metadatas=full_metadatas,
            )
        logger.info("Inserted %d vectors into %r", len(ids), collection)
        return ids

    async def insert_batch(self, collection: str, batch: ChunkBatch) -> list[str]:
        """Insert a :class:`~vector_rag.ingestion.models.ChunkBatch` from the pipeline."""
        return await self.batch_insert_vectors(collection, batch.ids, batch.texts, batch.metadatas)

    async def update_vector(
        self,
        collection: str,
        vector_id: str,
        *,
        text: str | None = None,
        metadata: dict[str, Any] | None = None,
        url: str | None = None,
        content_type: str | None = None,
    ) -> None:
        """Partially update an existing record.

        A new *text* is re-embedded; *metadata* keys (plus ``url`` / ``type``
        when given) are merged into the stored metadata.  Omitted fields
        keep their prior value.

        Raises
        ------
        RecordNotFound
            *vector_id* is not stored in *collection*.
        """
        changes = validate_metadata(metadata)
        if url:
            changes.setdefault("url", url)
        if content_type:
            changes.setdefault("type", content_type)

        with _store_errors(
            "update_vector",
            collection,
            f"Failed to update vector {vector_id!r} in collection {collection!r}",
        ):
            existing = await self._backend.get(collection, ids=[vector_id], include=[])
            if not existing:
                raise RecordNotFound(collection, vector_id)
            if text is None and not changes:
                return
            embeddings = await self._embed([text]) if text is not None else None
            await self._backend.update(
                collection,
                [vector_id],
                embeddings=embeddings,
                documents=[text] if text is not None else None,
                metadatas=[changes] if changes else None,
            )
        logger.debug("Updated %r in %r", vector_id, collection)

    # -- record deletes -------------------------------------------------------

    async def delete_vector_by_id(self, collection: str, vector_id: str) -> None:
        """Delete one record; a missing id is a no-op."""
        with _store_errors(
            "delete_vector_by_id",
            collection,
            f"Failed to delete vector {vector_id!r} from collection {collection!r}",
        ):
            await self._backend.delete(collection, [vector_id])

    async def delete_vectors_by_filter(self, collection: str, filter: MetadataFilter) -> int:
        """Delete every record whose metadata matches *filter*; return the count.

        Returns ``0`` when nothing matches.  An empty filter is rejected
        rather than treated as "delete everything".
        """
        where = validate_metadata(filter, what="filter")
        if not where:
            raise ValueError("filter must contain at least one key")
        with _store_errors(
            "delete_vectors_by_filter",
            collection,
            f"Failed to delete vectors by filter in collection {collection!r}",
        ):
            matched = await self._backend.get(collection, where=where, include=[])
            if not matched:
                return 0
            await self._backend.delete(collection, [r.id for r in matched])
        logger.info("Deleted %d vectors from %r matching %s", len(matched), collection, where)
        return len(matched)

    # -- reads ----------------------------------------------------------------

    async def get_vector_by_id(
        self,
        collection: str,
        vector_id: str,
        *,
        include_embedding: bool = False,
    ) -> Record | None:
        """Return the record, or ``None`` when *vector_id* is not stored."""
        include = ["documents", "metadatas"]
        if include_embedding:
            include.append("embeddings")
        with _store_errors(
            "get_vector_by_id",
            collection,
            f"Failed to get vector {vector_id!r} from collection {collection!r}",
        ):
            records = await self._backend.get(collection, ids=[vector_id], include=include)
        return records[0] if records else None

    async def similarity_search(
        self,
        collection: str,
        query: str,
        top_k: int = 4,
        filter: MetadataFilter | None = None,
        include: Sequence[str] | None = None,
    ) -> list[SearchResult]:
        """Embed *query* and return the *top_k* nearest records, nearest first.

        Parameters
        ----------
        collection:
            Target collection.
        query:
            Natural-language query text.
        top_k:
            Maximum number of results (default 4).
        filter:
            Optional conjunctive equality filter applied before ranking.
        include:
            Subset of ``documents``, ``metadatas``, ``distances``,
            ``embeddings``.  Defaults to all but embeddings.

        Returns
        -------
        list[SearchResult]
            Possibly empty; never an error for an empty collection.
        """
        if top_k < 1:
            raise ValueError(f"top_k must be a positive integer, got {top_k}")
        fields = normalize_include(include)
        where = validate_metadata(filter, what="filter") or None

        with _store_errors(
            "similarity_search",
            collection,
            f"Failed to perform similarity search on collection {collection!r}",
        ):
            embedding = await self._embedding_function.aembed_query(query)
            hits = await self._backend.query(collection, embedding, n_results=top_k, where=where, include=fields)

        hits.sort(key=lambda h: (h.distance is None, h.distance if h.distance is not None else 0.0))
        logger.debug("similarity_search on %r returned %d hit(s)", collection, len(hits))
        return hits[:top_k]

    async def count(self, collection: str) -> int:
        with _store_errors("count", collection, f"Failed to count vectors in collection {collection!r}"):
            return await self._backend.count(collection)

    async def heartbeat(self) -> bool:
        return await self._backend.heartbeat()


def create_vector_store(
    backend: StorageBackend | None = None,
    embedding_function: Embeddings | None = None,
) -> VectorStore:
    """Build a :class:`VectorStore` from settings.

    Defaults to a :class:`~vector_rag.retrieval.chroma_store.ChromaBackend`
    and the configured HuggingFace sentence-transformer.
    """
    if backend is None:
        from vector_rag.retrieval.chroma_store import ChromaBackend

        backend = ChromaBackend()
    if embedding_function is None:
        from vector_rag.ingestion.embedder import get_embedding_function

        embedding_function = get_embedding_function()
    return VectorStore(backend, embedding_function)
