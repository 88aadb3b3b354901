"""Error taxonomy for ingestion and vector-store operations.

Every error raised by this package derives from :class:`VectorRagError`
and carries a stable ``kind`` string next to its human-readable message,
so host layers can map failures without parsing text.
"""

from __future__ import annotations


class VectorRagError(Exception):
    """Base exception for all vector_rag errors."""

    kind: str = "VectorRagError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        """Structured form suitable for a JSON error payload."""
        return {"kind": self.kind, "message": self.message}


# ── Ingestion errors ──────────────────────────────────────────────────


class UnsupportedFormat(VectorRagError):
    """No decoder is registered for the declared type tag."""

    kind = "UnsupportedFormat"

    def __init__(self, tag: str) -> None:
        super().__init__(f"Unsupported file type: {tag!r}")
        self.tag = tag


class DecodeFailure(VectorRagError):
    """A decoder could not turn the payload into text (corrupt file, loader error)."""

    kind = "DecodeFailure"

    def __init__(self, tag: str, cause: BaseException) -> None:
        super().__init__(f"Failed to decode {tag!r} content: {cause}")
        self.tag = tag
        self.cause = cause


class NoContent(VectorRagError):
    """Neither inline document content nor a URL was supplied."""

    kind = "NoContent"

    def __init__(self, message: str = "No document or URL provided for parsing.") -> None:
        super().__init__(message)


class UnsupportedInlineBinary(VectorRagError):
    """Inline content was supplied for a type that must be fetched as binary."""

    kind = "UnsupportedInlineBinary"

    def __init__(self, tag: str) -> None:
        super().__init__(
            f"Cannot parse raw content for file type {tag!r}. A URL should be provided instead."
        )
        self.tag = tag


class FetchFailure(VectorRagError):
    """Downloading a URL source failed (network error or HTTP error status)."""

    kind = "FetchFailure"

    def __init__(self, url: str, cause: BaseException) -> None:
        super().__init__(f"Failed to fetch {url}: {cause}")
        self.url = url
        self.cause = cause


# ── Vector-store errors ───────────────────────────────────────────────


class CollectionNotFound(VectorRagError):
    """The named collection does not exist."""

    kind = "CollectionNotFound"

    def __init__(self, collection: str) -> None:
        super().__init__(f"Collection {collection!r} does not exist")
        self.collection = collection


class CollectionExists(VectorRagError):
    """A collection with this name already exists."""

    kind = "CollectionExists"

    def __init__(self, collection: str) -> None:
        super().__init__(f"Collection {collection!r} already exists")
        self.collection = collection


class StoreFailure(VectorRagError):
    """Backend-origin failure, wrapped with the collection and operation context.

    Attributes
    ----------
    collection:
        Collection the operation targeted (``None`` for client-level calls).
    operation:
        Adapter operation name, e.g. ``"insert_vector"``.
    cause:
        The underlying backend exception, if any.
    """

    kind = "StoreFailure"

    def __init__(
        self,
        message: str,
        *,
        collection: str | None = None,
        operation: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.collection = collection
        self.operation = operation
        self.cause = cause

    def to_dict(self) -> dict[str, str]:
        data = super().to_dict()
        if self.collection is not None:
            data["collection"] = self.collection
        if self.operation is not None:
            data["operation"] = self.operation
        return data


class RecordExists(StoreFailure):
    """An insert targeted record ids that are already stored in the collection."""

    kind = "RecordExists"

    def __init__(self, collection: str, record_ids: list[str], *, operation: str = "insert_vector") -> None:
        super().__init__(
            f"Vector id(s) already exist in collection {collection!r}: {', '.join(record_ids)}",
            collection=collection,
            operation=operation,
        )
        self.record_ids = record_ids


class RecordNotFound(StoreFailure):
    """An update targeted a record id that is not present in the collection."""

    kind = "RecordNotFound"

    def __init__(self, collection: str, record_id: str) -> None:
        super().__init__(
            f"Vector {record_id!r} not found in collection {collection!r}",
            collection=collection,
            operation="update_vector",
        )
        self.record_id = record_id
