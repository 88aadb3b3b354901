"""Domain models for stored records, search results, and collections."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Literal, Union

from pydantic import BaseModel, Field

MetadataValue = Union[str, int, float, bool]
"""Scalar types a metadata value may take.  Nested structures are not persisted."""

MetadataFilter = Mapping[str, MetadataValue]
"""Conjunctive equality predicate: every key must equal its value."""

IncludeField = Literal["documents", "metadatas", "distances", "embeddings"]

DEFAULT_INCLUDE: tuple[IncludeField, ...] = ("documents", "metadatas", "distances")

# Collection metadata key recording the bound embedding function.
EMBEDDING_FUNCTION_KEY = "embedding_function"


class Record(BaseModel):
    """A stored unit, as returned by id lookup."""

    id: str
    text: str | None = None
    metadata: dict[str, Any] | None = None
    embedding: list[float] | None = None


class SearchResult(BaseModel):
    """One hit of a similarity search; nearest first."""

    id: str
    text: str | None = None
    metadata: dict[str, Any] | None = None
    distance: float | None = None
    embedding: list[float] | None = None


class CollectionInfo(BaseModel):
    """A collection's identity and configuration.

    Attributes
    ----------
    name:
        Unique collection name.
    metadata:
        Arbitrary scalar metadata stored with the collection.
    embedding_function:
        Identity of the embedding function the collection is bound to.
    """

    name: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    embedding_function: str | None = None


def validate_metadata(metadata: Mapping[str, Any] | None, *, what: str = "metadata") -> dict[str, Any]:
    """Return a plain copy of *metadata*, rejecting non-scalar values.

    Raises
    ------
    ValueError
        If a key is not a string or a value is not str/int/float/bool.
    """
    if not metadata:
        return {}
    clean: dict[str, Any] = {}
    for key, value in metadata.items():
        if not isinstance(key, str):
            raise ValueError(f"{what} keys must be strings, got {key!r}")
        if not isinstance(value, (str, int, float, bool)):
            raise ValueError(
                f"{what} value for {key!r} must be str, int, float or bool, got {type(value).__name__}"
            )
        clean[key] = value
    return clean


def matches_filter(metadata: Mapping[str, Any] | None, where: MetadataFilter) -> bool:
    """Evaluate a conjunctive equality filter against one record's metadata."""
    meta = metadata or {}
    for key, value in where.items():
        if key not in meta:
            return False
        stored = meta[key]
        # True == 1 in Python; keep bools and numbers apart.
        if isinstance(stored, bool) != isinstance(value, bool) or stored != value:
            return False
    return True


def normalize_include(include: Sequence[str] | None) -> list[IncludeField]:
    """Validate an ``include`` list, defaulting to documents+metadatas+distances."""
    if include is None:
        return list(DEFAULT_INCLUDE)
    allowed = {"documents", "metadatas", "distances", "embeddings"}
    fields: list[IncludeField] = []
    for name in include:
        if name not in allowed:
            raise ValueError(f"Unsupported include field: {name!r}")
        if name not in fields:
            fields.append(name)  # type: ignore[arg-type]
    return fields
