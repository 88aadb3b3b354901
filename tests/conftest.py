"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding

from vector_rag.retrieval.memory_store import InMemoryBackend
from vector_rag.retrieval.vector_store import VectorStore


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


@pytest.fixture()
def embeddings() -> DeterministicFakeEmbedding:
    return DeterministicFakeEmbedding(size=8)


@pytest.fixture()
def memory_backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture()
def store(memory_backend: InMemoryBackend, embeddings: DeterministicFakeEmbedding) -> VectorStore:
    return VectorStore(memory_backend, embeddings)
