"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_ssl: bool = False
    chroma_headers: dict[str, str] = Field(
        default_factory=dict,
        description="Extra HTTP headers sent to the Chroma server (e.g. auth tokens).",
    )

    # Embedding
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"

    # Chunking
    chunk_size: int = Field(default=500, gt=0, description="Target chunk length in characters")
    chunk_overlap: int = Field(default=50, ge=0, description="Characters shared by consecutive chunks")

    # Retrieval
    default_top_k: int = Field(default=4, gt=0)
    id_strategy: Literal["time", "uuid"] = Field(
        default="time",
        description=(
            "How record ids are generated when the caller omits one. "
            "'time' gives 'vec-<millis>-<random>', 'uuid' gives a uuid4 hex string."
        ),
    )

    # Fetch
    fetch_timeout: float = Field(default=60.0, gt=0, description="HTTP timeout (seconds) for URL sources")
    temp_dir: str | None = Field(
        default=None,
        description="Directory for decoder temp files. Defaults to the system temp dir.",
    )

    # Parse capability
    parse_output: Literal["text", "chunks"] = "text"
    parse_errors_as_text: bool = Field(
        default=False,
        description="Legacy mode: return 'Error: <message>' from parse() instead of raising.",
    )

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "VECTOR_RAG_"}


# Process-wide settings instance.
settings = Settings()
