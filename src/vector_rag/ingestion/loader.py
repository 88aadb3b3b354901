"""Document loaders — file-path decoders around LangChain document loaders.

LangChain loaders read from a path, so :class:`FileLoaderDecoder` writes
the payload to a scoped temporary file, runs the loader, and joins the
page contents of the returned documents with a single newline.
"""

from __future__ import annotations

import logging
import secrets
import tempfile
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from langchain_core.document_loaders import BaseLoader

logger = logging.getLogger(__name__)

LoaderFactory = Callable[[str], "BaseLoader"]


def load_text(path: str) -> BaseLoader:
    """Plain-text loader (also used for JSON kept verbatim)."""
    from langchain_community.document_loaders import TextLoader

    return TextLoader(path, encoding="utf-8")


def load_pdf(path: str) -> BaseLoader:
    """One document per PDF page."""
    from langchain_community.document_loaders import PyPDFLoader

    return PyPDFLoader(path)


def load_docx(path: str) -> BaseLoader:
    from langchain_community.document_loaders import Docx2txtLoader

    return Docx2txtLoader(path)


def load_markdown(path: str) -> BaseLoader:
    """Markdown loader (requires the ``unstructured`` extra)."""
    from langchain_community.document_loaders import UnstructuredMarkdownLoader

    return UnstructuredMarkdownLoader(path)


def load_html(path: str) -> BaseLoader:
    """HTML loader using the parser bundled with bs4."""
    from langchain_community.document_loaders import BSHTMLLoader

    return BSHTMLLoader(path, open_encoding="utf-8", bs_kwargs={"features": "html.parser"})


def load_csv(path: str) -> BaseLoader:
    """One document per CSV row."""
    from langchain_community.document_loaders import CSVLoader

    return CSVLoader(path, encoding="utf-8")


def load_image(path: str) -> BaseLoader:
    """OCR loader for images (requires the ``unstructured`` extra)."""
    from langchain_community.document_loaders import UnstructuredImageLoader

    return UnstructuredImageLoader(path)


def temp_file_path(extension: str, directory: str | None = None) -> Path:
    """Return a collision-resistant temp path (time + random suffix)."""
    root = Path(directory) if directory else Path(tempfile.gettempdir())
    name = f"vector_rag_{time.time_ns()}_{secrets.token_hex(6)}.{extension}"
    return root / name


@dataclass(frozen=True)
class FileLoaderDecoder:
    """Decoder that materialises the payload on disk for a LangChain loader.

    Parameters
    ----------
    extension:
        File extension given to the temp file (some loaders sniff it).
    loader_factory:
        Callable mapping a file path to a LangChain ``BaseLoader``.
    temp_dir:
        Directory for the temp file; the system temp dir when ``None``.
    """

    extension: str
    loader_factory: LoaderFactory
    temp_dir: str | None = None

    def decode(self, payload: bytes) -> str:
        path = temp_file_path(self.extension, self.temp_dir)
        path.write_bytes(payload)
        try:
            documents = self.loader_factory(str(path)).load()
            logger.debug("Loaded %d segment(s) from %s", len(documents), path.name)
            return "\n".join(doc.page_content for doc in documents)
        finally:
            try:
                path.unlink(missing_ok=True)
            except OSError:
                logger.debug("Could not remove temp file %s", path, exc_info=True)
