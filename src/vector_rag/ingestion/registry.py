"""Format reader registry — maps a declared type tag to a decoder.

A decoder is any object with ``decode(payload: bytes) -> str``.  Adding a
format means registering a decoder for its tag::

    registry = default_registry()
    registry.register("rtf", MyRtfDecoder())
    text = registry.decode("rtf", payload)

Tags fall in two classes.  *Inline-text* tags (``txt``, ``md``, ``json``,
…) are decoded by strict UTF-8 transcoding.  Every other tag, and any
inline-text tag decoded with ``opaque=True``, is handed to its registered
file decoder.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from vector_rag.exceptions import DecodeFailure, UnsupportedFormat
from vector_rag.ingestion import loader

logger = logging.getLogger(__name__)

INLINE_TEXT_TYPES: frozenset[str] = frozenset({"txt", "text", "md", "markdown", "html", "csv", "json"})
IMAGE_TYPES: frozenset[str] = frozenset({"jpg", "jpeg", "png", "gif", "image"})


@runtime_checkable
class Decoder(Protocol):
    """Capability implemented by every format decoder."""

    def decode(self, payload: bytes) -> str: ...


class Utf8Decoder:
    """Direct byte → string transcoding for inline-text payloads."""

    def decode(self, payload: bytes) -> str:
        return payload.decode("utf-8")


def normalize_type(tag: str) -> str:
    """Lower-case *tag* and strip surrounding whitespace and one leading dot."""
    tag = tag.strip().lower()
    return tag[1:] if tag.startswith(".") else tag


class ReaderRegistry:
    """Registry of decoders keyed by normalised type tag."""

    def __init__(self) -> None:
        self._decoders: dict[str, Decoder] = {}
        self._inline: set[str] = set()
        self._utf8 = Utf8Decoder()

    def register(self, tag: str, decoder: Decoder, *, inline: bool = False) -> None:
        """Register (or replace) the file decoder for *tag*.

        With ``inline=True`` the tag joins the inline-text class and its
        payloads are transcoded as UTF-8 unless decoded with ``opaque=True``.
        """
        key = normalize_type(tag)
        self._decoders[key] = decoder
        if inline:
            self._inline.add(key)
        else:
            self._inline.discard(key)
        logger.debug("Registered decoder %s for %r (inline=%s)", type(decoder).__name__, key, inline)

    def unregister(self, tag: str) -> bool:
        key = normalize_type(tag)
        self._inline.discard(key)
        return self._decoders.pop(key, None) is not None

    def supports(self, tag: str) -> bool:
        return normalize_type(tag) in self._decoders

    def is_inline(self, tag: str) -> bool:
        """``True`` when *tag* belongs to the inline-text class."""
        return normalize_type(tag) in self._inline

    def supported_types(self) -> list[str]:
        return sorted(self._decoders)

    def decode(self, tag: str, payload: bytes, *, opaque: bool = False) -> str:
        """Decode *payload* declared as *tag* into plain text.

        Raises
        ------
        UnsupportedFormat
            No decoder is registered for *tag*.
        DecodeFailure
            The decoder raised; the original exception is the ``cause``.
        """
        key = normalize_type(tag)
        decoder = self._decoders.get(key)
        if decoder is None:
            raise UnsupportedFormat(key)
        if key in self._inline and not opaque:
            decoder = self._utf8
        try:
            return decoder.decode(payload)
        except Exception as exc:
            logger.warning("Decoder %s failed for %r: %s", type(decoder).__name__, key, exc)
            raise DecodeFailure(key, exc) from exc


def default_registry(temp_dir: str | None = None) -> ReaderRegistry:
    """Build the stock registry of text, office, and image decoders."""
    registry = ReaderRegistry()

    def file_decoder(extension: str, factory: loader.LoaderFactory) -> loader.FileLoaderDecoder:
        return loader.FileLoaderDecoder(extension, factory, temp_dir)

    for tag in ("txt", "text"):
        registry.register(tag, file_decoder("txt", loader.load_text), inline=True)
    for tag in ("md", "markdown"):
        registry.register(tag, file_decoder("md", loader.load_markdown), inline=True)
    registry.register("html", file_decoder("html", loader.load_html), inline=True)
    registry.register("csv", file_decoder("csv", loader.load_csv), inline=True)
    registry.register("json", file_decoder("json", loader.load_text), inline=True)

    registry.register("pdf", file_decoder("pdf", loader.load_pdf))
    registry.register("docx", file_decoder("docx", loader.load_docx))
    for tag in sorted(IMAGE_TYPES):
        extension = "png" if tag == "image" else tag
        registry.register(tag, file_decoder(extension, loader.load_image))

    return registry
