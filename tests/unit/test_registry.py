"""Unit tests for the format reader registry and file-loader decoders."""

from __future__ import annotations

from pathlib import Path

import pytest
from langchain_core.documents import Document

from vector_rag.exceptions import DecodeFailure, UnsupportedFormat
from vector_rag.ingestion.loader import FileLoaderDecoder, temp_file_path
from vector_rag.ingestion.registry import (
    IMAGE_TYPES,
    INLINE_TEXT_TYPES,
    ReaderRegistry,
    default_registry,
    normalize_type,
)

# ── Fakes ───────────────────────────────────────────────────────────────


class _FakeLoader:
    """Stand-in for a LangChain loader; records the path it was given."""

    def __init__(self, path: str, pages: list[str], seen: list[Path]) -> None:
        self.path = Path(path)
        self.pages = pages
        seen.append(self.path)

    def load(self) -> list[Document]:
        assert self.path.exists(), "payload must be on disk while the loader runs"
        return [Document(page_content=p) for p in self.pages]


class _BrokenLoader:
    def __init__(self, path: str, seen: list[Path]) -> None:
        seen.append(Path(path))

    def load(self) -> list[Document]:
        raise RuntimeError("corrupt file")


class _UpperDecoder:
    def decode(self, payload: bytes) -> str:
        return payload.decode("utf-8").upper()


# ── Tag handling ────────────────────────────────────────────────────────


@pytest.mark.parametrize(("raw", "expected"), [("PDF", "pdf"), (".md", "md"), (" .Docx ", "docx"), ("txt", "txt")])
def test_normalize_type(raw: str, expected: str) -> None:
    assert normalize_type(raw) == expected


def test_default_registry_classes() -> None:
    registry = default_registry()
    inline = {t for t in registry.supported_types() if registry.is_inline(t)}
    assert inline == INLINE_TEXT_TYPES
    for tag in ("pdf", "docx", *IMAGE_TYPES):
        assert registry.supports(tag)
        assert not registry.is_inline(tag)


# ── Inline-text class ───────────────────────────────────────────────────


@pytest.mark.parametrize("tag", sorted(INLINE_TEXT_TYPES) + [".MD", "Json"])
def test_inline_decode_is_utf8_transcoding(tag: str) -> None:
    text = "héllo — wörld\n{\"k\": 1}"
    assert default_registry().decode(tag, text.encode("utf-8")) == text


def test_invalid_utf8_raises_decode_failure() -> None:
    with pytest.raises(DecodeFailure) as info:
        default_registry().decode("txt", b"\xff\xfe\xfa")
    assert info.value.tag == "txt"
    assert isinstance(info.value.cause, UnicodeDecodeError)


def test_unknown_tag_raises_unsupported_format() -> None:
    with pytest.raises(UnsupportedFormat) as info:
        default_registry().decode(".XYZ", b"data")
    assert info.value.tag == "xyz"
    assert info.value.kind == "UnsupportedFormat"
    assert "xyz" in str(info.value)


# ── Registration ────────────────────────────────────────────────────────


def test_register_new_format() -> None:
    registry = ReaderRegistry()
    registry.register(".RTF", _UpperDecoder())
    assert registry.supports("rtf")
    assert registry.decode("rtf", b"abc") == "ABC"


def test_unregister() -> None:
    registry = default_registry()
    assert registry.unregister("pdf") is True
    assert registry.unregister("pdf") is False
    with pytest.raises(UnsupportedFormat):
        registry.decode("pdf", b"%PDF")


def test_opaque_inline_type_uses_registered_decoder() -> None:
    registry = ReaderRegistry()
    registry.register("txt", _UpperDecoder(), inline=True)
    assert registry.decode("txt", b"abc") == "abc"
    assert registry.decode("txt", b"abc", opaque=True) == "ABC"


def test_decoder_exception_is_wrapped() -> None:
    class _Exploding:
        def decode(self, payload: bytes) -> str:
            raise KeyError("boom")

    registry = ReaderRegistry()
    registry.register("pdf", _Exploding())
    with pytest.raises(DecodeFailure) as info:
        registry.decode("pdf", b"%PDF-1.7")
    assert isinstance(info.value.cause, KeyError)
    assert isinstance(info.value.__cause__, KeyError)


# ── File-loader decoders ────────────────────────────────────────────────


def test_file_decoder_joins_segments_and_removes_temp_file(tmp_path: Path) -> None:
    seen: list[Path] = []
    decoder = FileLoaderDecoder(
        "pdf",
        lambda path: _FakeLoader(path, ["page one", "page two", "page three"], seen),
        str(tmp_path),
    )
    assert decoder.decode(b"%PDF-1.7 ...") == "page one\npage two\npage three"
    assert len(seen) == 1
    assert seen[0].suffix == ".pdf"
    assert seen[0].parent == tmp_path
    assert not seen[0].exists()


def test_file_decoder_removes_temp_file_on_failure(tmp_path: Path) -> None:
    seen: list[Path] = []
    registry = ReaderRegistry()
    registry.register("docx", FileLoaderDecoder("docx", lambda path: _BrokenLoader(path, seen), str(tmp_path)))
    with pytest.raises(DecodeFailure, match="corrupt file"):
        registry.decode("docx", b"PK\x03\x04")
    assert not seen[0].exists()
    assert list(tmp_path.iterdir()) == []


def test_opaque_text_through_langchain_text_loader(tmp_path: Path) -> None:
    registry = default_registry(temp_dir=str(tmp_path))
    payload = "plain text\nsecond line".encode("utf-8")
    assert registry.decode("txt", payload, opaque=True) == "plain text\nsecond line"
    assert list(tmp_path.iterdir()) == []


def test_temp_file_names_are_unique(tmp_path: Path) -> None:
    names = {temp_file_path("pdf", str(tmp_path)).name for _ in range(200)}
    assert len(names) == 200
    assert all(name.startswith("vector_rag_") and name.endswith(".pdf") for name in names)


def test_opaque_html_through_stock_decoder(tmp_path: Path) -> None:
    registry = default_registry(temp_dir=str(tmp_path))
    payload = b"<html><head><title>Greeting</title></head><body><p>Hi there</p></body></html>"
    text = registry.decode("html", payload, opaque=True)
    assert "Hi there" in text
    assert "<p>" not in text
    assert list(tmp_path.iterdir()) == []
