"""Whitespace normalisation applied to every decoded document."""

from __future__ import annotations

import re

_LINE_ENDINGS = re.compile(r"\r\n?")
_BLANK_LINE_RUNS = re.compile(r"\n\s*\n\s*\n")
_INLINE_SPACE_RUNS = re.compile(r"[ \t]{2,}")


def normalize_text(text: str) -> str:
    """Return *text* in canonical form.

    Steps, in order:

    1. ``\\r\\n`` and lone ``\\r`` become ``\\n``.
    2. Three or more newlines (whitespace allowed in between) collapse to
       exactly two, i.e. at most one blank line between paragraphs.
    3. Runs of two or more spaces/tabs collapse to a single space.
    4. Leading and trailing whitespace is stripped.

    The function is idempotent.
    """
    text = _LINE_ENDINGS.sub("\n", text)
    text = _BLANK_LINE_RUNS.sub("\n\n", text)
    text = _INLINE_SPACE_RUNS.sub(" ", text)
    return text.strip()
