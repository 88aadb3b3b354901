"""Fetch raw document bytes from HTTP(S) sources."""

from __future__ import annotations

import asyncio
import logging

import requests

from vector_rag.config import settings
from vector_rag.exceptions import FetchFailure

logger = logging.getLogger(__name__)


def _get(url: str, timeout: float, headers: dict[str, str] | None) -> bytes:
    try:
        resp = requests.get(url, headers=headers or {}, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.error("✗ %s: %s", url, exc)
        raise FetchFailure(url, exc) from exc
    logger.info("✓ %s (%d bytes)", url, len(resp.content))
    return resp.content


async def fetch_bytes(
    url: str,
    *,
    timeout: float | None = None,
    headers: dict[str, str] | None = None,
) -> bytes:
    """Download *url* and return the body as raw bytes.

    The blocking ``requests`` call runs in a worker thread.  There is no
    retry; HTTP error statuses and network errors both raise
    :class:`~vector_rag.exceptions.FetchFailure`.
    """
    return await asyncio.to_thread(_get, url, timeout or settings.fetch_timeout, headers)
