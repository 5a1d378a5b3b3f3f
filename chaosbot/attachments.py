"""Downloading of user supplied attachments."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import aiohttp

from .errors import UnprocessableImage

logger = logging.getLogger("chaosbot.attachments")

FETCH_FAILED_MESSAGE = "I couldn't download that attachment. Please try uploading it again."
_CHUNK_SIZE = 64 * 1024


async def _read_capped(resp: aiohttp.ClientResponse, url: str, max_bytes: int) -> bytes:
    if resp.content_length is not None and resp.content_length > max_bytes:
        raise UnprocessableImage(
            f"attachment {url} is {resp.content_length} bytes, limit is {max_bytes}",
            user_message="That image is too large. Please upload a smaller picture.",
        )
    buffer = bytearray()
    async for chunk in resp.content.iter_chunked(_CHUNK_SIZE):
        buffer.extend(chunk)
        if len(buffer) > max_bytes:
            raise UnprocessableImage(
                f"attachment {url} exceeded {max_bytes} bytes while downloading",
                user_message="That image is too large. Please upload a smaller picture.",
            )
    return bytes(buffer)


async def fetch_attachment_bytes(
    url: str,
    *,
    max_bytes: int,
    timeout: float,
    session: Optional[aiohttp.ClientSession] = None,
) -> bytes:
    """Download an attachment, raising UnprocessableImage on any failure."""
    if not url.startswith(("http://", "https://")):
        raise UnprocessableImage(f"refusing to fetch non-http url {url}", user_message=FETCH_FAILED_MESSAGE)

    owns_session = session is None
    if owns_session:
        session = aiohttp.ClientSession()
    try:
        async with session.get(url, timeout=aiohttp.ClientTimeout(total=timeout)) as resp:
            if resp.status != 200:
                logger.warning("Attachment fetch failed (%s): %s", resp.status, url)
                raise UnprocessableImage(f"attachment fetch returned HTTP {resp.status}", user_message=FETCH_FAILED_MESSAGE)
            return await _read_capped(resp, url, max_bytes)
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        logger.warning("Attachment fetch error for %s: %s", url, exc)
        raise UnprocessableImage(f"attachment fetch error: {exc}", user_message=FETCH_FAILED_MESSAGE) from exc
    finally:
        if owns_session:
            await session.close()


__all__ = ["FETCH_FAILED_MESSAGE", "fetch_attachment_bytes"]
