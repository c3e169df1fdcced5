"""
Streaming payload download.

fetch() turns one HTTP GET into an ordered stream of events:

  ChunkReceived      — zero or more, in the order bytes arrived
  DownloadSucceeded  — body fully received
  DownloadFailed     — transport error, timeout, non-2xx, or truncated body

Exactly one terminal event ends the stream. There are no retries.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Union

import aiohttp

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 600
DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class ChunkReceived:
    data: bytes


@dataclass(frozen=True)
class DownloadSucceeded:
    url: str
    size: int


@dataclass(frozen=True)
class DownloadFailed:
    url: str
    cause: str


DownloadEvent = Union[ChunkReceived, DownloadSucceeded, DownloadFailed]


class DownloadFailure(Exception):
    """Print data could not be downloaded."""

    def __init__(self, url: str, cause: str):
        self.url = url
        self.cause = cause
        super().__init__(f"Error downloading print data from {url}: {cause}")


class PayloadDownloader:
    """HTTP GET with the body delivered chunk by chunk."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, chunk_size: int = DEFAULT_CHUNK_SIZE,
                 session: Optional[aiohttp.ClientSession] = None):
        """
        Args:
            timeout: Total seconds allowed for one download.
            chunk_size: Maximum bytes per ChunkReceived event.
            session: Shared session; not closed by the downloader. A new
                session is opened per fetch when omitted.
        """
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.session = session

    async def fetch(self, url: str) -> AsyncIterator[DownloadEvent]:
        size = 0
        try:
            if self.session is not None:
                async for chunk in self._stream(self.session, url):
                    size += len(chunk)
                    yield ChunkReceived(chunk)
            else:
                timeout = aiohttp.ClientTimeout(total=self.timeout)
                async with aiohttp.ClientSession(timeout=timeout) as session:
                    async for chunk in self._stream(session, url):
                        size += len(chunk)
                        yield ChunkReceived(chunk)
        except aiohttp.ClientResponseError as e:
            logger.debug(f"Download of {url} rejected: {e.status} {e.message}")
            yield DownloadFailed(url, f"HTTP {e.status} {e.message}")
            return
        except asyncio.TimeoutError:
            yield DownloadFailed(url, f"timed out after {self.timeout}s")
            return
        except (aiohttp.ClientError, ValueError) as e:
            # ClientPayloadError lands here when the stream ends early
            yield DownloadFailed(url, f"{type(e).__name__}: {e}")
            return

        logger.debug(f"Download of {url} finished ({size} bytes)")
        yield DownloadSucceeded(url, size)

    async def _stream(self, session: aiohttp.ClientSession, url: str) -> AsyncIterator[bytes]:
        logger.info(f"Downloading print data from {url}")
        async with session.get(url, timeout=aiohttp.ClientTimeout(total=self.timeout)) as resp:
            resp.raise_for_status()
            async for chunk in resp.content.iter_chunked(self.chunk_size):
                yield chunk
