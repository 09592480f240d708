"""
Chunked media transfer.

The engine downloads a format's bytes with sequential ranged GET requests
and hands them to the consumer through a MediaStream. The stream is a
one-slot asyncio.Queue: the producer task blocks on every write until the
consumer has taken the previous piece, so reading pace drives fetching pace.

Termination rules:
- The producer delivers exactly one terminal item, end-of-stream or an error.
- An error is raised on the consumer's next read and on every read after it.
  Bytes already delivered are not a partial success.
- Cancelling the producer ends the stream with TransferCancelledError.
- Every HTTP response is opened with ``async with`` so its connection is
  released on success, error and cancellation alike.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Coroutine
from typing import Any
from urllib.parse import parse_qs, urlsplit

import httpx

from ..config import get_settings
from ..errors import TransferCancelledError, TransportError
from .http_client import HTTPClient

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 10_000_000

_EOF = object()


def _describe(url: str) -> str:
    """Host and itag of a media URL; its query also holds the signature."""
    parts = urlsplit(url)
    itag = parse_qs(parts.query).get("itag", ["?"])[0]
    return f"{parts.hostname} itag={itag}"


class MediaStream:
    """Async byte stream fed by a background producer task."""

    def __init__(self, total_length: int = 0):
        self.total_length = total_length
        self.bytes_read = 0
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=1)
        self._task: asyncio.Task | None = None
        self._terminated = False
        self._finished = False
        self._error: BaseException | None = None

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def _start(self, producer: Coroutine[Any, Any, None]) -> None:
        self._task = asyncio.create_task(producer)
        self._task.add_done_callback(self._on_producer_done)

    async def _write(self, data: bytes) -> None:
        await self._queue.put(data)

    async def _finish(self, error: BaseException | None = None) -> None:
        if self._terminated:
            return
        await self._queue.put(_EOF if error is None else error)
        self._terminated = True

    def _abort(self, error: BaseException) -> None:
        """Terminate without waiting for the consumer, dropping unread data."""
        if self._terminated:
            return
        self._terminated = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(error)

    def _on_producer_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            self._abort(TransferCancelledError("media transfer was cancelled"))

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self

    async def __anext__(self) -> bytes:
        if self._error is not None:
            raise self._error
        if self._finished:
            raise StopAsyncIteration

        item = await self._queue.get()
        if item is _EOF:
            self._finished = True
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            self._error = item
            raise item

        self.bytes_read += len(item)
        return item

    async def read(self) -> bytes:
        """Read the stream to the end and return everything as one buffer."""
        return b"".join([chunk async for chunk in self])

    def cancel(self) -> None:
        """Cancel the producer; pending and future reads fail with TransferCancelledError."""
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def aclose(self) -> None:
        """Stop the transfer and wait until its connection has been released."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        if not self._finished and self._error is None:
            self._error = TransferCancelledError("media stream was closed")

    @property
    def done(self) -> bool:
        return self._finished or self._error is not None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()


class ChunkedTransferEngine:
    """Streams media bytes with sequential ranged requests, one at a time."""

    def __init__(
        self,
        http: HTTPClient,
        chunk_size: int | None = None,
        headers: dict[str, str] | None = None,
    ):
        self._http = http
        self.chunk_size = chunk_size or get_settings().chunk_size or DEFAULT_CHUNK_SIZE
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._headers = dict(headers) if headers else {}

    def open_stream(self, url: str, expected_total_length: int = 0) -> MediaStream:
        """
        Start transferring ``url`` in the background and return its stream.

        A length of 0 means the size is unknown: the body of one plain GET
        is relayed as-is. Otherwise the media is fetched in ranges of
        ``chunk_size`` bytes until ``expected_total_length`` bytes arrived.
        Must be called from a running event loop.
        """
        if expected_total_length < 0:
            raise ValueError("expected_total_length must not be negative")

        stream = MediaStream(expected_total_length)
        stream._start(self._produce(stream, url, expected_total_length))
        logger.info(
            "Started transfer of %s (%s bytes, chunk size %d)",
            _describe(url),
            expected_total_length or "unknown",
            self.chunk_size,
        )
        return stream

    async def _produce(self, stream: MediaStream, url: str, total_length: int) -> None:
        try:
            if total_length == 0:
                await self._copy_whole(stream, url)
            else:
                await self._copy_ranges(stream, url, total_length)
        except Exception as e:
            logger.warning("Transfer of %s failed: %s", _describe(url), e)
            await stream._finish(e)
        else:
            logger.debug("Transfer of %s finished", _describe(url))
            await stream._finish()

    async def _copy_whole(self, stream: MediaStream, url: str) -> None:
        async with self._http.stream("GET", url, headers=self._headers) as response:
            if response.status_code != httpx.codes.OK:
                raise TransportError.unexpected_status(response.status_code, _describe(url))
            await self._copy_body(stream, response)

    async def _copy_ranges(self, stream: MediaStream, url: str, total_length: int) -> None:
        pos = 0
        while pos < total_length:
            end = pos + self.chunk_size - 1
            written = await self._copy_range(stream, url, pos, end)
            if written == 0:
                raise TransportError(
                    f"empty partial content for bytes={pos}-{end} ({_describe(url)})",
                    status_code=httpx.codes.PARTIAL_CONTENT,
                )
            pos += written

    async def _copy_range(self, stream: MediaStream, url: str, start: int, end: int) -> int:
        headers = {**self._headers, "Range": f"bytes={start}-{end}"}
        async with self._http.stream("GET", url, headers=headers) as response:
            if response.status_code != httpx.codes.PARTIAL_CONTENT:
                raise TransportError.unexpected_status(response.status_code, _describe(url))
            return await self._copy_body(stream, response)

    @staticmethod
    async def _copy_body(stream: MediaStream, response: httpx.Response) -> int:
        written = 0
        async for data in response.aiter_bytes():
            if not data:
                continue
            await stream._write(data)
            written += len(data)
        return written
