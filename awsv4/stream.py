# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Replayable byte streams for file-backed request bodies.

A request body that comes from a file has to be read twice: once to hash
it for the signature and once by the transport that sends it.  The
``ReplayableStream`` wraps the source and hands out independent read
cursors, each of which sees the full content from the beginning:

- Seekable files are re-read positionally; nothing is buffered.
- Any other source (iterators, async iterators, pipes) is pulled once,
  lazily, and the chunks are buffered so later cursors can replay them.

Usage:
    stream = ReplayableStream.from_path("upload.bin")
    for chunk in stream.clone():
        hasher.update(chunk)
    async for chunk in stream.aclone():
        await send(chunk)
"""

from __future__ import annotations

import asyncio
import io
import logging
import threading
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from pathlib import Path
from typing import BinaryIO


logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class StreamError(Exception):
    """Base exception for replayable stream errors."""


class StreamCloneError(StreamError):
    """A read cursor cannot be created for the stream."""


class StreamReadError(StreamError):
    """The underlying source failed while being read."""


Source = bytes | BinaryIO | Iterable[bytes] | AsyncIterable[bytes]


def _is_seekable(source: object) -> bool:
    seekable = getattr(source, "seekable", None)
    if seekable is None:
        return False
    try:
        return bool(seekable())
    except (OSError, ValueError):
        return False


class ReplayableStream:
    """Byte source readable from several independent cursors.

    Args:
        source: ``bytes``, a binary file object, an iterable of ``bytes``
            or an async iterable of ``bytes``.
        chunk_size: Read size for file sources.
        owns_source: Close the source file when the stream is closed.
    """

    def __init__(
        self,
        source: Source,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        owns_source: bool = False,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
            owns_source = True

        self._source = source
        self._chunk_size = chunk_size
        self._owns_source = owns_source
        self._closed = False

        # Positional reads (seekable files)
        self._file: BinaryIO | None = None
        self._file_lock = threading.Lock()

        # Buffered replay (everything else)
        self._chunks: list[bytes] = []
        self._exhausted = False
        self._iterator: Iterator[bytes] | None = None
        self._async_iterator: AsyncIterator[bytes] | None = None
        self._iter_lock = threading.Lock()
        self._pull_lock = asyncio.Lock()

        if hasattr(source, "read"):
            if _is_seekable(source):
                self._file = source  # type: ignore[assignment]
                self._origin = self._file.tell()
            else:
                reader = source.read  # type: ignore[union-attr]
                self._iterator = iter(lambda: reader(chunk_size), b"")
        elif isinstance(source, AsyncIterable):
            self._async_iterator = aiter(source)
        elif isinstance(source, Iterable):
            self._iterator = iter(source)
        else:
            raise TypeError(
                f"Unsupported stream source: {type(source).__name__}"
            )

    @classmethod
    def from_path(
        cls, path: str | Path, *, chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> ReplayableStream:
        """Open a file and wrap it. The stream owns the file handle."""
        return cls(
            open(path, "rb"),  # noqa: SIM115
            chunk_size=chunk_size,
            owns_source=True,
        )

    @property
    def closed(self) -> bool:
        """True once the stream or its underlying file is closed."""
        if self._closed:
            return True
        return bool(getattr(self._source, "closed", False))

    @property
    def is_async_only(self) -> bool:
        """True when the source can only be read asynchronously."""
        return self._async_iterator is not None

    def clone(self) -> StreamCursor:
        """Create a synchronous cursor positioned at the start.

        Raises:
            StreamCloneError: If the stream is closed or its source is
                only readable asynchronously.
        """
        if self.closed:
            raise StreamCloneError("Cannot clone a closed stream")
        if self.is_async_only:
            raise StreamCloneError(
                "Stream source is asynchronous; use aclone()"
            )
        return StreamCursor(self)

    def aclone(self) -> AsyncStreamCursor:
        """Create an asynchronous cursor positioned at the start.

        Raises:
            StreamCloneError: If the stream is closed.
        """
        if self.closed:
            raise StreamCloneError("Cannot clone a closed stream")
        return AsyncStreamCursor(self)

    def close(self) -> None:
        """Close the stream (and the source file, when owned)."""
        if self._closed:
            return
        self._closed = True
        self._chunks.clear()
        if self._owns_source:
            close = getattr(self._source, "close", None)
            if close is not None:
                close()

    def __enter__(self) -> ReplayableStream:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # -- chunk access -------------------------------------------------

    def _read_at(self, offset: int) -> bytes:
        """Read one chunk of a seekable file at ``offset`` bytes from start."""
        assert self._file is not None
        with self._file_lock:
            try:
                self._file.seek(self._origin + offset)
                return self._file.read(self._chunk_size)
            except (OSError, ValueError) as e:
                raise StreamReadError(f"File read failed: {e}") from e

    def _chunk_at(self, index: int) -> bytes | None:
        """Return buffered chunk ``index``, pulling the source as needed.

        Blocks on the source; pulls from any thread are serialized.
        """
        with self._iter_lock:
            while index >= len(self._chunks) and not self._exhausted:
                assert self._iterator is not None
                try:
                    chunk = next(self._iterator)
                except StopIteration:
                    self._exhausted = True
                    break
                except Exception as e:
                    raise StreamReadError(f"Stream source failed: {e}") from e
                if chunk:
                    self._chunks.append(bytes(chunk))
        return self._buffered(index)

    async def _achunk_at(self, index: int) -> bytes | None:
        """Async variant of ``_chunk_at``.

        Sync sources are pulled in a worker thread; async sources are
        pulled on the loop with pulls serialized.
        """
        if self._async_iterator is None:
            return await asyncio.to_thread(self._chunk_at, index)
        async with self._pull_lock:
            while index >= len(self._chunks) and not self._exhausted:
                try:
                    chunk = await anext(self._async_iterator)
                except StopAsyncIteration:
                    self._exhausted = True
                    break
                except Exception as e:
                    raise StreamReadError(
                        f"Stream source failed: {e}"
                    ) from e
                if chunk:
                    self._chunks.append(bytes(chunk))
        return self._buffered(index)

    def _buffered(self, index: int) -> bytes | None:
        if self._closed:
            raise StreamReadError("Stream was closed while reading")
        if index < len(self._chunks):
            return self._chunks[index]
        return None


class StreamCursor:
    """Synchronous read cursor over a ``ReplayableStream``."""

    def __init__(self, stream: ReplayableStream) -> None:
        self._stream = stream

    def __iter__(self) -> Iterator[bytes]:
        stream = self._stream
        if stream._file is not None:
            offset = 0
            while chunk := stream._read_at(offset):
                offset += len(chunk)
                yield chunk
            return
        index = 0
        while (chunk := stream._chunk_at(index)) is not None:
            index += 1
            yield chunk

    def read(self) -> bytes:
        """Read the remaining content in one piece."""
        return b"".join(self)


class AsyncStreamCursor:
    """Asynchronous read cursor over a ``ReplayableStream``."""

    def __init__(self, stream: ReplayableStream) -> None:
        self._stream = stream

    async def __aiter__(self) -> AsyncIterator[bytes]:
        stream = self._stream
        if stream._file is not None:
            offset = 0
            while chunk := await asyncio.to_thread(stream._read_at, offset):
                offset += len(chunk)
                yield chunk
            return
        index = 0
        while (chunk := await stream._achunk_at(index)) is not None:
            index += 1
            yield chunk

    async def read(self) -> bytes:
        """Read the remaining content in one piece."""
        return b"".join([chunk async for chunk in self])
