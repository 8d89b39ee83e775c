# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Spooling writer that buffers in memory and spills to a temp file.

``BufferedFileWriter`` accumulates bytes in a pooled ``bytearray`` until the
configured threshold would be exceeded, then moves everything to a temporary
file and keeps appending there. Once finalized with ``close_for_writing()`` it
hands out read handles over the complete content.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Buffer
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Self

from ..cancellation import DrainContext
from ..config import SpoolConfig
from ..errors import SpoolStateError, WriterClosedError
from ..logging import StructuredLogger, get_logger
from ._handles import MemoryReadHandle, TempFileReadHandle
from ._pool import BufferPool, default_pool
from ._protocols import ByteSource, ReadSeekCloser

__all__ = ["BufferedFileWriter"]

_logger: StructuredLogger = get_logger(__name__, context={"component": "spool"})

_WOULD_BLOCK = "source returned None; non-blocking sources are not supported"


class _State(Enum):
    WRITE_ONLY = "write_only"
    READ_ONLY = "read_only"
    DISCARDED = "discarded"


@dataclass(slots=True)
class BufferedFileWriter:
    """Memory-then-disk spooling writer and reader provider.

    Example::

        writer = BufferedFileWriter(config=SpoolConfig(threshold=1 << 20))
        writer.ingest(response.raw)
        writer.close_for_writing()
        with writer.open_reader() as handle:
            header = handle.read(512)

    The writer is not thread-safe; only the shared :class:`BufferPool` is.

    Pooled buffers arrive with their previous capacity and stale bytes; the
    writer fills them in place and only the first ``_buffered`` bytes belong
    to it. Capacity grows by doubling, capped at the threshold.

    Memory cost: finalizing in-memory content copies it into an immutable
    snapshot that every reader serves from, while the pooled buffer stays
    checked out until the first reader closes (or the writer is discarded).
    Until then in-memory content is held twice, so up to twice the threshold
    per open spool.
    """

    config: SpoolConfig = field(default_factory=SpoolConfig)
    pool: BufferPool = field(default_factory=default_pool)
    _state: _State = field(default=_State.WRITE_ONLY, init=False)
    _size: int = field(default=0, init=False)
    _buffer: bytearray | None = field(default=None, init=False, repr=False)
    _buffered: int = field(default=0, init=False, repr=False)
    _snapshot: bytes | None = field(default=None, init=False, repr=False)
    _file: BinaryIO | None = field(default=None, init=False, repr=False)
    _file_path: Path | None = field(default=None, init=False)

    @classmethod
    def from_stream(
        cls,
        source: ByteSource,
        *,
        context: DrainContext | None = None,
        config: SpoolConfig | None = None,
        pool: BufferPool | None = None,
    ) -> Self:
        """Create a writer and drain ``source`` into it.

        The writer is discarded if draining fails, so no spill file is left
        behind.
        """
        writer = cls(
            config=config if config is not None else SpoolConfig(),
            pool=pool if pool is not None else default_pool(),
        )
        try:
            _ = writer.ingest(source, context=context)
        except BaseException:
            writer.discard()
            raise
        return writer

    @property
    def size(self) -> int:
        """Total bytes written."""
        return self._size

    def __len__(self) -> int:
        return self._size

    @property
    def spilled(self) -> bool:
        """True once content moved to a temp file."""
        return self._file_path is not None

    @property
    def path(self) -> Path | None:
        """Spill file location, or None while content is in memory."""
        return self._file_path

    @property
    def writable(self) -> bool:
        """True until ``close_for_writing()`` is called."""
        return self._state is _State.WRITE_ONLY

    def _check_writable(self) -> None:
        if self._state is not _State.WRITE_ONLY:
            msg = "buffered file writer is not in write-only mode"
            raise WriterClosedError(msg)

    def write(self, data: Buffer) -> int:
        """Append ``data``, spilling to disk when the threshold is crossed.

        Returns:
            Number of bytes written.

        Raises:
            WriterClosedError: If the writer was finalized.
        """
        self._check_writable()
        view = memoryview(data).cast("B")
        length = view.nbytes
        if self._file is not None:
            written = self._file.write(view)
            self._size += written
            return written

        end = self._buffered + length
        if end <= self.config.threshold:
            buffer = self._reserve(end)
            buffer[self._buffered : end] = view
            self._buffered = end
            self._size += length
            return length

        self._spill(view)
        self._size += length
        return length

    def _reserve(self, needed: int) -> bytearray:
        """Return the pooled buffer grown to hold at least ``needed`` bytes."""
        if self._buffer is None:
            self._buffer = self.pool.get()
            self._buffered = 0
        buffer = self._buffer
        capacity = len(buffer)
        if needed > capacity:
            target = min(max(needed, capacity * 2), self.config.threshold)
            buffer.extend(bytes(target - capacity))
        return buffer

    def _head(self) -> bytes:
        """Copy of the bytes this writer placed in its pooled buffer."""
        if self._buffer is None:
            return b""
        with memoryview(self._buffer) as view, view[: self._buffered] as head:
            return head.tobytes()

    def _spill(self, pending: memoryview) -> None:
        """Move buffered bytes and ``pending`` into a new temp file."""
        temp_dir = self.config.temp_dir
        fd, name = tempfile.mkstemp(
            prefix=self.config.temp_prefix,
            dir=str(temp_dir) if temp_dir is not None else None,
        )
        handle = os.fdopen(fd, "wb")
        path = Path(name)
        buffered = self._buffered if self._buffer is not None else 0
        try:
            if self._buffer is not None:
                with memoryview(self._buffer) as view, view[:buffered] as head:
                    _ = handle.write(head)
            _ = handle.write(pending)
        except BaseException:
            handle.close()
            path.unlink(missing_ok=True)
            raise
        self._file = handle
        self._file_path = path
        _logger.debug(
            "Spooled content exceeded threshold; spilled to disk.",
            event="spool.spilled",
            context={
                "threshold": self.config.threshold,
                "buffered": buffered,
                "path": str(path),
            },
        )
        self._release_buffer()

    def ingest(self, source: ByteSource, *, context: DrainContext | None = None) -> int:
        """Read ``source`` in ``chunk_size`` pieces until it is exhausted.

        The context is checked before every chunk, so cancellation takes
        effect between reads rather than during a blocking one.

        Returns:
            Number of bytes ingested.

        Raises:
            SpoolStateError: If ``source`` returns ``None``, which non-blocking
                streams do when no data is ready yet.
        """
        self._check_writable()
        total = 0
        chunk_size = self.config.chunk_size
        while True:
            if context is not None:
                context.check()
            chunk = source.read(chunk_size)
            if chunk is None:
                raise SpoolStateError(_WOULD_BLOCK)
            if not chunk:
                break
            total += self.write(chunk)
        return total

    def close_for_writing(self) -> None:
        """Switch to read-only mode.

        Raises:
            WriterClosedError: If the writer was already finalized.
        """
        self._check_writable()
        self._state = _State.READ_ONLY
        if self._file is not None:
            self._file.close()
            self._file = None
        else:
            self._snapshot = self._head()
        _logger.debug(
            "Spool finalized for reading.",
            event="spool.finalized",
            context={"size": self._size, "spilled": self.spilled},
        )

    def open_reader(self) -> ReadSeekCloser:
        """Return a fresh read handle over the complete content.

        In-memory content is served from an immutable snapshot; closing the
        handle returns the pooled buffer. Spilled content is served from the
        temp file, which the handle deletes on close.

        Raises:
            SpoolStateError: If the writer has not been finalized, or the
                spill file was already consumed.
        """
        if self._state is _State.DISCARDED:
            msg = "buffered file writer was discarded"
            raise SpoolStateError(msg)
        if self._state is not _State.READ_ONLY:
            msg = "buffered file writer must be in read-only mode to read"
            raise SpoolStateError(msg)

        handle: ReadSeekCloser
        if self._file_path is not None:
            try:
                handle = TempFileReadHandle.open(self._file_path)
            except FileNotFoundError as err:
                msg = f"spill file is no longer available: {self._file_path}"
                raise SpoolStateError(msg) from err
        else:
            snapshot = self._snapshot if self._snapshot is not None else b""
            handle = MemoryReadHandle.from_bytes(
                snapshot, on_release=self._release_buffer
            )
        _logger.debug(
            "Opened spool reader.",
            event="spool.reader_opened",
            context={"size": self._size, "spilled": self.spilled},
        )
        return handle

    def getvalue(self) -> bytes:
        """Return the complete content written so far."""
        if self._file_path is None:
            if self._snapshot is not None:
                return self._snapshot
            return self._head()
        if self._file is not None:
            self._file.flush()
        return self._file_path.read_bytes()

    def _release_buffer(self) -> None:
        buffer, self._buffer = self._buffer, None
        self._buffered = 0
        if buffer is not None:
            self.pool.put(buffer)

    def discard(self) -> None:
        """Release the pooled buffer and delete any spill file.

        Safe to call more than once. Handles already opened over in-memory
        content keep working.
        """
        self._state = _State.DISCARDED
        self._snapshot = None
        self._release_buffer()
        if self._file is not None:
            self._file.close()
            self._file = None
        if self._file_path is not None:
            self._file_path.unlink(missing_ok=True)
