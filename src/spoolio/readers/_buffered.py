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

"""Random-access reader over spooled content.

``BufferedFileReader`` drains a source into a spool provider, finalizes it and
keeps exactly one read handle, to which every read and seek is delegated.
Positional reads relocate the shared cursor before reading.
"""

from __future__ import annotations

import os
from collections.abc import Buffer, Iterator
from dataclasses import dataclass, field
from typing import Self

from ..cancellation import DrainContext
from ..config import DEFAULT_CHUNK_SIZE, SpoolConfig
from ..errors import (
    CancelledError,
    CapabilityMismatchError,
    DeadlineExceededError,
    SpoolConstructionError,
)
from ..logging import StructuredLogger, get_logger
from ..streams import (
    BufferedFileWriter,
    BufferPool,
    ByteSource,
    ReadSeekCloser,
    SpoolProvider,
    default_pool,
)

__all__ = ["BufferedFileReader"]

_logger: StructuredLogger = get_logger(
    __name__, context={"component": "buffered_reader"}
)


@dataclass(slots=True)
class BufferedFileReader:
    """Read, seek, positional-read and close over a finalized spool.

    Example::

        with BufferedFileReader.from_stream(response.raw) as reader:
            magic = reader.read_at(0, 4)
            reader.seek(-22, os.SEEK_END)
            trailer = reader.read()

    The reader is a single-threaded façade without internal locking. The
    cursor lives in the read handle and is moved by ``read``, ``seek`` and
    ``read_at`` alike, so concurrent callers must serialize access.

    Closing releases the handle. For in-memory content that only returns the
    pooled buffer, and reads keep working afterwards. Spilled content is
    deleted on close and later reads raise ``ValueError``.
    """

    _provider: SpoolProvider
    _reader: ReadSeekCloser
    _size: int = field(default=0, init=False)
    _closed: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        if not isinstance(self._reader, ReadSeekCloser):
            msg = (
                f"reader does not implement read, seek and close: "
                f"{type(self._reader).__name__}"
            )
            raise CapabilityMismatchError(msg)
        self._size = self._reader.seek(0, os.SEEK_END)
        _ = self._reader.seek(0, os.SEEK_SET)

    @classmethod
    def from_stream(
        cls,
        source: ByteSource,
        *,
        context: DrainContext | None = None,
        config: SpoolConfig | None = None,
        pool: BufferPool | None = None,
        provider: SpoolProvider | None = None,
    ) -> Self:
        """Drain ``source`` into a spool and return a reader at offset 0.

        Args:
            source: Finite byte source. It is read until exhausted.
            context: Optional deadline and cancellation scope for the drain.
            config: Spill settings for the default provider.
            pool: Buffer pool for the default provider.
            provider: Fresh provider to use instead of a
                :class:`BufferedFileWriter`.

        Raises:
            SpoolConstructionError: If draining, finalizing or opening the
                reader failed. The cause is chained.
            CapabilityMismatchError: If the handle cannot seek or close.
            CancelledError: If the context's token was cancelled.
            DeadlineExceededError: If the context's deadline passed.
        """
        if provider is None:
            provider = BufferedFileWriter(
                config=config if config is not None else SpoolConfig(),
                pool=pool if pool is not None else default_pool(),
            )
        try:
            _ = provider.ingest(source, context=context)
        except (CancelledError, DeadlineExceededError):
            provider.discard()
            raise
        except Exception as err:
            provider.discard()
            _log_construction_failure("ingest", err)
            msg = f"error creating buffered file reader: {err}"
            raise SpoolConstructionError(msg) from err
        if context is not None:
            try:
                context.check()
            except (CancelledError, DeadlineExceededError):
                provider.discard()
                raise
        return cls.from_provider(provider)

    @classmethod
    def from_provider(cls, provider: SpoolProvider) -> Self:
        """Finalize a drained ``provider`` and wrap its read handle.

        The provider is discarded if any step fails, and a handle that was
        already opened is closed first.

        Raises:
            SpoolConstructionError: If finalizing or opening the reader failed.
            CapabilityMismatchError: If the handle cannot seek or close.
        """
        try:
            provider.close_for_writing()
        except Exception as err:
            provider.discard()
            _log_construction_failure("close_for_writing", err)
            msg = f"error finalizing spool for reading: {err}"
            raise SpoolConstructionError(msg) from err

        try:
            handle = provider.open_reader()
        except Exception as err:
            provider.discard()
            _log_construction_failure("open_reader", err)
            msg = f"error opening spool reader: {err}"
            raise SpoolConstructionError(msg) from err

        try:
            reader = cls(provider, handle)
        except CapabilityMismatchError as err:
            _abandon(provider, handle, err)
            _log_construction_failure("capability_check", err)
            raise
        except Exception as err:
            _abandon(provider, handle, err)
            _log_construction_failure("measure", err)
            msg = f"error measuring spool reader: {err}"
            raise SpoolConstructionError(msg) from err
        _logger.debug(
            "Buffered file reader created.",
            event="buffered_reader.created",
            context={"size": reader.size, "spilled": provider.spilled},
        )
        return reader

    @property
    def size(self) -> int:
        """Total finalized length in bytes."""
        return self._size

    @property
    def position(self) -> int:
        """Current cursor position."""
        return self.tell()

    @property
    def closed(self) -> bool:
        """True once close() has been called."""
        return self._closed

    @property
    def spilled(self) -> bool:
        """True if the content is served from a temp file."""
        return self._provider.spilled

    @property
    def handle(self) -> ReadSeekCloser:
        """The single read handle every operation delegates to."""
        return self._reader

    def read(self, size: int = -1) -> bytes:
        """Read up to size bytes from the cursor.

        Returns:
            Bytes read. Empty bytes once the cursor is at or past the end.
        """
        return self._reader.read(size)

    def readinto(self, buffer: Buffer) -> int:
        """Fill ``buffer`` from one read at the cursor.

        Returns:
            Number of bytes copied, 0 at end of stream.
        """
        view = memoryview(buffer).cast("B")
        data = self._reader.read(len(view))
        count = len(data)
        view[:count] = data
        return count

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        """Move the cursor and return the new absolute position.

        Errors come straight from the read handle; no extra bounds are
        imposed, so seeking past the end is allowed.
        """
        return self._reader.seek(offset, whence)

    def tell(self) -> int:
        """Return the cursor position."""
        return self._reader.seek(0, os.SEEK_CUR)

    def read_at(self, offset: int, size: int = -1) -> bytes:
        """Move the cursor to ``offset`` and perform exactly one read.

        This is not cursor-preserving: a later :meth:`read` continues from
        ``offset`` plus the bytes returned here. A short read is returned
        as is.

        Raises:
            ValueError: If ``offset`` is negative. Nothing is read.
        """
        _ = self._reader.seek(offset, os.SEEK_SET)
        return self._reader.read(size)

    def readinto_at(self, buffer: Buffer, offset: int) -> int:
        """Buffer-filling counterpart of :meth:`read_at`."""
        _ = self._reader.seek(offset, os.SEEK_SET)
        return self.readinto(buffer)

    def __iter__(self) -> Iterator[bytes]:
        """Iterate over the remaining bytes in default-size chunks."""
        return self.chunks(DEFAULT_CHUNK_SIZE)

    def chunks(self, size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        """Iterate over the remaining bytes in chunks of ``size``."""
        if size <= 0:
            msg = "chunk size must be positive"
            raise ValueError(msg)
        while True:
            chunk = self._reader.read(size)
            if not chunk:
                break
            yield chunk

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Release the read handle and the pooled resource behind it."""
        if self._closed:
            return
        self._closed = True
        self._reader.close()
        _logger.debug(
            "Buffered file reader closed.",
            event="buffered_reader.closed",
            context={"size": self._size, "spilled": self._provider.spilled},
        )


def _log_construction_failure(step: str, error: BaseException) -> None:
    _logger.warning(
        "Buffered file reader construction failed.",
        event="buffered_reader.construction_failed",
        context={"step": step, "error": repr(error)},
    )


def _abandon(provider: SpoolProvider, handle: object, error: Exception) -> None:
    """Close ``handle`` if it can be closed, then discard ``provider``.

    A failing close is recorded as a note on ``error`` so the construction
    failure stays the reported one.
    """
    close = getattr(handle, "close", None)
    try:
        if callable(close):
            _ = close()
    except Exception as close_error:
        error.add_note(f"closing the spool reader also failed: {close_error!r}")
    finally:
        provider.discard()
