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

"""Memory-only spool provider."""

from __future__ import annotations

import io
from dataclasses import dataclass, field

from ..cancellation import DrainContext
from ..config import DEFAULT_CHUNK_SIZE
from ..errors import SpoolStateError, WriterClosedError
from ._handles import MemoryReadHandle
from ._protocols import ByteSource, ReadSeekCloser

__all__ = ["MemorySpool"]


@dataclass(slots=True)
class MemorySpool:
    """SpoolProvider that never spills and holds no pooled buffers.

    Useful as a drop-in provider for tests and small payloads, where a temp
    file would be wasteful. It follows the same state rules as
    :class:`BufferedFileWriter`: writable until finalized, readable only
    after that, and unusable once discarded.
    """

    chunk_size: int = DEFAULT_CHUNK_SIZE
    _buffer: io.BytesIO = field(default_factory=io.BytesIO, init=False, repr=False)
    _content: bytes | None = field(default=None, init=False, repr=False)
    _discarded: bool = field(default=False, init=False)

    @property
    def spilled(self) -> bool:
        """Always False."""
        return False

    def _check_writable(self) -> None:
        if self._discarded or self._content is not None:
            raise WriterClosedError("memory spool is not in write-only mode")

    def ingest(self, source: ByteSource, *, context: DrainContext | None = None) -> int:
        """Copy ``source`` into memory.

        Raises:
            SpoolStateError: If ``source`` returns ``None``.
        """
        self._check_writable()
        total = 0
        while True:
            if context is not None:
                context.check()
            chunk = source.read(self.chunk_size)
            if chunk is None:
                msg = "source returned None; non-blocking sources are not supported"
                raise SpoolStateError(msg)
            if not chunk:
                return total
            total += self._buffer.write(chunk)

    def close_for_writing(self) -> None:
        """Freeze the content."""
        self._check_writable()
        self._content = self._buffer.getvalue()
        self._buffer.close()

    def open_reader(self) -> ReadSeekCloser:
        """Return a handle over the frozen content."""
        if self._discarded:
            raise SpoolStateError("memory spool was discarded")
        if self._content is None:
            raise SpoolStateError("memory spool must be in read-only mode to read")
        return MemoryReadHandle.from_bytes(self._content)

    def discard(self) -> None:
        """Drop the content. Handles already opened keep working."""
        self._discarded = True
        self._content = None
        if not self._buffer.closed:
            self._buffer.close()
