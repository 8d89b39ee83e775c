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

"""Protocol definitions for spool providers and their read handles.

Defines the ByteSource, ReadSeekCloser and SpoolProvider protocols that
buffered readers depend on. Concrete providers live beside this module.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..cancellation import DrainContext

__all__ = [
    "ByteSource",
    "ReadSeekCloser",
    "SpoolProvider",
]


@runtime_checkable
class ByteSource(Protocol):
    """Finite producer of bytes, such as a file, socket file or ``BytesIO``."""

    def read(self, size: int = -1, /) -> bytes | None:
        """Read up to size bytes. Empty bytes signal the end of the source.

        Non-blocking raw streams return ``None`` when no data is ready; spools
        reject such sources instead of mistaking ``None`` for the end.
        """
        ...


@runtime_checkable
class ReadSeekCloser(Protocol):
    """Read handle over finalized spool content.

    The handle owns the cursor shared by every read and seek issued through
    it. ``close()`` gives pooled resources back; whether reads keep working
    afterwards depends on the backing medium.
    """

    def read(self, size: int = -1, /) -> bytes:
        """Read up to size bytes from the cursor.

        Returns:
            Bytes read. Empty bytes at end of stream.
        """
        ...

    def seek(self, offset: int, whence: int = 0, /) -> int:
        """Move the cursor.

        Args:
            offset: Offset relative to whence.
            whence: Reference point (0=start, 1=current, 2=end).

        Returns:
            New absolute position.

        Raises:
            ValueError: If the target is negative or whence is invalid.
        """
        ...

    def close(self) -> None:
        """Release the resources held by the handle."""
        ...


@runtime_checkable
class SpoolProvider(Protocol):
    """Writer that buffers a byte stream and hands out readers once finalized.

    Example::

        provider.ingest(source)
        provider.close_for_writing()
        handle = provider.open_reader()
    """

    @property
    def spilled(self) -> bool:
        """True if any content lives on disk rather than in memory."""
        ...

    def ingest(self, source: ByteSource, *, context: DrainContext | None = None) -> int:
        """Consume ``source`` until exhausted.

        Returns:
            Number of bytes ingested.

        Raises:
            WriterClosedError: If the provider was already finalized.
            CancelledError: If the context's token was cancelled.
            DeadlineExceededError: If the context's deadline passed.
        """
        ...

    def close_for_writing(self) -> None:
        """Irreversibly switch to read-only mode.

        Raises:
            WriterClosedError: If the provider was already finalized.
        """
        ...

    def open_reader(self) -> ReadSeekCloser:
        """Return a new read handle over the complete content.

        Raises:
            SpoolStateError: If the provider has not been finalized.
        """
        ...

    def discard(self) -> None:
        """Drop all buffered content and release storage."""
        ...
