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

"""Read handles over finalized spool content.

Provides MemoryReadHandle for content still held in memory and
TempFileReadHandle for content that spilled to a temporary file.
"""

from __future__ import annotations

import io
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Self

__all__ = [
    "MemoryReadHandle",
    "TempFileReadHandle",
]


def _resolve_target(offset: int, whence: int, position: int, size: int) -> int:
    if whence == os.SEEK_SET:
        target = offset
    elif whence == os.SEEK_CUR:
        target = position + offset
    elif whence == os.SEEK_END:
        target = size + offset
    else:
        msg = f"Invalid whence value: {whence}"
        raise ValueError(msg)
    if target < 0:
        msg = f"negative seek position {target}"
        raise ValueError(msg)
    return target


@dataclass(slots=True)
class MemoryReadHandle:
    """Read handle over an immutable snapshot of in-memory content.

    Closing the handle runs its release hook once, which typically hands the
    writer's pooled buffer back to its pool. The snapshot is independent of
    that buffer, so the handle keeps serving reads and seeks after close.
    """

    _buffer: io.BytesIO
    _size: int
    _on_release: Callable[[], None] | None = None
    _released: bool = field(default=False, init=False)

    @classmethod
    def from_bytes(
        cls, content: bytes, *, on_release: Callable[[], None] | None = None
    ) -> MemoryReadHandle:
        """Create a handle over ``content``.

        Args:
            content: Finalized bytes to read.
            on_release: Called once on the first ``close()``.

        Returns:
            New MemoryReadHandle positioned at offset 0.
        """
        return cls(
            _buffer=io.BytesIO(content), _size=len(content), _on_release=on_release
        )

    @property
    def size(self) -> int:
        """Total size in bytes."""
        return self._size

    @property
    def position(self) -> int:
        """Current read position."""
        return self._buffer.tell()

    @property
    def released(self) -> bool:
        """True once close() returned the pooled resource."""
        return self._released

    def read(self, size: int = -1, /) -> bytes:
        """Read up to size bytes."""
        return self._buffer.read(size)

    def seek(self, offset: int, whence: int = 0, /) -> int:
        """Seek to position."""
        target = _resolve_target(offset, whence, self._buffer.tell(), self._size)
        return self._buffer.seek(target)

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
        """Return the pooled resource. Reads remain available."""
        if self._released:
            return
        self._released = True
        if self._on_release is not None:
            self._on_release()


@dataclass(slots=True)
class TempFileReadHandle:
    """Read handle backed by a spill file that is deleted on close.

    Unlike :class:`MemoryReadHandle`, closing invalidates the handle: the file
    descriptor is closed and later reads raise ``ValueError``.
    """

    _path: Path
    _handle: BinaryIO
    _size: int
    _closed: bool = field(default=False, init=False)

    @classmethod
    def open(cls, path: Path) -> TempFileReadHandle:
        """Open a spill file for reading.

        Size comes from the open descriptor via ``os.fstat``.

        Raises:
            FileNotFoundError: If the spill file no longer exists.
        """
        handle = path.open("rb")
        size = os.fstat(handle.fileno()).st_size
        return cls(_path=path, _handle=handle, _size=size)

    @property
    def path(self) -> Path:
        """Location of the spill file."""
        return self._path

    @property
    def size(self) -> int:
        """Total file size in bytes."""
        return self._size

    @property
    def position(self) -> int:
        """Current read position in bytes."""
        self._check_closed()
        return self._handle.tell()

    @property
    def closed(self) -> bool:
        """True if the handle has been closed."""
        return self._closed

    def _check_closed(self) -> None:
        if self._closed:
            msg = "I/O operation on closed file"
            raise ValueError(msg)

    def read(self, size: int = -1, /) -> bytes:
        """Read up to size bytes."""
        self._check_closed()
        return self._handle.read(size)

    def seek(self, offset: int, whence: int = 0, /) -> int:
        """Seek to position."""
        self._check_closed()
        target = _resolve_target(offset, whence, self._handle.tell(), self._size)
        return self._handle.seek(target)

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
        """Close the descriptor and delete the spill file."""
        if self._closed:
            return
        self._closed = True
        try:
            self._handle.close()
        finally:
            self._path.unlink(missing_ok=True)
