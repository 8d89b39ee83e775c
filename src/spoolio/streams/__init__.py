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

"""Spool providers, read handles and buffer pooling.

Protocols:
    ByteSource: Anything with ``read(size) -> bytes``.
    ReadSeekCloser: Read handle with read, seek and close.
    SpoolProvider: Writer that finalizes and hands out read handles.

Implementations:
    BufferedFileWriter: Memory-then-temp-file spooling provider.
    MemorySpool: Memory-only provider.
    MemoryReadHandle: Handle over an in-memory snapshot.
    TempFileReadHandle: Handle over a spill file, deleted on close.
    BufferPool: Thread-safe pool of reusable buffers.
"""

from __future__ import annotations

from ._handles import MemoryReadHandle, TempFileReadHandle
from ._memory import MemorySpool
from ._pool import (
    DEFAULT_MAX_IDLE,
    DEFAULT_MAX_RETAINED_SIZE,
    BufferPool,
    default_pool,
)
from ._protocols import ByteSource, ReadSeekCloser, SpoolProvider
from ._writer import BufferedFileWriter

__all__ = [
    "DEFAULT_MAX_IDLE",
    "DEFAULT_MAX_RETAINED_SIZE",
    "BufferPool",
    "BufferedFileWriter",
    "ByteSource",
    "MemoryReadHandle",
    "MemorySpool",
    "ReadSeekCloser",
    "SpoolProvider",
    "TempFileReadHandle",
    "default_pool",
]
