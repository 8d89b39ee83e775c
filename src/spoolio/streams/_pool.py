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

"""Reusable memory buffers shared across spooling writers."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Final

__all__ = [
    "DEFAULT_MAX_IDLE",
    "DEFAULT_MAX_RETAINED_SIZE",
    "BufferPool",
    "default_pool",
]

DEFAULT_MAX_IDLE: Final[int] = 16

#: Buffers whose capacity grew past this are dropped rather than pooled (1MB).
DEFAULT_MAX_RETAINED_SIZE: Final[int] = 1024 * 1024


@dataclass
class BufferPool:
    """Thread-safe pool of ``bytearray`` buffers that keep their allocation.

    Writers take a buffer with :meth:`get` and give it back with :meth:`put`
    once the last reader over their content is closed. A buffer is pooled as
    is: its length is the capacity the previous writer grew it to and its
    bytes are whatever that writer left behind. Borrowers track how many
    leading bytes they have written and never expose the rest.
    """

    max_idle: int = DEFAULT_MAX_IDLE
    max_retained_size: int = DEFAULT_MAX_RETAINED_SIZE
    _idle: list[bytearray] = field(default_factory=list, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self) -> None:
        if self.max_idle < 0:
            msg = "BufferPool max_idle must be non-negative."
            raise ValueError(msg)
        if self.max_retained_size < 0:
            msg = "BufferPool max_retained_size must be non-negative."
            raise ValueError(msg)

    @property
    def idle(self) -> int:
        """Number of buffers currently waiting for reuse."""
        with self._lock:
            return len(self._idle)

    def get(self) -> bytearray:
        """Return an idle buffer with its capacity intact, or a new empty one."""
        with self._lock:
            if self._idle:
                return self._idle.pop()
        return bytearray()

    def put(self, buffer: bytearray) -> None:
        """Retain ``buffer`` for reuse if the pool has room.

        Buffers whose capacity exceeds ``max_retained_size`` are dropped.
        """
        if len(buffer) > self.max_retained_size:
            return
        with self._lock:
            if len(self._idle) < self.max_idle and all(
                held is not buffer for held in self._idle
            ):
                self._idle.append(buffer)


_DEFAULT_POOL = BufferPool()


def default_pool() -> BufferPool:
    """Return the process-wide pool used when no pool is supplied."""
    return _DEFAULT_POOL
