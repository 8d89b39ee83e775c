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

"""Random-access readers over memory-then-disk spooled byte streams.

Example usage::

    from spoolio import BufferedFileReader

    with BufferedFileReader.from_stream(response.raw) as reader:
        header = reader.read_at(0, 16)
        body = reader.read()
"""

from __future__ import annotations

from .cancellation import CancellationToken, DrainContext
from .config import SpoolConfig
from .deadlines import Deadline, MonotonicClock, SystemClock
from .errors import (
    CancelledError,
    CapabilityMismatchError,
    DeadlineExceededError,
    SpoolConstructionError,
    SpoolError,
    SpoolStateError,
    WriterClosedError,
)
from .readers import BufferedFileReader
from .streams import BufferedFileWriter, BufferPool, MemorySpool

__all__ = [
    "BufferPool",
    "BufferedFileReader",
    "BufferedFileWriter",
    "CancellationToken",
    "CancelledError",
    "CapabilityMismatchError",
    "Deadline",
    "DeadlineExceededError",
    "DrainContext",
    "MemorySpool",
    "MonotonicClock",
    "SpoolConfig",
    "SpoolConstructionError",
    "SpoolError",
    "SpoolStateError",
    "SystemClock",
    "WriterClosedError",
]
