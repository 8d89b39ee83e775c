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

"""Drain timeouts measured on a monotonic clock.

A drain is bounded by how long it runs, not by a calendar time, so deadlines
are built from a relative timeout and compared against monotonic seconds.
Wall-clock adjustments never shorten or extend a drain.

Example::

    deadline = Deadline.after(0.25)
    reader = BufferedFileReader.from_stream(
        source, context=DrainContext(deadline=deadline)
    )

Tests inject their own :class:`MonotonicClock` instead of sleeping.
"""

from __future__ import annotations

import math
import time as _time
from dataclasses import dataclass
from datetime import timedelta
from typing import Final, Protocol, runtime_checkable

__all__ = [
    "SYSTEM_CLOCK",
    "Deadline",
    "MonotonicClock",
    "SystemClock",
]


@runtime_checkable
class MonotonicClock(Protocol):
    """Source of monotonic time in seconds with an arbitrary zero point."""

    def monotonic(self) -> float: ...


@dataclass(frozen=True, slots=True)
class SystemClock:
    """Clock backed by :func:`time.monotonic`."""

    def monotonic(self) -> float:
        return _time.monotonic()


SYSTEM_CLOCK: Final[MonotonicClock] = SystemClock()


def _timeout_seconds(timeout: timedelta | float) -> float:
    seconds = (
        timeout.total_seconds() if isinstance(timeout, timedelta) else float(timeout)
    )
    if not math.isfinite(seconds) or seconds <= 0:
        msg = f"Drain timeout must be a positive, finite duration: {timeout!r}"
        raise ValueError(msg)
    return seconds


@dataclass(frozen=True, slots=True)
class Deadline:
    """Monotonic instant after which a drain must stop.

    Attributes:
        expires_at: Expiry on ``clock``'s timeline, in seconds.
        clock: Clock the deadline is measured against.
    """

    expires_at: float
    clock: MonotonicClock = SYSTEM_CLOCK

    @classmethod
    def after(
        cls, timeout: timedelta | float, *, clock: MonotonicClock = SYSTEM_CLOCK
    ) -> Deadline:
        """Return a deadline ``timeout`` from now.

        Sub-second timeouts are accepted; zero, negative and non-finite ones
        raise ``ValueError``.
        """
        return cls(clock.monotonic() + _timeout_seconds(timeout), clock)

    def remaining(self) -> float:
        """Seconds left before expiry; negative once it has passed."""
        return self.expires_at - self.clock.monotonic()

    def expired(self) -> bool:
        return self.remaining() <= 0
