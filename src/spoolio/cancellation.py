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

"""Cancellation token and drain context used while ingesting a source."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import timedelta

from .deadlines import SYSTEM_CLOCK, Deadline, MonotonicClock
from .errors import CancelledError, DeadlineExceededError

__all__ = [
    "CancellationToken",
    "DrainContext",
]


@dataclass(slots=True)
class CancellationToken:
    """One-shot flag a control thread sets to stop a drain.

    Example::

        token = CancellationToken()
        worker = threading.Thread(
            target=BufferedFileReader.from_stream,
            args=(source,),
            kwargs={"context": DrainContext(token=token)},
        )
        worker.start()
        token.cancel("client disconnected")

    The first reason passed to :meth:`cancel` is kept; later calls are no-ops.
    """

    _event: threading.Event = field(default_factory=threading.Event, repr=False)
    _reason: str | None = field(default=None, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def cancel(self, reason: str | None = None) -> None:
        """Request cancellation of every drain holding this token."""
        with self._lock:
            if self._event.is_set():
                return
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        """Reason given to the first :meth:`cancel` call, if any."""
        with self._lock:
            return self._reason

    def check(self) -> None:
        """Raise :class:`CancelledError` if the token was cancelled."""
        if not self._event.is_set():
            return
        reason = self.reason
        msg = "Drain was cancelled"
        if reason is not None:
            msg = f"{msg}: {reason}"
        raise CancelledError(msg)


@dataclass(slots=True, frozen=True)
class DrainContext:
    """Deadline and cancellation scope for a blocking drain.

    Both members are optional; an empty context never interrupts a drain.
    """

    deadline: Deadline | None = None
    token: CancellationToken | None = None

    @classmethod
    def with_timeout(
        cls,
        timeout: timedelta | float,
        *,
        token: CancellationToken | None = None,
        clock: MonotonicClock = SYSTEM_CLOCK,
    ) -> DrainContext:
        """Return a context whose deadline is ``timeout`` from now."""
        return cls(deadline=Deadline.after(timeout, clock=clock), token=token)

    def check(self) -> None:
        """Raise if the token was cancelled or the deadline has passed.

        Cancellation is reported first when both apply.
        """
        if self.token is not None:
            self.token.check()
        if self.deadline is None:
            return
        remaining = self.deadline.remaining()
        if remaining <= 0:
            msg = f"Drain deadline exceeded by {-remaining:.3f}s"
            raise DeadlineExceededError(msg)
