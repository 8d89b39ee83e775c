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

"""Base exception hierarchy for :mod:`spoolio`."""

from __future__ import annotations

__all__ = [
    "CancelledError",
    "CapabilityMismatchError",
    "DeadlineExceededError",
    "SpoolConstructionError",
    "SpoolError",
    "SpoolStateError",
    "WriterClosedError",
]


class SpoolError(Exception):
    """Base class for all spoolio exceptions.

    Callers can catch every library-specific failure with a single handler
    while standard exceptions raised by the underlying storage (``OSError``,
    ``ValueError`` from a closed file) propagate unchanged.

    Example:
        Catch any spoolio-specific error::

            try:
                reader = BufferedFileReader.from_stream(source)
            except SpoolError as e:
                logger.error("Spool failure: %s", e)

    Note:
        Subclasses also inherit from a matching builtin (``RuntimeError``,
        ``TypeError``) so they can be handled by more generic code.
    """


class SpoolConstructionError(SpoolError, RuntimeError):
    """Raised when a buffered reader cannot be built.

    Construction drains the source into a provider, finalizes the provider and
    acquires a read handle. A failure in any of those steps is fatal: the
    reader is not created and the provider is discarded. The original error is
    always available as ``__cause__``.

    Example:
        Inspecting the failing step::

            try:
                reader = BufferedFileReader.from_stream(sock_file)
            except SpoolConstructionError as e:
                logger.warning("construction failed: %s (cause: %r)", e, e.__cause__)
    """


class CapabilityMismatchError(SpoolConstructionError, TypeError):
    """Raised when a provider hands back a handle that cannot seek or close.

    This is a construction failure that also inherits from ``TypeError``
    because it reports a protocol mismatch rather than an I/O problem.
    """


class SpoolStateError(SpoolError, RuntimeError):
    """Raised when a provider operation is invalid in its current state.

    A provider is either write-only (accepting bytes) or read-only (handing out
    readers). Asking for a reader before finalization raises this error.
    """


class WriterClosedError(SpoolStateError):
    """Raised on writes or finalization after the provider was finalized.

    Finalization is irreversible, so calling ``close_for_writing()`` a second
    time is also reported with this error.
    """


class DeadlineExceededError(SpoolError, RuntimeError):
    """Raised when draining a source does not finish before its deadline.

    Example:
        Bounding construction time::

            try:
                reader = BufferedFileReader.from_stream(
                    source, context=DrainContext.with_timeout(30)
                )
            except DeadlineExceededError:
                return None

    Note:
        Deadlines are measured on a monotonic clock, so changes to the system
        time do not affect them.
    """


class CancelledError(SpoolError, RuntimeError):
    """Raised when draining a source is cancelled through a token."""
