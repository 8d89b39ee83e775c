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

"""Configuration for spooling writers."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Final

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_SPILL_THRESHOLD",
    "DEFAULT_TEMP_PREFIX",
    "SpoolConfig",
]

#: Bytes kept in memory before spilling to a temp file (10MB).
DEFAULT_SPILL_THRESHOLD: Final[int] = 10 * 1024 * 1024

#: Default chunk size for draining and iteration (64KB).
DEFAULT_CHUNK_SIZE: Final[int] = 65_536

DEFAULT_TEMP_PREFIX: Final[str] = "spoolio-"

_THRESHOLD_ENV = "SPOOLIO_SPILL_THRESHOLD"
_CHUNK_SIZE_ENV = "SPOOLIO_CHUNK_SIZE"
_TEMP_DIR_ENV = "SPOOLIO_TEMP_DIR"
_TEMP_PREFIX_ENV = "SPOOLIO_TEMP_PREFIX"


@dataclass(slots=True, frozen=True)
class SpoolConfig:
    """Immutable settings controlling when and where a writer spills.

    Attributes:
        threshold: Maximum bytes buffered in memory. A write that would grow
            the buffer past this limit moves all content to a temp file.
        chunk_size: Size of each ``read()`` issued while draining a source.
        temp_dir: Directory for spill files. ``None`` uses the system default.
        temp_prefix: Filename prefix for spill files.
    """

    threshold: int = DEFAULT_SPILL_THRESHOLD
    chunk_size: int = DEFAULT_CHUNK_SIZE
    temp_dir: Path | None = None
    temp_prefix: str = DEFAULT_TEMP_PREFIX

    def __post_init__(self) -> None:
        if self.threshold < 0:
            msg = "SpoolConfig threshold must be non-negative."
            raise ValueError(msg)
        if self.chunk_size <= 0:
            msg = "SpoolConfig chunk_size must be positive."
            raise ValueError(msg)
        if not self.temp_prefix or os.sep in self.temp_prefix:
            msg = f"Invalid temp_prefix: {self.temp_prefix!r}"
            raise ValueError(msg)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> SpoolConfig:
        """Build a config from ``SPOOLIO_*`` environment variables.

        Unset variables fall back to the defaults. Malformed integers raise
        ``ValueError``.
        """

        env = os.environ if env is None else env
        temp_dir = env.get(_TEMP_DIR_ENV)
        return cls(
            threshold=_int_setting(env, _THRESHOLD_ENV, DEFAULT_SPILL_THRESHOLD),
            chunk_size=_int_setting(env, _CHUNK_SIZE_ENV, DEFAULT_CHUNK_SIZE),
            temp_dir=Path(temp_dir) if temp_dir else None,
            temp_prefix=env.get(_TEMP_PREFIX_ENV) or DEFAULT_TEMP_PREFIX,
        )


def _int_setting(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None
