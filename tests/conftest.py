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

from __future__ import annotations

from pathlib import Path

import pytest

from spoolio import BufferedFileWriter, BufferPool, SpoolConfig
from tests.helpers import WriterFactory

pytest_plugins = ["tests.helpers.time"]


@pytest.fixture
def pool() -> BufferPool:
    """Return an isolated buffer pool."""

    return BufferPool()


@pytest.fixture
def spill_dir(tmp_path: Path) -> Path:
    """Return a directory that only receives spill files."""

    directory = tmp_path / "spill"
    directory.mkdir()
    return directory


@pytest.fixture
def spill_config(spill_dir: Path) -> SpoolConfig:
    """Return a config that spills anything larger than four bytes."""

    return SpoolConfig(threshold=4, chunk_size=3, temp_dir=spill_dir)


@pytest.fixture
def writer_factory(pool: BufferPool, spill_dir: Path) -> WriterFactory:
    """Return a factory for writers using the isolated pool and spill dir."""

    def factory(*, threshold: int = 1024) -> BufferedFileWriter:
        config = SpoolConfig(threshold=threshold, chunk_size=3, temp_dir=spill_dir)
        return BufferedFileWriter(config=config, pool=pool)

    return factory
