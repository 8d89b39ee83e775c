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

"""Property-based tests for buffered readers across spill thresholds."""

from __future__ import annotations

import io

from hypothesis import given, settings, strategies as st

from spoolio import BufferedFileReader, BufferPool, SpoolConfig

_payloads = st.binary(max_size=300)
_thresholds = st.integers(min_value=0, max_value=64)
_chunk_sizes = st.integers(min_value=1, max_value=17)


def _reader(data: bytes, threshold: int, chunk_size: int) -> BufferedFileReader:
    config = SpoolConfig(threshold=threshold, chunk_size=chunk_size)
    return BufferedFileReader.from_stream(
        io.BytesIO(data), config=config, pool=BufferPool()
    )


@given(_payloads, _thresholds, _chunk_sizes, st.integers(min_value=1, max_value=50))
@settings(max_examples=75)
def test_sequential_reads_reproduce_source(
    data: bytes, threshold: int, chunk_size: int, read_size: int
) -> None:
    """Reading until EOF returns the ingested bytes, spilled or not."""
    with _reader(data, threshold, chunk_size) as reader:
        assert reader.spilled == (len(data) > threshold)
        assert b"".join(reader.chunks(read_size)) == data
        assert reader.read() == b""


@given(_payloads, _thresholds, st.data())
@settings(max_examples=75)
def test_seek_then_read_returns_suffix(
    data: bytes, threshold: int, draw: st.DataObject
) -> None:
    """seek(o) followed by read() yields data[o:] for every valid offset."""
    offset = draw.draw(st.integers(min_value=0, max_value=len(data)))
    with _reader(data, threshold, 8) as reader:
        assert reader.seek(offset) == offset
        assert reader.read() == data[offset:]


@given(_payloads, _thresholds, st.data())
@settings(max_examples=75)
def test_read_at_matches_seek_read_and_moves_cursor(
    data: bytes, threshold: int, draw: st.DataObject
) -> None:
    """read_at equals seek+read and later reads continue from its end."""
    start = draw.draw(st.integers(min_value=0, max_value=len(data)))
    offset = draw.draw(st.integers(min_value=0, max_value=len(data) + 4))
    size = draw.draw(st.integers(min_value=0, max_value=len(data) + 4))

    with _reader(data, threshold, 8) as reader:
        reader.seek(start)
        got = reader.read_at(offset, size)

        assert got == data[offset : offset + size]
        assert reader.tell() == offset + len(got)
        assert reader.read() == data[offset + len(got) :]
