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

"""Test-only helper utilities for spoolio."""

from .factories import WriterFactory
from .sources import (
    CancellingSource,
    FailingSource,
    ReadOnlyHandle,
    TrickleSource,
    WouldBlockSource,
)
from .time import FakeClock, fake_clock

__all__ = [
    "CancellingSource",
    "FailingSource",
    "FakeClock",
    "ReadOnlyHandle",
    "TrickleSource",
    "WouldBlockSource",
    "WriterFactory",
    "fake_clock",
]
