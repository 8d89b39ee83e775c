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

"""Clock control for deadline tests."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from spoolio.deadlines import Deadline


@dataclass
class FakeClock:
    """Monotonic clock that only moves when told to."""

    now: float = 1000.0

    def monotonic(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            msg = "Cannot advance time by negative seconds"
            raise ValueError(msg)
        self.now += seconds
        return self.now

    def expire(self, deadline: Deadline) -> float:
        """Move the clock to exactly ``deadline.expires_at``."""

        self.now = deadline.expires_at
        return self.now


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a clock that stands still until advanced."""

    return FakeClock()
