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

"""Tests for structured logging helpers."""

from __future__ import annotations

import io
import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from io import StringIO

import pytest

from spoolio import BufferedFileReader, BufferPool
from spoolio.logging import (
    StructuredLogger,
    _coerce_level,
    configure_logging,
    get_logger,
)


class _CaptureHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@contextmanager
def _capture(logger: logging.Logger) -> Iterator[list[logging.LogRecord]]:
    handler = _CaptureHandler()
    logger.addHandler(handler)
    try:
        yield handler.records
    finally:
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture(autouse=True)
def reset_logging_state() -> Iterator[None]:
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    try:
        yield
    finally:
        for handler in root.handlers:
            if handler not in original_handlers:
                handler.close()
        root.handlers = original_handlers
        root.setLevel(original_level)


def test_structured_logger_emits_event_and_context() -> None:
    logger = get_logger("tests.logging").bind(component="unit-test")
    logger.logger.setLevel(logging.INFO)

    with _capture(logger.logger) as records:
        logger.info("structured", event="tests.event", context={"attempt": 1})

    assert len(records) == 1
    record = records[0]
    assert record.event == "tests.event"
    assert record.context == {"component": "unit-test", "attempt": 1}
    assert record.getMessage() == "structured"


def test_extra_values_fold_into_context() -> None:
    logger = get_logger("tests.logging.extra", context={"bound": True})
    logger.logger.setLevel(logging.INFO)

    with _capture(logger.logger) as records:
        logger.info("none-extra", event="tests.none", extra=None)
        logger.info("with-extra", event="tests.extra", extra={"count": 2})

    assert [record.event for record in records] == ["tests.none", "tests.extra"]
    assert records[0].context == {"bound": True}
    assert records[1].context == {"bound": True, "count": 2}


def test_bind_does_not_mutate_parent() -> None:
    parent = get_logger("tests.bind", context={"a": 1})
    child = parent.bind(b=2)
    assert parent.extra == {"a": 1}
    assert child.extra == {"a": 1, "b": 2}
    assert child.logger is parent.logger


def test_get_logger_uses_override() -> None:
    override = logging.getLogger("override")
    logger = get_logger("ignored", logger_override=override, context={"x": True})
    assert isinstance(logger, StructuredLogger)
    assert logger.logger is override
    assert logger.extra == {"x": True}


def test_structured_logger_requires_event() -> None:
    logger = get_logger("tests.missing")
    logger.logger.setLevel(logging.INFO)
    with pytest.raises(TypeError, match="event"):
        logger.info("missing-event", extra={"detail": True})


def test_structured_logger_rejects_non_mapping_context() -> None:
    logger = get_logger("tests.badcontext")
    logger.logger.setLevel(logging.INFO)
    with pytest.raises(TypeError, match="mapping"):
        logger.info("bad", event="tests.bad", context=["not", "a", "mapping"])


def test_exception_logging_keeps_context() -> None:
    logger = get_logger("tests.exception").bind(component="drain")
    logger.logger.setLevel(logging.INFO)

    with _capture(logger.logger) as records:
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            logger.exception("failed", event="tests.error", context={"step": "x"})

    assert records[0].context == {"component": "drain", "step": "x"}
    assert records[0].exc_info is not None


def test_configure_logging_respects_existing_handlers() -> None:
    root = logging.getLogger()
    root_handler = logging.NullHandler()
    root.handlers = [root_handler]

    configure_logging(level="DEBUG", json_mode=True)

    assert root.handlers == [root_handler]
    assert root.level == logging.DEBUG


def test_configure_logging_honors_env() -> None:
    configure_logging(
        force=True,
        env={"SPOOLIO_LOG_FORMAT": "JSON", "SPOOLIO_LOG_LEVEL": "warning"},
    )

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert root.handlers[0].formatter.__class__.__name__ == "_JsonFormatter"
    assert root.level == logging.WARNING


def test_configure_logging_defaults_to_text_formatter() -> None:
    configure_logging(force=True, env={})

    root = logging.getLogger()
    assert root.handlers[0].formatter.__class__.__name__ != "_JsonFormatter"
    assert root.level == logging.INFO


def test_json_output_for_reader_lifecycle(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reader lifecycle events render as JSON lines with their context."""
    stream = StringIO()
    monkeypatch.setattr(sys, "stderr", stream)
    configure_logging(level="DEBUG", json_mode=True, force=True)

    reader = BufferedFileReader.from_stream(io.BytesIO(b"abc"), pool=BufferPool())
    reader.close()
    logging.getLogger().handlers[0].flush()

    payloads = [json.loads(line) for line in stream.getvalue().splitlines()]
    events = [payload["event"] for payload in payloads]
    assert "buffered_reader.created" in events
    assert "buffered_reader.closed" in events
    closed = payloads[events.index("buffered_reader.closed")]
    assert closed["context"] == {
        "component": "buffered_reader",
        "size": 3,
        "spilled": False,
    }
    assert closed["logger"] == "spoolio.readers._buffered"


def test_json_formatter_falls_back_to_repr() -> None:
    configure_logging(json_mode=True, force=True)
    handler = logging.getLogger().handlers[0]
    marker = object()
    record = logging.getLogger().makeRecord(
        "tests.repr",
        logging.INFO,
        "tests/test_logging.py",
        0,
        "payload",
        (),
        None,
        extra={"event": "tests.repr", "context": {"object": marker}},
    )

    payload = json.loads(handler.format(record))

    assert payload["context"]["object"] == repr(marker)


@pytest.mark.parametrize(
    ("level", "expected"),
    [(None, logging.INFO), ("debug", logging.DEBUG), (logging.ERROR, logging.ERROR)],
)
def test_coerce_level(level: int | str | None, expected: int) -> None:
    assert _coerce_level(level) == expected


def test_coerce_level_rejects_unknown_name() -> None:
    with pytest.raises(TypeError, match="Unknown log level"):
        _coerce_level("chatty")
