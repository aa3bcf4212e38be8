from __future__ import annotations

import json

from pathlib import Path

import pytest

from nicehtml.logging import RunEventLog, setup_file_logger
from nicehtml.output import OutputSink, render_document


def test_render_document_embeds_fragments_and_errors():
    sink = OutputSink()
    sink.emit("<p><span>hi</span></p>")
    sink.record_error("NiceHTML Error: bad <line>")

    document = render_document(sink, title="Demo & co")

    assert "<title>Demo &amp; co</title>" in document
    assert "<p><span>hi</span></p>" in document
    assert "bad &lt;line&gt;" in document
    assert document.startswith("<!DOCTYPE html>")


def test_render_document_with_custom_template(tmp_path: Path):
    template = tmp_path / "bare.html.j2"
    template.write_text("{{ title }}|{{ fragments | join(',') }}")
    sink = OutputSink()
    sink.emit("a")
    sink.emit("b")

    assert render_document(sink, title="t", template=template) == "t|a,b"
    with pytest.raises(FileNotFoundError):
        render_document(sink, template=tmp_path / "missing.j2")


def test_run_event_log_writes_jsonl(tmp_path: Path):
    path = tmp_path / "events" / "run.jsonl"
    log = RunEventLog(path, run_id="run_1")
    log.record("state", state="loading")
    log.record("fragment_converted", index=0)

    lines = [json.loads(line) for line in path.read_text().splitlines()]
    assert [line["kind"] for line in lines] == ["state", "fragment_converted"]
    assert lines[0]["run_id"] == "run_1"
    assert lines[1]["data"] == {"index": 0}
    assert log.kinds() == ["state", "fragment_converted"]


def test_run_event_log_in_memory_only():
    log = RunEventLog(run_id="run_2")
    log.record("state", state="done")
    assert log.path is None
    assert log.records[0].data == {"state": "done"}


def test_setup_file_logger_is_idempotent(tmp_path: Path):
    log_file = tmp_path / "logs" / "nicehtml.log"
    logger = setup_file_logger(log_file, name="nicehtml.test_output")
    again = setup_file_logger(log_file, name="nicehtml.test_output")
    assert logger is again
    assert len(logger.handlers) == 1
    assert logger.handlers[0]._nicehtml_log_file == str(log_file.resolve())
    logger.info("hello")
    for handler in logger.handlers:
        handler.flush()
    assert "hello" in log_file.read_text()
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
