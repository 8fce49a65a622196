"""Tests for the durable session log and replay helpers."""

import json
import logging

import pytest

from trace_viz.exceptions import SessionLogError
from trace_viz.normalizer import Rejected, normalize
from trace_viz.session_log import (
    SessionLogger,
    parse_session_log,
    read_session_log,
    replay_payload,
)
from trace_viz.store import EventStore


class TestSessionLogger:
    def test_path_keyed_by_session(self, tmp_path) -> None:
        log = SessionLogger("sess-abc", tmp_path / "sessions")
        assert log.path == tmp_path / "sessions" / "sess-abc.jsonl"

    def test_open_creates_directory(self, tmp_path) -> None:
        log = SessionLogger("sess-abc", tmp_path / "a" / "b")
        log.open()
        try:
            assert log.is_open
            assert log.path.parent.is_dir()
        finally:
            log.close()

    def test_writes_one_line_per_event(self, tmp_path, make_event) -> None:
        events = [make_event("tool_end"), make_event("notification", message="hi")]
        with SessionLogger("sess-abc", tmp_path) as log:
            for event in events:
                log.write(event)

        lines = log.path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["id"] == events[0].id
        assert json.loads(lines[0])["toolType"] == "bash"
        assert json.loads(lines[1])["message"] == "hi"

    def test_appends_across_reopen(self, tmp_path, make_event) -> None:
        with SessionLogger("sess-abc", tmp_path) as log:
            log.write(make_event())
        with SessionLogger("sess-abc", tmp_path) as log:
            log.write(make_event())
        assert len(log.path.read_text(encoding="utf-8").splitlines()) == 2

    def test_close_is_idempotent(self, tmp_path) -> None:
        log = SessionLogger("sess-abc", tmp_path)
        log.open()
        log.close()
        log.close()
        assert not log.is_open

    def test_write_before_open_is_noop(self, tmp_path, make_event) -> None:
        log = SessionLogger("sess-abc", tmp_path)
        log.write(make_event())
        assert not log.path.exists()

    def test_open_failure_disables_logging(self, tmp_path, make_event, caplog) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        log = SessionLogger("sess-abc", blocker / "sessions")

        with caplog.at_level(logging.WARNING, logger="trace_viz.session_log"):
            log.open()
            log.write(make_event())

        assert not log.is_open
        assert "Session log disabled" in caplog.text

    def test_write_failure_is_logged_not_raised(self, tmp_path, make_event, caplog) -> None:
        log = SessionLogger("sess-abc", tmp_path)
        log.open()
        assert log._handle is not None
        log._handle.close()

        with caplog.at_level(logging.WARNING, logger="trace_viz.session_log"):
            log.write(make_event())

        assert "Failed to write event" in caplog.text


class TestParseSessionLog:
    def test_skips_blank_and_malformed_lines(self, make_event) -> None:
        good = make_event("tool_end")
        content = "\n".join(
            [
                good.to_json(),
                "",
                "{not json",
                json.dumps({"type": "tool_middle", "id": "x"}),
                json.dumps({"type": "tool_end", "id": "y"}),
                make_event("notification", message="after").to_json(),
            ]
        )
        events = parse_session_log(content)
        assert [e.type for e in events] == ["tool_end", "notification"]
        assert events[0] == good

    def test_read_missing_file_raises(self, tmp_path) -> None:
        with pytest.raises(SessionLogError) as exc_info:
            read_session_log(tmp_path / "missing.jsonl")
        assert exc_info.value.path == tmp_path / "missing.jsonl"

    def test_read_round_trips_logged_events(self, tmp_path, make_event) -> None:
        events = [make_event("tool_start"), make_event("tool_end")]
        with SessionLogger("sess-abc", tmp_path) as log:
            for event in events:
                log.write(event)
        assert read_session_log(log.path) == events


class TestReplayEquivalence:
    def test_replay_reproduces_statistics(self, tmp_path) -> None:
        payloads = [
            {"hook": "PreToolUse", "tool_name": "Bash"},
            {"hook": "PostToolUse", "tool_name": "Bash", "duration_ms": 40},
            {"hook": "PreToolUse", "tool_name": "Task", "tool_input": {"subagent_id": "agent-1"}},
            {"hook": "PostToolUse", "tool_name": "Read", "tool_response": {"output": "abc"}},
            {"hook": "PostToolUse", "tool_name": "WebSearch", "tool_response": {"error": "429"}},
            {"hook": "Notification", "message": "compacting"},
            {"hook": "PreCompact", "tokens_before": 5000},
            {"hook": "PostCompact", "tokens_after": 800},
            {"hook": "Stop", "total_input_tokens": 900, "total_output_tokens": 120, "model": "m"},
        ]
        original = EventStore("sess-original")
        with SessionLogger(original.session_id, tmp_path) as log:
            for i, payload in enumerate(payloads):
                event = normalize(payload, "agent-1" if i == 3 else "agent-0")
                assert not isinstance(event, Rejected)
                original.append(event)
                log.write(event)

        replayed = EventStore("sess-replay")
        for event in read_session_log(log.path):
            result = normalize(replay_payload(event), "agent-0")
            assert not isinstance(result, Rejected)
            replayed.append(result)

        before, after = original.stats(), replayed.stats()
        assert after.tool_call_count == before.tool_call_count
        assert after.tool_calls_by_type == before.tool_calls_by_type
        assert after.total_input_tokens == before.total_input_tokens
        assert after.total_output_tokens == before.total_output_tokens
        assert after.agent_count == before.agent_count
        assert after.model == before.model
        assert [e.type for e in replayed.all()] == [e.type for e in original.all()]
        assert {e.id for e in replayed.all()}.isdisjoint(e.id for e in original.all())
