"""Unit tests for the data layer: event parsing, report model, repository."""

import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from uxbench.data.database import Database
from uxbench.data.events import (
    ClickClass, ClickEvent, CursorTravelEvent, KeyboardEvent, MalformedEvent,
    ScrollEvent, parse_event,
)
from uxbench.data.models import (
    ACTION_LOG_CAPACITY, ActionLogEntry, FittsTarget, IdleGap, MalformedReport, Report,
)
from uxbench.data.repository import Repository


@pytest.fixture
def repo():
    db = Database.in_memory()
    yield db.repository()
    db.close()


def click_payload(**overrides):
    payload = {
        "type": "click",
        "timestamp": 1000,
        "x": 10,
        "y": 20,
        "target": {
            "tagName": "BUTTON",
            "id": "submit",
            "innerText": "Submit",
            "rect": {"width": 80, "height": 32},
        },
    }
    payload.update(overrides)
    return payload


class TestParseEvent:
    def test_click(self):
        event = parse_event(click_payload(classification="wasted",
                                          classificationReason="disabled element"), 0)
        assert isinstance(event, ClickEvent)
        assert event.timestamp == 1000
        assert (event.x, event.y) == (10, 20)
        assert event.target.element == "BUTTON#submit"
        assert event.target.rect_width == 80
        assert event.classification == ClickClass.WASTED
        assert event.reason == "disabled element"

    def test_click_defaults_to_productive(self):
        event = parse_event(click_payload(), 0)
        assert event.classification == ClickClass.PRODUCTIVE
        assert event.reason is None

    def test_element_without_id(self):
        payload = click_payload()
        payload["target"]["id"] = ""
        assert parse_event(payload, 0).target.element == "BUTTON"

    def test_receipt_time_used_without_timestamp(self):
        event = parse_event({"type": "scroll_update", "total_px": 1500}, 4242)
        assert isinstance(event, ScrollEvent)
        assert event.timestamp == 4242
        assert event.total_px == 1500
        assert event.page_scroll_px is None

    def test_scroll_fields(self):
        event = parse_event({
            "type": "scroll_update",
            "total_px": 1500,
            "page_scroll_px": 1000,
            "container_scroll_px": 500,
            "total_horizontal_px": 40,
            "scroll_events": 12,
            "heaviest_container": "div.results",
        }, 0)
        assert event.horizontal_px == 40
        assert event.scroll_event_count == 12
        assert event.heaviest_container == "div.results"

    def test_keyboard(self):
        event = parse_event({
            "type": "keyboard_update",
            "context_switches": {"total": 4, "ratio": 0.25,
                                 "longest_keyboard_streak": 9, "longest_mouse_streak": 3},
            "shortcut_coverage": {"shortcuts_used": 2},
            "typing_ratio": {"free_text_inputs": 1, "constrained_inputs": 3,
                             "ratio": 0.25, "free_text_fields": ["Email"]},
        }, 500)
        assert isinstance(event, KeyboardEvent)
        assert event.switches_total == 4
        assert event.longest_keyboard_streak == 9
        assert event.shortcuts_used == 2
        assert event.free_text_field_labels == ["Email"]

    def test_mouse_travel_ignores_producer_efficiency(self):
        event = parse_event({"type": "mouse_travel_update", "total_px": 800,
                             "idle_travel_px": 20, "move_events": 40,
                             "path_efficiency": 0.9}, 0)
        assert isinstance(event, CursorTravelEvent)
        assert event.total_px == 800
        assert event.move_events == 40
        assert not hasattr(event, "path_efficiency")

    @pytest.mark.parametrize("payload", [
        None,
        "click",
        {"type": "hover"},
        {"type": "click", "x": 1, "y": 1},
        {"type": "scroll_update"},
        {"type": "scroll_update", "total_px": "a lot"},
        {"type": "scroll_update", "total_px": True},
        {"type": "keyboard_update"},
    ])
    def test_malformed(self, payload):
        with pytest.raises(MalformedEvent):
            parse_event(payload, 0)

    def test_unknown_classification_is_malformed(self):
        with pytest.raises(MalformedEvent, match="classification"):
            parse_event(click_payload(classification="accidental"), 0)

    def test_blank_classification_is_productive(self):
        event = parse_event(click_payload(classification=""), 0)
        assert event.classification == ClickClass.PRODUCTIVE

    def test_error_names_the_failing_field(self):
        with pytest.raises(MalformedEvent, match="total_px"):
            parse_event({"type": "mouse_travel_update", "total_px": "far"}, 0)

    @pytest.mark.parametrize("switches", [{"total": True}, {"total": 2, "ratio": False}])
    def test_nested_booleans_are_not_numbers(self, switches):
        with pytest.raises(MalformedEvent, match="context_switches"):
            parse_event({"type": "keyboard_update", "context_switches": switches}, 0)

    def test_free_text_labels_must_be_strings(self):
        with pytest.raises(MalformedEvent):
            parse_event({
                "type": "keyboard_update",
                "context_switches": {"total": 1},
                "typing_ratio": {"free_text_fields": ["Email", 3]},
            }, 0)

    def test_malformed_is_value_error(self):
        assert issubclass(MalformedEvent, ValueError)


class TestReport:
    def test_empty_report_shape(self):
        data = Report().to_dict()
        assert data["schema_version"] == "1.0"
        assert data["source"] == "uxbench-recorder"
        assert data["metrics"]["fitts"]["formula"] == "shannon"
        assert data["metrics"]["scanning_distance"]["method"] == "euclidean"
        assert data["metrics"]["mouse_travel"]["path_efficiency"] is None
        assert data["metadata"]["operator"] == "human"
        assert "run_count" not in data["metadata"]
        assert "averaged" not in data["metadata"]
        assert data["action_log"] == []

    def test_round_trip(self):
        report = Report()
        report.metadata.product = "Acme"
        report.metadata.run_count = 3
        report.metadata.averaged = True
        report.metrics.click_count.total = 2
        report.metrics.time_on_task.idle_gaps.append(IdleGap(5000, "Submit", "Next"))
        report.metrics.fitts.top_3_hardest.append(FittsTarget("Next", 3.46, 400, "40x20px"))
        report.action_log.append(ActionLogEntry("click", 1000, "BUTTON#next", "Next", "productive"))

        restored = Report.from_dict(report.to_dict())
        assert restored == report
        assert restored.to_dict()["metadata"]["run_count"] == 3

    def test_from_dict_ignores_unknown_keys(self):
        report = Report.from_dict({
            "metadata": {"product": "Acme", "navigation_depth": 4},
            "metrics": {"click_count": {"total": 1, "productive": 1, "legacy": True}},
        })
        assert report.metadata.product == "Acme"
        assert report.metrics.click_count.total == 1

    def test_from_dict_reads_null_numbers_as_zero(self):
        report = Report.from_dict({"metrics": {
            "click_count": {"total": 2},
            "fitts": {"max_id": None, "top_3_hardest": [{"element": "Next", "id": None}]},
        }})
        assert report.metrics.fitts.max_id == 0
        assert report.metrics.fitts.top_3_hardest[0].id == 0
        assert report.metrics.mouse_travel.path_efficiency is None

    @pytest.mark.parametrize("data", [
        {"metrics": {"fitts": {"max_id": "hard"}}},
        {"metrics": {"click_count": {"total": 2.5}}},
        {"metadata": {"urls_visited": "https://example.com"}},
        {"action_log": [{"timestamp": [1]}]},
        None,
    ])
    def test_from_dict_rejects_wrong_types(self, data):
        with pytest.raises(MalformedReport):
            Report.from_dict(data)

    def test_from_dict_keeps_action_log_capacity(self):
        entries = [{"type": "click", "timestamp": i} for i in range(ACTION_LOG_CAPACITY + 5)]
        report = Report.from_dict({"action_log": entries})
        assert report.action_log.maxlen == ACTION_LOG_CAPACITY
        assert report.action_log[0].timestamp == 5

    def test_action_log_is_a_ring_buffer(self):
        report = Report()
        for i in range(ACTION_LOG_CAPACITY + 25):
            report.action_log.append(ActionLogEntry("click", i, "A", "", "productive"))
        assert len(report.action_log) == ACTION_LOG_CAPACITY
        assert report.action_log[0].timestamp == 25
        assert report.action_log[-1].timestamp == ACTION_LOG_CAPACITY + 24


class TestRepository:
    def test_missing_record(self, repo: Repository):
        assert repo.get_record("nothing") is None
        assert repo.load_stats() is None

    def test_upsert_record(self, repo: Repository):
        repo.save_stats({"clicks": 1})
        repo.save_stats({"clicks": 2})
        assert repo.load_stats() == {"clicks": 2}

    def test_clear_live_records_keeps_session_state(self, repo: Repository):
        repo.save_stats({"clicks": 5})
        repo.save_finalized_report(Report())
        repo.save_session_state({"recording": True})
        repo.clear_live_records()
        assert repo.load_stats() is None
        assert repo.load_finalized_report() is None
        assert repo.load_session_state() == {"recording": True}

    def test_finalized_report(self, repo: Repository):
        report = Report()
        report.metrics.click_count.total = 7
        repo.save_finalized_report(report)
        assert repo.load_finalized_report().metrics.click_count.total == 7

    def test_runs(self, repo: Repository):
        for total in (1, 2, 3):
            report = Report()
            report.metrics.click_count.total = total
            repo.add_run(report)
        assert repo.count_runs() == 3
        assert [r.metrics.click_count.total for r in repo.list_runs()] == [1, 2, 3]
        repo.clear_runs()
        assert repo.list_runs() == []


class TestDatabase:
    def test_connect_creates_schema(self, tmp_path):
        db = Database(tmp_path / "nested" / "uxbench.db")
        conn = db.connect()
        tables = {r["name"] for r in conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'")}
        assert {"records", "runs"} <= tables
        assert db.connect() is conn
        db.close()
        assert db.conn is None

    def test_in_memory_store(self):
        with Database.in_memory() as db:
            assert db.is_memory
            repo = db.repository()
            assert db.repository() is repo
            repo.save_stats({"clicks": 3})
            assert repo.load_stats() == {"clicks": 3}
        assert db.conn is None

    def test_file_store_survives_reopen(self, tmp_path):
        path = tmp_path / "uxbench.db"
        with Database(path) as db:
            db.repository().save_session_state({"recording": True})
        with Database(path) as db:
            assert db.repository().load_session_state() == {"recording": True}
