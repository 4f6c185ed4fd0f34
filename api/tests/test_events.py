import json
from datetime import date

from funnel.services.events import log_product_event, log_survey_events, normalize_client_event
from funnel.services.metrics import metrics_funnel_summary, ratio


class FakeDB:
    def __init__(self):
        self.calls = []

    def execute(self, stmt, params):
        self.calls.append((str(stmt), params))


def test_client_batch_is_inserted_in_order_and_bad_entries_skipped():
    db = FakeDB()
    inserted = log_survey_events(
        db,
        [
            {"event": "step_viewed", "sessionId": "s1", "step": 0, "questionId": "employment_status", "timestamp": "2025-01-01T00:00:00Z"},
            "garbage",
            {"event": "step_answered", "sessionId": "s1", "step": "1", "value": ["a", "b"]},
        ],
    )
    assert inserted == 2
    assert all("INSERT INTO survey_events" in sql for sql, _ in db.calls)
    first, second = (params for _, params in db.calls)
    assert first["event"] == "step_viewed"
    assert first["event_timestamp"].startswith("2025-01-01T00:00:00")
    assert second["step"] == 1
    assert second["value"] == "['a', 'b']"


def test_normalize_client_event_defaults():
    params = normalize_client_event({"step": True, "meta": "nope", "timestamp": "yesterday"})
    assert params["event"] == "unknown"
    assert params["step"] is None
    assert json.loads(params["meta"]) == {}
    assert normalize_client_event(None) is None


def test_log_product_event_shape():
    db = FakeDB()
    log_product_event(db, event="session_completed", session_id="s1", meta={"archetype": "curious_explorer"})
    _, params = db.calls[0]
    assert params["event"] == "session_completed"
    assert json.loads(params["meta"]) == {"archetype": "curious_explorer"}


class FakeResult:
    def __init__(self, rows):
        self.rows = rows

    def mappings(self):
        return self

    def all(self):
        return self.rows


class MetricsDB:
    def __init__(self):
        self.results = [
            [
                {"event": "survey_start", "c": 10},
                {"event": "survey_completed", "c": 4},
                {"event": "results_viewed", "c": 3},
                {"event": "survey_retake", "c": 1},
                {"event": "drop_off", "c": 5},
            ],
            [{"step": 2, "sessions": 3}, {"step": 5, "sessions": 2}],
            [{"archetype_result": "curious_explorer", "c": 3}, {"archetype_result": "emerging_founder", "c": 1}],
        ]

    def execute(self, stmt, params):
        return FakeResult(self.results.pop(0))


def test_funnel_summary_kpis():
    summary = metrics_funnel_summary(MetricsDB(), date_from=date(2025, 1, 1), date_to=date(2025, 1, 31))
    assert summary["kpis"]["start_to_complete"] == 0.4
    assert summary["kpis"]["complete_to_results_viewed"] == 0.75
    assert summary["kpis"]["retake_rate"] == 0.25
    assert summary["kpis"]["drop_off_rate"] == 0.5
    assert summary["abandoned_at_step"] == [{"step": 2, "sessions": 3}, {"step": 5, "sessions": 2}]
    assert summary["archetypes"] == {"curious_explorer": 3, "emerging_founder": 1}
    assert ratio(1, 0) == 0.0
