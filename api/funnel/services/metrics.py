from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import text


def ratio(num: int, den: int) -> float:
    if den <= 0:
        return 0.0
    return round(num / den, 4)


def metrics_funnel_summary(db, *, date_from: date, date_to: date) -> dict[str, Any]:
    params = {"date_from": date_from, "date_to": date_to}
    rows = db.execute(
        text(
            """
            SELECT event, COUNT(DISTINCT COALESCE(session_id, CAST(id AS TEXT))) AS c
            FROM survey_events
            WHERE event_timestamp::date >= :date_from
              AND event_timestamp::date <= :date_to
            GROUP BY event
            """
        ),
        params,
    ).mappings().all()
    counts = {str(r["event"]): int(r["c"]) for r in rows}

    def c(name: str) -> int:
        return counts.get(name, 0)

    # Furthest step each session reached, then how many sessions stopped there without completing.
    step_rows = db.execute(
        text(
            """
            WITH reached AS (
              SELECT session_id, MAX(step) AS max_step
              FROM survey_events
              WHERE event = 'step_viewed'
                AND session_id IS NOT NULL
                AND event_timestamp::date >= :date_from
                AND event_timestamp::date <= :date_to
              GROUP BY session_id
            ),
            finished AS (
              SELECT DISTINCT session_id FROM survey_events WHERE event = 'survey_completed'
            )
            SELECT r.max_step AS step, COUNT(1) AS sessions
            FROM reached r
            LEFT JOIN finished f ON f.session_id = r.session_id
            WHERE f.session_id IS NULL
            GROUP BY r.max_step
            ORDER BY r.max_step
            """
        ),
        params,
    ).mappings().all()

    archetype_rows = db.execute(
        text(
            """
            SELECT archetype_result, COUNT(1) AS c
            FROM survey_sessions
            WHERE is_completed = TRUE
              AND completed_at::date >= :date_from
              AND completed_at::date <= :date_to
            GROUP BY archetype_result
            ORDER BY archetype_result
            """
        ),
        params,
    ).mappings().all()

    return {
        "date_from": str(date_from),
        "date_to": str(date_to),
        "counts": counts,
        "kpis": {
            "start_to_complete": ratio(c("survey_completed"), c("survey_start")),
            "complete_to_results_viewed": ratio(c("results_viewed"), c("survey_completed")),
            "retake_rate": ratio(c("survey_retake"), max(1, c("survey_completed"))),
            "drop_off_rate": ratio(c("drop_off"), max(1, c("survey_start"))),
        },
        "abandoned_at_step": [{"step": int(r["step"]), "sessions": int(r["sessions"])} for r in step_rows],
        "archetypes": {str(r["archetype_result"]): int(r["c"]) for r in archetype_rows},
    }
