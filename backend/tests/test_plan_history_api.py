from __future__ import annotations

from uuid import uuid4

from kaamyab.db.models.effort_feedback import EffortFeedback

SNAPSHOT = {
    "weeks": [
        {
            "week": 1,
            "focus": "Research",
            "tasks": [
                {"title": "Read papers", "completed": True, "completed_at": "2025-03-03T09:00:00Z"},
                {"title": "Summarize", "execution_state": "done"},
                {"title": "Share notes"},
            ],
        },
        {"week": 2, "focus": "Build", "tasks": [{"title": "Prototype"}]},
    ],
    "is_strategic_plan": True,
}


def test_archive_plan_derives_totals(client) -> None:
    user_id = uuid4()

    resp = client.post("/plan-history", json={"user_id": str(user_id), "plan_snapshot": SNAPSHOT})

    assert resp.status_code == 201
    body = resp.json()
    assert body["plan"]["total_tasks"] == 4
    assert body["plan"]["completed_tasks"] == 2
    assert body["plan"]["total_weeks"] == 2
    assert body["plan"]["is_strategic"] is True
    assert body["request_id"]


def test_list_plan_history_newest_first(client) -> None:
    user_id = uuid4()
    for day in ("2025-01-05T10:00:00Z", "2025-02-05T10:00:00Z"):
        client.post(
            "/plan-history",
            json={"user_id": str(user_id), "plan_snapshot": SNAPSHOT, "completed_at": day},
        )
    client.post("/plan-history", json={"user_id": str(uuid4()), "plan_snapshot": SNAPSHOT})

    resp = client.get("/plan-history", params={"user_id": str(user_id)})

    assert resp.status_code == 200
    plans = resp.json()["plans"]
    assert len(plans) == 2
    assert plans[0]["completed_at"].startswith("2025-02-05")


def test_malformed_snapshot_is_archived_with_zero_totals(client) -> None:
    resp = client.post(
        "/plan-history",
        json={"user_id": str(uuid4()), "plan_snapshot": {"weeks": "garbage"}},
    )

    assert resp.status_code == 201
    assert resp.json()["plan"]["total_tasks"] == 0


def test_invalid_user_id_is_rejected(client) -> None:
    resp = client.get("/plan-history", params={"user_id": "not-a-uuid"})

    assert resp.status_code == 422


def test_effort_feedback_replaces_previous_entry(client, session_factory) -> None:
    user_id = uuid4()
    first = client.post(
        "/effort-feedback",
        json={"user_id": str(user_id), "week_index": 0, "task_index": 2, "effort": "hard"},
    )
    second = client.post(
        "/effort-feedback",
        json={"user_id": str(user_id), "week_index": 0, "task_index": 2, "effort": "normal"},
    )

    assert first.status_code == 200
    assert first.json()["task_id"] == "0-2"
    assert second.json()["effort"] == "okay"

    session = session_factory()
    try:
        rows = session.query(EffortFeedback).filter(EffortFeedback.user_id == user_id).all()
        assert len(rows) == 1
        assert rows[0].effort == "okay"
    finally:
        session.close()


def test_effort_feedback_rejects_unknown_level(client) -> None:
    resp = client.post(
        "/effort-feedback",
        json={"user_id": str(uuid4()), "week_index": 0, "task_index": 0, "effort": "brutal"},
    )

    assert resp.status_code == 422
