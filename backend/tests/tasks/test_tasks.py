"""Tests for the Celery maintenance tasks."""

from unittest.mock import AsyncMock, patch

from arena.tasks.celery_app import celery_app
from arena.tasks.schedules import CELERY_BEAT_SCHEDULE
from arena.tasks.tournaments import advance_tournament_statuses_task
from arena.tasks.users import apply_inactivity_policy_task


def test_tasks_are_registered():
    assert "arena.tasks.tournaments.advance_tournament_statuses_task" in celery_app.tasks
    assert "arena.tasks.users.apply_inactivity_policy_task" in celery_app.tasks


def test_beat_schedule_names_registered_tasks():
    for entry in CELERY_BEAT_SCHEDULE.values():
        assert entry["task"] in celery_app.tasks


def test_advance_tournament_statuses_task():
    result = {"went_live": 2, "processed_at": "2026-03-10T12:00:00+00:00"}
    with patch(
        "arena.tasks.tournaments._advance_statuses", new=AsyncMock(return_value=result)
    ) as runner:
        outcome = advance_tournament_statuses_task.apply().get()

    assert outcome == result
    runner.assert_awaited_once()


def test_apply_inactivity_policy_task():
    result = {"suspended": 0, "processed_at": "2026-03-10T03:00:00+00:00"}
    with patch(
        "arena.tasks.users._apply_inactivity_policy", new=AsyncMock(return_value=result)
    ) as runner:
        outcome = apply_inactivity_policy_task.apply().get()

    assert outcome == result
    runner.assert_awaited_once()
