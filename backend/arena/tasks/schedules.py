"""Celery Beat schedule configuration.

Tasks:
- Every minute: upcoming tournaments past their start time go live
- Daily: inactivity policy suspends dormant accounts
"""

from celery.schedules import crontab

CELERY_BEAT_SCHEDULE = {
    "advance-tournament-statuses": {
        "task": "arena.tasks.tournaments.advance_tournament_statuses_task",
        "schedule": crontab(),  # Every minute
        "options": {"queue": "scheduling"},
    },
    # 3 AM in the reward timezone
    "apply-inactivity-policy-daily": {
        "task": "arena.tasks.users.apply_inactivity_policy_task",
        "schedule": crontab(hour=3, minute=0),
        "options": {"queue": "maintenance"},
    },
}


CELERY_TASK_ROUTES = {
    "arena.tasks.tournaments.*": {"queue": "scheduling"},
    "arena.tasks.users.*": {"queue": "maintenance"},
}
