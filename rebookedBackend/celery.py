"""
Celery Configuration for ReBooked Backend

Runs the order commit workflow in the background: commit window expiry,
seller reminders, abandoned checkout cleanup, seller payouts and refunds.
"""

import os

from celery import Celery


os.environ.setdefault("DJANGO_SETTINGS_MODULE", "rebookedBackend.settings")

app = Celery("rebookedBackend")

# Using a string here means the worker doesn't have to serialize
# the configuration object to child processes.
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
app.autodiscover_tasks(["payment_system.Tasks"])

app.conf.beat_schedule = {
    # Cancel and refund paid orders whose 48 hour commit window has lapsed
    "expire-overdue-commits": {
        "task": "marketplace.tasks.expire_overdue_commits_task",
        "schedule": 30.0 * 60.0,
        "options": {"expires": 10.0 * 60.0, "queue": "marketplace_tasks"},
    },
    "send-commit-reminders": {
        "task": "marketplace.tasks.send_commit_reminders_task",
        "schedule": 60.0 * 60.0,
        "options": {"expires": 15.0 * 60.0, "queue": "marketplace_tasks"},
    },
    "send-collection-reminders": {
        "task": "marketplace.tasks.send_collection_reminders_task",
        "schedule": 60.0 * 60.0 * 24.0,
        "options": {"expires": 60.0 * 60.0, "queue": "marketplace_tasks"},
    },
    "cancel-abandoned-checkouts": {
        "task": "marketplace.tasks.cancel_abandoned_checkouts_task",
        "schedule": 60.0 * 60.0,
        "options": {"expires": 15.0 * 60.0, "queue": "marketplace_tasks"},
    },
    "retry-failed-payouts": {
        "task": "payment_system.Tasks.payment_tasks.retry_failed_payouts_task",
        "schedule": 60.0 * 60.0,
        "options": {"expires": 15.0 * 60.0, "queue": "payment_tasks"},
    },
    "retry-failed-refunds": {
        "task": "payment_system.Tasks.payment_tasks.retry_failed_refunds_task",
        "schedule": 60.0 * 60.0,
        "options": {"expires": 15.0 * 60.0, "queue": "payment_tasks"},
    },
}

app.conf.update(
    task_routes={
        "payment_system.Tasks.payment_tasks.*": {"queue": "payment_tasks"},
        "marketplace.tasks.*": {"queue": "marketplace_tasks"},
    },
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    result_expires=60 * 60 * 24,
    worker_max_tasks_per_child=1000,
    # Payouts and refunds must survive a worker crash mid-task
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=30 * 60,
    task_soft_time_limit=25 * 60,
    beat_scheduler="django_celery_beat.schedulers:DatabaseScheduler",
)
