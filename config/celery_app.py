import os

from celery import Celery
from celery.schedules import crontab

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.base")

app = Celery("physio")

# All celery-related settings live in Django settings under the CELERY_ prefix
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()

app.conf.beat_schedule = {
    # Morning reminders for the day's appointments
    "send-daily-reminders": {
        "task": "physio.notifications.tasks.send_daily_reminders_task",
        "schedule": crontab(hour=7, minute=0),
    },
}
