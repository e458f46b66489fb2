"""
Celery application configuration.

Handles scheduled bookkeeping jobs (overdue schedules, recurring
expense reminders) for the back office.

Usage:
    # Start worker
    celery -A backoffice_backend worker -l INFO

    # Start beat scheduler (for periodic tasks)
    celery -A backoffice_backend beat -l INFO
"""
import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backoffice_backend.settings")

app = Celery("backoffice_backend")

# Load config from Django settings
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks from all installed apps
app.autodiscover_tasks()
