"""Celery worker app for background recipe imports.

Run a worker with ``celery -A src.celery_app worker -Q imports,accounts``.
"""

from celery import Celery

from src.config import get_settings

settings = get_settings()

IMPORT_QUEUE = "imports"
ACCOUNT_QUEUE = "accounts"

app = Celery("recetas", broker=settings.redis_url, backend=settings.redis_url)
app.conf.include = ["src.tasks.recipe_import", "src.tasks.password_reset"]

app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    result_expires=3600,
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_routes={
        "src.tasks.recipe_import.*": {"queue": IMPORT_QUEUE},
        "src.tasks.password_reset.*": {"queue": ACCOUNT_QUEUE},
    },
    # Imports wait on remote sites; take one at a time and ack only when done.
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_time_limit=120,
    task_soft_time_limit=90,
)
