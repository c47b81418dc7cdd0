"""Celery app factory."""

from celery import Celery

celery_app = Celery(
    "screenwise",
    include=["workers.tasks.exams", "workers.tasks.resumes"],
)
celery_app.config_from_object("workers.celery_config")
