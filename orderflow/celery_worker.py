# orderflow/celery_worker.py
from celery import Celery

from orderflow.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "orderflow",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# tasks live outside this module, import them so the worker registers them
celery_app.conf.imports = (
    "orderflow.services.notification_service",
)

celery_app.conf.task_acks_late = True
celery_app.conf.timezone = "UTC"
