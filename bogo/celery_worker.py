# bogo/celery_worker.py
from celery import Celery

from bogo.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "bogo",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# explicit import so the worker registers the tasks
celery_app.conf.imports = (
    "bogo.services.usage_service",
)

celery_app.conf.timezone = "UTC"
