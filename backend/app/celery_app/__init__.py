"""
Celery application package.

Exports the Celery app instance used by workers and producers.
"""
from app.celery_app.celery_config import celery_app

__all__ = ["celery_app"]
