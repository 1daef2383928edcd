"""
Celery tasks package.

Exports all tasks for convenient imports.
"""
from app.celery_app.tasks.sync import sync_product

__all__ = [
    "sync_product",
]
