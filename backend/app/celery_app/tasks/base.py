"""
Base task class — common retry settings, async helper, and lazy DI.

Provides:
- Retry defaults (backoff, jitter) shared by all sync tasks
- Lifecycle logging
- run_async for calling the async services from a worker
- Worker-local dependency getters
"""
import asyncio
import logging

from celery import Task

from app.core.config import settings
from app.core.constants.sync import SYNC_RETRY_BACKOFF_MAX

logger = logging.getLogger("celery_tasks")


class BaseTask(Task):
    """Base task with common functionality for all workers."""

    abstract = True

    # NOTE: autoretry_for is declared per task. A catch-all here would
    # retry field errors that can never succeed.
    retry_backoff = True
    retry_backoff_max = SYNC_RETRY_BACKOFF_MAX
    retry_jitter = True
    max_retries = settings.sync_max_retries

    track_started = True

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        """Called when task fails after all retries exhausted."""
        logger.error("task failed name=%s task_id=%s error=%s", self.name, task_id, exc)

    def on_retry(self, exc, task_id, args, kwargs, einfo):
        logger.warning(
            "task retrying name=%s task_id=%s attempt=%s error=%s",
            self.name, task_id, self.request.retries, exc,
        )

    def on_success(self, retval, task_id, args, kwargs):
        logger.info("task succeeded name=%s task_id=%s", self.name, task_id)


# ============================================
# Async Helper
# ============================================
def run_async(coro):
    """
    Run async function in sync context.

    Each call creates a new event loop so tasks never share one.
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


# ============================================
# Dependency helpers (lazy loading, worker-local)
# ============================================
_dependencies = None


def get_dependencies():
    """
    Lazy load dependencies.

    Called after fork so each worker gets its own Supabase client and
    adapter location cache.
    """
    global _dependencies
    if _dependencies is None:
        # Lazy imports: circular dependency avoidance
        from app.container import get_sync_orchestrator

        _dependencies = {
            "settings": settings,
            "sync_orchestrator": get_sync_orchestrator(),
        }
    return _dependencies


def get_sync_orchestrator():
    """Get sync orchestrator instance."""
    return get_dependencies()["sync_orchestrator"]


def get_settings():
    return get_dependencies()["settings"]
