"""
Sync tasks — push a catalog product to connected Shopify stores.

Tasks:
- sync_product: sync one product to explicit stores or all active stores

A run whose stores fail with transport-class errors (network, timeout,
429, 5xx) re-queues itself for exactly those stores. Field errors are
recorded in the ledger and never retried.
"""
import logging
from typing import Any, Dict, List, Optional

from app.celery_app.celery_config import celery_app
from app.celery_app.tasks.base import (
    BaseTask,
    get_settings,
    get_sync_orchestrator,
    run_async,
)
from app.core.constants.sync import SYNC_RETRY_BACKOFF_MAX
from app.core.exceptions import NonRetryableError, RetryableError

logger = logging.getLogger("sync_tasks")


def retry_countdown(retries: int) -> int:
    """Exponential backoff in seconds for the given attempt number."""
    return min(SYNC_RETRY_BACKOFF_MAX, 30 * (2 ** retries))


@celery_app.task(
    bind=True,
    base=BaseTask,
    name="tasks.sync.sync_product",
    autoretry_for=(RetryableError,),
    dont_autoretry_for=(NonRetryableError,),
)
def sync_product(self, product_id: int, store_ids: Optional[List[int]] = None) -> Dict[str, Any]:
    """
    Sync a product to stores and return the SyncResponse as a dict.

    Args:
        product_id: Catalog product id
        store_ids: Explicit target stores; None means every active store
    """
    logger.info(
        "sync task start product_id=%s store_ids=%s attempt=%s",
        product_id, store_ids, self.request.retries,
    )

    orchestrator = get_sync_orchestrator()
    response = run_async(orchestrator.sync(product_id, store_ids))

    retry_ids = response.retryable_store_ids
    max_retries = get_settings().sync_max_retries
    if retry_ids:
        if self.request.retries < max_retries:
            countdown = retry_countdown(self.request.retries)
            logger.warning(
                "sync task re-queue product_id=%s store_ids=%s countdown=%s",
                product_id, retry_ids, countdown,
            )
            raise self.retry(
                args=[product_id, retry_ids],
                countdown=countdown,
                max_retries=max_retries,
            )
        logger.error(
            "sync task retries exhausted product_id=%s store_ids=%s",
            product_id, retry_ids,
        )

    logger.info(
        "sync task done product_id=%s synced=%s failed=%s",
        product_id, len(response.succeeded), len(response.failed),
    )
    return response.model_dump(by_alias=True, exclude_none=True)
