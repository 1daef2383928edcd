"""
Celery configuration — broker, queues, task routes, rate limits.

Running a worker:
    celery -A app.celery_app worker -Q sync_shopify,default -l info -n sync@%h

On Windows the prefork pool does not work; the solo pool is selected
automatically.

Environment variables:
    CELERY_BROKER_URL / CELERY_RESULT_BACKEND: Redis URLs (default REDIS_URL)
    SHOPIFY_API_RATE_LIMIT: sync task executions per worker (default: 30/m)
    SYNC_MAX_RETRIES: re-queues for transport-failed stores (default: 3)
    LOG_LEVEL: worker log level (default: INFO)
"""
import logging
import platform

from celery import Celery
from kombu import Queue

from app.core.config import settings

logging.basicConfig(
    level=settings.log_level,
    format="%(levelname)s:%(name)s:%(message)s",
)
logger = logging.getLogger("celery_config")

IS_WINDOWS = platform.system() == "Windows"

SHOPIFY_RATE_LIMIT = settings.shopify_api_rate_limit

celery_app = Celery(
    "storefront_sync_hub",
    broker=settings.broker_url,
    backend=settings.result_backend,
    include=[
        "app.celery_app.tasks.sync",
    ]
)

celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,

    task_queues=(
        Queue("default"),
        Queue("sync_shopify"),
    ),
    task_default_queue="default",
    task_routes={
        "tasks.sync.*": {"queue": "sync_shopify"},
    },

    task_annotations={
        "tasks.sync.sync_product": {
            "rate_limit": SHOPIFY_RATE_LIMIT,
        },
    },

    result_expires=3600,  # 1 hour

    task_default_retry_delay=30,
    task_max_retries=settings.sync_max_retries,

    worker_pool="solo" if IS_WINDOWS else "prefork",

    broker_transport_options={"visibility_timeout": 3600},

    worker_log_format="[%(asctime)s: %(levelname)s/%(processName)s] %(message)s",
    worker_task_log_format="[%(asctime)s: %(levelname)s/%(processName)s] [%(task_name)s] %(message)s",
)

logger.info(
    "celery configured broker=%s queues=default,sync_shopify rate_limit=%s",
    settings.broker_url.split("@")[-1], SHOPIFY_RATE_LIMIT,
)
