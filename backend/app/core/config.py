import os

from dotenv import load_dotenv
from pydantic import BaseModel


load_dotenv()


class Settings(BaseModel):
    # Supabase
    supabase_url: str | None = os.getenv("SUPABASE_URL")
    supabase_service_role_key: str | None = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

    # Shopify (per-store domain and token come from the stores table)
    shopify_api_version: str = os.getenv("SHOPIFY_API_VERSION", "2024-10")
    shopify_timeout_seconds: float = float(os.getenv("SHOPIFY_TIMEOUT_SECONDS", "30"))

    # Sync fan-out
    # Max stores synced in parallel for one product; 1 means sequential
    sync_max_concurrency: int = int(os.getenv("SYNC_MAX_CONCURRENCY", "4"))
    sync_max_retries: int = int(os.getenv("SYNC_MAX_RETRIES", "3"))

    # Install flow state nonces
    oauth_state_ttl_minutes: int = int(os.getenv("OAUTH_STATE_TTL_MINUTES", "10"))

    # Catalog listing
    product_page_limit: int = int(os.getenv("PRODUCT_PAGE_LIMIT", "50"))

    # Redis
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Celery (falls back to redis_url)
    celery_broker_url: str | None = os.getenv("CELERY_BROKER_URL")
    celery_result_backend: str | None = os.getenv("CELERY_RESULT_BACKEND")

    # Rate limits
    shopify_api_rate_limit: str = os.getenv("SHOPIFY_API_RATE_LIMIT", "30/m")

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def broker_url(self) -> str:
        return self.celery_broker_url or self.redis_url

    @property
    def result_backend(self) -> str:
        return self.celery_result_backend or self.redis_url

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)


settings = Settings()
