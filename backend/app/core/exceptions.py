"""
Custom exception hierarchy for Storefront Sync Hub.

Exceptions are categorized as:
- RetryableError: Transient errors where re-invoking the sync may succeed
- NonRetryableError: Permanent errors that should fail immediately

This categorization allows Celery tasks to use:
- autoretry_for=(RetryableError,)
- dont_autoretry_for=(NonRetryableError,)

Adapter failures (anything raised while talking to a Shopify store) also
inherit AdapterError so a store branch can catch them with one clause.
"""


class StorefrontSyncException(Exception):
    """Base exception for Storefront Sync Hub."""
    pass


class AdapterError(StorefrontSyncException):
    """
    Failure while executing the creation protocol against one store.

    Carries the store domain when known so results can be attributed.
    """
    def __init__(self, message: str, domain: str | None = None):
        self.domain = domain
        super().__init__(message)


# ============================================
# RETRYABLE ERRORS
# ============================================
class RetryableError(StorefrontSyncException):
    """
    Base class for errors that may succeed on retry.

    Use this for transient errors:
    - Network timeouts
    - Rate limits (with backoff)
    - Temporary service unavailability
    """
    pass


class AdapterTransportError(AdapterError, RetryableError):
    """Network, timeout or 5xx failure talking to a store."""

    def __init__(self, message: str, domain: str | None = None, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message, domain=domain)


class RateLimitError(AdapterTransportError):
    """
    Store rate limit exceeded.

    Should retry after the specified delay.
    """
    def __init__(self, domain: str | None = None, retry_after: int = 2):
        self.retry_after = retry_after
        super().__init__(
            f"Shopify rate limited. Retry after {retry_after}s",
            domain=domain,
            status_code=429,
        )


class DatabaseError(RetryableError):
    """Supabase request failed."""

    def __init__(self, table: str, message: str):
        self.table = table
        super().__init__(f"Supabase {table} failed: {message}")


# ============================================
# NON-RETRYABLE ERRORS
# ============================================
class NonRetryableError(StorefrontSyncException):
    """
    Base class for errors that should NOT trigger retry.

    Use this for permanent errors where retrying won't help:
    - Validation failures
    - Missing data
    - Rejected request shapes
    """
    pass


class ValidationError(NonRetryableError):
    """Invalid catalog input - retrying won't help."""
    pass


class NotFoundError(NonRetryableError):
    """Requested entity does not exist."""
    pass


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class StoreNotFoundError(NotFoundError):
    def __init__(self, store_ids):
        if not isinstance(store_ids, (list, tuple, set)):
            store_ids = [store_ids]
        self.store_ids = list(store_ids)
        super().__init__(f"Store not found: {', '.join(str(s) for s in self.store_ids)}")


class EmptyTargetSetError(NonRetryableError):
    """No stores to sync to."""

    def __init__(self, message: str = "No active stores found"):
        super().__init__(message)


class AdapterFieldError(AdapterError, NonRetryableError):
    """
    Store API rejected the request shape (userErrors, 4xx, bad schema).

    Fatal for that store; retrying the same payload won't help.
    """
    def __init__(self, message: str, domain: str | None = None, field_errors: list | None = None):
        self.field_errors = field_errors or []
        super().__init__(message, domain=domain)


class AuthenticationError(AdapterFieldError):
    """
    Store credential rejected.

    Needs re-authorization, not retry.
    """
    pass
