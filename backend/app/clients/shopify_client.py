import logging
from typing import Any, Dict, Optional

import httpx

from app.core.config import Settings
from app.core.exceptions import (
    AdapterFieldError,
    AdapterTransportError,
    AuthenticationError,
    RateLimitError,
)

logger = logging.getLogger("shopify_client")


class ShopifyClient:
    """
    HTTP transport for one Shopify store's Admin GraphQL API.

    One instance per (domain, access token); the token is passed through
    opaque and never logged. Failures are raised as adapter errors:
    transport-class (network, timeout, 429, 5xx) or field-class (4xx,
    GraphQL errors, rejected credentials).
    """

    def __init__(self, domain: str, access_token: str, settings: Settings) -> None:
        self._store_domain = domain
        self._token = access_token
        self._api_version = settings.shopify_api_version
        self._timeout = settings.shopify_timeout_seconds

    @property
    def domain(self) -> str:
        return self._store_domain

    @staticmethod
    def to_gid(entity: str, value: str | int) -> str:
        if isinstance(value, str) and value.startswith("gid://"):
            return value
        return f"gid://shopify/{entity}/{value}"

    def _graphql_url(self) -> str:
        if not self._store_domain or not self._token:
            raise AuthenticationError("Shopify store domain or access token missing", domain=self._store_domain)
        return f"https://{self._store_domain}/admin/api/{self._api_version}/graphql.json"

    async def call_shopify_graphql(
        self, query: str, variables: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """POST a GraphQL document and return the ``data`` object."""
        url = self._graphql_url()
        payload = {"query": query, "variables": variables or {}}
        headers = {
            "X-Shopify-Access-Token": self._token,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        logger.info("shopify request domain=%s", self._store_domain)

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, headers=headers, json=payload)
        except httpx.TimeoutException as exc:
            raise AdapterTransportError(
                f"Shopify request timed out: {exc}", domain=self._store_domain
            ) from exc
        except httpx.HTTPError as exc:
            raise AdapterTransportError(
                f"Shopify request failed: {exc}", domain=self._store_domain
            ) from exc

        logger.info("shopify response status=%s domain=%s", resp.status_code, self._store_domain)
        self._raise_for_status(resp)

        body = resp.json() if resp.text else {}
        errors = body.get("errors")
        if errors:
            if _is_throttled(errors):
                raise RateLimitError(domain=self._store_domain)
            raise AdapterFieldError(
                f"Shopify GraphQL errors: {errors}",
                domain=self._store_domain,
                field_errors=errors if isinstance(errors, list) else [errors],
            )
        return body.get("data") or {}

    def _raise_for_status(self, resp: httpx.Response) -> None:
        status = resp.status_code
        if status < 400:
            return
        if status == 429:
            retry_after = _parse_retry_after(resp.headers.get("Retry-After"))
            raise RateLimitError(domain=self._store_domain, retry_after=retry_after)
        if status in (401, 403):
            raise AuthenticationError(
                f"Shopify rejected credentials ({status})", domain=self._store_domain
            )
        if status >= 500:
            raise AdapterTransportError(
                f"Shopify server error {status}: {resp.text}",
                domain=self._store_domain,
                status_code=status,
            )
        raise AdapterFieldError(
            f"Shopify request rejected {status}: {resp.text}", domain=self._store_domain
        )


def _is_throttled(errors: Any) -> bool:
    if not isinstance(errors, list):
        return False
    for err in errors:
        code = ((err or {}).get("extensions") or {}).get("code") if isinstance(err, dict) else None
        if code == "THROTTLED":
            return True
    return False


def _parse_retry_after(value: Optional[str]) -> int:
    try:
        return max(1, int(float(value)))
    except (TypeError, ValueError):
        return 2
