"""
OAuth state store — single-use install nonces with explicit expiry.

Replaces in-process nonce maps: every state lives in the oauth_states
table, expires after settings.oauth_state_ttl_minutes and can be consumed
once. consume_state is a single conditional UPDATE so two callbacks racing
on the same state cannot both succeed.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from postgrest.exceptions import APIError

from app.core.config import settings
from app.core.constants.sync import OAUTH_STATES_TABLE
from app.core.exceptions import DatabaseError
from app.db.base_store import BaseStore
from app.db.store_registry import validate_shop_domain

logger = logging.getLogger("oauth_state_store")


class OAuthStateStore(BaseStore):

    def __init__(self, supabase_client=None, ttl_minutes: int | None = None) -> None:
        super().__init__(supabase_client)
        self._ttl = timedelta(minutes=ttl_minutes or settings.oauth_state_ttl_minutes)

    async def issue_state(self, shop: str) -> str:
        """Create a fresh nonce for a shop starting the install flow."""
        domain = validate_shop_domain(shop)
        state = secrets.token_hex(16)
        expires_at = datetime.now(timezone.utc) + self._ttl
        await self._insert(OAUTH_STATES_TABLE, [{
            "state": state,
            "shop": domain,
            "expires_at": expires_at.isoformat(),
            "used": False,
        }])
        logger.info("oauth state issued shop=%s expires_at=%s", domain, expires_at.isoformat())
        return state

    async def consume_state(self, state: str, shop: str) -> bool:
        """Mark a state used; True only for an unexpired, unused state of this shop."""
        if not state or not shop:
            return False
        domain = validate_shop_domain(shop)
        now = datetime.now(timezone.utc).isoformat()
        try:
            response = self._client.table(OAUTH_STATES_TABLE) \
                .update({"used": True}) \
                .eq("state", state) \
                .eq("shop", domain) \
                .eq("used", False) \
                .gt("expires_at", now) \
                .execute()
        except APIError as e:
            logger.info("supabase error table=%s detail=%s", OAUTH_STATES_TABLE, str(e))
            raise DatabaseError(OAUTH_STATES_TABLE, f"update failed: {e}") from e

        consumed = bool(response.data)
        if not consumed:
            logger.info("oauth state rejected shop=%s", domain)
        return consumed

    async def purge_expired_states(self) -> int:
        now = datetime.now(timezone.utc).isoformat()
        try:
            response = self._client.table(OAUTH_STATES_TABLE) \
                .delete() \
                .lt("expires_at", now) \
                .execute()
        except APIError as e:
            logger.info("supabase error table=%s detail=%s", OAUTH_STATES_TABLE, str(e))
            raise DatabaseError(OAUTH_STATES_TABLE, f"delete failed: {e}") from e
        purged = len(response.data or [])
        logger.info("oauth states purged count=%s", purged)
        return purged
