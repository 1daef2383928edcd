import logging

from supabase import create_client, Client

from app.core.config import Settings

logger = logging.getLogger("supabase_client")


class SupabaseClient:
    """
    Lazy wrapper around the supabase-py SDK client.

    The SDK client is created on first access and cached on this wrapper;
    the container keeps a single wrapper per process. Tests pass an
    already-built client (or an in-memory fake) through ``client``.
    """

    def __init__(self, settings: Settings | None = None, client: Client | None = None) -> None:
        self._client = client
        self._url = settings.supabase_url if settings else None
        self._key = settings.supabase_service_role_key if settings else None

        if client is None and (not self._url or not self._key):
            raise RuntimeError(
                "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set for Supabase access"
            )

    def get_client(self) -> Client:
        """Get or create the Supabase client instance."""
        if self._client is None:
            self._client = create_client(self._url, self._key)
            logger.info("supabase client initialized url=%s", self._url)
        return self._client

    @property
    def client(self) -> Client:
        """Property accessor for the Supabase client."""
        return self.get_client()
