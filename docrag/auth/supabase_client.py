"""Access-token verification against Supabase Auth."""

import hashlib
import time
from functools import lru_cache

import httpx

from docrag.auth.schemas import User
from docrag.core.config import SupabaseConfig, get_config
from docrag.core.exceptions import AuthenticationError, AuthUnavailableError
from docrag.core.logging import get_logger

logger = get_logger(__name__)

USER_ENDPOINT = "/auth/v1/user"


class SupabaseAuthClient:
    """Resolves a bearer token to its Supabase user.

    Verified tokens are remembered for ``cache_seconds`` so that a burst of
    RAG requests from one session costs a single Auth round trip.
    """

    def __init__(
        self,
        url: str,
        service_key: str,
        timeout: float = 10.0,
        cache_seconds: int = 60,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url.rstrip("/")
        self.service_key = service_key
        self.timeout = timeout
        self.cache_seconds = cache_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._verified: dict[str, tuple[User, float]] = {}

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.url,
                headers={"apikey": self.service_key},
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def verify_token(self, token: str) -> User:
        """Return the user owning an access token.

        Raises:
            AuthenticationError: If Supabase rejects the token
            AuthUnavailableError: If Supabase cannot be reached or fails
        """
        key = hashlib.sha256(token.encode()).hexdigest()
        cached = self._verified.get(key)
        if cached is not None and cached[1] > time.monotonic():
            return cached[0]

        try:
            response = await self.client.get(
                USER_ENDPOINT, headers={"Authorization": f"Bearer {token}"}
            )
        except httpx.RequestError as e:
            logger.error("auth_request_failed", error=str(e))
            raise AuthUnavailableError(f"Request to Supabase Auth failed: {e}") from e

        if response.status_code >= 500:
            logger.error("auth_service_error", status_code=response.status_code)
            raise AuthUnavailableError(f"Supabase Auth returned {response.status_code}")
        if response.status_code != 200:
            raise AuthenticationError("Invalid or expired access token")

        try:
            data = response.json()
            user = User(id=data["id"], email=data.get("email"), created_at=data.get("created_at"))
        except (KeyError, ValueError) as e:
            raise AuthUnavailableError(f"Unexpected Supabase Auth response: {e}") from e

        if self.cache_seconds > 0:
            self._prune()
            self._verified[key] = (user, time.monotonic() + self.cache_seconds)
        return user

    def _prune(self) -> None:
        now = time.monotonic()
        expired = [key for key, (_, expires) in self._verified.items() if expires <= now]
        for key in expired:
            del self._verified[key]


def create_auth_client(config: SupabaseConfig) -> SupabaseAuthClient:
    """Build an auth client from configuration.

    Raises:
        AuthUnavailableError: If SUPABASE_URL or SUPABASE_SERVICE_KEY is not set
    """
    if not config.url or not config.service_key:
        raise AuthUnavailableError(
            "Authentication is not configured (SUPABASE_URL and SUPABASE_SERVICE_KEY)"
        )
    return SupabaseAuthClient(
        url=config.url,
        service_key=config.service_key,
        timeout=config.auth_timeout_seconds,
        cache_seconds=config.auth_cache_seconds,
    )


@lru_cache
def get_supabase_client() -> SupabaseAuthClient:
    """Get the process-wide auth client."""
    return create_auth_client(get_config().supabase)
