import base64
import hashlib
import hmac
import json
import logging
import secrets
import time

import redis.asyncio as redis

from newsdesk.config import settings

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Server-side login sessions addressed by signed opaque tokens.

    A token is ``<session id>.<signature>`` where the signature is an
    HMAC-SHA256 of the id under ``settings.SECRET_KEY``.  The session
    record itself never leaves the server.

    Records are kept in Redis when ``settings.REDIS_URL`` is configured
    and reachable, otherwise in a process-local dict.  Both backends
    expire records after ``settings.SESSION_TTL_SECONDS``.
    """

    KEY_PREFIX = "session:"

    def __init__(self) -> None:
        self._redis: redis.Redis | None = None
        self._memory: dict[str, tuple[float, dict]] = {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the Redis pool if one is configured.  Called at startup."""
        if not settings.REDIS_URL:
            logger.info("Session store: in-process memory")
            return
        self._redis = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await self._redis.ping()
            logger.info("Session store: Redis at %s", settings.REDIS_URL)
        except Exception as exc:
            logger.warning("Redis ping failed, using in-process sessions: %s", exc)
            await self._redis.aclose()
            self._redis = None

    async def disconnect(self) -> None:
        """Close the Redis pool.  Called once at application shutdown."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    def clear(self) -> None:
        """Drop every in-process session."""
        self._memory.clear()

    # ------------------------------------------------------------------
    # Token signing
    # ------------------------------------------------------------------

    @staticmethod
    def _signature(session_id: str) -> str:
        digest = hmac.new(
            settings.SECRET_KEY.encode("utf-8"),
            session_id.encode("ascii"),
            hashlib.sha256,
        ).digest()
        return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")

    def _unsign(self, token: str | None) -> str | None:
        if not token or "." not in token:
            return None
        session_id, _, signature = token.rpartition(".")
        try:
            expected = self._signature(session_id)
        except UnicodeEncodeError:
            return None
        if not hmac.compare_digest(signature.encode("utf-8"), expected.encode("ascii")):
            return None
        return session_id

    # ------------------------------------------------------------------
    # Session operations
    # ------------------------------------------------------------------

    async def create(self, data: dict) -> str:
        """Store *data* under a fresh session id and return its signed token."""
        session_id = secrets.token_urlsafe(32)
        ttl = settings.SESSION_TTL_SECONDS
        if self._redis:
            await self._redis.set(self.KEY_PREFIX + session_id, json.dumps(data), ex=ttl)
        else:
            self._purge_expired()
            self._memory[session_id] = (time.monotonic() + ttl, dict(data))
        return f"{session_id}.{self._signature(session_id)}"

    async def get(self, token: str | None) -> dict | None:
        """
        Return the session record for *token*, or None when the token is
        missing, forged, expired or unknown.
        """
        session_id = self._unsign(token)
        if session_id is None:
            return None
        if self._redis:
            try:
                raw = await self._redis.get(self.KEY_PREFIX + session_id)
            except Exception as exc:
                logger.warning("Session lookup failed: %s", exc)
                return None
            return json.loads(raw) if raw else None

        entry = self._memory.get(session_id)
        if entry is None:
            return None
        expires_at, data = entry
        if expires_at <= time.monotonic():
            self._memory.pop(session_id, None)
            return None
        return dict(data)

    async def destroy(self, token: str | None) -> None:
        """Forget the session behind *token*; unknown tokens are ignored."""
        session_id = self._unsign(token)
        if session_id is None:
            return
        if self._redis:
            try:
                await self._redis.delete(self.KEY_PREFIX + session_id)
            except Exception as exc:
                logger.warning("Session delete failed: %s", exc)
            return
        self._memory.pop(session_id, None)

    def _purge_expired(self) -> None:
        now = time.monotonic()
        for session_id in [k for k, (exp, _) in self._memory.items() if exp <= now]:
            del self._memory[session_id]


# Module-level singleton shared across all request handlers.
sessions = SessionStore()
