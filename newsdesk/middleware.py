import logging
import time
from urllib.parse import parse_qsl

from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

OVERRIDABLE_METHODS = frozenset({"PUT", "PATCH", "DELETE"})


# ---------------------------------------------------------------------------
# Middleware (pure ASGI — avoids BaseHTTPMiddleware task isolation)
# ---------------------------------------------------------------------------

class TimingMiddleware:
    """
    Adds an ``X-Response-Time-Ms`` header with the wall-clock time spent
    before the response started, and logs one line per request.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                headers = list(message.get("headers", []))
                headers.append((b"x-response-time-ms", str(duration_ms).encode()))
                message["headers"] = headers
                logger.info(
                    "%s %s -> %s (%.2f ms)",
                    scope["method"], scope["path"], message["status"], duration_ms,
                )
            await send(message)

        await self.app(scope, receive, send_wrapper)


class SecurityHeadersMiddleware:
    """Sets conservative security headers on every HTTP response."""

    HEADERS = (
        (b"content-security-policy",
         b"default-src 'self'; img-src 'self' data:; style-src 'self' 'unsafe-inline'; "
         b"object-src 'none'; base-uri 'self'; frame-ancestors 'self'; form-action 'self'"),
        (b"cross-origin-opener-policy", b"same-origin"),
        (b"referrer-policy", b"no-referrer"),
        (b"x-content-type-options", b"nosniff"),
        (b"x-dns-prefetch-control", b"off"),
        (b"x-frame-options", b"SAMEORIGIN"),
    )

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                present = {name.lower() for name, _ in headers}
                headers.extend(h for h in self.HEADERS if h[0] not in present)
                message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_wrapper)


class MethodOverrideMiddleware:
    """
    Lets HTML forms, which can only ``POST``, reach ``PUT``/``PATCH``/
    ``DELETE`` routes.

    The override is read from the ``_method`` query parameter or the
    ``X-HTTP-Method-Override`` header, and only applies to ``POST``.
    """

    QUERY_PARAM = "_method"
    HEADER = b"x-http-method-override"

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["method"] == "POST":
            method = self._requested_method(scope)
            if method in OVERRIDABLE_METHODS:
                scope = dict(scope)
                scope["method"] = method
        await self.app(scope, receive, send)

    def _requested_method(self, scope: Scope) -> str | None:
        for name, value in scope.get("headers", []):
            if name == self.HEADER:
                return value.decode("latin-1").strip().upper()
        query = scope.get("query_string", b"").decode("latin-1")
        for key, value in parse_qsl(query):
            if key == self.QUERY_PARAM:
                return value.strip().upper()
        return None
