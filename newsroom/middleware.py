import logging
import time

from starlette.requests import HTTPConnection
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from newsroom.errors import InvalidTokenError
from newsroom.security import TokenCodec

logger = logging.getLogger(__name__)

ACCESS_TOKEN_HEADER = "x-access-token"


def extract_token(conn: HTTPConnection) -> str | None:
    """
    Find an access token on the request: ``Authorization: Bearer``, then
    the ``x-access-token`` header, then the ``token`` query parameter.
    """
    authorization = conn.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return conn.headers.get(ACCESS_TOKEN_HEADER) or conn.query_params.get("token") or None


# ---------------------------------------------------------------------------
# Middleware (pure ASGI, no child task, so scope state is shared with handlers)
# ---------------------------------------------------------------------------

class IdentityMiddleware:
    """
    Identify the caller when a valid access token is present.

    The decoded ``IdentityClaim`` is stored as ``request.state.identity``.
    A missing or invalid token leaves the request anonymous; whether
    anonymous callers may proceed is decided per endpoint by ``AccessGuard``.
    """

    def __init__(self, app: ASGIApp, codec: TokenCodec) -> None:
        self.app = app
        self.codec = codec

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        state = scope.setdefault("state", {})
        state["identity"] = None

        token = extract_token(HTTPConnection(scope))
        if token:
            try:
                state["identity"] = self.codec.verify_access(token)
            except InvalidTokenError as exc:
                logger.debug("Ignoring invalid access token: %s", exc.message)

        await self.app(scope, receive, send)


class RequestLoggingMiddleware:
    """
    Log one line per request and add an ``X-Response-Time-Ms`` header with
    the wall-clock time spent producing the response.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()
        status_code = 500

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                headers = list(message.get("headers", []))
                headers.append((b"x-response-time-ms", str(duration_ms).encode()))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            logger.info(
                "%s %s -> %d (%.2f ms)",
                scope["method"],
                scope["path"],
                status_code,
                (time.perf_counter() - start) * 1000,
            )
