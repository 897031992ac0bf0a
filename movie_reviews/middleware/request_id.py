# movie_reviews/middleware/request_id.py
from __future__ import annotations

"""
# MovieReviews · Request ID Middleware (pure ASGI)

- Reuses a client-supplied `X-Request-ID` / `X-Correlation-ID` when it is a valid UUIDv4.
- Generates a UUIDv4 otherwise.
- Injects the id into `request.state.request_id` and the response header.
- Adds `request_id` to the **loguru** context for the whole request.

## Env / Config
- `REQUEST_ID_HEADER_NAME` (default: `X-Request-ID`)
- `REQUEST_ID_TRUST_CLIENT_IDS` ("true"/"false"; default: "true")
- `REQUEST_ID_MAX_LENGTH` (default: 128)
"""

import os
import re
import uuid

from loguru import logger
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

HEADER_NAME = os.getenv("REQUEST_ID_HEADER_NAME", "X-Request-ID")
TRUST_CLIENT_IDS = os.getenv("REQUEST_ID_TRUST_CLIENT_IDS", "true").lower() == "true"
MAX_ID_LENGTH = int(os.getenv("REQUEST_ID_MAX_LENGTH", "128"))

_UUID_V4_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-4[0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}$")


class RequestIDMiddleware:
    """Per-request correlation id; strict format and length checks on client ids."""

    def __init__(self, app: ASGIApp, header_name: str = HEADER_NAME) -> None:
        self.app = app
        self.header_name = header_name

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        req_id = self._choose_request_id(Headers(scope=scope))
        scope.setdefault("state", {})["request_id"] = req_id
        name_bytes = self.header_name.encode("latin-1")

        async def _send_wrapper(message: Message) -> None:
            if message.get("type") == "http.response.start":
                raw = message.get("headers", [])
                message["headers"] = [(k, v) for (k, v) in raw if k.lower() != name_bytes.lower()]
                message["headers"].append((name_bytes, req_id.encode("latin-1")))
            await send(message)

        with logger.contextualize(request_id=req_id):
            try:
                await self.app(scope, receive, _send_wrapper)
            except Exception:
                logger.exception("[RequestID] Unhandled exception during request processing")
                raise

    def _choose_request_id(self, headers: Headers) -> str:
        if TRUST_CLIENT_IDS:
            incoming = (headers.get(self.header_name) or headers.get("X-Correlation-ID") or "").strip()
            if 0 < len(incoming) <= MAX_ID_LENGTH and _UUID_V4_RE.fullmatch(incoming):
                return str(uuid.UUID(incoming))
        return str(uuid.uuid4())


def get_request_id(request) -> str:
    """Current request id from `request.state` ("" when absent)."""
    return getattr(getattr(request, "state", object()), "request_id", "") or ""


__all__ = ["RequestIDMiddleware", "get_request_id"]
