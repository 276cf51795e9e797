"""Request context middleware: request id, timing, access log and rate limiting.

One middleware does all four in a single pass. The token bucket lives in
``check_rate_limit``, a plain function over a dict so it can be tested
without a running app.
"""

import logging
import threading
import time
import uuid
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ..core.config import settings
from ..core.auth import client_ip
from ..core.logging_config import request_id_var
from ..exceptions import ErrorCode

logger = logging.getLogger(__name__)

# {client_key: (tokens_left, last_seen)}
_rate_buckets: dict[str, tuple[float, float]] = {}
_rate_lock = threading.Lock()

_calls_since_sweep = 0
_SWEEP_EVERY = 100
_IDLE_SECONDS = 120.0

# Probes and docs are never throttled.
_EXEMPT_PATHS = frozenset({"/", "/health", "/api/health", "/docs", "/redoc", "/openapi.json"})


def check_rate_limit(
    bucket: dict[str, tuple[float, float]],
    key: str,
    max_per_minute: int,
    now: Optional[float] = None,
) -> tuple[bool, float]:
    """Take one token for ``key``.

    Returns ``(allowed, retry_after_seconds)``. A non-positive limit disables
    the check. Idle clients are swept out every few hundred calls.
    """
    global _calls_since_sweep

    if max_per_minute <= 0:
        return True, 0.0
    if now is None:
        now = time.monotonic()

    _calls_since_sweep += 1
    if _calls_since_sweep >= _SWEEP_EVERY:
        _calls_since_sweep = 0
        for stale in [k for k, (_, seen) in bucket.items() if seen < now - _IDLE_SECONDS]:
            del bucket[stale]

    per_second = max_per_minute / 60.0
    tokens, seen = bucket.get(key, (float(max_per_minute), now))
    tokens = min(float(max_per_minute), tokens + (now - seen) * per_second)

    if tokens >= 1.0:
        bucket[key] = (tokens - 1.0, now)
        return True, 0.0
    bucket[key] = (tokens, now)
    return False, (1.0 - tokens) / per_second


def reset_rate_limits() -> None:
    with _rate_lock:
        _rate_buckets.clear()


class RequestContextMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        request_id_var.set(rid)
        path = request.url.path

        if path not in _EXEMPT_PATHS:
            client = client_ip(request) or "unknown"
            with _rate_lock:
                allowed, retry_after = check_rate_limit(_rate_buckets, client, settings.rate_limit_per_minute)
            if not allowed:
                logger.warning(
                    "Rate limit exceeded",
                    extra={"client": client, "path": path, "retry_after": round(retry_after, 1)},
                )
                return JSONResponse(
                    status_code=429,
                    content={
                        "error": "Too many requests",
                        "code": ErrorCode.RATE_LIMITED.value,
                        "details": {"retry_after": round(retry_after, 1)},
                    },
                    headers={"Retry-After": str(int(retry_after) + 1), "X-Request-ID": rid},
                )

        started = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - started) * 1000, 1)

        response.headers["X-Request-ID"] = rid
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        logger.info(
            f"{request.method} {path} {response.status_code}",
            extra={
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response
