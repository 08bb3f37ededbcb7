# core/rate_limiter.py

from typing import Dict, Tuple, Optional
from collections import defaultdict
from threading import Lock
import time

from fastapi import HTTPException, Request

from core.logging_config import logger


# Sliding-window request log, per identifier (in-memory, per process)
_rate_limit_store: Dict[str, list] = defaultdict(list)
_lock = Lock()


def check_rate_limit(
    identifier: str,
    max_requests: int = 10,
    window_seconds: int = 60,
) -> Tuple[bool, int]:
    """
    Record a request for `identifier` and report whether it is allowed.

    Returns:
        (allowed, remaining)
    """
    now = time.time()
    window_start = now - window_seconds

    with _lock:
        requests = [ts for ts in _rate_limit_store[identifier] if ts > window_start]

        if len(requests) >= max_requests:
            _rate_limit_store[identifier] = requests
            return False, 0

        requests.append(now)
        _rate_limit_store[identifier] = requests
        return True, max_requests - len(requests)


def reset_rate_limits():
    with _lock:
        _rate_limit_store.clear()


def get_rate_limit_identifier(request: Request, user_id: Optional[str] = None) -> str:
    """
    Prefer the user id; otherwise the client IP (honouring X-Forwarded-For
    when running behind a proxy).
    """
    if user_id:
        return f"user:{user_id}"

    client_ip = request.client.host if request.client else "unknown"

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        client_ip = forwarded_for.split(",")[0].strip()

    return f"ip:{client_ip}"


def require_rate_limit(
    request: Request,
    identifier: Optional[str] = None,
    max_requests: int = 10,
    window_seconds: int = 60,
    scope: str = "default",
):
    """
    Raise 429 when `identifier` exceeded `max_requests` in the window.
    """
    if identifier is None:
        identifier = get_rate_limit_identifier(request)

    allowed, remaining = check_rate_limit(f"{scope}:{identifier}", max_requests, window_seconds)

    if not allowed:
        logger.warning(f"Rate limit exceeded for {identifier} on {scope}")
        raise HTTPException(
            status_code=429,
            detail=f"Rate limit exceeded. Maximum {max_requests} requests per {window_seconds} seconds.",
            headers={
                "X-RateLimit-Limit": str(max_requests),
                "X-RateLimit-Window": str(window_seconds),
                "Retry-After": str(window_seconds),
            },
        )

    return remaining
