"""Rate limiting singleton using slowapi."""

from fastapi import Request
from slowapi import Limiter


def _client_key(request: Request) -> str:
    """Limit per logged-in user, falling back to client IP (X-Forwarded-For aware)."""
    user_id = request.session.get("user_id") if "session" in request.scope else None
    if user_id:
        return f"user:{user_id}"
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


limiter = Limiter(key_func=_client_key)
