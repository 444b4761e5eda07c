import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import Request
from jose import jwt, JWTError

from .config import JWT_SECRET
from .errors import AuthorizationError

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_TTL = timedelta(hours=1)


@dataclass(frozen=True)
class SessionContext:
    """Identity of the caller, resolved once per request."""

    user_id: str


def create_access_token(user_id: str, ttl: timedelta = ACCESS_TOKEN_TTL) -> str:
    payload = {
        "sub": str(user_id),
        "exp": datetime.now(timezone.utc) + ttl,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("authorization") or ""
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return value.strip() or None


def resolve_session(request: Request) -> SessionContext | None:
    token = _bearer_token(request) or request.cookies.get("access_token")
    if not token:
        return None
    payload = decode_token(token)
    if not payload:
        return None
    user_id = str(payload.get("sub") or "").strip()
    if not user_id:
        return None
    return SessionContext(user_id=user_id)


async def require_session(request: Request) -> SessionContext:
    session = resolve_session(request)
    if session is None:
        raise AuthorizationError()
    return session


def verify_csrf(request: Request) -> bool:
    """Check the double-submit CSRF token on cookie-authenticated writes."""
    if _bearer_token(request):
        return True
    if not request.cookies.get("access_token"):
        return True
    csrf_cookie = request.cookies.get("csrf_token")
    csrf_header = request.headers.get("x-csrf-token")
    if not csrf_cookie or not csrf_header:
        return False
    return secrets.compare_digest(csrf_cookie, csrf_header)
