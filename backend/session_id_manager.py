import secrets
import time
from typing import Optional

from fastapi.responses import Response

from route_planner.planner import RoutePlanner

SESSION_COOKIE_NAME = "session_id"
# Sliding lifetime; every request that touches the session extends it
SESSION_TIMEOUT_SECONDS = 3600  # 1 hour
# session_id -> (planner, expires_at)
_store: dict[str, tuple[RoutePlanner, float]] = {}


def _prune(now: float) -> None:
    expired = [sid for sid, (_, exp) in _store.items() if exp <= now]
    for sid in expired:
        del _store[sid]


def create_session() -> str:
    """Create a session holding a fresh RoutePlanner and return its id."""
    session_id = secrets.token_urlsafe(32)
    _store[session_id] = (RoutePlanner(), time.time() + SESSION_TIMEOUT_SECONDS)
    return session_id


def get_planner(session_id: str | None) -> RoutePlanner | None:
    """Return the planner for a live session, or None. Removes expired sessions."""
    if not session_id:
        return None
    now = time.time()
    _prune(now)
    entry = _store.get(session_id)
    if entry is None:
        return None
    planner, _ = entry
    _store[session_id] = (planner, now + SESSION_TIMEOUT_SECONDS)
    return planner


def get_or_create(session_id: str | None) -> tuple[str, RoutePlanner, bool]:
    """
    Return (session_id, planner, created). A new session is made when the
    cookie is missing or the session expired.
    """
    planner = get_planner(session_id)
    if planner is not None:
        return session_id, planner, False
    new_id = create_session()
    return new_id, _store[new_id][0], True


def delete_session(session_id: str | None) -> None:
    """Drop the session and its planner."""
    if session_id and session_id in _store:
        planner, _ = _store.pop(session_id)
        planner.clear()


def set_session_cookie(
    response: Response,
    session_id: str,
    max_age: Optional[int] = None,
) -> None:
    """
    Set the session cookie. Uses SESSION_TIMEOUT_SECONDS unless max_age
    (seconds until expiry) is given.
    """
    if max_age is not None and max_age > 0:
        age = max_age
    else:
        age = SESSION_TIMEOUT_SECONDS
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_id,
        max_age=age,
        httponly=True,
        samesite="lax",
    )
