"""Identity of the user who triggered the current request."""
from __future__ import annotations

from fastapi import Request

ACTOR_HEADER = "X-User-Id"


class UserSession:
    """Request-scoped view of the acting user.

    A session is open while handling an HTTP request; it is logged when the
    request carries a valid actor id. Background scripts use a closed session.
    """

    def __init__(self, user_id: int | None = None, is_open: bool = False):
        self._user_id = user_id
        self._is_open = is_open

    @classmethod
    def closed(cls) -> "UserSession":
        return cls()

    @classmethod
    def from_request(cls, request: Request) -> "UserSession":
        raw = (request.headers.get(ACTOR_HEADER) or "").strip()
        user_id = int(raw) if raw.isdigit() and int(raw) > 0 else None
        return cls(user_id=user_id, is_open=True)

    def is_open(self) -> bool:
        return self._is_open

    def is_logged(self) -> bool:
        return self._user_id is not None

    def get_id(self) -> int | None:
        return self._user_id


def get_user_session(request: Request) -> UserSession:
    """FastAPI dependency resolving the acting user from the request headers."""
    return UserSession.from_request(request)
