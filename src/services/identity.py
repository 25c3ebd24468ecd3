"""Identity lookup: map the external auth id to a stored user."""

import sqlite3
from abc import ABC, abstractmethod

from src.core.db import get_user_by_auth_id
from src.core.errors import NotFound, Unauthenticated
from src.core.schemas import User


class IdentityResolver(ABC):
    """Source of the current request's external auth id."""

    @abstractmethod
    def resolve_current_user(self) -> str | None:
        """Return the stable auth id, or None when nobody is signed in."""


class StaticIdentity(IdentityResolver):
    """Resolver fixed to one auth id (CLI use and tests)."""

    def __init__(self, auth_id: str | None) -> None:
        self._auth_id = auth_id

    def resolve_current_user(self) -> str | None:
        return self._auth_id


def require_auth_id(resolver: IdentityResolver) -> str:
    auth_id = resolver.resolve_current_user()
    if not auth_id:
        raise Unauthenticated()
    return auth_id


def get_authenticated_user(conn: sqlite3.Connection, resolver: IdentityResolver) -> User:
    user = get_user_by_auth_id(conn, require_auth_id(resolver))
    if user is None:
        msg = "User not found"
        raise NotFound(msg)
    return user
