"""Tests for identity resolution."""

import sqlite3

import pytest

from src.core.db import upsert_user
from src.core.errors import NotFound, Unauthenticated
from src.services.identity import StaticIdentity, get_authenticated_user, require_auth_id


class TestRequireAuthId:
    def test_signed_in(self) -> None:
        assert require_auth_id(StaticIdentity("auth-1")) == "auth-1"

    @pytest.mark.parametrize("auth_id", [None, ""])
    def test_anonymous(self, auth_id: str | None) -> None:
        with pytest.raises(Unauthenticated, match="Unauthorized"):
            require_auth_id(StaticIdentity(auth_id))


class TestGetAuthenticatedUser:
    def test_known_user(self, db: sqlite3.Connection) -> None:
        upsert_user(db, "auth-1", industry="Tech", experience=3, bio=None, skills=["Go"])
        user = get_authenticated_user(db, StaticIdentity("auth-1"))
        assert user.industry == "Tech"
        assert user.skills == ["Go"]

    def test_unknown_user(self, db: sqlite3.Connection) -> None:
        with pytest.raises(NotFound, match="User not found"):
            get_authenticated_user(db, StaticIdentity("ghost"))
