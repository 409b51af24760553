"""Tests for administrator and visitor login."""

import pytest

from conftest import make_visitor
from library_management.auth import ADMIN_PASSWORD, ADMIN_USERNAME, AuthKind, authenticate
from library_management.database import VisitorStore


@pytest.fixture
def store_with_alice(visitor_store: VisitorStore) -> VisitorStore:
    visitor_store.add(make_visitor("alice", password="pw"))
    return visitor_store


class TestAuthenticate:
    """Test the credential check."""

    def test_admin_login(self, visitor_store: VisitorStore):
        result = authenticate("admin", "123456", visitor_store)

        assert result.kind == AuthKind.ADMIN
        assert result.visitor_id is None
        assert result

    def test_admin_constants(self):
        assert (ADMIN_USERNAME, ADMIN_PASSWORD) == ("admin", "123456")

    def test_visitor_login(self, store_with_alice: VisitorStore):
        result = authenticate("alice", "pw", store_with_alice)

        assert result.kind == AuthKind.VISITOR
        assert result.visitor_id == 1001

    @pytest.mark.parametrize(
        ("username", "password"),
        [
            ("alice", "wrong"),
            ("Alice", "pw"),
            ("nobody", "pw"),
            ("", "pw"),
            ("alice", ""),
            ("admin", "wrong"),
        ],
    )
    def test_failures(self, store_with_alice: VisitorStore, username, password):
        result = authenticate(username, password, store_with_alice)

        assert result.kind == AuthKind.FAILURE
        assert not result

    def test_admin_wins_over_visitor_named_admin(self, visitor_store: VisitorStore):
        visitor_store.add(make_visitor("admin", password="123456"))

        assert authenticate("admin", "123456", visitor_store).kind == AuthKind.ADMIN

    def test_visitor_named_admin_with_own_password(self, visitor_store: VisitorStore):
        visitor_store.add(make_visitor("admin", password="other"))

        result = authenticate("admin", "other", visitor_store)

        assert result.kind == AuthKind.VISITOR
        assert result.visitor_id == 1001
