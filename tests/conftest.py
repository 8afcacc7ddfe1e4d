"""Shared pytest fixtures for Roomdesk tests."""
import sys
sys.dont_write_bytecode = True

from contextlib import nullcontext  # noqa: E402
from unittest.mock import patch  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from .helpers import ADMIN, GUEST, FakeRoomsTable  # noqa: E402


@pytest.fixture(autouse=True)
def _session_secret(monkeypatch):
    """Every test signs and verifies session tokens with the same secret."""
    monkeypatch.setenv("SESSION_SECRET", "test-session-secret")
    monkeypatch.setenv("SESSION_COOKIE_SECURE", "false")


@pytest.fixture(autouse=True)
def _reset_oidc_jwks_cache():
    """Reset global JWKS cache to avoid cross-test contamination.

    The OIDC JWKS cache is a module-level global that persists between tests.
    """
    import roomdesk.api.auth as auth_module

    auth_module._jwks_cache = None
    auth_module._jwks_cache_time = 0
    yield
    auth_module._jwks_cache = None
    auth_module._jwks_cache_time = 0


@pytest.fixture
def known_users():
    """Users resolvable from a session token, keyed by id."""
    return {ADMIN.id: ADMIN, GUEST.id: GUEST}


@pytest.fixture
def mock_db_user(known_users):
    """Resolve session user ids without a database."""
    with patch(
        "roomdesk.api.auth._get_user_from_db",
        side_effect=lambda user_id: known_users.get(user_id),
    ) as mock:
        yield mock


@pytest.fixture
def fake_rooms():
    """Swap the rooms repository and txn() for an in-memory table."""
    table = FakeRoomsTable()
    with patch("roomdesk.domain.rooms.txn", side_effect=lambda: nullcontext(None)), \
         patch.multiple(
             "roomdesk.infra.repositories.rooms_repository",
             list_rooms=table.list_rooms,
             insert_room=table.insert_room,
             update_room=table.update_room,
             delete_room=table.delete_room,
         ):
        yield table


@pytest.fixture
def client(mock_db_user):
    from roomdesk.api.factory import create_app

    return TestClient(create_app())
