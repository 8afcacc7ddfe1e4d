"""Tests for users repository SQL - no real DB needed."""

from unittest.mock import MagicMock

from roomdesk.infra.repositories import users_repository


def _cursor(fetchone=None, rowcount=0) -> MagicMock:
    cur = MagicMock()
    cur.fetchone.return_value = fetchone
    cur.rowcount = rowcount
    return cur


class TestGetAdminCredentials:
    def test_filters_admins_with_password(self):
        cur = _cursor(fetchone=(1, "a@example.com", None, "admin", None, "hash"))

        user, password_hash = users_repository.get_admin_credentials(cur, "a@example.com")

        query, params = cur.execute.call_args[0]
        assert "role = 'admin'" in query
        assert "password_hash IS NOT NULL" in query
        assert params == ("a@example.com",)
        assert user == {"id": 1, "email": "a@example.com", "name": None, "role": "admin", "image": None}
        assert password_hash == "hash"

    def test_not_found(self):
        assert users_repository.get_admin_credentials(_cursor(), "x@example.com") is None


class TestCreateUser:
    def test_defaults_to_user_role(self):
        cur = _cursor(fetchone=(3, "g@example.com", "G", "user", None))

        users_repository.create_user(cur, email="g@example.com", name="G", image=None)

        assert cur.execute.call_args[0][1] == ("g@example.com", "G", None, "user")


class TestLinkAccount:
    def test_new_link(self):
        cur = _cursor(rowcount=1)
        assert users_repository.link_account(
            cur, user_id=3, provider="google", provider_account_id="sub-1"
        ) is True
        assert "ON CONFLICT (provider, provider_account_id) DO NOTHING" in cur.execute.call_args[0][0]

    def test_existing_link(self):
        cur = _cursor(rowcount=0)
        assert users_repository.link_account(
            cur, user_id=3, provider="google", provider_account_id="sub-1"
        ) is False


class TestUpsertAdmin:
    def test_created(self):
        cur = _cursor(fetchone=(True,))
        assert users_repository.upsert_admin(cur, email="a@example.com", password_hash="h") is True

    def test_promoted(self):
        cur = _cursor(fetchone=(False,))
        assert users_repository.upsert_admin(cur, email="a@example.com", password_hash="h") is False
        assert "role = 'admin'" in cur.execute.call_args[0][0]
