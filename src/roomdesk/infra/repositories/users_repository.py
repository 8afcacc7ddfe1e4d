"""Users and accounts repository.

Uses raw SQL with psycopg2 (no ORM). The caller owns the transaction.

Role is written in exactly two places: create_user() (OAuth sign-up, always
'user' unless a caller passes otherwise) and upsert_admin() (bootstrap tool).
No request path updates an existing user's role.
"""

from __future__ import annotations

from typing import Any, Sequence

from psycopg2.extensions import cursor as PgCursor

from roomdesk.infra.db import execute, fetchone

_USER_COLUMNS = "id, email, name, role, image"


def _row_to_user(row: Sequence[Any]) -> dict:
    return {
        "id": row[0],
        "email": row[1],
        "name": row[2],
        "role": row[3],
        "image": row[4],
    }


def get_user_by_id(cur: PgCursor, user_id: int) -> dict | None:
    row = fetchone(cur, f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s", (user_id,))
    return _row_to_user(row) if row is not None else None


def get_user_by_email(cur: PgCursor, email: str) -> dict | None:
    row = fetchone(cur, f"SELECT {_USER_COLUMNS} FROM users WHERE email = %s", (email,))
    return _row_to_user(row) if row is not None else None


def get_admin_credentials(cur: PgCursor, email: str) -> tuple[dict, str] | None:
    """Fetch an admin user and its password hash for a credential check.

    Returns:
        (user, password_hash), or None if there is no admin with a password
        for this email.
    """
    row = fetchone(
        cur,
        f"""
        SELECT {_USER_COLUMNS}, password_hash
        FROM users
        WHERE email = %s AND role = 'admin' AND password_hash IS NOT NULL
        """,
        (email,),
    )
    if row is None:
        return None
    return _row_to_user(row[:5]), row[5]


def create_user(
    cur: PgCursor,
    *,
    email: str,
    name: str | None,
    image: str | None,
    role: str = "user",
) -> dict:
    """Insert a user without a password (OAuth sign-up)."""
    row = fetchone(
        cur,
        f"""
        INSERT INTO users (email, name, image, role)
        VALUES (%s, %s, %s, %s)
        RETURNING {_USER_COLUMNS}
        """,
        (email, name, image, role),
    )
    return _row_to_user(row)


def link_account(
    cur: PgCursor,
    *,
    user_id: int,
    provider: str,
    provider_account_id: str,
    account_type: str = "oidc",
) -> bool:
    """Record a provider identity for a user once.

    Returns:
        True if a new accounts row was written, False if it already existed.
    """
    return (
        execute(
            cur,
            """
            INSERT INTO accounts (user_id, type, provider, provider_account_id)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (provider, provider_account_id) DO NOTHING
            """,
            (user_id, account_type, provider, provider_account_id),
        )
        > 0
    )


def upsert_admin(cur: PgCursor, *, email: str, password_hash: str) -> bool:
    """Create an admin, or reset password and promote an existing email.

    Returns:
        True if a new user was created, False if an existing one was updated.
    """
    row = fetchone(
        cur,
        """
        INSERT INTO users (email, password_hash, role)
        VALUES (%s, %s, 'admin')
        ON CONFLICT (email) DO UPDATE
            SET password_hash = EXCLUDED.password_hash,
                role = 'admin'
        RETURNING (xmax = 0)
        """,
        (email, password_hash),
    )
    return bool(row[0])
