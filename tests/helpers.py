"""Shared test helper functions for Roomdesk tests.

Regular functions and a fake rooms table, importable by conftest.py and by
individual test modules. These are NOT fixtures.
"""

from __future__ import annotations

import base64
import time
from decimal import Decimal
from typing import Any

import jwt
from cryptography.hazmat.primitives.asymmetric import rsa

from roomdesk.api.auth import issue_session_token
from roomdesk.domain.accounts import Principal

ADMIN = Principal(id=1, email="admin@example.com", role="admin")
GUEST = Principal(id=2, email="guest@example.com", role="user")


def auth_headers(principal: Principal) -> dict[str, str]:
    """Bearer header carrying a fresh session token for principal."""
    return {"Authorization": f"Bearer {issue_session_token(principal)}"}


def _generate_rsa_keypair():
    """Generate RSA key pair for test JWT signing."""
    private_key = rsa.generate_private_key(
        public_exponent=65537,
        key_size=2048,
    )
    public_key = private_key.public_key()
    return private_key, public_key


def _create_jwks(public_key, kid: str = "test-key-1") -> dict:
    """Create JWKS from public key."""
    public_numbers = public_key.public_numbers()

    def int_to_base64(n: int) -> str:
        byte_length = (n.bit_length() + 7) // 8
        return (
            base64.urlsafe_b64encode(n.to_bytes(byte_length, "big"))
            .rstrip(b"=")
            .decode()
        )

    return {
        "keys": [
            {
                "kty": "RSA",
                "use": "sig",
                "alg": "RS256",
                "kid": kid,
                "n": int_to_base64(public_numbers.n),
                "e": int_to_base64(public_numbers.e),
            }
        ]
    }


def _create_id_token(
    private_key,
    kid: str = "test-key-1",
    sub: str = "google-oauth-123",
    email: str | None = "guest@example.com",
    iss: str = "https://accounts.google.com",
    aud: str = "roomdesk-web",
    exp: int | None = None,
    **extra: Any,
) -> str:
    """Create a signed OIDC ID token for testing."""
    now = int(time.time())
    payload: dict[str, Any] = {
        "sub": sub,
        "iss": iss,
        "aud": aud,
        "exp": exp if exp is not None else now + 3600,
        "iat": now,
    }
    if email is not None:
        payload["email"] = email
    payload.update(extra)

    return jwt.encode(payload, private_key, algorithm="RS256", headers={"kid": kid})


class FakeRoomsTable:
    """In-memory stand-in for the rooms repository functions.

    Mirrors storage behavior that matters to callers: SERIAL ids that are
    never reused, NUMERIC rates read back as Decimal and returned as float,
    and rowcount-style results for update/delete.
    """

    def __init__(self) -> None:
        self.rows: dict[int, dict] = {}
        self._next_id = 1
        self.writes = 0

    def _out(self, row: dict) -> dict:
        return {**row, "nightly_rate": float(row["nightly_rate"])}

    def seed(self, **values: Any) -> dict:
        row = {
            "name": "Room",
            "room_type": "Standard",
            "nightly_rate": Decimal("100.00"),
            "status": "available",
            "notes": None,
            **values,
        }
        row["nightly_rate"] = Decimal(str(row["nightly_rate"]))
        row["id"] = self._next_id
        self._next_id += 1
        self.rows[row["id"]] = row
        return self._out(row)

    def list_rooms(self, cur) -> list[dict]:
        return [self._out(self.rows[k]) for k in sorted(self.rows, reverse=True)]

    def insert_room(self, cur, **values: Any) -> dict:
        self.writes += 1
        return self.seed(**values)

    def update_room(self, cur, room_id: int, assignments) -> dict | None:
        self.writes += 1
        row = self.rows.get(room_id)
        if row is None:
            return None
        row.update(dict(assignments))
        return self._out(row)

    def delete_room(self, cur, room_id: int) -> bool:
        self.writes += 1
        return self.rows.pop(room_id, None) is not None
