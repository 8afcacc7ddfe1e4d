"""Sign-in identity resolution.

- authenticate_admin(): email + password, admins only
- resolve_oauth_user(): verified OIDC claims -> existing or new user

OAuth sign-up always creates role 'user'. An existing user keeps whatever
role is stored; nothing here promotes or demotes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from roomdesk.infra.db import txn
from roomdesk.infra.passwords import verify_password
from roomdesk.infra.repositories import users_repository
from roomdesk.observability.logging import get_logger
from roomdesk.observability.redaction import safe_log_context

logger = get_logger(__name__)


@dataclass(frozen=True)
class Principal:
    """Authenticated identity. Role is read from the users table per request."""

    id: int
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self) -> dict:
        return {"id": self.id, "email": self.email, "role": self.role}


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _principal(user: dict) -> Principal:
    return Principal(id=user["id"], email=user["email"], role=user["role"])


def authenticate_admin(email: str, password: str) -> Principal | None:
    """Check admin credentials.

    Returns:
        Principal on success, None for unknown email, non-admin, no password
        set, or wrong password. Callers must not tell these apart.
    """
    if not email or not password:
        return None

    with txn() as cur:
        found = users_repository.get_admin_credentials(cur, normalize_email(email))

    if found is None:
        verify_password(password, None)
        return None

    user, password_hash = found
    if not verify_password(password, password_hash):
        return None
    return _principal(user)


def resolve_oauth_user(claims: dict[str, Any], provider: str) -> Principal:
    """Find or provision the user behind verified OIDC claims.

    First sign-in with an unseen email creates a 'user'. Each provider
    identity is linked to the user once.

    Args:
        claims: Output of verify_id_token() (has "sub" and "email").
        provider: Provider name stored in accounts.provider.

    Returns:
        Principal for the signed-in user.
    """
    email = normalize_email(claims["email"])

    with txn() as cur:
        user = users_repository.get_user_by_email(cur, email)
        created = user is None
        if created:
            user = users_repository.create_user(
                cur,
                email=email,
                name=claims.get("name"),
                image=claims.get("picture"),
                role="user",
            )
        linked = users_repository.link_account(
            cur,
            user_id=user["id"],
            provider=provider,
            provider_account_id=str(claims["sub"]),
        )

    if created or linked:
        logger.info(
            "oauth identity provisioned",
            extra={
                "extra_fields": safe_log_context(
                    user_id=user["id"],
                    provider=provider,
                    user_created=created,
                    account_linked=linked,
                )
            },
        )

    return _principal(user)
