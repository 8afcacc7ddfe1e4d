"""Session provider: session tokens and OIDC ID-token verification.

Provides:
- issue_session_token() / decode_session_token(): HS256 session tokens
- get_session_principal(): request -> Principal | None (never raises for a
  missing or bad session)
- verify_id_token(): validates an OIDC ID token against the provider JWKS
"""

from __future__ import annotations

import os
import threading
import time
from typing import Any

import jwt
import requests
from fastapi import HTTPException, Request

from roomdesk.domain.accounts import Principal
from roomdesk.observability.logging import get_logger

logger = get_logger(__name__)

SESSION_COOKIE_NAME = "roomdesk_session"

_SESSION_ALGORITHM = "HS256"
_SESSION_ISSUER = "roomdesk"
_DEFAULT_SESSION_TTL = 30 * 24 * 3600  # 30 days

# JWKS cache with TTL
_jwks_cache: dict[str, Any] | None = None
_jwks_cache_time: float = 0
_jwks_cache_lock = threading.Lock()
_JWKS_CACHE_TTL = 600  # 10 minutes


# ── Session tokens ────────────────────────────────────────────────────────────


def _get_session_secret() -> str:
    """Get the HMAC secret for session tokens.

    Raises:
        RuntimeError: If SESSION_SECRET is not configured.
    """
    secret = os.environ.get("SESSION_SECRET")
    if not secret:
        raise RuntimeError(
            "SESSION_SECRET not configured. "
            "Generate with: openssl rand -hex 32"
        )
    return secret


def session_ttl_seconds() -> int:
    return int(os.environ.get("SESSION_TTL_SECONDS", _DEFAULT_SESSION_TTL))


def issue_session_token(principal: Principal, now: int | None = None) -> str:
    """Sign a session token for a principal.

    The token carries only the user id; email and role are looked up again
    on every request, so a role change takes effect without re-login.
    """
    issued_at = int(time.time()) if now is None else now
    payload = {
        "sub": str(principal.id),
        "iss": _SESSION_ISSUER,
        "iat": issued_at,
        "exp": issued_at + session_ttl_seconds(),
    }
    return jwt.encode(payload, _get_session_secret(), algorithm=_SESSION_ALGORITHM)


def decode_session_token(token: str) -> int | None:
    """Verify a session token and return its user id, or None if invalid."""
    try:
        secret = _get_session_secret()
    except RuntimeError:
        logger.warning("session lookup without SESSION_SECRET configured")
        return None

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[_SESSION_ALGORITHM],
            issuer=_SESSION_ISSUER,
            options={"require": ["exp", "iat", "iss", "sub"]},
        )
    except jwt.InvalidTokenError:
        return None

    try:
        return int(payload["sub"])
    except (TypeError, ValueError):
        return None


def _extract_session_token(request: Request) -> str | None:
    """Bearer header first, then the session cookie."""
    auth_header = request.headers.get("Authorization", "")
    parts = auth_header.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return request.cookies.get(SESSION_COOKIE_NAME) or None


def _get_user_from_db(user_id: int) -> Principal | None:
    """Lookup the principal for a user id.

    Args:
        user_id: users.id from the session token.

    Returns:
        Principal if found, None otherwise.
    """
    from roomdesk.infra.db import txn
    from roomdesk.infra.repositories.users_repository import get_user_by_id

    with txn() as cur:
        user = get_user_by_id(cur, user_id)
    if user is None:
        return None
    return Principal(id=user["id"], email=user["email"], role=user["role"])


def get_session_principal(request: Request) -> Principal | None:
    """Resolve the current principal from the request, or None.

    The result is cached on request.state, so guards that run more than once
    in a request see the same value.
    """
    if hasattr(request.state, "principal"):
        return request.state.principal

    principal: Principal | None = None
    token = _extract_session_token(request)
    if token:
        user_id = decode_session_token(token)
        if user_id is not None:
            principal = _get_user_from_db(user_id)

    request.state.principal = principal
    return principal


# ── OIDC ID tokens (OAuth sign-in) ────────────────────────────────────────────


def _get_oidc_settings() -> dict[str, str | list[str] | None]:
    """Load OIDC settings from environment."""
    authorized_parties_raw = os.environ.get("OIDC_AUTHORIZED_PARTIES", "")
    authorized_parties: list[str] | None = None
    if authorized_parties_raw:
        authorized_parties = [p.strip() for p in authorized_parties_raw.split(",") if p.strip()]

    return {
        "issuer": os.environ.get("OIDC_ISSUER"),
        "audience": os.environ.get("OIDC_AUDIENCE"),
        "jwks_url": os.environ.get("OIDC_JWKS_URL"),
        "authorized_parties": authorized_parties,
    }


def oidc_provider_name() -> str:
    return os.environ.get("OIDC_PROVIDER", "google")


def _fetch_jwks(jwks_url: str) -> dict[str, Any]:
    """Fetch JWKS from URL."""
    resp = requests.get(jwks_url, timeout=10)
    resp.raise_for_status()
    return resp.json()


def _get_jwks(jwks_url: str, force_refresh: bool = False) -> dict[str, Any]:
    """Get JWKS with caching."""
    global _jwks_cache, _jwks_cache_time

    with _jwks_cache_lock:
        now = time.time()
        if not force_refresh and _jwks_cache is not None and (now - _jwks_cache_time) < _JWKS_CACHE_TTL:
            return _jwks_cache

        try:
            _jwks_cache = _fetch_jwks(jwks_url)
        except requests.RequestException:
            raise HTTPException(status_code=503, detail="Auth temporarily unavailable")
        _jwks_cache_time = now
        return _jwks_cache


def _find_key(jwks: dict[str, Any], kid: str) -> dict[str, Any] | None:
    """Find key by kid in JWKS."""
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return key
    return None


def verify_id_token(token: str) -> dict[str, Any]:
    """Verify an OIDC ID token and return its claims.

    Args:
        token: JWT issued by the configured OIDC provider.

    Returns:
        Verified claims. Always contains "sub" and "email".

    Raises:
        HTTPException: 401 if the token is invalid, 503 if JWKS is unreachable.
    """
    settings = _get_oidc_settings()

    issuer = settings.get("issuer")
    audience = settings.get("audience")
    jwks_url = settings.get("jwks_url")

    if not issuer or not audience or not jwks_url:
        raise HTTPException(status_code=401, detail="OIDC not configured")

    try:
        unverified_header = jwt.get_unverified_header(token)
    except jwt.exceptions.DecodeError:
        raise HTTPException(status_code=401, detail="Invalid token")

    kid = unverified_header.get("kid")
    if not kid:
        raise HTTPException(status_code=401, detail="Invalid token")

    jwks = _get_jwks(jwks_url)
    key_data = _find_key(jwks, kid)

    # Unknown kid: the provider may have rotated keys
    if key_data is None:
        jwks = _get_jwks(jwks_url, force_refresh=True)
        key_data = _find_key(jwks, kid)

    if key_data is None:
        raise HTTPException(status_code=401, detail="Invalid token")

    def _try_verify(jwk_data: dict[str, Any]) -> dict[str, Any]:
        try:
            public_key = jwt.algorithms.RSAAlgorithm.from_jwk(jwk_data)
        except (jwt.InvalidKeyError, ValueError, KeyError):
            raise HTTPException(status_code=401, detail="Invalid token")

        return jwt.decode(
            token,
            public_key,
            algorithms=["RS256"],
            issuer=issuer,
            audience=audience,
            options={"require": ["exp", "iss", "aud", "sub"]},
        )

    try:
        payload = _try_verify(key_data)
    except jwt.InvalidSignatureError:
        jwks = _get_jwks(jwks_url, force_refresh=True)
        key_data = _find_key(jwks, kid)
        if key_data is None:
            raise HTTPException(status_code=401, detail="Invalid token")
        try:
            payload = _try_verify(key_data)
        except jwt.InvalidTokenError:
            raise HTTPException(status_code=401, detail="Invalid token")
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    authorized_parties = settings.get("authorized_parties")
    if authorized_parties and "azp" in payload:
        if payload["azp"] not in authorized_parties:
            raise HTTPException(status_code=401, detail="Invalid token")

    if not payload.get("sub") or not payload.get("email"):
        raise HTTPException(status_code=401, detail="Invalid token")

    if payload.get("email_verified") is False:
        raise HTTPException(status_code=401, detail="Email not verified")

    return payload
