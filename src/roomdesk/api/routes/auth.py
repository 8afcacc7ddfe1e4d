"""Auth routes - sign-in, session refresh and sign-out.

POST /auth/login     → email/password sign-in (admins only)
POST /auth/oauth     → OIDC ID-token sign-in (provisions role 'user')
POST /auth/refresh   → re-issue the session token
POST /auth/logout    → clear the session cookie
GET  /auth/session   → current principal
"""

from __future__ import annotations

import os

import psycopg2
from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict

from roomdesk.api.auth import (
    SESSION_COOKIE_NAME,
    issue_session_token,
    oidc_provider_name,
    session_ttl_seconds,
    verify_id_token,
)
from roomdesk.api.guards import require_authenticated
from roomdesk.domain.accounts import Principal, authenticate_admin, resolve_oauth_user
from roomdesk.observability.logging import get_logger
from roomdesk.observability.redaction import safe_log_context

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: str
    password: str


class OAuthRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id_token: str


def _cookie_secure() -> bool:
    return os.environ.get("SESSION_COOKIE_SECURE", "true").lower() != "false"


def _start_session(response: Response, principal: Principal) -> dict:
    """Issue a token, set it as an HttpOnly cookie and build the body."""
    token = issue_session_token(principal)
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=session_ttl_seconds(),
        httponly=True,
        secure=_cookie_secure(),
        samesite="lax",
    )
    return {"token": token, "user": principal.to_dict()}


@router.post("/login")
def login(body: LoginRequest, response: Response) -> dict:
    """Sign in with email and password.

    Only admins have passwords. Every failure is the same 401.
    """
    try:
        principal = authenticate_admin(body.email, body.password)
    except psycopg2.Error:
        logger.exception("credential lookup failed")
        raise HTTPException(status_code=500, detail="Unable to sign in.")

    if principal is None:
        logger.info("credential sign-in rejected")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    logger.info(
        "credential sign-in",
        extra={"extra_fields": safe_log_context(user_id=principal.id)},
    )
    return _start_session(response, principal)


@router.post("/oauth")
def oauth(body: OAuthRequest, response: Response) -> dict:
    """Sign in with an ID token from the configured OIDC provider.

    A first-seen email gets a new account with role 'user'.
    """
    claims = verify_id_token(body.id_token)

    try:
        principal = resolve_oauth_user(claims, oidc_provider_name())
    except psycopg2.Error:
        logger.exception("oauth provisioning failed")
        raise HTTPException(status_code=500, detail="Unable to sign in.")

    return _start_session(response, principal)


@router.post("/refresh")
def refresh(
    response: Response,
    principal: Principal = Depends(require_authenticated),
) -> dict:
    """Extend a still-valid session."""
    return _start_session(response, principal)


@router.post("/logout")
def logout(response: Response) -> dict:
    """Clear the session cookie. Bearer tokens simply expire."""
    response.delete_cookie(SESSION_COOKIE_NAME, httponly=True, secure=_cookie_secure(), samesite="lax")
    return {"message": "Signed out."}


@router.get("/session")
def session(principal: Principal = Depends(require_authenticated)) -> dict:
    """Return the signed-in principal."""
    return principal.to_dict()
