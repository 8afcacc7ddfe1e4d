"""Authorization guards for route handlers.

Two checks, used as FastAPI dependencies:
- require_authenticated(): any signed-in principal, else 401
- require_admin(): admin principal, else 401 (no session) or 403 (wrong role)

Role is the only authorization axis; there is no per-room ownership.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from roomdesk.api.auth import get_session_principal
from roomdesk.domain.accounts import Principal

UNAUTHORIZED = "Unauthorized"
ADMIN_REQUIRED = "Forbidden: Admin access required"


def require_authenticated(request: Request) -> Principal:
    """FastAPI dependency: the signed-in principal.

    Raises:
        HTTPException: 401 if there is no valid session.
    """
    principal = get_session_principal(request)
    if principal is None:
        raise HTTPException(status_code=401, detail=UNAUTHORIZED)
    return principal


def require_admin(principal: Principal = Depends(require_authenticated)) -> Principal:
    """FastAPI dependency: the signed-in principal, admins only.

    Raises:
        HTTPException: 401 from require_authenticated, unchanged; 403 if the
            principal is not an admin.
    """
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail=ADMIN_REQUIRED)
    return principal
