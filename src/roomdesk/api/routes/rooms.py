"""Rooms endpoints.

GET    /rooms         → list   (any signed-in user)
POST   /rooms         → create (admin, 201)
PUT    /rooms/{id}    → sparse update (admin)
DELETE /rooms/{id}    → delete (admin)

Guards are declared before the body dependency, so a caller without access
gets 401/403 before the body is even parsed.
"""

from __future__ import annotations

from typing import Any

import psycopg2
from fastapi import APIRouter, Depends, HTTPException, Path, Request

from roomdesk.api.guards import require_admin, require_authenticated
from roomdesk.domain import rooms as rooms_domain
from roomdesk.domain.accounts import Principal
from roomdesk.domain.rooms import (
    NoValidFieldsError,
    RoomNotFoundError,
    RoomValidationError,
)
from roomdesk.observability.logging import get_logger
from roomdesk.observability.redaction import safe_log_context

logger = get_logger(__name__)

router = APIRouter(prefix="/rooms", tags=["rooms"])

ROOM_NOT_FOUND = "Room not found."


# ── Request helpers ───────────────────────────────────────────────────────────


async def read_json_object(request: Request) -> dict[str, Any]:
    """Dependency: parse the body as a JSON object.

    Raises:
        RoomValidationError: On empty, malformed or non-object JSON.
    """
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        raise RoomValidationError(["Request body must be a JSON object."])
    return payload


def _parse_room_id(raw: str) -> int:
    try:
        room_id = int(raw)
    except ValueError:
        room_id = 0
    if room_id <= 0:
        raise HTTPException(status_code=400, detail="Invalid room id.")
    return room_id


def _log_change(action: str, principal: Principal, room_id: int) -> None:
    logger.info(
        f"room {action}",
        extra={
            "extra_fields": safe_log_context(
                room_id=room_id,
                principal_id=principal.id,
            )
        },
    )


# ── GET /rooms ────────────────────────────────────────────────────────────────


@router.get("")
def list_rooms(principal: Principal = Depends(require_authenticated)) -> list[dict]:
    """List every room, newest first."""
    try:
        rooms = rooms_domain.list_rooms()
    except psycopg2.Error:
        logger.exception("failed to load rooms")
        raise HTTPException(status_code=500, detail="Unable to load rooms.")

    return [room.to_dict() for room in rooms]


# ── POST /rooms ───────────────────────────────────────────────────────────────


@router.post("", status_code=201)
def create_room(
    principal: Principal = Depends(require_admin),
    payload: dict[str, Any] = Depends(read_json_object),
) -> dict:
    """Create a room.

    status defaults to "available" when omitted. Responds with the row as
    stored. Validation failures are 400 {"errors": [...]}.
    """
    try:
        room = rooms_domain.create_room(payload)
    except psycopg2.Error:
        logger.exception("failed to create room")
        raise HTTPException(status_code=500, detail="Unable to create room.")

    _log_change("created", principal, room.id)
    return room.to_dict()


# ── PUT /rooms/{room_id} ──────────────────────────────────────────────────────


@router.put("/{room_id}")
def update_room(
    room_id: str = Path(..., description="Room ID"),
    principal: Principal = Depends(require_admin),
    payload: dict[str, Any] = Depends(read_json_object),
) -> dict:
    """Update only the supplied fields of a room."""
    room_pk = _parse_room_id(room_id)

    try:
        room = rooms_domain.update_room(room_pk, payload)
    except NoValidFieldsError:
        raise HTTPException(status_code=400, detail="No valid fields to update.")
    except RoomNotFoundError:
        raise HTTPException(status_code=404, detail=ROOM_NOT_FOUND)
    except psycopg2.Error:
        logger.exception("failed to update room")
        raise HTTPException(status_code=500, detail="Unable to update room.")

    _log_change("updated", principal, room.id)
    return room.to_dict()


# ── DELETE /rooms/{room_id} ───────────────────────────────────────────────────


@router.delete("/{room_id}")
def delete_room(
    room_id: str = Path(..., description="Room ID"),
    principal: Principal = Depends(require_admin),
) -> dict:
    """Delete a room. A second delete of the same id is a 404."""
    room_pk = _parse_room_id(room_id)

    try:
        rooms_domain.delete_room(room_pk)
    except RoomNotFoundError:
        raise HTTPException(status_code=404, detail=ROOM_NOT_FOUND)
    except psycopg2.Error:
        logger.exception("failed to delete room")
        raise HTTPException(status_code=500, detail="Unable to delete room.")

    _log_change("deleted", principal, room_pk)
    return {"message": "Room removed."}
