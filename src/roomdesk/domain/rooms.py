"""Rooms domain logic - validation and CRUD operations.

Every write goes through validate_new_room() / validate_room_update() first,
so a persisted room always has a non-empty name and type, a positive rate,
a known status, and notes that are either text or NULL.

Validation collects every problem before failing; nothing is written
unless the whole payload is valid.

Write and read-back share one txn(): the INSERT/UPDATE ... RETURNING row is
what the storage layer now holds, NUMERIC rounding included.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from roomdesk.infra.db import txn
from roomdesk.infra.repositories import rooms_repository

ROOM_STATUSES = ("available", "occupied", "maintenance")
DEFAULT_STATUS = "available"

_CENTS = Decimal("0.01")
# Largest amount nightly_rate NUMERIC(10, 2) can hold.
_MAX_RATE = Decimal("99999999.99")

MSG_NAME_REQUIRED = "Room name is required."
MSG_TYPE_REQUIRED = "Room type is required."
MSG_NAME_EMPTY = "Room name cannot be empty."
MSG_TYPE_EMPTY = "Room type cannot be empty."
MSG_RATE_INVALID = "Nightly rate must be a positive number."
MSG_STATUS_INVALID = "Status is invalid."


class RoomValidationError(Exception):
    """Raised when a room payload breaks one or more field rules."""

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class NoValidFieldsError(Exception):
    """Raised when an update payload carries no recognized field."""

    pass


class RoomNotFoundError(Exception):
    """Raised when the target room does not exist."""

    pass


@dataclass(frozen=True)
class Room:
    """A persisted room as returned to API consumers."""

    id: int
    name: str
    room_type: str
    nightly_rate: float
    status: str
    notes: str | None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "roomType": self.room_type,
            "nightlyRate": self.nightly_rate,
            "status": self.status,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class NewRoom:
    """Validated values for an INSERT."""

    name: str
    room_type: str
    nightly_rate: Decimal
    status: str
    notes: str | None


@dataclass(frozen=True)
class RoomUpdate:
    """Validated values for a sparse UPDATE.

    Only columns listed in `present` are written. A column can be present
    with a None value (notes cleared), so presence is tracked separately.
    """

    name: str | None = None
    room_type: str | None = None
    nightly_rate: Decimal | None = None
    status: str | None = None
    notes: str | None = None
    present: frozenset[str] = field(default_factory=frozenset)

    def assignments(self) -> list[tuple[str, Any]]:
        """(column, value) pairs for present fields, in column order."""
        return [
            (column, getattr(self, column))
            for column in rooms_repository.UPDATABLE_COLUMNS
            if column in self.present
        ]


# ── Field rules ───────────────────────────────────────────────────────────────


def _clean_text(value: Any) -> str | None:
    """Trim a string; anything else, or blank text, yields None."""
    if isinstance(value, str):
        value = value.strip()
        if value:
            return value
    return None


def _parse_rate(value: Any) -> Decimal | None:
    """Coerce a rate to cents; None unless it is > 0 and fits NUMERIC(10, 2).

    Accepts JSON numbers and numeric strings. Booleans are rejected even
    though bool is an int subclass.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str):
        return None
    try:
        rate = Decimal(value.strip())
        if not rate.is_finite():
            return None
        rate = rate.quantize(_CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None
    # Amounts that round to 0.00 would not survive storage as positive.
    if rate <= 0 or rate > _MAX_RATE:
        return None
    return rate


def _require_object(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise RoomValidationError(["Request body must be a JSON object."])
    return payload


def validate_new_room(payload: Any) -> NewRoom:
    """Validate a create payload.

    A missing (or null) status defaults to "available"; a supplied but
    unknown status is rejected.

    Raises:
        RoomValidationError: With every violated rule.
    """
    payload = _require_object(payload)
    errors: list[str] = []

    name = _clean_text(payload.get("name"))
    if name is None:
        errors.append(MSG_NAME_REQUIRED)

    room_type = _clean_text(payload.get("roomType"))
    if room_type is None:
        errors.append(MSG_TYPE_REQUIRED)

    nightly_rate = _parse_rate(payload.get("nightlyRate"))
    if nightly_rate is None:
        errors.append(MSG_RATE_INVALID)

    status = payload.get("status")
    if status is None:
        status = DEFAULT_STATUS
    elif status not in ROOM_STATUSES:
        errors.append(MSG_STATUS_INVALID)

    if errors:
        raise RoomValidationError(errors)

    return NewRoom(
        name=name,
        room_type=room_type,
        nightly_rate=nightly_rate,
        status=status,
        notes=_clean_text(payload.get("notes")),
    )


def validate_room_update(payload: Any) -> RoomUpdate:
    """Validate a partial-update payload.

    Keys absent from the payload are left untouched; unknown keys are
    ignored. Unlike create, an absent status never defaults.

    Raises:
        RoomValidationError: With every violated rule among present keys.
        NoValidFieldsError: If no recognized key is present.
    """
    payload = _require_object(payload)
    errors: list[str] = []
    values: dict[str, Any] = {}

    if "name" in payload:
        name = _clean_text(payload["name"])
        if name is None:
            errors.append(MSG_NAME_EMPTY)
        else:
            values["name"] = name

    if "roomType" in payload:
        room_type = _clean_text(payload["roomType"])
        if room_type is None:
            errors.append(MSG_TYPE_EMPTY)
        else:
            values["room_type"] = room_type

    if "nightlyRate" in payload:
        rate = _parse_rate(payload["nightlyRate"])
        if rate is None:
            errors.append(MSG_RATE_INVALID)
        else:
            values["nightly_rate"] = rate

    if "status" in payload:
        if payload["status"] not in ROOM_STATUSES:
            errors.append(MSG_STATUS_INVALID)
        else:
            values["status"] = payload["status"]

    if "notes" in payload:
        values["notes"] = _clean_text(payload["notes"])

    if errors:
        raise RoomValidationError(errors)
    if not values:
        raise NoValidFieldsError()

    return RoomUpdate(present=frozenset(values), **values)


# ── Operations ────────────────────────────────────────────────────────────────


def list_rooms() -> list[Room]:
    """Return every room, newest id first."""
    with txn() as cur:
        rows = rooms_repository.list_rooms(cur)
    return [Room(**row) for row in rows]


def create_room(payload: Any) -> Room:
    """Validate and insert a room.

    Raises:
        RoomValidationError: If the payload is invalid (nothing is inserted).
    """
    new_room = validate_new_room(payload)
    with txn() as cur:
        row = rooms_repository.insert_room(
            cur,
            name=new_room.name,
            room_type=new_room.room_type,
            nightly_rate=new_room.nightly_rate,
            status=new_room.status,
            notes=new_room.notes,
        )
    return Room(**row)


def update_room(room_id: int, payload: Any) -> Room:
    """Apply a sparse update to a room.

    Raises:
        RoomValidationError: If a present field is invalid.
        NoValidFieldsError: If nothing recognizable was supplied.
        RoomNotFoundError: If no room has this id.
    """
    update = validate_room_update(payload)
    with txn() as cur:
        row = rooms_repository.update_room(cur, room_id, update.assignments())
    if row is None:
        raise RoomNotFoundError(room_id)
    return Room(**row)


def delete_room(room_id: int) -> None:
    """Delete a room.

    Raises:
        RoomNotFoundError: If no room has this id.
    """
    with txn() as cur:
        deleted = rooms_repository.delete_room(cur, room_id)
    if not deleted:
        raise RoomNotFoundError(room_id)
