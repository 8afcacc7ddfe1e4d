"""Rooms repository - SQL for the rooms table.

Uses raw SQL with psycopg2 (no ORM). Every function takes a cursor; the
caller owns the transaction (with txn() as cur:).

nightly_rate is NUMERIC(10, 2) and comes back from psycopg2 as Decimal.
_row_to_room() turns it into a float on every path out of this module.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Sequence

from psycopg2.extensions import cursor as PgCursor

from roomdesk.infra.db import execute, fetchall, fetchone

# Whitelist for the SET clause of update_room(); order fixes SQL layout.
UPDATABLE_COLUMNS = ("name", "room_type", "nightly_rate", "status", "notes")

_ROOM_COLUMNS = "id, name, room_type, nightly_rate, status, notes"


def _row_to_room(row: Sequence[Any]) -> dict:
    return {
        "id": row[0],
        "name": row[1],
        "room_type": row[2],
        "nightly_rate": float(row[3]),
        "status": row[4],
        "notes": row[5],
    }


def list_rooms(cur: PgCursor) -> list[dict]:
    """List all rooms, newest id first."""
    rows = fetchall(cur, f"SELECT {_ROOM_COLUMNS} FROM rooms ORDER BY id DESC")
    return [_row_to_room(row) for row in rows]


def insert_room(
    cur: PgCursor,
    *,
    name: str,
    room_type: str,
    nightly_rate: Decimal,
    status: str,
    notes: str | None,
) -> dict:
    """Insert a room and return the stored row."""
    row = fetchone(
        cur,
        f"""
        INSERT INTO rooms (name, room_type, nightly_rate, status, notes)
        VALUES (%s, %s, %s, %s, %s)
        RETURNING {_ROOM_COLUMNS}
        """,
        (name, room_type, nightly_rate, status, notes),
    )
    return _row_to_room(row)


def update_room(
    cur: PgCursor,
    room_id: int,
    assignments: Sequence[tuple[str, Any]],
) -> dict | None:
    """Write only the given (column, value) pairs.

    Args:
        cur: Database cursor.
        room_id: Target room.
        assignments: Non-empty list of (column, value); columns must be in
            UPDATABLE_COLUMNS.

    Returns:
        The stored row after the update, or None if the room does not exist.

    Raises:
        ValueError: On an empty list or a column outside the whitelist.
    """
    if not assignments:
        raise ValueError("No columns to update")

    sets: list[str] = []
    params: list[Any] = []
    for column, value in assignments:
        if column not in UPDATABLE_COLUMNS:
            raise ValueError(f"Column not updatable: {column}")
        sets.append(f"{column} = %s")
        params.append(value)
    params.append(room_id)

    row = fetchone(
        cur,
        f"""
        UPDATE rooms
        SET {", ".join(sets)}
        WHERE id = %s
        RETURNING {_ROOM_COLUMNS}
        """,  # noqa: S608 - SET clause built only from whitelisted column names
        params,
    )
    return _row_to_room(row) if row is not None else None


def delete_room(cur: PgCursor, room_id: int) -> bool:
    """Delete a room. Returns False if nothing was deleted."""
    return execute(cur, "DELETE FROM rooms WHERE id = %s", (room_id,)) > 0
