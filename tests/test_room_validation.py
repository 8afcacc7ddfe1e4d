"""Tests for room payload validation rules."""

from decimal import Decimal

import pytest

from roomdesk.domain.rooms import (
    NoValidFieldsError,
    RoomValidationError,
    validate_new_room,
    validate_room_update,
)


def _errors(fn, payload) -> list[str]:
    with pytest.raises(RoomValidationError) as exc_info:
        fn(payload)
    return exc_info.value.errors


class TestValidateNewRoom:
    def test_valid_minimal(self):
        room = validate_new_room({"name": "101", "roomType": "Standard", "nightlyRate": 80})
        assert room.name == "101"
        assert room.room_type == "Standard"
        assert room.nightly_rate == Decimal("80.00")
        assert room.status == "available"
        assert room.notes is None

    def test_null_status_defaults_like_missing(self):
        room = validate_new_room(
            {"name": "101", "roomType": "Standard", "nightlyRate": 80, "status": None}
        )
        assert room.status == "available"

    @pytest.mark.parametrize("status", ["available", "occupied", "maintenance"])
    def test_every_status_accepted(self, status):
        room = validate_new_room(
            {"name": "101", "roomType": "Standard", "nightlyRate": 80, "status": status}
        )
        assert room.status == status

    @pytest.mark.parametrize("status", ["", "Available", "closed", 1, ["available"]])
    def test_unknown_status_rejected(self, status):
        errors = _errors(
            validate_new_room,
            {"name": "101", "roomType": "Standard", "nightlyRate": 80, "status": status},
        )
        assert errors == ["Status is invalid."]

    @pytest.mark.parametrize(
        "rate",
        [
            0, -5, "0", "", "abc", None, True, "NaN", "Infinity", "-0.001", 0.004,
            1e8, "99999999.995", "1e12", [10], {"v": 1},
        ],
    )
    def test_bad_rates(self, rate):
        errors = _errors(
            validate_new_room, {"name": "101", "roomType": "Standard", "nightlyRate": rate}
        )
        assert errors == ["Nightly rate must be a positive number."]

    @pytest.mark.parametrize(
        "rate,expected",
        [(1, "1.00"), ("42.5", "42.50"), (" 7 ", "7.00"), (0.005, "0.01"), ("1e3", "1000.00"),
         ("99999999.99", "99999999.99")],
    )
    def test_rates_coerced_to_cents(self, rate, expected):
        room = validate_new_room({"name": "101", "roomType": "Standard", "nightlyRate": rate})
        assert room.nightly_rate == Decimal(expected)

    def test_non_string_name_and_type_rejected(self):
        errors = _errors(validate_new_room, {"name": 101, "roomType": ["Suite"], "nightlyRate": 5})
        assert errors == ["Room name is required.", "Room type is required."]

    def test_empty_object_reports_every_required_field(self):
        assert _errors(validate_new_room, {}) == [
            "Room name is required.",
            "Room type is required.",
            "Nightly rate must be a positive number.",
        ]

    def test_non_object_payload(self):
        assert _errors(validate_new_room, ["name"]) == ["Request body must be a JSON object."]

    def test_notes_trimmed(self):
        room = validate_new_room(
            {"name": "1", "roomType": "T", "nightlyRate": 1, "notes": "  Sea view  "}
        )
        assert room.notes == "Sea view"

    def test_non_string_notes_become_null(self):
        room = validate_new_room({"name": "1", "roomType": "T", "nightlyRate": 1, "notes": 12})
        assert room.notes is None


class TestValidateRoomUpdate:
    def test_only_present_fields(self):
        update = validate_room_update({"status": "occupied"})
        assert update.present == frozenset({"status"})
        assert update.assignments() == [("status", "occupied")]

    def test_absent_status_does_not_default(self):
        update = validate_room_update({"name": "New"})
        assert "status" not in update.present
        assert update.assignments() == [("name", "New")]

    def test_assignments_follow_column_order(self):
        update = validate_room_update(
            {"notes": "x", "nightlyRate": "10", "name": "N", "roomType": "T", "status": "available"}
        )
        assert [column for column, _ in update.assignments()] == [
            "name",
            "room_type",
            "nightly_rate",
            "status",
            "notes",
        ]

    def test_null_notes_is_present(self):
        update = validate_room_update({"notes": None})
        assert update.assignments() == [("notes", None)]

    def test_empty_payload(self):
        with pytest.raises(NoValidFieldsError):
            validate_room_update({})

    def test_unknown_keys_ignored(self):
        with pytest.raises(NoValidFieldsError):
            validate_room_update({"id": 5, "nightly_rate": 10})

    def test_explicit_null_status_rejected(self):
        assert _errors(validate_room_update, {"status": None}) == ["Status is invalid."]

    def test_errors_use_update_wording(self):
        assert _errors(validate_room_update, {"name": " ", "roomType": ""}) == [
            "Room name cannot be empty.",
            "Room type cannot be empty.",
        ]

    def test_errors_win_over_no_valid_fields(self):
        assert _errors(validate_room_update, {"nightlyRate": -1}) == [
            "Nightly rate must be a positive number."
        ]

    def test_rate_beyond_column_range_rejected(self):
        assert _errors(validate_room_update, {"nightlyRate": 100000000}) == [
            "Nightly rate must be a positive number."
        ]
