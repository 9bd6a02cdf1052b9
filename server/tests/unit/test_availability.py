"""Unit tests for slot generation and block availability."""

from datetime import date
from types import SimpleNamespace

import pytest

from tramboory.core.exceptions import ValidationError
from tramboory.services.availability import (
    add_hours,
    block_availability,
    generate_block_slots,
    generate_time_slots,
    overlaps,
    parse_date,
)

AFTERNOON_BLOCK = {
    "name": "Tarde",
    "days": [1, 2, 3, 4, 5],
    "startTime": "12:00",
    "endTime": "20:00",
    "duration": 3,
    "halfHourBreak": True,
    "maxEventsPerBlock": 1,
}


def booking(event_time: str, duration: float | None = 3):
    return SimpleNamespace(event_time=event_time, event_duration=duration)


def test_generate_block_slots_with_break():
    slots = generate_block_slots("12:00", "20:00", 3, True)
    assert slots == [
        {"time": "12:00", "endTime": "15:00"},
        {"time": "15:30", "endTime": "18:30"},
    ]


def test_generate_block_slots_without_break():
    slots = generate_block_slots("12:00", "18:00", 3, False)
    assert [slot["time"] for slot in slots] == ["12:00", "15:00"]


def test_default_block_has_a_single_slot():
    slots = generate_block_slots("14:00", "19:00", 3.5, True)
    assert slots == [{"time": "14:00", "endTime": "17:30"}]


def test_generate_block_slots_event_longer_than_block():
    assert generate_block_slots("14:00", "16:00", 3, True) == []


def test_generate_time_slots():
    assert generate_time_slots("14:00", "19:00", 2) == ["14:00", "16:00", "18:00"]


def test_add_hours_and_overlap():
    assert add_hours("14:00", 3.5) == "17:30"
    assert overlaps("14:00", "17:30", "17:00", "20:00")
    assert not overlaps("14:00", "17:30", "17:30", "20:00")


def test_block_availability_marks_overlapping_slot_full():
    block = block_availability(AFTERNOON_BLOCK, [booking("12:00")], default_duration=3)
    first, second = block["slots"]
    assert first["available"] is False
    assert first["remainingCapacity"] == 0
    assert second["available"] is True
    assert second["totalCapacity"] == 1


def test_block_availability_uses_default_duration():
    # a 4 hour default reaches into the second slot
    block = block_availability(AFTERNOON_BLOCK, [booking("12:00", None)], default_duration=4)
    assert [slot["available"] for slot in block["slots"]] == [False, False]


def test_block_availability_capacity():
    block = dict(AFTERNOON_BLOCK, maxEventsPerBlock=2)
    result = block_availability(block, [booking("12:00")], default_duration=3)
    assert result["slots"][0]["available"] is True
    assert result["slots"][0]["remainingCapacity"] == 1


def test_parse_date():
    assert parse_date("2025-03-14") == date(2025, 3, 14)
    assert parse_date("2025-03-14T10:00:00Z") == date(2025, 3, 14)
    with pytest.raises(ValidationError):
        parse_date(None)
    with pytest.raises(ValidationError):
        parse_date("14/03/2025")
