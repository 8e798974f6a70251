import pytest

from slotcraft.schemas.constraints import TimePreferences
from slotcraft.services.time_slots import build_time_grid, derive_slots, lunch_slot_label, slot_bounds


def prefs(**overrides):
    return TimePreferences(**overrides)


def test_default_day_skips_lunch_hour():
    slots = derive_slots(prefs())
    assert slots == [
        "09:00-10:00",
        "10:00-11:00",
        "11:00-12:00",
        "12:00-13:00",
        "14:00-15:00",
        "15:00-16:00",
        "16:00-17:00",
    ]


def test_lunch_at_ten_leaves_gap_in_morning():
    slots = derive_slots(prefs(startTime="09:00", endTime="13:00", lunchStartTime="10:00", slotDurationMinutes=60))
    assert slots == ["09:00-10:00", "11:00-12:00", "12:00-13:00"]


def test_slot_spanning_lunch_is_dropped():
    slots = derive_slots(prefs(startTime="09:00", endTime="13:00", lunchStartTime="10:00", slotDurationMinutes=90))
    assert "09:00-10:30" not in slots
    assert slots == ["11:00-12:30"]


def test_partial_slot_at_end_of_day_is_not_emitted():
    slots = derive_slots(
        prefs(startTime="09:00", endTime="11:30", lunchStartTime="11:00", lunchDurationMinutes=0, slotDurationMinutes=60)
    )
    assert slots == ["09:00-10:00", "10:00-11:00"]


def test_zero_length_lunch_is_ignored():
    slots = derive_slots(prefs(startTime="09:00", endTime="12:00", lunchStartTime="10:00", lunchDurationMinutes=0))
    assert slots == ["09:00-10:00", "10:00-11:00", "11:00-12:00"]


def test_unconfigured_times_give_no_slots():
    assert derive_slots(prefs(startTime=None, endTime=None)) == []
    assert derive_slots(prefs(startTime="", endTime="")) == []
    assert build_time_grid(prefs(startTime=None)).capacity == 0


@pytest.mark.parametrize(
    "overrides",
    [
        {"startTime": "9am"},
        {"startTime": "12:00", "endTime": "09:00"},
        {"lunchStartTime": "18:00"},
        {"lunchStartTime": "16:30", "lunchDurationMinutes": 120},
        {"slotDurationMinutes": 0},
    ],
)
def test_invalid_time_preferences_are_rejected(overrides):
    with pytest.raises(ValueError):
        prefs(**overrides)


@pytest.mark.parametrize(
    "config",
    [
        {},
        {"startTime": "08:00", "endTime": "18:00", "lunchStartTime": "12:30", "lunchDurationMinutes": 45, "slotDurationMinutes": 50},
        {"startTime": "07:30", "endTime": "15:00", "lunchStartTime": "11:15", "lunchDurationMinutes": 30, "slotDurationMinutes": 40},
        {"startTime": "10:00", "endTime": "16:00", "lunchStartTime": "10:00", "lunchDurationMinutes": 60, "slotDurationMinutes": 120},
    ],
)
def test_slots_are_contiguous_inside_the_day_and_clear_of_lunch(config):
    preferences = prefs(**config)
    slots = derive_slots(preferences)
    assert slots == derive_slots(preferences)

    lunch_start, lunch_end = slot_bounds(lunch_slot_label(preferences))
    day_start, day_end = slot_bounds(f"{preferences.startTime}-{preferences.endTime}")
    previous_end = None
    for slot in slots:
        start, end = slot_bounds(slot)
        assert end - start == preferences.slotDurationMinutes
        assert day_start <= start and end <= day_end
        assert end <= lunch_start or start >= lunch_end
        if previous_end is not None:
            assert start >= previous_end
        previous_end = end


def test_grid_uses_normalized_working_days():
    grid = build_time_grid(prefs(workingDays=["Mon", "TUESDAY", "mon"]))
    assert grid.working_days == ("monday", "tuesday")
    assert grid.lunch_break == "13:00-14:00"
    assert grid.contains("monday", "09:00-10:00")
    assert not grid.contains("wednesday", "09:00-10:00")
    assert grid.capacity == 2 * 7


def test_lunch_label_never_runs_past_midnight():
    late = prefs(startTime=None, endTime=None, lunchStartTime="23:00", lunchDurationMinutes=600)
    assert lunch_slot_label(late) == "23:00-24:00"
    assert build_time_grid(late).lunch_break == "23:00-24:00"
