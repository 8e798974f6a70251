from __future__ import annotations

from dataclasses import dataclass
import logging

from slotcraft.schemas.common import SLOT_PATTERN, format_minutes, parse_time_to_minutes
from slotcraft.schemas.constraints import TimePreferences

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class TimeGrid:
    working_days: tuple[str, ...]
    time_slots: tuple[str, ...]
    lunch_break: str

    @property
    def slots_per_day(self) -> int:
        return len(self.time_slots)

    @property
    def capacity(self) -> int:
        return len(self.working_days) * len(self.time_slots)

    def contains(self, day: str, time_slot: str) -> bool:
        return day in self.working_days and time_slot in self.time_slots


def slot_label(start: int, end: int) -> str:
    return f"{format_minutes(start)}-{format_minutes(end)}"


def slot_bounds(slot: str) -> tuple[int, int]:
    match = SLOT_PATTERN.match(slot.strip())
    if match is None:
        raise ValueError(f"Time slot must look like HH:MM-HH:MM, got {slot!r}")
    return parse_time_to_minutes(match.group(1)), parse_time_to_minutes(match.group(2))


def slot_start_minutes(slot: str) -> int | None:
    try:
        return slot_bounds(slot)[0]
    except ValueError:
        return None


def _lunch_window(prefs: TimePreferences) -> tuple[int, int]:
    lunch_start = parse_time_to_minutes(prefs.lunchStartTime)
    return lunch_start, min(lunch_start + prefs.lunchDurationMinutes, MINUTES_PER_DAY)


def lunch_slot_label(prefs: TimePreferences) -> str:
    lunch_start, lunch_end = _lunch_window(prefs)
    return slot_label(lunch_start, lunch_end)


def derive_slots(prefs: TimePreferences) -> list[str]:
    """Return the bookable slots of one working day, in order.

    Starting at ``startTime`` the day is cut into ``slotDurationMinutes``
    pieces. A candidate that touches lunch in any way (starts in it, ends in
    it or spans it) is dropped and the walk resumes at the end of lunch. The
    walk stops at the first candidate that would run past ``endTime``; no
    partial slot is emitted. Unconfigured or malformed times give ``[]``.
    """
    if not prefs.startTime or not prefs.endTime:
        return []
    duration = prefs.slotDurationMinutes
    if duration is None or duration <= 0:
        return []
    try:
        day_start = parse_time_to_minutes(prefs.startTime)
        day_end = parse_time_to_minutes(prefs.endTime)
        lunch_start, lunch_end = _lunch_window(prefs)
    except (TypeError, ValueError):
        return []

    has_lunch = lunch_end > lunch_start
    slots: list[str] = []
    cursor = day_start
    while True:
        candidate_end = cursor + duration
        if has_lunch and cursor < lunch_end and candidate_end > lunch_start:
            cursor = lunch_end
            continue
        if candidate_end > day_end:
            break
        slots.append(slot_label(cursor, candidate_end))
        cursor = candidate_end
    return slots


def build_time_grid(prefs: TimePreferences) -> TimeGrid:
    slots = derive_slots(prefs)
    try:
        lunch = lunch_slot_label(prefs)
    except ValueError:
        lunch = ""
    if not slots:
        logger.info("Time preferences produce no bookable slots; treating the grid as not configured")
    return TimeGrid(working_days=tuple(prefs.workingDays), time_slots=tuple(slots), lunch_break=lunch)
