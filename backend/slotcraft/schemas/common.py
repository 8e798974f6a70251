from __future__ import annotations

import re
from typing import Literal

DAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
DEFAULT_WORKING_DAYS = DAYS[:5]

DAY_ALIASES = {day[:3]: day for day in DAYS}

SUBJECT_TYPES = ("Theory", "Lab", "Tutorial")
SUBJECT_TYPE_ALIASES = {
    "theory": "Theory",
    "lecture": "Theory",
    "lab": "Lab",
    "laboratory": "Lab",
    "practical": "Lab",
    "tutorial": "Tutorial",
}

SubjectType = Literal["Theory", "Lab", "Tutorial"]

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
SLOT_PATTERN = re.compile(r"^(\d{2}:\d{2})-(\d{2}:\d{2})$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_minutes(total: int) -> str:
    hours, minutes = divmod(total, 60)
    return f"{hours:02d}:{minutes:02d}"


def normalize_day(value: str) -> str:
    """Map ``Monday``, ``MON`` or ``monday`` to the canonical ``monday``."""
    cleaned = value.strip().lower()
    if cleaned in DAYS:
        return cleaned
    alias = DAY_ALIASES.get(cleaned[:3]) if len(cleaned) == 3 else None
    if alias is None:
        raise ValueError(f"Invalid day value: {value}")
    return alias


def coerce_day(value: str) -> str:
    # Generated rows are not validated; keep unknown days as-is so they surface downstream.
    try:
        return normalize_day(value)
    except ValueError:
        return value.strip().lower()


def normalize_subject_type(value: str) -> str:
    cleaned = value.strip().lower()
    canonical = SUBJECT_TYPE_ALIASES.get(cleaned)
    if canonical is None:
        raise ValueError(f"Subject type must be one of: {', '.join(SUBJECT_TYPES)}")
    return canonical


def coerce_subject_type(value: str) -> str:
    try:
        return normalize_subject_type(value)
    except ValueError:
        return value.strip()


def normalize_days(values: list[str]) -> list[str]:
    ordered: list[str] = []
    seen: set[str] = set()
    for item in values:
        if not item.strip():
            continue
        day = normalize_day(item)
        if day in seen:
            continue
        seen.add(day)
        ordered.append(day)
    return ordered
