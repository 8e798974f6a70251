from __future__ import annotations

import csv
import io

from slotcraft.schemas.common import DAYS
from slotcraft.schemas.timetable import TimetableEntry
from slotcraft.services.time_slots import slot_start_minutes

CSV_HEADER = ["Day", "Time", "Class", "Subject", "Faculty", "Room", "Type"]


def _sort_key(entry: TimetableEntry) -> tuple[int, int, str, str]:
    day_rank = DAYS.index(entry.day) if entry.day in DAYS else len(DAYS)
    start = slot_start_minutes(entry.time)
    # Unreadable slots sort after every real one, by their raw text.
    return day_rank, start if start is not None else 24 * 60, entry.time, entry.className


def export_timetable_csv(entries: list[TimetableEntry]) -> str:
    """Render entries as CSV with every field quoted.

    Rows run Monday to Sunday, then by slot start, then by class name.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for entry in sorted(entries, key=_sort_key):
        writer.writerow(
            [entry.day, entry.time, entry.className, entry.subject, entry.faculty, entry.room, entry.type]
        )
    return buffer.getvalue()


def parse_timetable_csv(text: str) -> list[list[str]]:
    """Read rows written by :func:`export_timetable_csv`, header included."""
    return [row for row in csv.reader(io.StringIO(text, newline="")) if row]
