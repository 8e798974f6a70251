from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterable

from slotcraft.core.exceptions import DataQualityError
from slotcraft.schemas.analytics import (
    EquipmentUtilization,
    FacultyWorkload,
    FreeBusyGrid,
    ReconciliationIssue,
    ReconciliationReport,
    ResolvedEntry,
    RoomAvailabilityGrid,
    RoomSlotConflict,
    RoomUtilization,
    ScheduleConflict,
    TimetableAnalytics,
    UnscheduledReport,
    ViewBy,
)
from slotcraft.schemas.common import coerce_day
from slotcraft.schemas.constraints import Constraints
from slotcraft.schemas.entities import ClassGroup, Faculty, Room, Subject
from slotcraft.schemas.timetable import TimetableEntry, TimetableStatus, UnscheduledSession
from slotcraft.services.fixed_classes import reconcile_fixed_classes
from slotcraft.services.time_slots import build_time_grid

# Generated rows only carry display names, so every join below is by name.
RESOURCE_FIELDS: dict[ViewBy, Callable[[TimetableEntry], str]] = {
    "class": lambda entry: entry.className,
    "faculty": lambda entry: entry.faculty,
    "room": lambda entry: entry.room,
}


def _percent(numerator: float, denominator: float) -> float:
    if denominator <= 0:
        return 0.0
    return round(numerator / denominator * 100, 2)


def index_by_room_slot(entries: Iterable[TimetableEntry]) -> dict[tuple[str, str, str], list[TimetableEntry]]:
    index: dict[tuple[str, str, str], list[TimetableEntry]] = defaultdict(list)
    for entry in entries:
        index[(entry.room, entry.day, entry.time)].append(entry)
    return index


def build_room_availability(
    entries: list[TimetableEntry],
    day: str,
    rooms: list[Room],
    time_slots: list[str],
) -> RoomAvailabilityGrid:
    """Occupancy of ``rooms`` on ``day``: each cell holds a class name or ``None`` when free.

    A cell claimed by more than one entry shows the last one, and the clash is
    listed in ``conflicts`` with every class involved.
    """
    day = coerce_day(day)
    index = index_by_room_slot(entries)
    room_numbers = [room.number for room in rooms]

    cells: dict[str, dict[str, str | None]] = {}
    conflicts: list[RoomSlotConflict] = []
    for number in room_numbers:
        row: dict[str, str | None] = {}
        for time_slot in time_slots:
            occupants = index.get((number, day, time_slot), [])
            row[time_slot] = occupants[-1].className if occupants else None
            if len(occupants) > 1:
                conflicts.append(
                    RoomSlotConflict(
                        room=number,
                        day=day,
                        time=time_slot,
                        classNames=[entry.className for entry in occupants],
                    )
                )
        cells[number] = row

    return RoomAvailabilityGrid(
        day=day,
        timeSlots=list(time_slots),
        rooms=room_numbers,
        cells=cells,
        conflicts=conflicts,
        conflictCount=sum(len(item.class_names) for item in conflicts),
    )


def find_conflicts(entries: list[TimetableEntry]) -> list[ScheduleConflict]:
    conflicts: list[ScheduleConflict] = []
    for kind, resource_of in RESOURCE_FIELDS.items():
        grouped: dict[tuple[str, str, str], list[TimetableEntry]] = defaultdict(list)
        for entry in entries:
            resource = resource_of(entry)
            if resource:
                grouped[(resource, entry.day, entry.time)].append(entry)
        for (resource, day, time_slot), clashing in grouped.items():
            if len(clashing) < 2:
                continue
            conflicts.append(
                ScheduleConflict(
                    kind=kind,
                    resource=resource,
                    day=day,
                    time=time_slot,
                    entryCount=len(clashing),
                    classNames=[entry.className for entry in clashing],
                    subjects=[entry.subject for entry in clashing],
                )
            )
    return conflicts


def faculty_workload(entries: list[TimetableEntry], faculty: list[Faculty]) -> list[FacultyWorkload]:
    hours: dict[str, int] = defaultdict(int)
    for entry in entries:
        hours[entry.faculty] += 1

    workload: list[FacultyWorkload] = []
    for member in faculty:
        scheduled = hours.get(member.name, 0)
        utilization = _percent(scheduled, member.maxWorkload)
        workload.append(
            FacultyWorkload(
                facultyId=member.id,
                name=member.name,
                department=member.department,
                scheduledHours=scheduled,
                maxWorkload=member.maxWorkload,
                utilization=utilization,
                overallocated=utilization > 100,
            )
        )
    return workload


def room_utilization(
    entries: list[TimetableEntry],
    rooms: list[Room],
    working_days: list[str],
    slots_per_day: int,
) -> list[RoomUtilization]:
    booked: dict[str, int] = defaultdict(int)
    for entry in entries:
        booked[entry.room] += 1

    available = len(working_days) * slots_per_day
    return [
        RoomUtilization(
            roomId=room.id,
            number=room.number,
            scheduledSlots=booked.get(room.number, 0),
            availableSlots=available,
            utilization=_percent(booked.get(room.number, 0), available),
        )
        for room in rooms
    ]


def equipment_utilization(entries: list[TimetableEntry], rooms: list[Room]) -> list[EquipmentUtilization]:
    """Share of scheduled hours held in rooms that offer each capability.

    Every capability declared on at least one room is reported, even when no
    room actually has it available.
    """
    capabilities: dict[str, set[str]] = {}
    for room in rooms:
        for name, available in room.equipment.declared_capabilities().items():
            holders = capabilities.setdefault(name, set())
            if available:
                holders.add(room.number)

    booked: dict[str, int] = defaultdict(int)
    for entry in entries:
        booked[entry.room] += 1
    total = len(entries)

    report: list[EquipmentUtilization] = []
    for name, holders in capabilities.items():
        hours = sum(booked.get(number, 0) for number in holders)
        report.append(
            EquipmentUtilization(
                capability=name,
                roomsWithCapability=len(holders),
                bookedHours=hours,
                totalScheduledHours=total,
                utilization=_percent(hours, total),
            )
        )
    return report


def unscheduled_report(
    sessions: list[UnscheduledSession],
    entries: list[TimetableEntry] | None = None,
) -> UnscheduledReport:
    """Summarise what the generator left out.

    When ``entries`` is given and empty there is no timetable to speak of,
    which is reported as ``not_generated`` rather than complete.
    """
    if entries is not None and not entries:
        return UnscheduledReport(
            status="not_generated",
            message="No timetable has been generated yet",
            sessions=list(sessions),
        )
    if not sessions:
        return UnscheduledReport(status="fully_scheduled", message="All required sessions were scheduled")
    return UnscheduledReport(
        status="partial",
        message=f"{len(sessions)} session(s) could not be scheduled",
        sessions=list(sessions),
    )


def timetable_status(
    entries: list[TimetableEntry],
    sessions: list[UnscheduledSession],
    conflicts: list[ScheduleConflict] | None = None,
) -> TimetableStatus:
    if not entries:
        return "not_generated"
    if conflicts is None:
        conflicts = find_conflicts(entries)
    if conflicts:
        return "conflicted"
    if sessions:
        return "partial"
    return "fully_scheduled"


def filter_entries(entries: list[TimetableEntry], view_by: ViewBy, value: str) -> list[TimetableEntry]:
    resource_of = RESOURCE_FIELDS[view_by]
    return [entry for entry in entries if resource_of(entry) == value]


def build_free_busy(
    entries: list[TimetableEntry],
    view_by: ViewBy,
    resource: str,
    working_days: list[str],
    time_slots: list[str],
) -> FreeBusyGrid:
    selected = filter_entries(entries, view_by, resource)
    cells: dict[str, dict[str, list[str]]] = {day: {time_slot: [] for time_slot in time_slots} for day in working_days}
    for entry in selected:
        row = cells.get(entry.day)
        if row is None or entry.time not in row:
            continue
        label = entry.subject if view_by == "class" else f"{entry.subject} ({entry.className})"
        row[entry.time].append(label)

    busy = sum(1 for row in cells.values() for labels in row.values() if labels)
    return FreeBusyGrid(
        viewBy=view_by,
        resource=resource,
        days=list(working_days),
        timeSlots=list(time_slots),
        cells=cells,
        busyCount=busy,
        freeCount=len(working_days) * len(time_slots) - busy,
    )


def reconcile_entries(
    entries: list[TimetableEntry],
    classes: list[ClassGroup],
    subjects: list[Subject],
    faculty: list[Faculty],
    rooms: list[Room],
    strict: bool = False,
) -> ReconciliationReport:
    """Resolve the display names of generated rows back to entity ids.

    Names that match nothing are reported, never guessed. With ``strict`` the
    first unresolved name raises :class:`DataQualityError`.
    """
    class_ids = {item.name: item.id for item in classes}
    subject_ids = {item.name: item.id for item in subjects}
    subject_ids.update({item.code: item.id for item in subjects if item.code not in subject_ids})
    faculty_ids = {item.name: item.id for item in faculty}
    room_ids = {item.number: item.id for item in rooms}

    lookups = (
        ("className", class_ids, "class"),
        ("subject", subject_ids, "subject"),
        ("faculty", faculty_ids, "faculty member"),
        ("room", room_ids, "room"),
    )

    resolved: list[ResolvedEntry] = []
    issues: list[ReconciliationIssue] = []
    for position, entry in enumerate(entries):
        ids: dict[str, str | None] = {}
        for field_name, lookup, label in lookups:
            value = getattr(entry, field_name)
            entity_id = lookup.get(value)
            ids[field_name] = entity_id
            if entity_id is None:
                issues.append(
                    ReconciliationIssue(
                        entryIndex=position,
                        field=field_name,
                        value=value,
                        message=f"Generated entry {position} names unknown {label} {value!r}",
                    )
                )
        resolved.append(
            ResolvedEntry(
                entryIndex=position,
                classId=ids["className"],
                subjectId=ids["subject"],
                facultyId=ids["faculty"],
                roomId=ids["room"],
            )
        )

    report = ReconciliationReport(resolved=resolved, issues=issues)
    if strict and issues:
        raise DataQualityError(
            issues[0].message,
            details={"issues": [issue.model_dump(by_alias=True) for issue in issues]},
        )
    return report


def build_timetable_analytics(
    entries: list[TimetableEntry],
    sessions: list[UnscheduledSession],
    constraints: Constraints,
    classes: list[ClassGroup],
    subjects: list[Subject],
    faculty: list[Faculty],
    rooms: list[Room],
) -> TimetableAnalytics:
    grid = build_time_grid(constraints.timePreferences)
    conflicts = find_conflicts(entries)
    return TimetableAnalytics(
        status=timetable_status(entries, sessions, conflicts),
        totalEntries=len(entries),
        conflicts=conflicts,
        conflictCount=sum(item.entry_count for item in conflicts),
        facultyWorkload=faculty_workload(entries, faculty),
        roomUtilization=room_utilization(entries, rooms, list(grid.working_days), grid.slots_per_day),
        equipmentUtilization=equipment_utilization(entries, rooms),
        unscheduled=unscheduled_report(sessions, entries),
        reconciliation=reconcile_entries(entries, classes, subjects, faculty, rooms),
        fixedClassMismatches=(
            reconcile_fixed_classes(constraints.fixedClasses, entries, classes, subjects, rooms) if entries else []
        ),
    )
