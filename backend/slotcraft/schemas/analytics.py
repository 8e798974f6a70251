from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from slotcraft.schemas.timetable import FixedClassMismatch, TimetableStatus, UnscheduledSession


class RoomSlotConflict(BaseModel):
    room: str
    day: str
    time: str
    class_names: list[str] = Field(default_factory=list, alias="classNames")

    model_config = ConfigDict(populate_by_name=True)


class RoomAvailabilityGrid(BaseModel):
    day: str
    time_slots: list[str] = Field(default_factory=list, alias="timeSlots")
    rooms: list[str] = Field(default_factory=list)
    cells: dict[str, dict[str, str | None]] = Field(default_factory=dict)
    conflicts: list[RoomSlotConflict] = Field(default_factory=list)
    conflict_count: int = Field(default=0, alias="conflictCount")

    model_config = ConfigDict(populate_by_name=True)

    def occupant(self, room: str, time_slot: str) -> str | None:
        return self.cells.get(room, {}).get(time_slot)


ConflictKind = Literal["room", "faculty", "class"]


class ScheduleConflict(BaseModel):
    kind: ConflictKind
    resource: str
    day: str
    time: str
    entry_count: int = Field(alias="entryCount")
    class_names: list[str] = Field(default_factory=list, alias="classNames")
    subjects: list[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class FacultyWorkload(BaseModel):
    faculty_id: str = Field(alias="facultyId")
    name: str
    department: str
    scheduled_hours: int = Field(alias="scheduledHours")
    max_workload: int = Field(alias="maxWorkload")
    utilization: float
    overallocated: bool

    model_config = ConfigDict(populate_by_name=True)


class RoomUtilization(BaseModel):
    room_id: str = Field(alias="roomId")
    number: str
    scheduled_slots: int = Field(alias="scheduledSlots")
    available_slots: int = Field(alias="availableSlots")
    utilization: float

    model_config = ConfigDict(populate_by_name=True)


class EquipmentUtilization(BaseModel):
    capability: str
    rooms_with_capability: int = Field(alias="roomsWithCapability")
    booked_hours: int = Field(alias="bookedHours")
    total_scheduled_hours: int = Field(alias="totalScheduledHours")
    utilization: float

    model_config = ConfigDict(populate_by_name=True)


class UnscheduledReport(BaseModel):
    status: Literal["not_generated", "fully_scheduled", "partial"]
    message: str
    sessions: list[UnscheduledSession] = Field(default_factory=list)


class ReconciliationIssue(BaseModel):
    entry_index: int = Field(alias="entryIndex")
    field: Literal["className", "subject", "faculty", "room"]
    value: str
    message: str

    model_config = ConfigDict(populate_by_name=True)


class ResolvedEntry(BaseModel):
    entry_index: int = Field(alias="entryIndex")
    class_id: str | None = Field(default=None, alias="classId")
    subject_id: str | None = Field(default=None, alias="subjectId")
    faculty_id: str | None = Field(default=None, alias="facultyId")
    room_id: str | None = Field(default=None, alias="roomId")

    model_config = ConfigDict(populate_by_name=True)


class ReconciliationReport(BaseModel):
    resolved: list[ResolvedEntry] = Field(default_factory=list)
    issues: list[ReconciliationIssue] = Field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.issues


class TimetableAnalytics(BaseModel):
    status: TimetableStatus
    total_entries: int = Field(alias="totalEntries")
    conflicts: list[ScheduleConflict] = Field(default_factory=list)
    conflict_count: int = Field(default=0, alias="conflictCount")
    faculty_workload: list[FacultyWorkload] = Field(default_factory=list, alias="facultyWorkload")
    room_utilization: list[RoomUtilization] = Field(default_factory=list, alias="roomUtilization")
    equipment_utilization: list[EquipmentUtilization] = Field(default_factory=list, alias="equipmentUtilization")
    unscheduled: UnscheduledReport
    reconciliation: ReconciliationReport
    fixed_class_mismatches: list[FixedClassMismatch] = Field(default_factory=list, alias="fixedClassMismatches")

    model_config = ConfigDict(populate_by_name=True)


ViewBy = Literal["class", "faculty", "room"]


class FreeBusyGrid(BaseModel):
    view_by: ViewBy = Field(alias="viewBy")
    resource: str
    days: list[str] = Field(default_factory=list)
    time_slots: list[str] = Field(default_factory=list, alias="timeSlots")
    cells: dict[str, dict[str, list[str]]] = Field(default_factory=dict)
    busy_count: int = Field(default=0, alias="busyCount")
    free_count: int = Field(default=0, alias="freeCount")

    model_config = ConfigDict(populate_by_name=True)
