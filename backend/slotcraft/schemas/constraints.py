from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from slotcraft.schemas.common import (
    DEFAULT_WORKING_DAYS,
    TIME_PATTERN,
    normalize_day,
    normalize_days,
    parse_time_to_minutes,
)


class TimePreferences(BaseModel):
    workingDays: list[str] = Field(default_factory=lambda: list(DEFAULT_WORKING_DAYS), max_length=7)
    startTime: str | None = "09:00"
    endTime: str | None = "17:00"
    lunchStartTime: str = "13:00"
    lunchDurationMinutes: int = Field(default=60, ge=0, le=600)
    slotDurationMinutes: int = Field(default=60, gt=0, le=600)

    @field_validator("workingDays")
    @classmethod
    def validate_working_days(cls, value: list[str]) -> list[str]:
        return normalize_days(value)

    @field_validator("startTime", "endTime", mode="before")
    @classmethod
    def blank_time_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("startTime", "endTime", "lunchStartTime")
    @classmethod
    def validate_time(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @model_validator(mode="after")
    def validate_time_order(self) -> "TimePreferences":
        if self.startTime is None or self.endTime is None:
            return self
        start = parse_time_to_minutes(self.startTime)
        end = parse_time_to_minutes(self.endTime)
        if end <= start:
            raise ValueError("endTime must be after startTime")
        lunch = parse_time_to_minutes(self.lunchStartTime)
        if not start <= lunch < end:
            raise ValueError("lunchStartTime must fall between startTime and endTime")
        if lunch + self.lunchDurationMinutes > end:
            raise ValueError("Lunch break must end by endTime")
        return self

    @property
    def is_configured(self) -> bool:
        return self.startTime is not None and self.endTime is not None


class UnavailabilitySlot(BaseModel):
    day: str
    timeSlot: str = Field(min_length=1, max_length=20)

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return normalize_day(value)


class CoursePreference(BaseModel):
    subjectId: str = Field(min_length=1, max_length=64)
    time: Literal["Morning", "Afternoon"]


class FacultyPreference(BaseModel):
    facultyId: str = Field(min_length=1, max_length=64)
    unavailability: list[UnavailabilitySlot] = Field(default_factory=list)
    preferredDays: list[str] = Field(default_factory=list)
    dailySchedulePreference: Literal["Morning", "Afternoon", "None"] = "None"
    maxConsecutiveClasses: int | None = Field(default=None, ge=1, le=12)
    gapPreference: Literal["BackToBack", "OneHourGap", "None"] = "None"
    coursePreferences: list[CoursePreference] = Field(default_factory=list)

    @field_validator("preferredDays")
    @classmethod
    def validate_preferred_days(cls, value: list[str]) -> list[str]:
        return normalize_days(value)

    @field_validator("unavailability")
    @classmethod
    def dedupe_unavailability(cls, value: list[UnavailabilitySlot]) -> list[UnavailabilitySlot]:
        unique: list[UnavailabilitySlot] = []
        seen: set[tuple[str, str]] = set()
        for item in value:
            key = (item.day, item.timeSlot)
            if key in seen:
                continue
            seen.add(key)
            unique.append(item)
        return unique


class FixedClassConstraint(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    classId: str = Field(min_length=1, max_length=64)
    subjectId: str = Field(min_length=1, max_length=64)
    day: str
    timeSlot: str = Field(min_length=1, max_length=20)
    roomId: str | None = Field(default=None, max_length=64)

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return normalize_day(value)

    @field_validator("roomId", mode="before")
    @classmethod
    def blank_room_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class FixedClassCreate(BaseModel):
    classId: str = Field(min_length=1, max_length=64)
    subjectId: str = Field(min_length=1, max_length=64)
    day: str
    timeSlot: str = Field(min_length=1, max_length=20)
    roomId: str | None = Field(default=None, max_length=64)

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return normalize_day(value)

    @field_validator("roomId", mode="before")
    @classmethod
    def blank_room_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class RoomResourceConstraints(BaseModel):
    prioritizeSameRoomForConsecutive: bool | None = None
    assignHomeRoomForSections: bool | None = None
    labEquipmentMatching: bool | None = None


class StudentSectionConstraints(BaseModel):
    maxConsecutiveClasses: int | None = Field(default=None, ge=1, le=12)
    avoidConsecutiveCore: bool | None = None
    maxClassesPerDay: int | None = Field(default=None, ge=1, le=24)


class AdvancedConstraints(BaseModel):
    enableFacultyLoadBalancing: bool | None = None
    travelTimeMinutes: int | None = Field(default=None, ge=0, le=240)
    minimizeIdleGaps: bool | None = None


class CustomConstraint(BaseModel):
    """User-authored rule. The text is forwarded to the generator verbatim and never parsed here."""

    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=4000)
    type: Literal["Hard", "Soft"] = "Soft"
    appliedTo: Literal["Faculty", "Room", "Class", "TimeSlot"] = "Class"
    priority: Literal["Low", "Medium", "High"] = "Medium"
    isActive: bool = True

    @field_validator("type", "appliedTo", "priority", mode="before")
    @classmethod
    def normalize_choice(cls, value: object) -> object:
        if isinstance(value, str):
            cleaned = value.strip()
            if cleaned.lower() == "timeslot":
                return "TimeSlot"
            return cleaned[:1].upper() + cleaned[1:].lower()
        return value


class ClassRuleBase(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    classId: str = Field(min_length=1, max_length=64)

    @field_validator("id", mode="before")
    @classmethod
    def numeric_id_as_text(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class NonConsecutiveConstraint(ClassRuleBase):
    """Two subjects of one class that must not be taught back to back."""

    type: Literal["nonConsecutive"]
    subjectId1: str = Field(min_length=1, max_length=64)
    subjectId2: str = Field(min_length=1, max_length=64)

    @model_validator(mode="after")
    def validate_distinct_subjects(self) -> "NonConsecutiveConstraint":
        if self.subjectId1 == self.subjectId2:
            raise ValueError("subjectId1 and subjectId2 must differ")
        return self


class PreferredTimeConstraint(ClassRuleBase):
    type: Literal["preferredTime"]
    details: str = Field(min_length=1, max_length=1000)


ClassSpecificConstraint = Annotated[
    Union[NonConsecutiveConstraint, PreferredTimeConstraint],
    Field(discriminator="type"),
]


class CustomConstraintToggle(BaseModel):
    isActive: bool


class Constraints(BaseModel):
    timePreferences: TimePreferences = Field(default_factory=TimePreferences)
    facultyPreferences: list[FacultyPreference] = Field(default_factory=list)
    fixedClasses: list[FixedClassConstraint] = Field(default_factory=list)
    roomResourceConstraints: RoomResourceConstraints = Field(default_factory=RoomResourceConstraints)
    studentSectionConstraints: StudentSectionConstraints = Field(default_factory=StudentSectionConstraints)
    advancedConstraints: AdvancedConstraints = Field(default_factory=AdvancedConstraints)
    customConstraints: list[CustomConstraint] = Field(default_factory=list)
    classSpecificConstraints: list[ClassSpecificConstraint] = Field(default_factory=list)
    maxConsecutiveClasses: int = Field(default=3, ge=1, le=12)
    maxConcurrentClassesPerDept: dict[str, int] = Field(default_factory=dict)

    @field_validator("maxConcurrentClassesPerDept")
    @classmethod
    def validate_concurrency_limits(cls, value: dict[str, int]) -> dict[str, int]:
        cleaned: dict[str, int] = {}
        for department, limit in value.items():
            name = department.strip()
            if not name:
                continue
            if limit < 1:
                raise ValueError(f"Concurrent class limit for {name} must be at least 1")
            cleaned[name] = limit
        return cleaned

    @model_validator(mode="after")
    def validate_unique_keys(self) -> "Constraints":
        def ensure_unique(label: str, values: list[str]) -> None:
            seen: set[str] = set()
            duplicates: set[str] = set()
            for value in values:
                if value in seen:
                    duplicates.add(value)
                else:
                    seen.add(value)
            if duplicates:
                raise ValueError(f"Duplicate {label}: {', '.join(sorted(duplicates))}")

        ensure_unique("faculty preference(s) for facultyId", [item.facultyId for item in self.facultyPreferences])
        ensure_unique("fixed class id(s)", [item.id for item in self.fixedClasses])
        ensure_unique("custom constraint id(s)", [item.id for item in self.customConstraints])
        ensure_unique("class-specific rule id(s)", [item.id for item in self.classSpecificConstraints])
        return self


class ConstraintCategory(str, Enum):
    time_preferences = "timePreferences"
    faculty_preferences = "facultyPreferences"
    fixed_classes = "fixedClasses"
    room_resource = "roomResourceConstraints"
    student_section = "studentSectionConstraints"
    advanced = "advancedConstraints"
    custom = "customConstraints"
    class_specific = "classSpecificConstraints"
    max_consecutive = "maxConsecutiveClasses"
    max_concurrent_per_dept = "maxConcurrentClassesPerDept"


IssueSeverity = Literal["error", "warning"]


class ConstraintIssue(BaseModel):
    code: str
    severity: IssueSeverity
    message: str
    category: ConstraintCategory
    reference_id: str | None = Field(default=None, alias="referenceId")

    model_config = {"populate_by_name": True}


class ConstraintValidationReport(BaseModel):
    valid: bool
    errors: list[ConstraintIssue] = Field(default_factory=list)
    warnings: list[ConstraintIssue] = Field(default_factory=list)
    time_slots: list[str] = Field(default_factory=list, alias="timeSlots")

    model_config = {"populate_by_name": True}


class TimeGridOut(BaseModel):
    working_days: list[str] = Field(default_factory=list, alias="workingDays")
    time_slots: list[str] = Field(default_factory=list, alias="timeSlots")
    lunch_break: str = Field(default="", alias="lunchBreak")
    slots_per_day: int = Field(default=0, alias="slotsPerDay")

    model_config = {"populate_by_name": True}
