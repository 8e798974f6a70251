from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from slotcraft.schemas.common import coerce_day, coerce_subject_type


class TimetableEntry(BaseModel):
    """One generated session.

    Only known fields are coerced; values the generator gets wrong (an unknown
    day, an unexpected type) are kept so that analytics can surface them.
    """

    model_config = ConfigDict(frozen=True)

    day: str = ""
    time: str = ""
    className: str = ""
    subject: str = ""
    faculty: str = ""
    room: str = ""
    type: str = "Theory"
    classType: str = "regular"

    @field_validator("day", "time", "className", "subject", "faculty", "room", mode="before")
    @classmethod
    def null_is_blank(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("day", mode="before")
    @classmethod
    def normalize_day(cls, value: object) -> object:
        if isinstance(value, str) and value.strip():
            return coerce_day(value)
        return value

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: object) -> object:
        if isinstance(value, str):
            return coerce_subject_type(value)
        if value is None:
            return ""
        return value

    @field_validator("classType", mode="before")
    @classmethod
    def normalize_class_type(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower() or "regular"
        if value is None:
            return "regular"
        return value


class UnscheduledSession(BaseModel):
    className: str = ""
    subject: str = ""
    reason: str = ""


class GenerationResult(BaseModel):
    timetable: list[TimetableEntry] = Field(default_factory=list)
    unscheduledSessions: list[UnscheduledSession] = Field(default_factory=list)


TimetableStatus = Literal["not_generated", "fully_scheduled", "partial", "conflicted"]


class FixedClassMismatch(BaseModel):
    fixed_class_id: str = Field(alias="fixedClassId")
    kind: Literal["missing", "room_mismatch", "unresolved"]
    message: str

    model_config = ConfigDict(populate_by_name=True)


class StoredTimetableOut(BaseModel):
    institution_id: str = Field(alias="institutionId")
    status: TimetableStatus
    timetable: list[TimetableEntry] = Field(default_factory=list)
    unscheduled_sessions: list[UnscheduledSession] = Field(default_factory=list, alias="unscheduledSessions")
    runtime_ms: int = Field(default=0, alias="runtimeMs")
    generated_at: str | None = Field(default=None, alias="generatedAt")

    model_config = ConfigDict(populate_by_name=True)


class GenerateTimetableResponse(StoredTimetableOut):
    conflict_count: int = Field(default=0, alias="conflictCount")
    fixed_class_mismatches: list[FixedClassMismatch] = Field(default_factory=list, alias="fixedClassMismatches")
    warnings: list[str] = Field(default_factory=list)
