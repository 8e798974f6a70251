from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from slotcraft.schemas.common import SubjectType
from slotcraft.schemas.constraints import (
    AdvancedConstraints,
    CustomConstraint,
    RoomResourceConstraints,
    StudentSectionConstraints,
)
from slotcraft.schemas.entities import RoomEquipment


class GeneratorClass(BaseModel):
    name: str
    branch: str
    year: int
    section: str
    studentCount: int
    block: str | None = None


class GeneratorFaculty(BaseModel):
    name: str
    department: str
    specialization: list[str] = Field(default_factory=list)
    maxWorkload: int


class GeneratorSubject(BaseModel):
    name: str
    code: str
    department: str
    type: SubjectType
    hoursPerWeek: int
    assignedFaculty: str
    semester: int | None = None
    forClass: str | None = None


class GeneratorRoom(BaseModel):
    number: str
    building: str
    type: str
    capacity: int
    block: str | None = None
    equipment: RoomEquipment = Field(default_factory=RoomEquipment)


class GeneratorFixedClass(BaseModel):
    className: str
    subject: str
    day: str
    time: str
    room: str | None = None


class GeneratorUnavailability(BaseModel):
    faculty: str
    day: str
    time: str


class GeneratorCoursePreference(BaseModel):
    subject: str
    time: Literal["Morning", "Afternoon"]


class GeneratorFacultyPreference(BaseModel):
    faculty: str
    preferredDays: list[str] = Field(default_factory=list)
    dailySchedulePreference: str = "None"
    maxConsecutiveClasses: int | None = None
    gapPreference: str = "None"
    coursePreferences: list[GeneratorCoursePreference] = Field(default_factory=list)


class GeneratorNonConsecutive(BaseModel):
    type: Literal["nonConsecutive"] = "nonConsecutive"
    className: str
    subject1: str
    subject2: str


class GeneratorPreferredTime(BaseModel):
    type: Literal["preferredTime"] = "preferredTime"
    className: str
    details: str


GeneratorClassRule = Annotated[Union[GeneratorNonConsecutive, GeneratorPreferredTime], Field(discriminator="type")]


class GeneratorConstraints(BaseModel):
    timeSlots: list[str]
    workingDays: list[str]
    lunchBreak: str
    maxConsecutiveClasses: int
    maxConcurrentClassesPerDept: dict[str, int] = Field(default_factory=dict)
    fixedClasses: list[GeneratorFixedClass] = Field(default_factory=list)
    facultyUnavailability: list[GeneratorUnavailability] = Field(default_factory=list)
    facultyPreferences: list[GeneratorFacultyPreference] = Field(default_factory=list)
    roomResourceConstraints: RoomResourceConstraints = Field(default_factory=RoomResourceConstraints)
    studentSectionConstraints: StudentSectionConstraints = Field(default_factory=StudentSectionConstraints)
    advancedConstraints: AdvancedConstraints = Field(default_factory=AdvancedConstraints)
    customConstraints: list[CustomConstraint] = Field(default_factory=list)
    classSpecificConstraints: list[GeneratorClassRule] = Field(default_factory=list)


class GenerationRequest(BaseModel):
    classes: list[GeneratorClass]
    faculty: list[GeneratorFaculty]
    subjects: list[GeneratorSubject]
    rooms: list[GeneratorRoom]
    constraints: GeneratorConstraints
