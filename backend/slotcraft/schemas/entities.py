from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StrictBool, field_validator, model_validator

from slotcraft.schemas.common import SubjectType, normalize_subject_type


class ClassGroup(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    branch: str = Field(default="", max_length=200)
    year: int = Field(default=1, ge=1, le=10)
    section: str = Field(default="", max_length=50)
    studentCount: int = Field(default=0, ge=0, le=5000)
    block: str | None = Field(default=None, max_length=100)


class Faculty(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    department: str = Field(default="", max_length=200)
    specialization: list[str] = Field(default_factory=list)
    maxWorkload: int = Field(default=0, ge=0, le=200)
    designation: str | None = Field(default=None, max_length=200)
    employeeId: str | None = Field(default=None, max_length=64)
    email: EmailStr | None = None
    contactNumber: str | None = Field(default=None, max_length=32)

    @field_validator("specialization")
    @classmethod
    def normalize_specialization(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item.strip()]


class Subject(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    code: str = Field(min_length=1, max_length=50)
    department: str = Field(default="", max_length=200)
    type: SubjectType = "Theory"
    hoursPerWeek: int = Field(default=0, ge=0, le=40)
    assignedFacultyId: str | None = Field(default=None, max_length=64)
    semester: int | None = Field(default=None, ge=1, le=20)
    credits: int | None = Field(default=None, ge=0, le=40)
    forClass: str | None = Field(default=None, max_length=200)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: object) -> object:
        if isinstance(value, str):
            return normalize_subject_type(value)
        return value

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        code = value.strip().upper()
        if not code:
            raise ValueError("Subject code cannot be empty")
        return code


class ComputerSystems(BaseModel):
    available: StrictBool = False
    count: int = Field(default=0, ge=0)


class RoomEquipment(BaseModel):
    """Capability bag for a room.

    Boolean flags are capabilities in their own right. ``computerSystems`` is
    nested and only counts as available when ``available`` is true, whatever
    ``count`` says. Unknown flags are kept so that institution-specific
    equipment still shows up in utilization.
    """

    model_config = ConfigDict(extra="allow")

    projector: StrictBool | None = None
    smartBoard: StrictBool | None = None
    acAvailable: StrictBool | None = None
    audioSystem: StrictBool | None = None
    wifi: StrictBool | None = None
    labEquipment: StrictBool | None = None
    computerSystems: ComputerSystems | None = None

    def declared_capabilities(self) -> dict[str, bool]:
        declared: dict[str, bool] = {}
        for name, value in self.model_dump(exclude_none=True).items():
            if isinstance(value, bool):
                declared[name] = value
            elif isinstance(value, dict) and "available" in value:
                declared[name] = value.get("available") is True
        return declared


class Room(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    number: str = Field(min_length=1, max_length=100)
    building: str = Field(default="", max_length=200)
    type: str = Field(default="Classroom", min_length=1, max_length=50)
    capacity: int = Field(default=0, ge=0, le=5000)
    block: str | None = Field(default=None, max_length=100)
    equipment: RoomEquipment = Field(default_factory=RoomEquipment)


class EntityBundle(BaseModel):
    classes: list[ClassGroup] = Field(default_factory=list)
    faculty: list[Faculty] = Field(default_factory=list)
    subjects: list[Subject] = Field(default_factory=list)
    rooms: list[Room] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_keys(self) -> "EntityBundle":
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

        ensure_unique("class id(s)", [item.id for item in self.classes])
        ensure_unique("faculty id(s)", [item.id for item in self.faculty])
        ensure_unique("subject id(s)", [item.id for item in self.subjects])
        ensure_unique("subject code(s)", [item.code for item in self.subjects])
        ensure_unique("room id(s)", [item.id for item in self.rooms])
        return self
