from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
import uuid

from slotcraft.core.exceptions import ConstraintValidationError, ResourceNotFoundError
from slotcraft.schemas.constraints import FixedClassConstraint, FixedClassCreate
from slotcraft.schemas.entities import ClassGroup, Room, Subject
from slotcraft.schemas.timetable import FixedClassMismatch, TimetableEntry


@dataclass(frozen=True)
class FixedClassCollision:
    kind: str
    day: str
    time_slot: str
    resource_id: str
    fixed_class_ids: tuple[str, ...]

    @property
    def message(self) -> str:
        label = "Class" if self.kind == "class" else "Room"
        ids = ", ".join(self.fixed_class_ids)
        return f"{label} {self.resource_id} is pinned more than once on {self.day} {self.time_slot} ({ids})"


def new_fixed_class_id() -> str:
    return f"fixed-{uuid.uuid4().hex[:12]}"


def find_collisions(fixed_classes: list[FixedClassConstraint]) -> list[FixedClassCollision]:
    by_class: dict[tuple[str, str, str], list[str]] = defaultdict(list)
    by_room: dict[tuple[str, str, str], list[str]] = defaultdict(list)
    for pin in fixed_classes:
        by_class[(pin.classId, pin.day, pin.timeSlot)].append(pin.id)
        if pin.roomId:
            by_room[(pin.roomId, pin.day, pin.timeSlot)].append(pin.id)

    collisions: list[FixedClassCollision] = []
    for kind, index in (("class", by_class), ("room", by_room)):
        for (resource_id, day, time_slot), ids in index.items():
            if len(ids) > 1:
                collisions.append(
                    FixedClassCollision(
                        kind=kind,
                        day=day,
                        time_slot=time_slot,
                        resource_id=resource_id,
                        fixed_class_ids=tuple(ids),
                    )
                )
    return collisions


class FixedClassRegistry:
    """Pinned sessions with collision checks on every mutation.

    A rejected mutation leaves the registry untouched.
    """

    def __init__(self, fixed_classes: list[FixedClassConstraint] | None = None):
        self._items: list[FixedClassConstraint] = list(fixed_classes or [])

    def items(self) -> list[FixedClassConstraint]:
        return list(self._items)

    def get(self, fixed_class_id: str) -> FixedClassConstraint:
        for item in self._items:
            if item.id == fixed_class_id:
                return item
        raise ResourceNotFoundError("Fixed class", fixed_class_id)

    def add(self, payload: FixedClassCreate | FixedClassConstraint) -> FixedClassConstraint:
        if isinstance(payload, FixedClassConstraint):
            entry = payload
            if any(item.id == entry.id for item in self._items):
                raise ConstraintValidationError(f"Fixed class {entry.id} already exists")
        else:
            entry = FixedClassConstraint(id=new_fixed_class_id(), **payload.model_dump())
        self._commit([*self._items, entry])
        return entry

    def update(self, fixed_class_id: str, payload: FixedClassCreate) -> FixedClassConstraint:
        self.get(fixed_class_id)
        entry = FixedClassConstraint(id=fixed_class_id, **payload.model_dump())
        self._commit([entry if item.id == fixed_class_id else item for item in self._items])
        return entry

    def remove(self, fixed_class_id: str) -> FixedClassConstraint:
        entry = self.get(fixed_class_id)
        self._items = [item for item in self._items if item.id != fixed_class_id]
        return entry

    def _commit(self, candidate: list[FixedClassConstraint]) -> None:
        collisions = find_collisions(candidate)
        if collisions:
            raise ConstraintValidationError(
                collisions[0].message,
                details={"collisions": [collision.message for collision in collisions]},
            )
        self._items = candidate


def reconcile_fixed_classes(
    fixed_classes: list[FixedClassConstraint],
    entries: list[TimetableEntry],
    classes: list[ClassGroup],
    subjects: list[Subject],
    rooms: list[Room],
) -> list[FixedClassMismatch]:
    """Check that every pin appears in the generated output exactly where it was pinned."""
    class_names = {item.id: item.name for item in classes}
    subject_names = {item.id: item.name for item in subjects}
    room_numbers = {item.id: item.number for item in rooms}

    placed: dict[tuple[str, str, str, str], list[TimetableEntry]] = defaultdict(list)
    for entry in entries:
        placed[(entry.className, entry.subject, entry.day, entry.time)].append(entry)

    mismatches: list[FixedClassMismatch] = []
    for pin in fixed_classes:
        class_name = class_names.get(pin.classId)
        subject_name = subject_names.get(pin.subjectId)
        if class_name is None or subject_name is None:
            mismatches.append(
                FixedClassMismatch(
                    fixedClassId=pin.id,
                    kind="unresolved",
                    message=f"Fixed class {pin.id} references a class or subject that no longer exists",
                )
            )
            continue

        matches = placed.get((class_name, subject_name, pin.day, pin.timeSlot), [])
        if not matches:
            mismatches.append(
                FixedClassMismatch(
                    fixedClassId=pin.id,
                    kind="missing",
                    message=f"{subject_name} for {class_name} was not placed on {pin.day} {pin.timeSlot}",
                )
            )
            continue

        room_number = room_numbers.get(pin.roomId) if pin.roomId else None
        if room_number is not None and all(entry.room != room_number for entry in matches):
            mismatches.append(
                FixedClassMismatch(
                    fixedClassId=pin.id,
                    kind="room_mismatch",
                    message=(
                        f"{subject_name} for {class_name} on {pin.day} {pin.timeSlot} "
                        f"was placed in {matches[0].room} instead of {room_number}"
                    ),
                )
            )
    return mismatches
