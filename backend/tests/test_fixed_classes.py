import pytest

from slotcraft.core.exceptions import ConstraintValidationError, ResourceNotFoundError
from slotcraft.schemas.constraints import FixedClassConstraint, FixedClassCreate
from slotcraft.schemas.entities import EntityBundle
from slotcraft.schemas.timetable import TimetableEntry
from slotcraft.services.fixed_classes import FixedClassRegistry, find_collisions, reconcile_fixed_classes


def pin(**overrides):
    payload = {"classId": "c-1", "subjectId": "s-1", "day": "monday", "timeSlot": "09:00-10:00", "roomId": "r-1"}
    payload.update(overrides)
    return FixedClassCreate(**payload)


def test_add_assigns_generated_id_and_normalizes_day():
    registry = FixedClassRegistry()
    created = registry.add(pin(day="Mon", roomId=""))
    assert created.id.startswith("fixed-")
    assert created.day == "monday"
    assert created.roomId is None
    assert registry.items() == [created]


def test_class_collision_is_rejected_and_registry_unchanged():
    registry = FixedClassRegistry()
    first = registry.add(pin())
    with pytest.raises(ConstraintValidationError) as exc_info:
        registry.add(pin(subjectId="s-2", roomId="r-2"))
    assert exc_info.value.status_code == 422
    assert exc_info.value.details["collisions"]
    assert registry.items() == [first]


def test_room_collision_between_different_classes():
    registry = FixedClassRegistry()
    registry.add(pin())
    with pytest.raises(ConstraintValidationError):
        registry.add(pin(classId="c-2"))


def test_same_room_in_different_slots_is_fine():
    registry = FixedClassRegistry()
    registry.add(pin())
    registry.add(pin(classId="c-2", timeSlot="10:00-11:00"))
    assert len(registry.items()) == 2


def test_update_and_remove():
    registry = FixedClassRegistry()
    created = registry.add(pin())
    updated = registry.update(created.id, pin(day="tuesday"))
    assert updated.id == created.id
    assert registry.get(created.id).day == "tuesday"

    registry.remove(created.id)
    assert registry.items() == []
    with pytest.raises(ResourceNotFoundError):
        registry.remove(created.id)


def test_find_collisions_ignores_pins_without_room():
    pins = [
        FixedClassConstraint(id="a", classId="c-1", subjectId="s-1", day="monday", timeSlot="09:00-10:00"),
        FixedClassConstraint(id="b", classId="c-2", subjectId="s-1", day="monday", timeSlot="09:00-10:00"),
    ]
    assert find_collisions(pins) == []


def test_reconcile_reports_missing_and_misplaced_pins(entities):
    data = EntityBundle.model_validate(entities)
    pins = [
        FixedClassConstraint(id="ok", classId="c-1", subjectId="s-1", day="monday", timeSlot="09:00-10:00", roomId="r-1"),
        FixedClassConstraint(id="moved", classId="c-2", subjectId="s-2", day="monday", timeSlot="10:00-11:00", roomId="r-2"),
        FixedClassConstraint(id="gone", classId="c-2", subjectId="s-1", day="friday", timeSlot="09:00-10:00"),
        FixedClassConstraint(id="orphan", classId="c-9", subjectId="s-1", day="friday", timeSlot="09:00-10:00"),
    ]
    entries = [
        TimetableEntry(day="Monday", time="09:00-10:00", className="CSE-2A", subject="Data Structures", room="A101"),
        TimetableEntry(day="monday", time="10:00-11:00", className="CSE-2B", subject="DS Lab", room="A101"),
    ]
    mismatches = reconcile_fixed_classes(pins, entries, data.classes, data.subjects, data.rooms)
    assert {(item.fixed_class_id, item.kind) for item in mismatches} == {
        ("moved", "room_mismatch"),
        ("gone", "missing"),
        ("orphan", "unresolved"),
    }
