import pytest
from pydantic import ValidationError

from slotcraft.core.exceptions import DataQualityError
from slotcraft.schemas.constraints import Constraints
from slotcraft.schemas.entities import EntityBundle, Room
from slotcraft.schemas.timetable import TimetableEntry, UnscheduledSession
from slotcraft.services.analytics import (
    build_free_busy,
    build_room_availability,
    build_timetable_analytics,
    equipment_utilization,
    faculty_workload,
    filter_entries,
    find_conflicts,
    reconcile_entries,
    room_utilization,
    timetable_status,
    unscheduled_report,
)


def entry(**overrides):
    payload = {
        "day": "monday",
        "time": "09:00-10:00",
        "className": "CSE-2A",
        "subject": "Data Structures",
        "faculty": "Dr. Rao",
        "room": "A101",
        "type": "Theory",
    }
    payload.update(overrides)
    return TimetableEntry(**payload)


@pytest.fixture()
def data(entities):
    return EntityBundle.model_validate(entities)


def test_room_grid_marks_free_and_booked_cells():
    rooms = [Room(id="r-1", number="A101"), Room(id="r-2", number="L201")]
    grid = build_room_availability(
        [entry(), entry(day="tuesday", room="L201")], "Monday", rooms, ["09:00-10:00", "10:00-11:00"]
    )
    assert grid.occupant("A101", "09:00-10:00") == "CSE-2A"
    assert grid.occupant("A101", "10:00-11:00") is None
    assert grid.occupant("L201", "09:00-10:00") is None
    assert grid.conflict_count == 0


def test_double_booked_room_surfaces_both_classes():
    rooms = [Room(id="r-1", number="A101")]
    grid = build_room_availability(
        [entry(), entry(className="CSE-2B", faculty="Dr. Iyer")], "monday", rooms, ["09:00-10:00"]
    )
    assert grid.occupant("A101", "09:00-10:00") == "CSE-2B"
    assert grid.conflicts[0].class_names == ["CSE-2A", "CSE-2B"]
    assert grid.conflict_count == 2


def test_find_conflicts_covers_rooms_faculty_and_classes():
    conflicts = find_conflicts(
        [
            entry(),
            entry(className="CSE-2B", room="L201"),
            entry(time="10:00-11:00", faculty="", room=""),
            entry(time="10:00-11:00", className="CSE-2B", faculty="", room=""),
        ]
    )
    assert [(item.kind, item.resource) for item in conflicts] == [("faculty", "Dr. Rao")]
    assert conflicts[0].entry_count == 2


def test_zero_max_workload_reports_zero_utilization(data):
    workload = {item.faculty_id: item for item in faculty_workload([entry(faculty="Dr. Iyer")], data.faculty)}
    assert workload["f-2"].scheduled_hours == 1
    assert workload["f-2"].utilization == 0
    assert workload["f-2"].overallocated is False


def test_over_allocation_is_flagged_not_clamped(data):
    entries = [entry(time=f"{hour:02d}:00-{hour + 1:02d}:00") for hour in range(9, 14)]
    rao = faculty_workload(entries, data.faculty)[0]
    assert rao.scheduled_hours == 5
    assert rao.utilization == 125.0
    assert rao.overallocated is True


def test_room_utilization_over_week(data):
    usage = room_utilization([entry(), entry(day="tuesday")], data.rooms, ["monday", "tuesday"], 4)
    assert [(item.number, item.scheduled_slots, item.utilization) for item in usage] == [
        ("A101", 2, 25.0),
        ("L201", 0, 0.0),
    ]
    assert room_utilization([entry()], data.rooms, [], 4)[0].utilization == 0.0


def test_equipment_counts_computer_systems_only_when_available(data):
    entries = [entry(), entry(day="tuesday"), entry(day="wednesday", room="L201")]
    report = {item.capability: item for item in equipment_utilization(entries, data.rooms)}

    assert report["projector"].rooms_with_capability == 1
    assert report["projector"].booked_hours == 2
    assert report["projector"].utilization == round(2 / 3 * 100, 2)
    assert report["computerSystems"].rooms_with_capability == 1
    assert report["computerSystems"].booked_hours == 1
    assert "wifi" not in report


def test_equipment_flags_must_be_real_booleans():
    with pytest.raises(ValidationError):
        Room(id="r-9", number="B101", equipment={"computerSystems": {"available": 1, "count": 40}})
    with pytest.raises(ValidationError):
        Room(id="r-9", number="B101", equipment={"projector": "yes"})

    rooms = [
        Room(id="r-9", number="B101", equipment={"whiteboard": 1, "microscopes": {"available": "true", "count": 10}}),
    ]
    report = {item.capability: item for item in equipment_utilization([entry(room="B101")], rooms)}
    assert "whiteboard" not in report
    assert report["microscopes"].rooms_with_capability == 0
    assert report["microscopes"].booked_hours == 0


def test_equipment_with_no_entries_reports_zero(data):
    report = equipment_utilization([], data.rooms)
    assert all(item.utilization == 0 for item in report)


def test_empty_timetable_is_not_generated_rather_than_complete():
    assert timetable_status([], []) == "not_generated"
    assert timetable_status([entry()], []) == "fully_scheduled"
    assert unscheduled_report([]).status == "fully_scheduled"
    assert unscheduled_report([], [entry()]).status == "fully_scheduled"
    assert unscheduled_report([], []).status == "not_generated"


def test_partial_and_conflicted_statuses():
    session = UnscheduledSession(className="CSE-2B", subject="DS Lab", reason="No lab free")
    assert timetable_status([entry()], [session]) == "partial"
    assert timetable_status([entry(), entry(className="CSE-2B")], []) == "conflicted"
    report = unscheduled_report([session])
    assert report.status == "partial"
    assert report.sessions == [session]


def test_reconcile_matches_subject_by_name_or_code(data):
    report = reconcile_entries(
        [entry(), entry(subject="CS201L", faculty="Dr. Iyer", room="L201")],
        data.classes,
        data.subjects,
        data.faculty,
        data.rooms,
    )
    assert report.is_clean
    assert report.resolved[1].subject_id == "s-2"
    assert report.resolved[1].room_id == "r-2"


def test_unknown_names_are_reported_not_guessed(data):
    entries = [entry(faculty="Dr Rao", room="B999")]
    report = reconcile_entries(entries, data.classes, data.subjects, data.faculty, data.rooms)
    assert {(issue.field, issue.value) for issue in report.issues} == {("faculty", "Dr Rao"), ("room", "B999")}
    assert report.resolved[0].faculty_id is None

    with pytest.raises(DataQualityError) as exc_info:
        reconcile_entries(entries, data.classes, data.subjects, data.faculty, data.rooms, strict=True)
    assert len(exc_info.value.details["issues"]) == 2


def test_filter_and_free_busy_view():
    entries = [entry(), entry(time="10:00-11:00", className="CSE-2B"), entry(faculty="Dr. Iyer", className="CSE-2C")]
    assert len(filter_entries(entries, "faculty", "Dr. Rao")) == 2

    grid = build_free_busy(entries, "faculty", "Dr. Rao", ["monday", "tuesday"], ["09:00-10:00", "10:00-11:00"])
    assert grid.cells["monday"]["09:00-10:00"] == ["Data Structures (CSE-2A)"]
    assert grid.busy_count == 2
    assert grid.free_count == 2


def test_analytics_bundle(data):
    constraints = Constraints(
        fixedClasses=[{"id": "fx-1", "classId": "c-1", "subjectId": "s-1", "day": "friday", "timeSlot": "09:00-10:00"}]
    )
    analytics = build_timetable_analytics(
        [entry(), entry(className="CSE-2B", room="A101", faculty="Dr. Iyer", subject="DS Lab")],
        [],
        constraints,
        data.classes,
        data.subjects,
        data.faculty,
        data.rooms,
    )
    assert analytics.status == "conflicted"
    assert analytics.conflict_count == 2
    assert analytics.room_utilization[0].available_slots == 5 * 7
    assert [item.kind for item in analytics.fixed_class_mismatches] == ["missing"]
    assert analytics.reconciliation.is_clean

    empty = build_timetable_analytics([], [], constraints, data.classes, data.subjects, data.faculty, data.rooms)
    assert empty.status == "not_generated"
    assert empty.fixed_class_mismatches == []
    assert empty.unscheduled.status == "not_generated"
    assert empty.unscheduled.message == "No timetable has been generated yet"
