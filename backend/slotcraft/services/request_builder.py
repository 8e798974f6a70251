from __future__ import annotations

from slotcraft.core.exceptions import ConfigurationError, ConstraintValidationError
from slotcraft.schemas.constraints import Constraints
from slotcraft.schemas.entities import ClassGroup, Faculty, Room, Subject
from slotcraft.schemas.generator import (
    GenerationRequest,
    GeneratorClass,
    GeneratorClassRule,
    GeneratorCoursePreference,
    GeneratorConstraints,
    GeneratorFaculty,
    GeneratorFacultyPreference,
    GeneratorFixedClass,
    GeneratorNonConsecutive,
    GeneratorPreferredTime,
    GeneratorRoom,
    GeneratorSubject,
    GeneratorUnavailability,
)
from slotcraft.services.constraint_model import prune_stale_unavailability, validate_constraints
from slotcraft.services.time_slots import build_time_grid

UNASSIGNED_FACULTY = "Unassigned"


def _require_entities(
    classes: list[ClassGroup],
    faculty: list[Faculty],
    subjects: list[Subject],
    rooms: list[Room],
) -> None:
    missing = [
        label
        for label, items in (("classes", classes), ("faculty", faculty), ("subjects", subjects), ("rooms", rooms))
        if not items
    ]
    if missing:
        raise ConfigurationError(
            f"Add {', '.join(missing)} before generating a timetable",
            details={"missing": missing},
        )


def build_generation_request(
    classes: list[ClassGroup],
    faculty: list[Faculty],
    subjects: list[Subject],
    rooms: list[Room],
    constraints: Constraints | None,
) -> GenerationRequest:
    """Shape entities and rules into the generator's payload.

    Faculty, class, subject and room ids are replaced by display names where
    the generator expects them. Nothing here checks that an assignment is
    feasible; that is the generator's job.
    """
    if constraints is None:
        raise ConfigurationError("Scheduling constraints are not configured")
    if not constraints.timePreferences.is_configured:
        raise ConfigurationError("Time preferences are not configured: set a start and end time")
    _require_entities(classes, faculty, subjects, rooms)

    grid = build_time_grid(constraints.timePreferences)
    if not grid.time_slots:
        raise ConfigurationError("Time preferences do not leave any bookable slot outside lunch")
    if not grid.working_days:
        raise ConfigurationError("Select at least one working day")

    report = validate_constraints(constraints, classes, subjects, rooms, faculty)
    if not report.valid:
        raise ConstraintValidationError(
            report.errors[0].message,
            details={"errors": [issue.model_dump(by_alias=True, mode="json") for issue in report.errors]},
        )

    constraints = prune_stale_unavailability(constraints, grid)

    faculty_names = {item.id: item.name for item in faculty}
    class_names = {item.id: item.name for item in classes}
    subject_names = {item.id: item.name for item in subjects}
    room_numbers = {item.id: item.number for item in rooms}

    unavailability = [
        GeneratorUnavailability(faculty=faculty_names[preference.facultyId], day=slot.day, time=slot.timeSlot)
        for preference in constraints.facultyPreferences
        if preference.facultyId in faculty_names
        for slot in preference.unavailability
    ]
    preferences = [
        GeneratorFacultyPreference(
            faculty=faculty_names[preference.facultyId],
            preferredDays=preference.preferredDays,
            dailySchedulePreference=preference.dailySchedulePreference,
            maxConsecutiveClasses=preference.maxConsecutiveClasses,
            gapPreference=preference.gapPreference,
            coursePreferences=[
                GeneratorCoursePreference(subject=subject_names[course.subjectId], time=course.time)
                for course in preference.coursePreferences
                if course.subjectId in subject_names
            ],
        )
        for preference in constraints.facultyPreferences
        if preference.facultyId in faculty_names
    ]
    fixed = [
        GeneratorFixedClass(
            className=class_names[pin.classId],
            subject=subject_names[pin.subjectId],
            day=pin.day,
            time=pin.timeSlot,
            room=room_numbers.get(pin.roomId) if pin.roomId else None,
        )
        for pin in constraints.fixedClasses
    ]
    class_rules: list[GeneratorClassRule] = []
    for rule in constraints.classSpecificConstraints:
        if rule.type == "nonConsecutive":
            class_rules.append(
                GeneratorNonConsecutive(
                    className=class_names[rule.classId],
                    subject1=subject_names[rule.subjectId1],
                    subject2=subject_names[rule.subjectId2],
                )
            )
        else:
            class_rules.append(GeneratorPreferredTime(className=class_names[rule.classId], details=rule.details))

    return GenerationRequest(
        classes=[
            GeneratorClass(
                name=item.name,
                branch=item.branch,
                year=item.year,
                section=item.section,
                studentCount=item.studentCount,
                block=item.block,
            )
            for item in classes
        ],
        faculty=[
            GeneratorFaculty(
                name=item.name,
                department=item.department,
                specialization=item.specialization,
                maxWorkload=item.maxWorkload,
            )
            for item in faculty
        ],
        subjects=[
            GeneratorSubject(
                name=item.name,
                code=item.code,
                department=item.department,
                type=item.type,
                hoursPerWeek=item.hoursPerWeek,
                assignedFaculty=faculty_names.get(item.assignedFacultyId or "", UNASSIGNED_FACULTY),
                semester=item.semester,
                forClass=item.forClass,
            )
            for item in subjects
        ],
        rooms=[
            GeneratorRoom(
                number=item.number,
                building=item.building,
                type=item.type,
                capacity=item.capacity,
                block=item.block,
                equipment=item.equipment,
            )
            for item in rooms
        ],
        constraints=GeneratorConstraints(
            timeSlots=[slot for slot in grid.time_slots if slot != grid.lunch_break],
            workingDays=list(grid.working_days),
            lunchBreak=grid.lunch_break,
            maxConsecutiveClasses=constraints.maxConsecutiveClasses,
            maxConcurrentClassesPerDept=constraints.maxConcurrentClassesPerDept,
            fixedClasses=fixed,
            facultyUnavailability=unavailability,
            facultyPreferences=preferences,
            roomResourceConstraints=constraints.roomResourceConstraints,
            studentSectionConstraints=constraints.studentSectionConstraints,
            advancedConstraints=constraints.advancedConstraints,
            customConstraints=[item for item in constraints.customConstraints if item.isActive],
            classSpecificConstraints=class_rules,
        ),
    )
