from __future__ import annotations

import logging
from typing import Any

from pydantic import TypeAdapter

from slotcraft.schemas.constraints import (
    AdvancedConstraints,
    ClassSpecificConstraint,
    ConstraintCategory,
    ConstraintIssue,
    ConstraintValidationReport,
    Constraints,
    CustomConstraint,
    FacultyPreference,
    FixedClassConstraint,
    RoomResourceConstraints,
    StudentSectionConstraints,
    TimePreferences,
)
from slotcraft.core.exceptions import ConstraintValidationError
from slotcraft.schemas.entities import ClassGroup, Faculty, Room, Subject
from slotcraft.services.fixed_classes import find_collisions
from slotcraft.services.time_slots import TimeGrid, build_time_grid

logger = logging.getLogger(__name__)


CATEGORY_ADAPTERS: dict[ConstraintCategory, TypeAdapter] = {
    ConstraintCategory.time_preferences: TypeAdapter(TimePreferences),
    ConstraintCategory.faculty_preferences: TypeAdapter(list[FacultyPreference]),
    ConstraintCategory.fixed_classes: TypeAdapter(list[FixedClassConstraint]),
    ConstraintCategory.room_resource: TypeAdapter(RoomResourceConstraints),
    ConstraintCategory.student_section: TypeAdapter(StudentSectionConstraints),
    ConstraintCategory.advanced: TypeAdapter(AdvancedConstraints),
    ConstraintCategory.custom: TypeAdapter(list[CustomConstraint]),
    ConstraintCategory.class_specific: TypeAdapter(list[ClassSpecificConstraint]),
    ConstraintCategory.max_consecutive: TypeAdapter(int),
    ConstraintCategory.max_concurrent_per_dept: TypeAdapter(dict[str, int]),
}

_missing_categories = set(ConstraintCategory) - set(CATEGORY_ADAPTERS)
if _missing_categories:  # pragma: no cover - import-time guard
    raise RuntimeError(f"No adapter for constraint categories: {sorted(c.value for c in _missing_categories)}")


def default_constraints() -> Constraints:
    return Constraints()


def apply_category_update(constraints: Constraints, category: ConstraintCategory, value: Any) -> Constraints:
    """Return a copy of ``constraints`` with only ``category`` replaced.

    The replacement is validated against the category's own type first and
    then against the aggregate, so a rejected update never leaks into the
    returned document.
    """
    parsed = CATEGORY_ADAPTERS[category].validate_python(value)
    document = constraints.model_dump()
    document[category.value] = CATEGORY_ADAPTERS[category].dump_python(parsed)
    updated = Constraints.model_validate(document)
    if category is ConstraintCategory.fixed_classes:
        ensure_no_fixed_class_collisions(updated)
    return updated


def ensure_no_fixed_class_collisions(constraints: Constraints) -> None:
    collisions = find_collisions(constraints.fixedClasses)
    if collisions:
        raise ConstraintValidationError(
            collisions[0].message,
            details={
                "category": ConstraintCategory.fixed_classes.value,
                "collisions": [collision.message for collision in collisions],
            },
        )


def upsert_faculty_preference(constraints: Constraints, preference: FacultyPreference) -> Constraints:
    preferences = list(constraints.facultyPreferences)
    for index, existing in enumerate(preferences):
        if existing.facultyId == preference.facultyId:
            preferences[index] = preference
            break
    else:
        preferences.append(preference)
    return constraints.model_copy(update={"facultyPreferences": preferences})


def remove_faculty_preference(constraints: Constraints, faculty_id: str) -> Constraints:
    preferences = [item for item in constraints.facultyPreferences if item.facultyId != faculty_id]
    return constraints.model_copy(update={"facultyPreferences": preferences})


def upsert_custom_constraint(constraints: Constraints, custom: CustomConstraint) -> Constraints:
    items = list(constraints.customConstraints)
    for index, existing in enumerate(items):
        if existing.id == custom.id:
            items[index] = custom
            break
    else:
        items.append(custom)
    return constraints.model_copy(update={"customConstraints": items})


def remove_custom_constraint(constraints: Constraints, constraint_id: str) -> Constraints:
    items = [item for item in constraints.customConstraints if item.id != constraint_id]
    return constraints.model_copy(update={"customConstraints": items})


def set_custom_constraint_active(constraints: Constraints, constraint_id: str, is_active: bool) -> Constraints | None:
    items = list(constraints.customConstraints)
    for index, existing in enumerate(items):
        if existing.id == constraint_id:
            items[index] = existing.model_copy(update={"isActive": is_active})
            return constraints.model_copy(update={"customConstraints": items})
    return None


def stale_unavailability(constraints: Constraints, grid: TimeGrid) -> list[tuple[str, str, str]]:
    stale: list[tuple[str, str, str]] = []
    for preference in constraints.facultyPreferences:
        for item in preference.unavailability:
            if not grid.contains(item.day, item.timeSlot):
                stale.append((preference.facultyId, item.day, item.timeSlot))
    return stale


def prune_stale_unavailability(constraints: Constraints, grid: TimeGrid | None = None) -> Constraints:
    """Drop unavailability entries that no longer match the current day/slot grid."""
    grid = grid or build_time_grid(constraints.timePreferences)
    preferences: list[FacultyPreference] = []
    dropped = 0
    for preference in constraints.facultyPreferences:
        kept = [item for item in preference.unavailability if grid.contains(item.day, item.timeSlot)]
        dropped += len(preference.unavailability) - len(kept)
        preferences.append(preference.model_copy(update={"unavailability": kept}))
    if dropped:
        logger.info("Ignoring %s stale faculty unavailability entries", dropped)
    return constraints.model_copy(update={"facultyPreferences": preferences})


def _subject_fits_class(subject: Subject, class_group: ClassGroup) -> str | None:
    if subject.forClass and subject.forClass.strip() != class_group.name:
        return f"is reserved for class {subject.forClass}"
    if subject.department and class_group.branch and subject.department.strip().lower() != class_group.branch.strip().lower():
        return f"belongs to department {subject.department}, not {class_group.branch}"
    if subject.semester is not None:
        semester_year = (subject.semester + 1) // 2
        if semester_year != class_group.year:
            return f"is a semester {subject.semester} subject, not taught in year {class_group.year}"
    return None


def validate_constraints(
    constraints: Constraints,
    classes: list[ClassGroup],
    subjects: list[Subject],
    rooms: list[Room],
    faculty: list[Faculty] | None = None,
) -> ConstraintValidationReport:
    grid = build_time_grid(constraints.timePreferences)
    errors: list[ConstraintIssue] = []
    warnings: list[ConstraintIssue] = []

    def issue(
        target: list[ConstraintIssue],
        code: str,
        message: str,
        category: ConstraintCategory,
        reference_id: str | None = None,
    ) -> None:
        severity = "error" if target is errors else "warning"
        target.append(
            ConstraintIssue(code=code, severity=severity, message=message, category=category, referenceId=reference_id)
        )

    class_map = {item.id: item for item in classes}
    subject_map = {item.id: item for item in subjects}
    room_ids = {item.id for item in rooms}

    if not grid.time_slots:
        issue(
            errors,
            "time_preferences_unconfigured",
            "Time preferences do not produce any bookable slots",
            ConstraintCategory.time_preferences,
        )

    fixed = ConstraintCategory.fixed_classes
    for pin in constraints.fixedClasses:
        class_group = class_map.get(pin.classId)
        subject = subject_map.get(pin.subjectId)
        if class_group is None:
            issue(errors, "fixed_unknown_class", f"Fixed class {pin.id} references unknown classId {pin.classId}", fixed, pin.id)
        if subject is None:
            issue(
                errors, "fixed_unknown_subject", f"Fixed class {pin.id} references unknown subjectId {pin.subjectId}", fixed, pin.id
            )
        if pin.roomId is not None and pin.roomId not in room_ids:
            issue(errors, "fixed_unknown_room", f"Fixed class {pin.id} references unknown roomId {pin.roomId}", fixed, pin.id)
        if class_group is not None and subject is not None:
            reason = _subject_fits_class(subject, class_group)
            if reason is not None:
                issue(
                    errors,
                    "fixed_impossible_pairing",
                    f"Fixed class {pin.id}: subject {subject.code} {reason}",
                    fixed,
                    pin.id,
                )
        if grid.time_slots and pin.day not in grid.working_days:
            issue(errors, "fixed_invalid_day", f"Fixed class {pin.id} is pinned on non-working day {pin.day}", fixed, pin.id)
        if grid.time_slots and pin.timeSlot not in grid.time_slots:
            issue(
                errors,
                "fixed_invalid_slot",
                f"Fixed class {pin.id} uses time slot {pin.timeSlot}, which is not a bookable slot",
                fixed,
                pin.id,
            )

    for collision in find_collisions(constraints.fixedClasses):
        issue(errors, f"fixed_{collision.kind}_collision", collision.message, fixed, collision.fixed_class_ids[-1])

    class_rules = ConstraintCategory.class_specific
    for rule in constraints.classSpecificConstraints:
        if rule.classId not in class_map:
            issue(
                errors,
                "class_specific_unknown_class",
                f"Class rule {rule.id} references unknown classId {rule.classId}",
                class_rules,
                rule.id,
            )
        if rule.type == "nonConsecutive":
            for subject_id in (rule.subjectId1, rule.subjectId2):
                if subject_id not in subject_map:
                    issue(
                        errors,
                        "class_specific_unknown_subject",
                        f"Class rule {rule.id} references unknown subjectId {subject_id}",
                        class_rules,
                        rule.id,
                    )

    preferences = ConstraintCategory.faculty_preferences
    if faculty is not None:
        faculty_ids = {item.id for item in faculty}
        for preference in constraints.facultyPreferences:
            if preference.facultyId not in faculty_ids:
                issue(
                    warnings,
                    "preference_unknown_faculty",
                    f"Preferences exist for unknown facultyId {preference.facultyId}",
                    preferences,
                    preference.facultyId,
                )
            for course in preference.coursePreferences:
                if course.subjectId not in subject_map:
                    issue(
                        warnings,
                        "preference_unknown_subject",
                        f"Course preference of {preference.facultyId} references unknown subjectId {course.subjectId}",
                        preferences,
                        preference.facultyId,
                    )

    if grid.time_slots:
        for faculty_id, day, time_slot in stale_unavailability(constraints, grid):
            issue(
                warnings,
                "stale_unavailability",
                f"Unavailability {day} {time_slot} for {faculty_id} no longer matches the time grid and will be ignored",
                preferences,
                faculty_id,
            )

    return ConstraintValidationReport(
        valid=not errors,
        errors=errors,
        warnings=warnings,
        timeSlots=list(grid.time_slots),
    )

