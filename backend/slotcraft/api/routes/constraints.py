from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from slotcraft.api.deps import get_db
from slotcraft.core.exceptions import ConstraintValidationError, ResourceNotFoundError
from slotcraft.schemas.constraints import (
    ConstraintCategory,
    ConstraintValidationReport,
    Constraints,
    CustomConstraint,
    CustomConstraintToggle,
    FacultyPreference,
    FixedClassConstraint,
    FixedClassCreate,
    TimeGridOut,
)
from slotcraft.schemas.entities import EntityBundle
from slotcraft.services.constraint_model import (
    apply_category_update,
    ensure_no_fixed_class_collisions,
    remove_custom_constraint,
    remove_faculty_preference,
    set_custom_constraint_active,
    upsert_custom_constraint,
    upsert_faculty_preference,
    validate_constraints,
)
from slotcraft.services.fixed_classes import FixedClassRegistry
from slotcraft.services.store import load_constraints, save_constraints
from slotcraft.services.time_slots import build_time_grid

logger = logging.getLogger(__name__)

router = APIRouter()


def _rejected(category: ConstraintCategory, exc: ValidationError) -> ConstraintValidationError:
    logger.info("Rejected %s update with %s error(s)", category.value, exc.error_count())
    return ConstraintValidationError(
        f"Invalid {category.value}",
        details={"category": category.value, "errors": exc.errors(include_url=False, include_context=False)},
    )


def _save_fixed_classes(db: Session, institution_id: str, constraints: Constraints, registry: FixedClassRegistry) -> None:
    save_constraints(db, institution_id, constraints.model_copy(update={"fixedClasses": registry.items()}))


@router.get("/institutions/{institution_id}/constraints", response_model=Constraints)
def get_constraints(institution_id: str, db: Session = Depends(get_db)) -> Constraints:
    return load_constraints(db, institution_id)


@router.put("/institutions/{institution_id}/constraints", response_model=Constraints)
def replace_constraints(institution_id: str, payload: Constraints, db: Session = Depends(get_db)) -> Constraints:
    ensure_no_fixed_class_collisions(payload)
    return save_constraints(db, institution_id, payload)


@router.put("/institutions/{institution_id}/constraints/{category}", response_model=Constraints)
def update_constraint_category(
    institution_id: str,
    category: ConstraintCategory,
    value: Any = Body(...),
    db: Session = Depends(get_db),
) -> Constraints:
    current = load_constraints(db, institution_id)
    try:
        updated = apply_category_update(current, category, value)
    except ValidationError as exc:
        raise _rejected(category, exc) from exc
    return save_constraints(db, institution_id, updated)


@router.put(
    "/institutions/{institution_id}/constraints/faculty-preferences/{faculty_id}",
    response_model=FacultyPreference,
)
def upsert_faculty_preference_route(
    institution_id: str,
    faculty_id: str,
    payload: FacultyPreference,
    db: Session = Depends(get_db),
) -> FacultyPreference:
    if payload.facultyId != faculty_id:
        raise ConstraintValidationError(
            "facultyId in the body does not match the URL",
            details={"facultyId": payload.facultyId, "expected": faculty_id},
        )
    current = load_constraints(db, institution_id)
    save_constraints(db, institution_id, upsert_faculty_preference(current, payload))
    return payload


@router.delete(
    "/institutions/{institution_id}/constraints/faculty-preferences/{faculty_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_faculty_preference(institution_id: str, faculty_id: str, db: Session = Depends(get_db)) -> None:
    current = load_constraints(db, institution_id)
    if all(item.facultyId != faculty_id for item in current.facultyPreferences):
        raise ResourceNotFoundError("Faculty preference", faculty_id)
    save_constraints(db, institution_id, remove_faculty_preference(current, faculty_id))


@router.post("/institutions/{institution_id}/constraints/validate", response_model=ConstraintValidationReport)
def validate_constraints_route(
    institution_id: str,
    payload: EntityBundle,
    db: Session = Depends(get_db),
) -> ConstraintValidationReport:
    constraints = load_constraints(db, institution_id)
    return validate_constraints(constraints, payload.classes, payload.subjects, payload.rooms, payload.faculty)


@router.get("/institutions/{institution_id}/time-slots", response_model=TimeGridOut)
def get_time_slots(institution_id: str, db: Session = Depends(get_db)) -> TimeGridOut:
    grid = build_time_grid(load_constraints(db, institution_id).timePreferences)
    return TimeGridOut(
        workingDays=list(grid.working_days),
        timeSlots=list(grid.time_slots),
        lunchBreak=grid.lunch_break,
        slotsPerDay=grid.slots_per_day,
    )


@router.get("/institutions/{institution_id}/fixed-classes", response_model=list[FixedClassConstraint])
def list_fixed_classes(institution_id: str, db: Session = Depends(get_db)) -> list[FixedClassConstraint]:
    return load_constraints(db, institution_id).fixedClasses


@router.post(
    "/institutions/{institution_id}/fixed-classes",
    response_model=FixedClassConstraint,
    status_code=status.HTTP_201_CREATED,
)
def create_fixed_class(
    institution_id: str,
    payload: FixedClassCreate,
    db: Session = Depends(get_db),
) -> FixedClassConstraint:
    current = load_constraints(db, institution_id)
    registry = FixedClassRegistry(current.fixedClasses)
    created = registry.add(payload)
    _save_fixed_classes(db, institution_id, current, registry)
    return created


@router.put("/institutions/{institution_id}/fixed-classes/{fixed_class_id}", response_model=FixedClassConstraint)
def update_fixed_class(
    institution_id: str,
    fixed_class_id: str,
    payload: FixedClassCreate,
    db: Session = Depends(get_db),
) -> FixedClassConstraint:
    current = load_constraints(db, institution_id)
    registry = FixedClassRegistry(current.fixedClasses)
    updated = registry.update(fixed_class_id, payload)
    _save_fixed_classes(db, institution_id, current, registry)
    return updated


@router.delete(
    "/institutions/{institution_id}/fixed-classes/{fixed_class_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_fixed_class(institution_id: str, fixed_class_id: str, db: Session = Depends(get_db)) -> None:
    current = load_constraints(db, institution_id)
    registry = FixedClassRegistry(current.fixedClasses)
    registry.remove(fixed_class_id)
    _save_fixed_classes(db, institution_id, current, registry)


@router.patch("/institutions/{institution_id}/custom-constraints/{constraint_id}", response_model=Constraints)
def toggle_custom_constraint(
    institution_id: str,
    constraint_id: str,
    payload: CustomConstraintToggle,
    db: Session = Depends(get_db),
) -> Constraints:
    current = load_constraints(db, institution_id)
    updated = set_custom_constraint_active(current, constraint_id, payload.isActive)
    if updated is None:
        raise ResourceNotFoundError("Custom constraint", constraint_id)
    return save_constraints(db, institution_id, updated)


@router.put("/institutions/{institution_id}/custom-constraints/{constraint_id}", response_model=CustomConstraint)
def upsert_custom_constraint_route(
    institution_id: str,
    constraint_id: str,
    payload: CustomConstraint,
    db: Session = Depends(get_db),
) -> CustomConstraint:
    if payload.id != constraint_id:
        raise ConstraintValidationError(
            "id in the body does not match the URL",
            details={"id": payload.id, "expected": constraint_id},
        )
    current = load_constraints(db, institution_id)
    save_constraints(db, institution_id, upsert_custom_constraint(current, payload))
    return payload


@router.delete(
    "/institutions/{institution_id}/custom-constraints/{constraint_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_custom_constraint(institution_id: str, constraint_id: str, db: Session = Depends(get_db)) -> None:
    current = load_constraints(db, institution_id)
    if all(item.id != constraint_id for item in current.customConstraints):
        raise ResourceNotFoundError("Custom constraint", constraint_id)
    save_constraints(db, institution_id, remove_custom_constraint(current, constraint_id))
