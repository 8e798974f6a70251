from __future__ import annotations

from datetime import datetime, timezone
import logging

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from slotcraft.core.exceptions import ConstraintValidationError
from slotcraft.models.constraint_document import ConstraintDocument
from slotcraft.models.generated_timetable import GeneratedTimetable
from slotcraft.schemas.constraints import Constraints
from slotcraft.schemas.timetable import GenerationResult
from slotcraft.services.constraint_model import default_constraints

logger = logging.getLogger(__name__)


def get_constraint_record(db: Session, institution_id: str) -> ConstraintDocument | None:
    return db.execute(
        select(ConstraintDocument).where(ConstraintDocument.institution_id == institution_id)
    ).scalar_one_or_none()


def load_constraints(db: Session, institution_id: str) -> Constraints:
    record = get_constraint_record(db, institution_id)
    if record is None:
        return default_constraints()
    try:
        return Constraints.model_validate(record.document)
    except ValidationError as exc:
        logger.warning("Stored constraints for %s no longer validate: %s", institution_id, exc)
        raise ConstraintValidationError(
            "Stored constraints are invalid; save a corrected document",
            details={"raw": str(exc)},
        ) from exc


def save_constraints(db: Session, institution_id: str, constraints: Constraints) -> Constraints:
    """Replace the whole document for ``institution_id``."""
    document = constraints.model_dump(mode="json")
    record = get_constraint_record(db, institution_id)
    if record is None:
        db.add(ConstraintDocument(institution_id=institution_id, document=document))
    else:
        record.document = document
    db.commit()
    return constraints


def get_timetable_record(db: Session, institution_id: str) -> GeneratedTimetable | None:
    return db.execute(
        select(GeneratedTimetable).where(GeneratedTimetable.institution_id == institution_id)
    ).scalar_one_or_none()


def load_timetable(db: Session, institution_id: str) -> tuple[GenerationResult, int, datetime | None]:
    record = get_timetable_record(db, institution_id)
    if record is None:
        return GenerationResult(), 0, None
    result = GenerationResult.model_validate(
        {"timetable": record.entries or [], "unscheduledSessions": record.unscheduled_sessions or []}
    )
    return result, record.runtime_ms or 0, record.generated_at


def save_timetable(db: Session, institution_id: str, result: GenerationResult, runtime_ms: int) -> datetime:
    entries = [entry.model_dump(mode="json") for entry in result.timetable]
    sessions = [session.model_dump(mode="json") for session in result.unscheduledSessions]
    generated_at = datetime.now(timezone.utc)

    record = get_timetable_record(db, institution_id)
    if record is None:
        record = GeneratedTimetable(institution_id=institution_id)
        db.add(record)
    record.entries = entries
    record.unscheduled_sessions = sessions
    record.runtime_ms = runtime_ms
    record.generated_at = generated_at
    db.commit()
    logger.info("Stored timetable for %s: entries=%s unscheduled=%s", institution_id, len(entries), len(sessions))
    return generated_at
