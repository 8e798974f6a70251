from __future__ import annotations

import logging
from time import perf_counter

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from slotcraft.api.deps import get_db, get_generator
from slotcraft.schemas.entities import EntityBundle
from slotcraft.schemas.timetable import GenerateTimetableResponse
from slotcraft.services.analytics import find_conflicts, reconcile_entries, timetable_status
from slotcraft.services.constraint_model import stale_unavailability
from slotcraft.services.fixed_classes import reconcile_fixed_classes
from slotcraft.services.generator_client import GeneratorClient
from slotcraft.services.request_builder import build_generation_request
from slotcraft.services.store import load_constraints, save_timetable
from slotcraft.services.time_slots import build_time_grid

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/institutions/{institution_id}/generate", response_model=GenerateTimetableResponse)
def generate_timetable(
    institution_id: str,
    payload: EntityBundle,
    db: Session = Depends(get_db),
    generator: GeneratorClient = Depends(get_generator),
) -> GenerateTimetableResponse:
    # Later edits to the stored document do not affect a generation already in flight.
    constraints = load_constraints(db, institution_id)
    request = build_generation_request(payload.classes, payload.faculty, payload.subjects, payload.rooms, constraints)

    started = perf_counter()
    result = generator.generate(request)
    runtime_ms = int((perf_counter() - started) * 1000)

    generated_at = save_timetable(db, institution_id, result, runtime_ms)

    conflicts = find_conflicts(result.timetable)
    warnings = [
        f"Ignored unavailability of faculty {faculty_id} on {day} {time_slot}: outside the current time grid"
        for faculty_id, day, time_slot in stale_unavailability(constraints, build_time_grid(constraints.timePreferences))
    ]
    reconciliation = reconcile_entries(
        result.timetable, payload.classes, payload.subjects, payload.faculty, payload.rooms
    )
    warnings.extend(issue.message for issue in reconciliation.issues)

    status = timetable_status(result.timetable, result.unscheduledSessions, conflicts)
    logger.info(
        "Generation for %s finished with status %s: conflicts=%s unresolved=%s",
        institution_id,
        status,
        len(conflicts),
        len(reconciliation.issues),
    )
    return GenerateTimetableResponse(
        institutionId=institution_id,
        status=status,
        timetable=result.timetable,
        unscheduledSessions=result.unscheduledSessions,
        runtimeMs=runtime_ms,
        generatedAt=generated_at.isoformat(),
        conflictCount=sum(item.entry_count for item in conflicts),
        fixedClassMismatches=reconcile_fixed_classes(
            constraints.fixedClasses, result.timetable, payload.classes, payload.subjects, payload.rooms
        ),
        warnings=warnings,
    )
