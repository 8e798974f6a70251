from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from slotcraft.api.deps import get_db
from slotcraft.schemas.analytics import FreeBusyGrid, RoomAvailabilityGrid, TimetableAnalytics, ViewBy
from slotcraft.schemas.entities import EntityBundle, Room
from slotcraft.schemas.timetable import StoredTimetableOut
from slotcraft.services.analytics import build_free_busy, build_room_availability, build_timetable_analytics, timetable_status
from slotcraft.services.export import export_timetable_csv
from slotcraft.services.store import load_constraints, load_timetable
from slotcraft.services.time_slots import build_time_grid

router = APIRouter()


@router.get("/institutions/{institution_id}/timetable", response_model=StoredTimetableOut)
def get_timetable(institution_id: str, db: Session = Depends(get_db)) -> StoredTimetableOut:
    result, runtime_ms, generated_at = load_timetable(db, institution_id)
    return StoredTimetableOut(
        institutionId=institution_id,
        status=timetable_status(result.timetable, result.unscheduledSessions),
        timetable=result.timetable,
        unscheduledSessions=result.unscheduledSessions,
        runtimeMs=runtime_ms,
        generatedAt=generated_at.isoformat() if generated_at else None,
    )


@router.post("/institutions/{institution_id}/timetable/analytics", response_model=TimetableAnalytics)
def get_timetable_analytics(
    institution_id: str,
    payload: EntityBundle,
    db: Session = Depends(get_db),
) -> TimetableAnalytics:
    result, _, _ = load_timetable(db, institution_id)
    return build_timetable_analytics(
        result.timetable,
        result.unscheduledSessions,
        load_constraints(db, institution_id),
        payload.classes,
        payload.subjects,
        payload.faculty,
        payload.rooms,
    )


@router.get("/institutions/{institution_id}/timetable/rooms/availability", response_model=RoomAvailabilityGrid)
def get_room_availability(
    institution_id: str,
    day: str = Query(..., min_length=3),
    rooms: list[str] | None = Query(default=None, alias="room"),
    db: Session = Depends(get_db),
) -> RoomAvailabilityGrid:
    result, _, _ = load_timetable(db, institution_id)
    grid = build_time_grid(load_constraints(db, institution_id).timePreferences)
    # Without an explicit room list, show every room the timetable uses.
    numbers = rooms or sorted({entry.room for entry in result.timetable if entry.room})
    return build_room_availability(
        result.timetable,
        day,
        [Room(id=number, number=number) for number in numbers],
        list(grid.time_slots),
    )


@router.get("/institutions/{institution_id}/timetable/view", response_model=FreeBusyGrid)
def get_timetable_view(
    institution_id: str,
    view_by: ViewBy = Query(..., alias="viewBy"),
    value: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
) -> FreeBusyGrid:
    result, _, _ = load_timetable(db, institution_id)
    grid = build_time_grid(load_constraints(db, institution_id).timePreferences)
    return build_free_busy(result.timetable, view_by, value, list(grid.working_days), list(grid.time_slots))


@router.get("/institutions/{institution_id}/timetable/export.csv")
def export_timetable(institution_id: str, db: Session = Depends(get_db)) -> Response:
    result, _, _ = load_timetable(db, institution_id)
    return Response(
        content=export_timetable_csv(result.timetable),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="timetable-{institution_id}.csv"'},
    )
