from typing import List

from fastapi import APIRouter, Depends, Path, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from config import RATE_LIMIT_VISITS
from database import conexion
from models.cleaning import CleaningVisit
from schemas.cleaning import (
    CleaningChecklistEntry,
    CleaningCompleteAll,
    CleaningCompleteAllResult,
    CleaningRoomChecklist,
    CleaningStats,
    CleaningVisitClose,
    CleaningVisitDetail,
    CleaningVisitOpen,
    CleaningVisitRead,
    CleaningVisitSummary,
)
from services import cleaning_history
from services.cleaning_errors import PartialMaterialization
from services.completion_service import CompletionService
from services.room_registry import describe_room
from services.task_materializer import MaterializedTask, materialize
from services.visit_service import VisitService
from utils.dependencies import CleaningContext, get_cleaning_context
from utils.rate_limiter import limiter

router = APIRouter(prefix="/cleaning/visits", tags=["Cleaning - Visitas"])


# Helpers

def _checklist(
    db: Session,
    visit: CleaningVisit,
    room: str,
    items: List[MaterializedTask],
    expected: int,
) -> CleaningRoomChecklist:
    info = describe_room(db, visit.property_id, room)
    entries = [
        CleaningChecklistEntry(
            visit_task_id=item.visit_task.id,
            task_id=item.definition.id,
            name=item.definition.name,
            description=item.definition.description,
            reference_photo_url=item.definition.reference_photo_url,
            display_order=item.definition.display_order,
            is_completed=bool(item.visit_task.is_completed),
            completed_by=item.visit_task.completed_by,
            completed_at=item.visit_task.completed_at,
            photo_url=item.visit_task.photo_url,
        )
        for item in items
    ]
    return CleaningRoomChecklist(
        visit=CleaningVisitRead.model_validate(visit),
        room=room,
        room_name=info["name"],
        icon=info["icon"],
        tasks=entries,
        loaded=len(entries),
        expected=expected,
    )


# Endpoints

@router.post("", response_model=CleaningVisitRead)
@limiter.limit(RATE_LIMIT_VISITS)
def abrir_visita(
    request: Request,
    payload: CleaningVisitOpen = CleaningVisitOpen(),
    ctx: CleaningContext = Depends(get_cleaning_context),
    db: Session = Depends(conexion.get_db),
):
    """
    Devuelve la visita indicada o crea una nueva para hoy.
    El cliente debe guardar el id devuelto y reenviarlo como visit_id.
    """
    return VisitService.get_or_create_visit(
        db,
        ctx.property_id,
        actor_id=ctx.actor_id,
        visit_id=payload.visit_id,
        client_token=payload.client_token,
        reservation_id=payload.reservation_id,
    )


@router.post("/reservation/{reservation_id}", response_model=CleaningVisitRead, status_code=status.HTTP_201_CREATED)
def crear_visita_para_reserva(
    reservation_id: int = Path(..., gt=0),
    ctx: CleaningContext = Depends(get_cleaning_context),
    db: Session = Depends(conexion.get_db),
):
    return VisitService.create_visit_for_reservation(db, ctx.property_id, reservation_id, actor_id=ctx.actor_id)


@router.get("", response_model=list[CleaningVisitSummary])
def listar_visitas(
    ctx: CleaningContext = Depends(get_cleaning_context),
    db: Session = Depends(conexion.get_db),
):
    return cleaning_history.list_visits(db, ctx.property_id)


@router.get("/{visit_id}", response_model=CleaningVisitDetail)
def obtener_visita(
    visit_id: int = Path(..., gt=0),
    ctx: CleaningContext = Depends(get_cleaning_context),
    db: Session = Depends(conexion.get_db),
):
    detail = cleaning_history.get_visit_detail(db, ctx.property_id, visit_id)
    detail["visit"] = CleaningVisitRead.model_validate(detail["visit"])
    return detail


@router.get("/{visit_id}/stats", response_model=CleaningStats)
def estadisticas_visita(
    visit_id: int = Path(..., gt=0),
    ctx: CleaningContext = Depends(get_cleaning_context),
    db: Session = Depends(conexion.get_db),
):
    return cleaning_history.compute_stats(db, ctx.property_id, visit_id)


@router.patch("/{visit_id}/close", response_model=CleaningVisitRead)
def cerrar_visita(
    visit_id: int = Path(..., gt=0),
    payload: CleaningVisitClose = CleaningVisitClose(),
    ctx: CleaningContext = Depends(get_cleaning_context),
    db: Session = Depends(conexion.get_db),
):
    return VisitService.close_visit(db, ctx.property_id, visit_id, actor_id=ctx.actor_id, force=payload.force)


@router.get("/{visit_id}/rooms/{room}", response_model=CleaningRoomChecklist)
def checklist_ambiente(
    visit_id: int = Path(..., gt=0),
    room: str = Path(..., min_length=1, max_length=100),
    ctx: CleaningContext = Depends(get_cleaning_context),
    db: Session = Depends(conexion.get_db),
):
    """
    Checklist del ambiente para la visita. Crea los registros que falten.
    Si alguno no se pudo crear responde 207 con lo que sí se cargó.
    """
    try:
        items = materialize(db, ctx.property_id, visit_id, room, actor_id=ctx.actor_id)
    except PartialMaterialization as exc:
        visit = VisitService.get_visit(db, ctx.property_id, visit_id, "materialize")
        partial = _checklist(db, visit, room, exc.items, exc.expected)
        body = jsonable_encoder(partial)
        body["error"] = exc.to_dict()
        return JSONResponse(status_code=status.HTTP_207_MULTI_STATUS, content=body)

    visit = VisitService.get_visit(db, ctx.property_id, visit_id, "materialize")
    return _checklist(db, visit, room, items, len(items))


@router.post("/{visit_id}/complete-all", response_model=CleaningCompleteAllResult)
def completar_todas(
    payload: CleaningCompleteAll,
    visit_id: int = Path(..., gt=0),
    ctx: CleaningContext = Depends(get_cleaning_context),
    db: Session = Depends(conexion.get_db),
):
    updated = CompletionService.complete_all(
        db, ctx.property_id, visit_id, payload.visit_task_ids, actor_id=ctx.actor_id,
    )
    return CleaningCompleteAllResult(
        visit_id=visit_id,
        requested=len(set(payload.visit_task_ids)),
        updated=updated,
    )
