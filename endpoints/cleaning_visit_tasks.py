from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from database import conexion
from schemas.cleaning import CleaningCompletionSet, CleaningEvidence, CleaningVisitTaskRead
from services.completion_service import CompletionService
from utils.dependencies import CleaningContext, get_cleaning_context

router = APIRouter(prefix="/cleaning/visit-tasks", tags=["Cleaning - Tareas de visita"])


@router.put("/{visit_task_id}/completion", response_model=CleaningVisitTaskRead)
def marcar_tarea(
    payload: CleaningCompletionSet,
    visit_task_id: int = Path(..., gt=0),
    ctx: CleaningContext = Depends(get_cleaning_context),
    db: Session = Depends(conexion.get_db),
):
    """Fija el estado deseado. Seguro de reintentar."""
    return CompletionService.set_completion(
        db, ctx.property_id, visit_task_id, payload.is_completed, actor_id=ctx.actor_id,
    )


@router.post("/{visit_task_id}/toggle", response_model=CleaningVisitTaskRead)
def alternar_tarea(
    visit_task_id: int = Path(..., gt=0),
    ctx: CleaningContext = Depends(get_cleaning_context),
    db: Session = Depends(conexion.get_db),
):
    """Invierte el estado actual. No reintentar automáticamente."""
    return CompletionService.toggle_completion(db, ctx.property_id, visit_task_id, actor_id=ctx.actor_id)


@router.put("/{visit_task_id}/evidence", response_model=CleaningVisitTaskRead)
def adjuntar_foto(
    payload: CleaningEvidence,
    visit_task_id: int = Path(..., gt=0),
    ctx: CleaningContext = Depends(get_cleaning_context),
    db: Session = Depends(conexion.get_db),
):
    return CompletionService.attach_evidence(
        db, ctx.property_id, visit_task_id, payload.photo_url, actor_id=ctx.actor_id,
    )
