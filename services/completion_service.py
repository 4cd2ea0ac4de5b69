"""
Registro de tareas completadas dentro de una visita
- Marcar / desmarcar una tarea (con quién y cuándo)
- Completar todas las tareas de un ambiente
- Adjuntar foto de evidencia
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from models.cleaning import CleaningVisit, CleaningVisitTask
from services.cleaning_errors import NotFound
from services.visit_service import VisitService
from utils.decorators import storage_operation
from utils.logging_utils import log_event
from utils.timezone import utc_now


class CompletionService:
    """Servicio para el estado de completado de las tareas de una visita"""

    @staticmethod
    def get_visit_task(
        db: Session,
        property_id: int,
        visit_task_id: int,
        operation: str = "get_visit_task",
    ) -> CleaningVisitTask:
        visit_task = (
            db.query(CleaningVisitTask)
            .join(CleaningVisit, CleaningVisit.id == CleaningVisitTask.visit_id)
            .filter(
                CleaningVisitTask.id == visit_task_id,
                CleaningVisit.property_id == property_id,
            )
            .first()
        )
        if not visit_task:
            raise NotFound(operation, "Tarea de la visita no encontrada", property_id=property_id, visit_task_id=visit_task_id)
        return visit_task

    @staticmethod
    def _apply(visit_task: CleaningVisitTask, desired: bool, actor_id: Optional[str]) -> bool:
        """Aplica el estado deseado. Devuelve False si ya estaba así."""
        if bool(visit_task.is_completed) == desired:
            return False
        visit_task.is_completed = desired
        if desired:
            visit_task.completed_by = actor_id
            visit_task.completed_at = utc_now()
        else:
            visit_task.completed_by = None
            visit_task.completed_at = None
        return True

    @staticmethod
    @storage_operation("set_completion")
    def set_completion(
        db: Session,
        property_id: int,
        visit_task_id: int,
        desired: bool,
        actor_id: Optional[str] = None,
    ) -> CleaningVisitTask:
        """
        Forma idempotente: pedir dos veces el mismo estado deja el mismo
        resultado (no pisa quién ni cuándo se completó).
        """
        visit_task = CompletionService.get_visit_task(db, property_id, visit_task_id, "set_completion")
        changed = CompletionService._apply(visit_task, desired, actor_id)
        if changed:
            db.commit()
            db.refresh(visit_task)
            log_event(
                "cleaning", actor_id, "Completar tarea" if desired else "Desmarcar tarea",
                f"visit_id={visit_task.visit_id}, visit_task_id={visit_task_id}",
            )
        return visit_task

    @staticmethod
    @storage_operation("toggle_completion", retryable=False)
    def toggle_completion(
        db: Session,
        property_id: int,
        visit_task_id: int,
        actor_id: Optional[str] = None,
    ) -> CleaningVisitTask:
        """Invierte el estado actual. No reintentar: cada llamada alterna."""
        visit_task = CompletionService.get_visit_task(db, property_id, visit_task_id, "toggle_completion")
        desired = not visit_task.is_completed
        CompletionService._apply(visit_task, desired, actor_id)
        db.commit()
        db.refresh(visit_task)
        log_event(
            "cleaning", actor_id, "Completar tarea" if desired else "Desmarcar tarea",
            f"visit_id={visit_task.visit_id}, visit_task_id={visit_task_id}, toggle=True",
        )
        return visit_task

    @staticmethod
    @storage_operation("complete_all")
    def complete_all(
        db: Session,
        property_id: int,
        visit_id: int,
        visit_task_ids: List[int],
        actor_id: Optional[str] = None,
    ) -> int:
        """
        Marca como completadas las tareas indicadas en un solo UPDATE.
        Los ids que no son de la visita se ignoran. Las ya completadas
        quedan atribuidas a este actor.

        Returns:
            cantidad de filas actualizadas
        """
        visit = VisitService.get_visit(db, property_id, visit_id, "complete_all")
        ids = sorted(set(visit_task_ids or []))
        if not ids:
            return 0

        updated = (
            db.query(CleaningVisitTask)
            .filter(
                CleaningVisitTask.visit_id == visit.id,
                CleaningVisitTask.id.in_(ids),
            )
            .update(
                {
                    CleaningVisitTask.is_completed: True,
                    CleaningVisitTask.completed_by: actor_id,
                    CleaningVisitTask.completed_at: utc_now(),
                    CleaningVisitTask.updated_at: utc_now(),
                },
                synchronize_session=False,
            )
        )
        db.commit()
        log_event(
            "cleaning", actor_id, "Completar todas",
            f"visit_id={visit.id}, solicitadas={len(ids)}, actualizadas={updated}",
        )
        return updated

    @staticmethod
    @storage_operation("attach_evidence")
    def attach_evidence(
        db: Session,
        property_id: int,
        visit_task_id: int,
        photo_url: str,
        actor_id: Optional[str] = None,
    ) -> CleaningVisitTask:
        """Guarda la URL de la foto; no exige que la tarea esté completada"""
        visit_task = CompletionService.get_visit_task(db, property_id, visit_task_id, "attach_evidence")
        visit_task.photo_url = photo_url
        db.commit()
        db.refresh(visit_task)
        log_event("cleaning", actor_id, "Adjuntar foto", f"visit_task_id={visit_task_id}")
        return visit_task
