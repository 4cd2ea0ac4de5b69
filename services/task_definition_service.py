"""
Catálogo de tareas de limpieza por propiedad y ambiente
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from models.cleaning import CleaningTask
from services.cleaning_errors import NotFound
from services.room_registry import ensure_room_exists
from utils.decorators import storage_operation
from utils.logging_utils import log_event

_EDITABLE_FIELDS = ("room", "name", "description", "reference_photo_url", "display_order")


class TaskDefinitionService:
    """Alta, baja y modificación de definiciones de tareas"""

    @staticmethod
    def get_definition(db: Session, property_id: int, task_id: int, operation: str = "get_definition") -> CleaningTask:
        task = db.query(CleaningTask).filter(
            CleaningTask.id == task_id,
            CleaningTask.property_id == property_id,
        ).first()
        if not task:
            raise NotFound(operation, "Tarea no encontrada", property_id=property_id, task_id=task_id)
        return task

    @staticmethod
    @storage_operation("list_definitions")
    def list_definitions(db: Session, property_id: int, room: Optional[str] = None) -> List[CleaningTask]:
        query = db.query(CleaningTask).filter(CleaningTask.property_id == property_id)
        if room:
            query = query.filter(CleaningTask.room == room)
        return query.order_by(CleaningTask.room, CleaningTask.display_order, CleaningTask.id).all()

    @staticmethod
    @storage_operation("create_definition")
    def create_definition(
        db: Session,
        property_id: int,
        room: str,
        name: str,
        description: Optional[str] = None,
        reference_photo_url: Optional[str] = None,
        display_order: int = 0,
        actor_id: Optional[str] = None,
    ) -> CleaningTask:
        ensure_room_exists(db, property_id, room, "create_definition")

        task = CleaningTask(
            property_id=property_id,
            room=room,
            name=name,
            description=description,
            reference_photo_url=reference_photo_url,
            display_order=display_order or 0,
        )
        db.add(task)
        db.commit()
        db.refresh(task)
        log_event("cleaning", actor_id, "Crear tarea", f"property_id={property_id}, room={room}, task_id={task.id}")
        return task

    @staticmethod
    @storage_operation("update_definition")
    def update_definition(
        db: Session,
        property_id: int,
        task_id: int,
        data: dict,
        actor_id: Optional[str] = None,
    ) -> CleaningTask:
        task = TaskDefinitionService.get_definition(db, property_id, task_id, "update_definition")

        if data.get("room") and data["room"] != task.room:
            ensure_room_exists(db, property_id, data["room"], "update_definition")

        for campo, valor in data.items():
            if campo in _EDITABLE_FIELDS and (valor is not None or campo in ("description", "reference_photo_url")):
                setattr(task, campo, valor)

        db.commit()
        db.refresh(task)
        log_event("cleaning", actor_id, "Actualizar tarea", f"task_id={task_id}")
        return task

    @staticmethod
    @storage_operation("delete_definition")
    def delete_definition(db: Session, property_id: int, task_id: int, actor_id: Optional[str] = None) -> None:
        # Los CleaningVisitTask que la referencian quedan como huérfanos
        task = TaskDefinitionService.get_definition(db, property_id, task_id, "delete_definition")
        db.delete(task)
        db.commit()
        log_event("cleaning", actor_id, "Eliminar tarea", f"property_id={property_id}, task_id={task_id}")
