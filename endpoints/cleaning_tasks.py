from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from database import conexion
from schemas.cleaning import (
    CleaningRoomCreate,
    CleaningRoomRead,
    CleaningRoomTypeRead,
    CleaningRoomUpdate,
    CleaningTaskCreate,
    CleaningTaskRead,
    CleaningTaskUpdate,
)
from services import room_registry
from services.task_definition_service import TaskDefinitionService
from utils.dependencies import CleaningContext, get_cleaning_context, require_property_admin

router = APIRouter(prefix="/cleaning", tags=["Cleaning - Catálogo"])


# ===== AMBIENTES =====

@router.get("/rooms", response_model=list[CleaningRoomRead])
def listar_ambientes(
    ctx: CleaningContext = Depends(get_cleaning_context),
    db: Session = Depends(conexion.get_db),
):
    """Ambientes fijos + personalizados de la propiedad, con cantidad de tareas"""
    return room_registry.list_rooms(db, ctx.property_id)


@router.post("/rooms", response_model=CleaningRoomTypeRead, status_code=status.HTTP_201_CREATED)
def crear_ambiente(
    payload: CleaningRoomCreate,
    ctx: CleaningContext = Depends(require_property_admin),
    db: Session = Depends(conexion.get_db),
):
    return room_registry.create_room(
        db, ctx.property_id, payload.name, slug=payload.slug, icon=payload.icon, actor_id=ctx.actor_id,
    )


@router.put("/rooms/{room_type_id}", response_model=CleaningRoomTypeRead)
def actualizar_ambiente(
    payload: CleaningRoomUpdate,
    room_type_id: int = Path(..., gt=0),
    ctx: CleaningContext = Depends(require_property_admin),
    db: Session = Depends(conexion.get_db),
):
    return room_registry.update_room(
        db, ctx.property_id, room_type_id, payload.model_dump(exclude_unset=True), actor_id=ctx.actor_id,
    )


@router.delete("/rooms/{room_type_id}", status_code=status.HTTP_204_NO_CONTENT)
def eliminar_ambiente(
    room_type_id: int = Path(..., gt=0),
    ctx: CleaningContext = Depends(require_property_admin),
    db: Session = Depends(conexion.get_db),
):
    room_registry.delete_room(db, ctx.property_id, room_type_id, actor_id=ctx.actor_id)


# ===== DEFINICIONES DE TAREAS =====

@router.get("/tasks", response_model=list[CleaningTaskRead])
def listar_tareas(
    room: Optional[str] = Query(None),
    ctx: CleaningContext = Depends(get_cleaning_context),
    db: Session = Depends(conexion.get_db),
):
    return TaskDefinitionService.list_definitions(db, ctx.property_id, room)


@router.post("/tasks", response_model=CleaningTaskRead, status_code=status.HTTP_201_CREATED)
def crear_tarea(
    payload: CleaningTaskCreate,
    ctx: CleaningContext = Depends(require_property_admin),
    db: Session = Depends(conexion.get_db),
):
    return TaskDefinitionService.create_definition(
        db,
        ctx.property_id,
        payload.room,
        payload.name,
        description=payload.description,
        reference_photo_url=payload.reference_photo_url,
        display_order=payload.display_order,
        actor_id=ctx.actor_id,
    )


@router.put("/tasks/{task_id}", response_model=CleaningTaskRead)
def actualizar_tarea(
    payload: CleaningTaskUpdate,
    task_id: int = Path(..., gt=0),
    ctx: CleaningContext = Depends(require_property_admin),
    db: Session = Depends(conexion.get_db),
):
    return TaskDefinitionService.update_definition(
        db, ctx.property_id, task_id, payload.model_dump(exclude_unset=True), actor_id=ctx.actor_id,
    )


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def eliminar_tarea(
    task_id: int = Path(..., gt=0),
    ctx: CleaningContext = Depends(require_property_admin),
    db: Session = Depends(conexion.get_db),
):
    """Las tareas ya registradas en visitas quedan como huérfanas"""
    TaskDefinitionService.delete_definition(db, ctx.property_id, task_id, actor_id=ctx.actor_id)
