"""
Historial de visitas y estadísticas de completado
"""
from typing import Dict, List

from sqlalchemy import case, func
from sqlalchemy.orm import Session, joinedload

from models.cleaning import CleaningTask, CleaningVisit, CleaningVisitTask
from services.room_registry import BUILTIN_ROOMS, ORPHANED_ROOM_KEY, describe_room
from services.visit_service import VisitService
from utils.decorators import storage_operation


def completion_percentage(completed: int, total: int) -> int:
    """Porcentaje entero redondeado hacia arriba en .5 (0 si no hay tareas)"""
    if total <= 0:
        return 0
    return (completed * 200 + total) // (2 * total)


def build_stats(total: int, completed: int) -> dict:
    return {
        "total": total,
        "completed": completed,
        "percentage": completion_percentage(completed, total),
    }


def _room_sort_key(room_key: str):
    builtin_keys = list(BUILTIN_ROOMS)
    if room_key in BUILTIN_ROOMS:
        return (0, builtin_keys.index(room_key), room_key)
    if room_key == ORPHANED_ROOM_KEY:
        return (2, 0, room_key)
    return (1, 0, room_key)


@storage_operation("list_visits")
def list_visits(db: Session, property_id: int) -> List[dict]:
    visits = (
        db.query(CleaningVisit)
        .options(joinedload(CleaningVisit.reservation))
        .filter(CleaningVisit.property_id == property_id)
        .order_by(CleaningVisit.visit_date.desc(), CleaningVisit.id.desc())
        .all()
    )

    counts = {}
    if visits:
        rows = (
            db.query(
                CleaningVisitTask.visit_id,
                func.count(CleaningVisitTask.id),
                func.sum(case((CleaningVisitTask.is_completed.is_(True), 1), else_=0)),
            )
            .filter(CleaningVisitTask.visit_id.in_([v.id for v in visits]))
            .group_by(CleaningVisitTask.visit_id)
            .all()
        )
        counts = {visit_id: (total, completed or 0) for visit_id, total, completed in rows}

    result = []
    for visit in visits:
        total, completed = counts.get(visit.id, (0, 0))
        result.append({
            "id": visit.id,
            "property_id": visit.property_id,
            "reservation_id": visit.reservation_id,
            "reservation_title": visit.reservation.title if visit.reservation else None,
            "visit_date": visit.visit_date,
            "status": visit.status,
            "created_by": visit.created_by,
            "completed_by": visit.completed_by,
            "completed_at": visit.completed_at,
            "created_at": visit.created_at,
            "stats": build_stats(total, completed),
        })
    return result


@storage_operation("get_visit_detail")
def get_visit_detail(db: Session, property_id: int, visit_id: int) -> dict:
    """
    Tareas de la visita agrupadas por ambiente. Las que perdieron su
    definición van al grupo "orphaned".
    """
    visit = VisitService.get_visit(db, property_id, visit_id, "get_visit_detail")

    visit_tasks = (
        db.query(CleaningVisitTask)
        .filter(CleaningVisitTask.visit_id == visit.id)
        .order_by(CleaningVisitTask.created_at, CleaningVisitTask.id)
        .all()
    )
    task_ids = {vt.task_id for vt in visit_tasks}
    definitions: Dict[int, CleaningTask] = {}
    if task_ids:
        definitions = {
            d.id: d
            for d in db.query(CleaningTask).filter(
                CleaningTask.property_id == property_id,
                CleaningTask.id.in_(task_ids),
            )
        }

    groups: Dict[str, list] = {}
    for vt in visit_tasks:
        definition = definitions.get(vt.task_id)
        room_key = definition.room if definition else ORPHANED_ROOM_KEY
        groups.setdefault(room_key, []).append((definition, vt))

    rooms = []
    for room_key in sorted(groups, key=_room_sort_key):
        entries = groups[room_key]
        # Orden de la definición si existe; si no, orden de creación (ya viene así)
        entries.sort(key=lambda pair: (pair[0].display_order, pair[0].id) if pair[0] else (0, 0))

        tasks = []
        for definition, vt in entries:
            tasks.append({
                "id": vt.id,
                "task_id": vt.task_id,
                "name": definition.name if definition else vt.task_name,
                "description": definition.description if definition else None,
                "room": definition.room if definition else vt.room,
                "orphaned": definition is None,
                "is_completed": bool(vt.is_completed),
                "completed_by": vt.completed_by,
                "completed_at": vt.completed_at,
                "photo_url": vt.photo_url,
            })

        info = describe_room(db, property_id, room_key)
        completed = sum(1 for t in tasks if t["is_completed"])
        rooms.append({
            "key": room_key,
            "name": info["name"],
            "icon": info["icon"],
            "total": len(tasks),
            "completed": completed,
            "tasks": tasks,
        })

    return {
        "visit": visit,
        "rooms": rooms,
        "stats": build_stats(
            sum(r["total"] for r in rooms),
            sum(r["completed"] for r in rooms),
        ),
    }


@storage_operation("compute_stats")
def compute_stats(db: Session, property_id: int, visit_id: int) -> dict:
    """total incluye las huérfanas para no perder evidencia histórica"""
    visit = VisitService.get_visit(db, property_id, visit_id, "compute_stats")
    total, completed = (
        db.query(
            func.count(CleaningVisitTask.id),
            func.sum(case((CleaningVisitTask.is_completed.is_(True), 1), else_=0)),
        )
        .filter(CleaningVisitTask.visit_id == visit.id)
        .one()
    )
    return build_stats(total or 0, int(completed or 0))
