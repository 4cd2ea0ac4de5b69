from typing import Iterable, List, NamedTuple, Optional

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.cleaning import CleaningTask, CleaningVisitTask
from services.cleaning_errors import PartialMaterialization
from services.visit_service import VisitService
from utils.decorators import storage_operation
from utils.logging_utils import log_event
from utils.timezone import utc_now

_UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class MaterializedTask(NamedTuple):
    definition: CleaningTask
    visit_task: CleaningVisitTask


def _room_definitions(db: Session, property_id: int, room: str) -> List[CleaningTask]:
    return (
        db.query(CleaningTask)
        .filter(CleaningTask.property_id == property_id, CleaningTask.room == room)
        .order_by(CleaningTask.display_order, CleaningTask.id)
        .all()
    )


def _new_row(visit_id: int, definition: CleaningTask) -> dict:
    now = utc_now()
    return {
        "visit_id": visit_id,
        "task_id": definition.id,
        "task_name": definition.name,
        "room": definition.room,
        "is_completed": False,
        "completed_by": None,
        "completed_at": None,
        "photo_url": None,
        "created_at": now,
        "updated_at": now,
    }


def insert_missing_visit_tasks(db: Session, visit_id: int, definitions: Iterable[CleaningTask]) -> int:
    """
    Inserta un CleaningVisitTask por definición. Si la fila ya existe
    (uq_visit_task) se toma como ya materializada y se sigue.

    Returns:
        cantidad de filas insertadas por esta llamada
    """
    rows = [_new_row(visit_id, d) for d in definitions]
    if not rows:
        return 0

    table = CleaningVisitTask.__table__
    dialect_insert = _UPSERT_DIALECTS.get(db.get_bind().dialect.name)

    if dialect_insert is not None:
        stmt = dialect_insert(table).on_conflict_do_nothing(index_elements=["visit_id", "task_id"])
        result = db.execute(stmt, rows)
        db.commit()
        return max(result.rowcount or 0, 0)

    inserted = 0
    for row in rows:
        try:
            with db.begin_nested():
                db.execute(table.insert(), [row])
            inserted += 1
        except IntegrityError:
            # Conflicto de unicidad: otra sesión la materializó primero
            continue
    db.commit()
    return inserted


@storage_operation("materialize")
def materialize(
    db: Session,
    property_id: int,
    visit_id: int,
    room: str,
    actor_id: Optional[str] = None,
) -> List[MaterializedTask]:
    """
    Garantiza que cada definición del ambiente tenga exactamente un
    CleaningVisitTask en la visita y devuelve los pares en orden de display.

    Llamarla dos veces seguidas no inserta nada la segunda vez. Las tareas
    huérfanas de la visita no aparecen acá (sí en el historial).
    """
    visit = VisitService.get_visit(db, property_id, visit_id, "materialize")
    definitions = _room_definitions(db, property_id, room)
    if not definitions:
        return []

    existing_ids = {
        task_id
        for (task_id,) in db.query(CleaningVisitTask.task_id).filter(CleaningVisitTask.visit_id == visit.id)
    }
    missing = [d for d in definitions if d.id not in existing_ids]

    inserted = insert_missing_visit_tasks(db, visit.id, missing)
    if inserted:
        log_event(
            "cleaning", actor_id, "Materializar tareas",
            f"visit_id={visit.id}, room={room}, nuevas={inserted}",
        )

    visit_tasks = (
        db.query(CleaningVisitTask)
        .filter(
            CleaningVisitTask.visit_id == visit.id,
            CleaningVisitTask.task_id.in_([d.id for d in definitions]),
        )
        .all()
    )
    by_task_id = {vt.task_id: vt for vt in visit_tasks}

    items = []
    missing_after = []
    for definition in definitions:
        visit_task = by_task_id.get(definition.id)
        if visit_task is None:
            missing_after.append(definition.id)
            continue
        items.append(MaterializedTask(definition, visit_task))

    if missing_after:
        raise PartialMaterialization(
            "materialize",
            loaded=len(items),
            expected=len(definitions),
            missing_task_ids=missing_after,
            items=items,
            property_id=property_id,
            visit_id=visit.id,
            room=room,
        )
    return items
