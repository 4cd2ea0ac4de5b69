"""
Ciclo de vida de las visitas de limpieza
- Resolver o crear la visita activa
- Visitas ligadas a una reserva
- Cierre de la visita
"""
from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.cleaning import CleaningVisit, CleaningVisitTask, Reservation, VisitStatus
from services.cleaning_errors import NotFound, VisitIncomplete
from utils.decorators import storage_operation
from utils.logging_utils import log_event
from utils.timezone import get_operational_date, utc_now


class VisitService:
    """Servicio para resolver, crear y cerrar visitas"""

    @staticmethod
    def get_visit(db: Session, property_id: int, visit_id: int, operation: str = "get_visit") -> CleaningVisit:
        visit = db.query(CleaningVisit).filter(
            CleaningVisit.id == visit_id,
            CleaningVisit.property_id == property_id,
        ).first()
        if not visit:
            raise NotFound(operation, "Visita no encontrada", property_id=property_id, visit_id=visit_id)
        return visit

    @staticmethod
    def _get_reservation(db: Session, property_id: int, reservation_id: int, operation: str) -> Reservation:
        reservation = db.query(Reservation).filter(
            Reservation.id == reservation_id,
            Reservation.property_id == property_id,
        ).first()
        if not reservation:
            raise NotFound(operation, "Reserva no encontrada", property_id=property_id, reservation_id=reservation_id)
        return reservation

    @staticmethod
    def _insert_visit(
        db: Session,
        property_id: int,
        visit_date: date,
        actor_id: Optional[str],
        reservation_id: Optional[int] = None,
        client_token: Optional[str] = None,
    ) -> CleaningVisit:
        visit = CleaningVisit(
            property_id=property_id,
            reservation_id=reservation_id,
            visit_date=visit_date,
            status=VisitStatus.IN_PROGRESS,
            client_token=client_token,
            created_by=actor_id,
        )
        db.add(visit)
        db.commit()
        db.refresh(visit)
        log_event(
            "cleaning", actor_id, "Crear visita",
            f"property_id={property_id}, visit_id={visit.id}, reservation_id={reservation_id}",
        )
        return visit

    @staticmethod
    @storage_operation("get_or_create_visit")
    def get_or_create_visit(
        db: Session,
        property_id: int,
        actor_id: Optional[str] = None,
        visit_id: Optional[int] = None,
        client_token: Optional[str] = None,
        reservation_id: Optional[int] = None,
    ) -> CleaningVisit:
        """
        Con visit_id devuelve esa visita (NotFound si no es de la propiedad).
        Sin visit_id crea una visita nueva para hoy; el caller debe guardar
        el id y reenviarlo en la misma sesión.

        client_token hace la creación idempotente: el mismo token para la
        misma propiedad devuelve la visita ya creada.
        """
        if visit_id is not None:
            return VisitService.get_visit(db, property_id, visit_id, "get_or_create_visit")

        # Una visita ligada a reserva se fecha en el inicio de la estadía
        visit_date = get_operational_date()
        if reservation_id is not None:
            reservation = VisitService._get_reservation(db, property_id, reservation_id, "get_or_create_visit")
            visit_date = reservation.start_date

        if not client_token:
            return VisitService._insert_visit(
                db, property_id, visit_date, actor_id, reservation_id=reservation_id,
            )

        existing = db.query(CleaningVisit).filter(
            CleaningVisit.property_id == property_id,
            CleaningVisit.client_token == client_token,
        ).first()
        if existing:
            return existing

        try:
            return VisitService._insert_visit(
                db, property_id, visit_date, actor_id,
                reservation_id=reservation_id, client_token=client_token,
            )
        except IntegrityError:
            # Otra sesión creó la visita con el mismo token entre la búsqueda y el insert
            db.rollback()
            existing = db.query(CleaningVisit).filter(
                CleaningVisit.property_id == property_id,
                CleaningVisit.client_token == client_token,
            ).first()
            if not existing:
                raise
            return existing

    @staticmethod
    @storage_operation("create_visit_for_reservation")
    def create_visit_for_reservation(
        db: Session,
        property_id: int,
        reservation_id: int,
        actor_id: Optional[str] = None,
    ) -> CleaningVisit:
        reservation = VisitService._get_reservation(db, property_id, reservation_id, "create_visit_for_reservation")
        return VisitService._insert_visit(
            db, property_id, reservation.start_date, actor_id, reservation_id=reservation.id,
        )

    @staticmethod
    @storage_operation("close_visit")
    def close_visit(
        db: Session,
        property_id: int,
        visit_id: int,
        actor_id: Optional[str] = None,
        force: bool = False,
    ) -> CleaningVisit:
        visit = VisitService.get_visit(db, property_id, visit_id, "close_visit")
        if visit.status == VisitStatus.COMPLETED:
            return visit

        pending = (
            db.query(func.count(CleaningVisitTask.id))
            .filter(
                CleaningVisitTask.visit_id == visit.id,
                CleaningVisitTask.is_completed.is_(False),
            )
            .scalar()
        )
        if pending and not force:
            raise VisitIncomplete("close_visit", pending, property_id=property_id, visit_id=visit_id)

        visit.status = VisitStatus.COMPLETED
        visit.completed_by = actor_id
        visit.completed_at = utc_now()
        db.commit()
        db.refresh(visit)
        log_event(
            "cleaning", actor_id, "Cerrar visita",
            f"visit_id={visit_id}, pendientes={pending}, forzado={force}",
        )
        return visit
