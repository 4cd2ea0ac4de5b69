from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    DateTime,
    ForeignKey,
    Text,
    Boolean,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import relationship

from database.conexion import Base
from utils.timezone import utc_now


class VisitStatus:
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class CleaningRoomType(Base):
    """Ambiente personalizado de una propiedad (además de los ambientes fijos)"""
    __tablename__ = "cleaning_room_types"
    __table_args__ = (
        UniqueConstraint("property_id", "slug", name="uq_room_type_property_slug"),
        Index("idx_room_type_property", "property_id"),
    )

    id = Column(Integer, primary_key=True)
    property_id = Column(Integer, nullable=False)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False)
    icon = Column(String(30), nullable=False, default="home")
    created_at = Column(DateTime(timezone=True), default=utc_now)


class CleaningTask(Base):
    """
    Definición reutilizable de una tarea de limpieza para un ambiente.
    Borrarla no borra las tareas ya registradas en visitas anteriores.
    """
    __tablename__ = "cleaning_tasks"
    __table_args__ = (
        Index("idx_cleaning_task_property_room", "property_id", "room"),
        # Los ids borrados no se reusan: CleaningVisitTask.task_id los sigue guardando
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True)
    property_id = Column(Integer, nullable=False)
    room = Column(String(100), nullable=False)  # kitchen | living_room | ... | slug personalizado
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    reference_photo_url = Column(Text, nullable=True)
    display_order = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        Index("idx_reservation_property", "property_id"),
        Index("idx_reservation_dates", "start_date", "end_date"),
    )

    id = Column(Integer, primary_key=True)
    property_id = Column(Integer, nullable=False)
    title = Column(String(200), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    visits = relationship("CleaningVisit", back_populates="reservation")


class CleaningVisit(Base):
    """Una sesión de limpieza de la propiedad"""
    __tablename__ = "cleaning_visits"
    __table_args__ = (
        # Evita duplicar la visita cuando el cliente reintenta con el mismo token
        UniqueConstraint("property_id", "client_token", name="uq_visit_property_client_token"),
        Index("idx_visit_property_date", "property_id", "visit_date"),
        Index("idx_visit_status", "status"),
    )

    id = Column(Integer, primary_key=True)
    property_id = Column(Integer, nullable=False)
    reservation_id = Column(Integer, ForeignKey("reservations.id", ondelete="SET NULL"), nullable=True)
    visit_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=VisitStatus.IN_PROGRESS)  # in_progress | completed
    client_token = Column(String(64), nullable=True)

    created_by = Column(String(100), nullable=True)
    completed_by = Column(String(100), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    reservation = relationship("Reservation", back_populates="visits")
    tasks = relationship("CleaningVisitTask", back_populates="visit", order_by="CleaningVisitTask.id")


class CleaningVisitTask(Base):
    """
    Instancia de una CleaningTask dentro de una visita.
    Como máximo una por (visit_id, task_id).
    """
    __tablename__ = "cleaning_visit_tasks"
    __table_args__ = (
        UniqueConstraint("visit_id", "task_id", name="uq_visit_task"),
        Index("idx_visit_task_visit", "visit_id"),
        Index("idx_visit_task_completed", "is_completed"),
    )

    id = Column(Integer, primary_key=True)
    visit_id = Column(Integer, ForeignKey("cleaning_visits.id", ondelete="CASCADE"), nullable=False)
    # Sin FK: si la definición se borra, el registro queda huérfano con el id original
    task_id = Column(Integer, nullable=False)

    # Copia de la definición al momento de materializar
    task_name = Column(String(200), nullable=True)
    room = Column(String(100), nullable=True)

    is_completed = Column(Boolean, nullable=False, default=False)
    completed_by = Column(String(100), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    photo_url = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    visit = relationship("CleaningVisit", back_populates="tasks")
