"""
Archivo de inicialización del paquete models.
Expone todas las clases para que SQLAlchemy (Base.metadata) las detecte
al importar 'models'.
"""

from .cleaning import (
    VisitStatus,
    CleaningRoomType,
    CleaningTask,
    Reservation,
    CleaningVisit,
    CleaningVisitTask,
)

__all__ = [
    "VisitStatus",
    "CleaningRoomType",
    "CleaningTask",
    "Reservation",
    "CleaningVisit",
    "CleaningVisitTask",
]
