"""
Errores del flujo de limpieza.

Cada error lleva la operación que falló y los ids de alcance
(property_id, visit_id, ...) para que el caller decida si reintentar.
"""
from typing import List, Optional


class CleaningError(Exception):
    """Base de todos los errores del dominio de limpieza"""

    retryable = False

    def __init__(self, operation: str, message: str, **context):
        super().__init__(message)
        self.operation = operation
        self.message = message
        self.context = {k: v for k, v in context.items() if v is not None}

    def to_dict(self) -> dict:
        return {
            "error": self.__class__.__name__,
            "operation": self.operation,
            "message": self.message,
            "context": self.context,
            "retryable": self.retryable,
        }


class NotFound(CleaningError):
    """La visita, tarea o definición no existe o pertenece a otra propiedad"""


class InvalidRoom(CleaningError):
    """El ambiente no es fijo ni un ambiente personalizado de la propiedad"""


class VisitIncomplete(CleaningError):
    """Se intentó cerrar una visita con tareas pendientes"""

    def __init__(self, operation: str, pending: int, **context):
        super().__init__(operation, f"La visita tiene {pending} tarea(s) pendiente(s)", pending=pending, **context)
        self.pending = pending


class PartialMaterialization(CleaningError):
    """
    Algunas definiciones quedaron sin su registro en la visita.
    `items` contiene lo que sí se pudo cargar.
    """

    retryable = True

    def __init__(
        self,
        operation: str,
        loaded: int,
        expected: int,
        missing_task_ids: List[int],
        items: Optional[list] = None,
        **context,
    ):
        super().__init__(
            operation,
            f"Se cargaron {loaded} de {expected} tareas",
            loaded=loaded,
            expected=expected,
            missing_task_ids=missing_task_ids,
            **context,
        )
        self.loaded = loaded
        self.expected = expected
        self.missing_task_ids = missing_task_ids
        self.items = items or []


class TransientStorageError(CleaningError):
    """Error de conexión/timeout con la base de datos"""

    retryable = True

    def __init__(self, operation: str, message: str, retryable: bool = True, **context):
        super().__init__(operation, message, **context)
        # toggle no es seguro de reintentar: el resultado cambia
        self.retryable = retryable
