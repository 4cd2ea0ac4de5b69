"""
Decorators para servicios - Manejo uniforme de errores de almacenamiento
"""
import inspect
from functools import wraps
from typing import Callable

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import Session

from services.cleaning_errors import TransientStorageError
from utils.logging_utils import log_error

_SCOPE_ARGS = ("property_id", "visit_id", "visit_task_id", "task_id", "reservation_id", "actor_id")


def storage_operation(operation: str, retryable: bool = True) -> Callable:
    """
    Decorator que convierte errores de conexión/timeout de SQLAlchemy en
    TransientStorageError, haciendo rollback de la sesión.

    Busca la sesión en el argumento `db` y arma el contexto con los ids de
    alcance que reciba la función.

    Uso:
        @storage_operation("set_completion")
        def set_completion(db: Session, visit_task_id: int, ...):
            ...
    """
    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except (OperationalError, DBAPIError) as exc:
                if isinstance(exc, DBAPIError) and not isinstance(exc, OperationalError) \
                        and not exc.connection_invalidated:
                    raise

                bound = signature.bind_partial(*args, **kwargs).arguments
                db = bound.get("db")
                if isinstance(db, Session):
                    db.rollback()

                context = {name: bound[name] for name in _SCOPE_ARGS if bound.get(name) is not None}
                log_error("cleaning", context.get("actor_id"), operation, str(exc.orig or exc))
                raise TransientStorageError(
                    operation,
                    "Error de conexión con la base de datos",
                    retryable=retryable,
                    **context,
                ) from exc

        return wrapper

    return decorator
