"""
Dependencias de identidad y alcance por propiedad
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from utils.auth import verify_token
from utils.logging_utils import log_event

# El login vive en el proveedor de identidad; tokenUrl solo documenta el flujo
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

ADMIN_ROLES = ("admin", "owner", "manager")


@dataclass(frozen=True)
class CleaningContext:
    """Quién hace la operación y sobre qué propiedad"""
    actor_id: str
    property_id: int
    rol: Optional[str] = None


def get_cleaning_context(token: str = Depends(oauth2_scheme)) -> CleaningContext:
    """
    Obtiene actor y propiedad activa desde el token JWT

    Raises:
        HTTPException: 401 si el token no identifica al usuario,
                       403 si no hay propiedad seleccionada
    """
    payload = verify_token(token, token_type="access")

    actor_id = payload.get("user_id") or payload.get("sub")
    if actor_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No se pudo validar las credenciales",
            headers={"WWW-Authenticate": "Bearer"},
        )

    property_id = payload.get("property_id")
    try:
        property_id = int(property_id)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No hay una propiedad activa seleccionada",
        )

    return CleaningContext(actor_id=str(actor_id), property_id=property_id, rol=payload.get("rol"))


def require_property_admin(ctx: CleaningContext = Depends(get_cleaning_context)) -> CleaningContext:
    """Solo administradores de la propiedad editan el catálogo de tareas y ambientes"""
    if ctx.rol not in ADMIN_ROLES:
        log_event("auth", ctx.actor_id, "Intento de acceso admin sin permisos", f"rol={ctx.rol}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Se requieren privilegios de administrador",
        )
    return ctx
