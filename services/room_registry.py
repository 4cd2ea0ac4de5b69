"""
Registro de ambientes: los fijos de toda propiedad más los personalizados.
"""
import enum
import re
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.cleaning import CleaningRoomType, CleaningTask
from services.cleaning_errors import InvalidRoom, NotFound
from utils.decorators import storage_operation
from utils.logging_utils import log_event

ORPHANED_ROOM_KEY = "orphaned"


class RoomIcon(str, enum.Enum):
    HOME = "home"
    UTENSILS = "utensils"
    BATH = "bath"
    BED = "bed"
    SOFA = "sofa"
    CAR = "car"
    WAREHOUSE = "warehouse"
    TREES = "trees"


DEFAULT_ICON = RoomIcon.HOME

# key -> (nombre visible, ícono)
BUILTIN_ROOMS: Dict[str, tuple] = {
    "kitchen": ("Kitchen", RoomIcon.UTENSILS),
    "living_room": ("Living Room", RoomIcon.HOME),
    "master_bedroom": ("Master Bedroom", RoomIcon.HOME),
    "guest_bedroom": ("Guest Bedroom", RoomIcon.HOME),
    "master_bathroom": ("Master Bathroom", RoomIcon.BATH),
    "guest_bathroom": ("Guest Bathroom", RoomIcon.BATH),
}


def resolve_icon(name: Optional[str]) -> RoomIcon:
    """Ícono por nombre; los desconocidos caen en el ícono por defecto"""
    if not name:
        return DEFAULT_ICON
    try:
        return RoomIcon(name.strip().lower())
    except ValueError:
        return DEFAULT_ICON


def slugify_room(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "_", name.lower())


def format_room_name(room_key: str) -> str:
    return " ".join(word.capitalize() for word in room_key.split("_") if word)


def describe_room(db: Session, property_id: int, room_key: str) -> dict:
    """key, nombre e ícono de un ambiente, aunque ya no esté registrado"""
    if room_key == ORPHANED_ROOM_KEY:
        return {"key": room_key, "name": "Orphaned", "icon": DEFAULT_ICON.value, "builtin": False}
    if room_key in BUILTIN_ROOMS:
        name, icon = BUILTIN_ROOMS[room_key]
        return {"key": room_key, "name": name, "icon": icon.value, "builtin": True}
    custom = db.query(CleaningRoomType).filter(
        CleaningRoomType.property_id == property_id,
        CleaningRoomType.slug == room_key,
    ).first()
    if custom:
        return {"key": room_key, "name": custom.name, "icon": resolve_icon(custom.icon).value, "builtin": False}
    return {"key": room_key, "name": format_room_name(room_key), "icon": DEFAULT_ICON.value, "builtin": False}


def ensure_room_exists(db: Session, property_id: int, room_key: str, operation: str) -> None:
    if room_key in BUILTIN_ROOMS:
        return
    exists = db.query(CleaningRoomType.id).filter(
        CleaningRoomType.property_id == property_id,
        CleaningRoomType.slug == room_key,
    ).first()
    if not exists:
        raise InvalidRoom(operation, f"Ambiente '{room_key}' no existe", property_id=property_id, room=room_key)


@storage_operation("list_rooms")
def list_rooms(db: Session, property_id: int) -> List[dict]:
    counts = dict(
        db.query(CleaningTask.room, func.count(CleaningTask.id))
        .filter(CleaningTask.property_id == property_id)
        .group_by(CleaningTask.room)
        .all()
    )

    rooms = []
    for key, (name, icon) in BUILTIN_ROOMS.items():
        rooms.append({
            "id": None,
            "key": key,
            "name": name,
            "icon": icon.value,
            "builtin": True,
            "task_count": counts.get(key, 0),
        })

    custom_rooms = (
        db.query(CleaningRoomType)
        .filter(CleaningRoomType.property_id == property_id)
        .order_by(CleaningRoomType.name)
        .all()
    )
    for room in custom_rooms:
        rooms.append({
            "id": room.id,
            "key": room.slug,
            "name": room.name,
            "icon": resolve_icon(room.icon).value,
            "builtin": False,
            "task_count": counts.get(room.slug, 0),
        })
    return rooms


def _get_room_type(db: Session, property_id: int, room_type_id: int, operation: str) -> CleaningRoomType:
    room = db.query(CleaningRoomType).filter(
        CleaningRoomType.id == room_type_id,
        CleaningRoomType.property_id == property_id,
    ).first()
    if not room:
        raise NotFound(operation, "Ambiente no encontrado", property_id=property_id, room_type_id=room_type_id)
    return room


def _check_slug_free(db: Session, property_id: int, slug: str, operation: str, exclude_id: Optional[int] = None):
    if slug in BUILTIN_ROOMS or slug == ORPHANED_ROOM_KEY:
        raise InvalidRoom(operation, f"'{slug}' es un ambiente reservado", property_id=property_id, room=slug)
    query = db.query(CleaningRoomType.id).filter(
        CleaningRoomType.property_id == property_id,
        CleaningRoomType.slug == slug,
    )
    if exclude_id is not None:
        query = query.filter(CleaningRoomType.id != exclude_id)
    if query.first():
        raise InvalidRoom(operation, f"Ya existe un ambiente '{slug}'", property_id=property_id, room=slug)


@storage_operation("create_room")
def create_room(
    db: Session,
    property_id: int,
    name: str,
    slug: Optional[str] = None,
    icon: Optional[str] = None,
    actor_id: Optional[str] = None,
) -> CleaningRoomType:
    slug = slugify_room(slug or name)
    _check_slug_free(db, property_id, slug, "create_room")

    room = CleaningRoomType(
        property_id=property_id,
        name=name,
        slug=slug,
        icon=resolve_icon(icon).value,
    )
    db.add(room)
    db.commit()
    db.refresh(room)
    log_event("cleaning", actor_id, "Crear ambiente", f"property_id={property_id}, slug={slug}")
    return room


@storage_operation("update_room")
def update_room(
    db: Session,
    property_id: int,
    room_type_id: int,
    data: dict,
    actor_id: Optional[str] = None,
) -> CleaningRoomType:
    room = _get_room_type(db, property_id, room_type_id, "update_room")

    if data.get("name"):
        room.name = data["name"]
    if data.get("slug"):
        slug = slugify_room(data["slug"])
        if slug != room.slug:
            _check_slug_free(db, property_id, slug, "update_room", exclude_id=room.id)
            room.slug = slug
    if "icon" in data:
        room.icon = resolve_icon(data["icon"]).value

    db.commit()
    db.refresh(room)
    log_event("cleaning", actor_id, "Actualizar ambiente", f"room_type_id={room_type_id}")
    return room


@storage_operation("delete_room")
def delete_room(db: Session, property_id: int, room_type_id: int, actor_id: Optional[str] = None) -> None:
    # Las definiciones del ambiente quedan; se siguen listando con el nombre derivado del slug
    room = _get_room_type(db, property_id, room_type_id, "delete_room")
    db.delete(room)
    db.commit()
    log_event("cleaning", actor_id, "Eliminar ambiente", f"room_type_id={room_type_id}")
