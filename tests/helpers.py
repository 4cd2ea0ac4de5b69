"""
Factories compartidas por los tests de limpieza
"""
from datetime import date

from models.cleaning import CleaningRoomType, CleaningTask, Reservation
from utils.auth import create_access_token

PROPERTY_ID = 1
OTHER_PROPERTY_ID = 2


def auth_headers(property_id=PROPERTY_ID, user_id="user-1", rol="admin") -> dict:
    claims = {"sub": f"{user_id}@test", "user_id": user_id, "rol": rol}
    if property_id is not None:
        claims["property_id"] = property_id
    return {"Authorization": f"Bearer {create_access_token(claims)}"}


def make_task(db, name, room="kitchen", display_order=0, property_id=PROPERTY_ID) -> CleaningTask:
    task = CleaningTask(property_id=property_id, room=room, name=name, display_order=display_order)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def make_room(db, name, slug, icon="home", property_id=PROPERTY_ID) -> CleaningRoomType:
    room = CleaningRoomType(property_id=property_id, name=name, slug=slug, icon=icon)
    db.add(room)
    db.commit()
    db.refresh(room)
    return room


def make_reservation(db, title="Familia García", start=date(2025, 1, 10), end=date(2025, 1, 15), property_id=PROPERTY_ID):
    reservation = Reservation(property_id=property_id, title=title, start_date=start, end_date=end)
    db.add(reservation)
    db.commit()
    db.refresh(reservation)
    return reservation
